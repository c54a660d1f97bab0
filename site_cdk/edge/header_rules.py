"""
Response header rules for the edge header transform.

A HeaderRule is one configured HTTP response header; a HeaderSet is the
ordered tuple of rules taken from configuration. Rules are validated when they
are constructed, so anything that reaches code generation is already a legal
header name and a single-line value.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

from site_cdk.configs.error_handler import ErrorHandler, validate_header_entry

logger = logging.getLogger(__name__)

# RFC 7230 token
_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# RFC 7230 field-value: HTAB, visible ASCII, space and obs-text octets
_FIELD_VALUE = re.compile(r"^[\t\x20-\x7e\x80-\xff]*$")

# Headers a viewer-response function may not add or modify.
_RESTRICTED_HEADERS = frozenset({
    "connection",
    "content-encoding",
    "content-length",
    "expect",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "via",
    "warning",
    "x-cache",
    "x-forwarded-proto",
    "x-real-ip",
})
_RESTRICTED_PREFIXES = ("x-accel-", "x-amz-cf-", "x-amzn-", "x-edge-")


@dataclass(frozen=True)
class HeaderRule:
    """
    One HTTP response header to set on every response.

    Attributes:
        key: Header name as it should appear on the wire (e.g. "X-Frame-Options")
        value: Header value
    """
    key: str
    value: str

    def __post_init__(self) -> None:
        ErrorHandler.validate_type(self.key, str, "key", "Header rule")
        ErrorHandler.validate_type(self.value, str, "value", "Header rule")
        if not _TOKEN.match(self.key):
            raise ValueError(f"Header rule field 'key' is not a valid HTTP header name: {self.key!r}")
        if not _FIELD_VALUE.match(self.value):
            raise ValueError(f"Header rule '{self.key}' value must not contain control characters or characters above U+00FF")
        lowered = self.key.lower()
        if lowered in _RESTRICTED_HEADERS or lowered.startswith(_RESTRICTED_PREFIXES):
            raise ValueError(f"Header rule '{self.key}' cannot be set by a viewer-response edge function")

    @property
    def name(self) -> str:
        """Lower-cased header name, as used to index the edge headers map."""
        return self.key.lower()


HeaderSet = Tuple[HeaderRule, ...]


def header_rules_from(items: Iterable[Mapping[str, Any]]) -> HeaderSet:
    """
    Build a HeaderSet from configuration entries.

    Args:
        items: Ordered {"key": ..., "value": ...} mappings

    Returns:
        Tuple of validated header rules, in input order

    Raises:
        TypeError: If an entry is not a mapping or a field is not a string
        ValueError: If an entry is missing a field or is not a legal header
    """
    rules = []
    for i, entry in enumerate(items):
        validate_header_entry(entry, i)
        rules.append(HeaderRule(key=entry["key"], value=entry["value"]))

    seen = set()
    for rule in rules:
        if rule.name in seen:
            logger.warning("Header %s configured more than once; the last value wins", rule.key)
        seen.add(rule.name)

    return tuple(rules)


def last_value_per_header(header_set: HeaderSet) -> HeaderSet:
    """
    Collapse repeated headers the way the edge runtime would apply them.

    The position of each header is that of its first occurrence, its value
    that of its last one.
    """
    merged: dict[str, HeaderRule] = {}
    for rule in header_set:
        merged[rule.name] = rule
    return tuple(merged.values())
