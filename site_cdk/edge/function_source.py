"""
Source generator for the header-injecting viewer-response function.

The generated handler follows the Lambda@Edge event contract: it reads
``event.Records[0].cf.response``, sets one entry per configured header in
``response.headers`` (keyed by the lower-cased name, holding a list of
``{key, value}`` pairs) and hands the response back through the callback.

The checksum is only a change detector for versioning. It is a 32-bit rolling
hash and collisions are possible.
"""

from __future__ import annotations
import json
import logging
from typing import NamedTuple, Sequence

from site_cdk.edge.header_rules import HeaderRule

logger = logging.getLogger(__name__)

PROLOGUE = (
    "'use strict';\n"
    "exports.handler = (event, context, callback) => {\n"
    "    const response = event.Records[0].cf.response;\n"
    "    const headers = response.headers;\n"
)

EPILOGUE = (
    "    callback(null, response);\n"
    "};\n"
)


class GeneratedFunction(NamedTuple):
    source: str
    fingerprint: str


def _js_string(value: str) -> str:
    return json.dumps(value)


def render_statement(rule: HeaderRule) -> str:
    """Render the assignment that sets a single header."""
    return (
        f"    headers[{_js_string(rule.name)}] = "
        f"[{{key: {_js_string(rule.key)}, value: {_js_string(rule.value)}}}];\n"
    )


def checksum(text: str) -> str:
    """
    Rolling 31-multiplier hash of ``text`` as a signed 32-bit decimal string.

    Works on UTF-16 code units so the result matches the same hash computed in
    JavaScript with ``charCodeAt``. An empty string has an empty checksum.
    """
    if not text:
        return ""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


def build_function_source(header_set: Sequence[HeaderRule]) -> GeneratedFunction:
    """
    Generate the handler source for a HeaderSet and fingerprint it.

    Statements appear in the order of ``header_set``. Two sets that differ in
    order produce different source even though the deployed behaviour is the
    same for distinct header names.

    Args:
        header_set: Ordered header rules (may be empty)

    Returns:
        GeneratedFunction(source, fingerprint)
    """
    source = "".join([PROLOGUE, *(render_statement(rule) for rule in header_set), EPILOGUE])
    fingerprint = checksum(source)
    logger.debug("Generated header function with %d statement(s), fingerprint %s", len(header_set), fingerprint)
    return GeneratedFunction(source=source, fingerprint=fingerprint)
