"""
Security header mapping for CloudFront response headers policies.

CloudFront refuses Strict-Transport-Security, Content-Security-Policy,
X-Content-Type-Options, X-Frame-Options, X-XSS-Protection and Referrer-Policy
as custom headers; they must be configured through the policy's security
headers behavior. This module parses those header values into the matching
CDK settings and leaves every other rule as a custom header.
"""

from __future__ import annotations
import logging
import re
from typing import Dict, Optional, Tuple
from aws_cdk import Duration
from aws_cdk import aws_cloudfront as cloudfront
from site_cdk.configs.error_handler import ErrorHandler
from site_cdk.edge.header_rules import HeaderRule, HeaderSet

logger = logging.getLogger(__name__)

REFERRER_POLICIES = {
    "no-referrer": cloudfront.HeadersReferrerPolicy.NO_REFERRER,
    "no-referrer-when-downgrade": cloudfront.HeadersReferrerPolicy.NO_REFERRER_WHEN_DOWNGRADE,
    "origin": cloudfront.HeadersReferrerPolicy.ORIGIN,
    "origin-when-cross-origin": cloudfront.HeadersReferrerPolicy.ORIGIN_WHEN_CROSS_ORIGIN,
    "same-origin": cloudfront.HeadersReferrerPolicy.SAME_ORIGIN,
    "strict-origin": cloudfront.HeadersReferrerPolicy.STRICT_ORIGIN,
    "strict-origin-when-cross-origin": cloudfront.HeadersReferrerPolicy.STRICT_ORIGIN_WHEN_CROSS_ORIGIN,
    "unsafe-url": cloudfront.HeadersReferrerPolicy.UNSAFE_URL,
}

FRAME_OPTIONS = {
    "deny": cloudfront.HeadersFrameOption.DENY,
    "sameorigin": cloudfront.HeadersFrameOption.SAMEORIGIN,
}


def _directives(value: str) -> list:
    return [d.strip() for d in value.split(";") if d.strip()]


def strict_transport_security(value: str) -> cloudfront.ResponseHeadersStrictTransportSecurity:
    """
    Parse a Strict-Transport-Security value.

    Args:
        value: e.g. "max-age=31536000; includeSubDomains; preload"

    Returns:
        HSTS settings for the security headers behavior

    Raises:
        ValueError: If max-age is missing or not a number, or a directive is unknown
    """
    max_age = None
    include_subdomains = False
    preload = False
    for directive in _directives(value):
        name, _, arg = directive.partition("=")
        name = name.strip().lower()
        if name == "max-age" and re.fullmatch(r"[0-9]+", arg.strip()):
            max_age = int(arg.strip())
        elif name == "includesubdomains" and not arg:
            include_subdomains = True
        elif name == "preload" and not arg:
            preload = True
        else:
            raise ValueError(f"Strict-Transport-Security directive '{directive}' is not supported")
    if max_age is None:
        raise ValueError(f"Strict-Transport-Security value '{value}' needs a numeric max-age")
    return cloudfront.ResponseHeadersStrictTransportSecurity(
        access_control_max_age=Duration.seconds(max_age),
        include_subdomains=include_subdomains,
        preload=preload,
        override=True,
    )


def xss_protection(value: str) -> cloudfront.ResponseHeadersXSSProtection:
    """
    Parse an X-XSS-Protection value: "0", "1", "1; mode=block" or "1; report=<uri>".

    Raises:
        ValueError: If the value has another form
    """
    directives = _directives(value)
    if directives == ["0"]:
        return cloudfront.ResponseHeadersXSSProtection(protection=False, override=True)
    if not directives or directives[0] != "1" or len(directives) > 2:
        raise ValueError(f"X-XSS-Protection value '{value}' is not supported")
    if len(directives) == 1:
        return cloudfront.ResponseHeadersXSSProtection(protection=True, override=True)

    name, _, arg = directives[1].partition("=")
    name, arg = name.strip().lower(), arg.strip()
    if name == "mode" and arg.lower() == "block":
        return cloudfront.ResponseHeadersXSSProtection(protection=True, mode_block=True, override=True)
    if name == "report" and arg:
        return cloudfront.ResponseHeadersXSSProtection(protection=True, report_uri=arg, override=True)
    raise ValueError(f"X-XSS-Protection value '{value}' is not supported")


def content_type_options(value: str) -> cloudfront.ResponseHeadersContentTypeOptions:
    # CloudFront always sends "nosniff"
    if value.strip().lower() != "nosniff":
        raise ValueError(f"X-Content-Type-Options value '{value}' is not supported, only 'nosniff'")
    return cloudfront.ResponseHeadersContentTypeOptions(override=True)


def frame_options(value: str) -> cloudfront.ResponseHeadersFrameOptions:
    key = value.strip().lower()
    ErrorHandler.validate_enum_value(key, list(FRAME_OPTIONS), "X-Frame-Options", "Response headers policy")
    return cloudfront.ResponseHeadersFrameOptions(frame_option=FRAME_OPTIONS[key], override=True)


def referrer_policy(value: str) -> cloudfront.ResponseHeadersReferrerPolicy:
    key = value.strip().lower()
    ErrorHandler.validate_enum_value(key, list(REFERRER_POLICIES), "Referrer-Policy", "Response headers policy")
    return cloudfront.ResponseHeadersReferrerPolicy(referrer_policy=REFERRER_POLICIES[key], override=True)


def content_security_policy(value: str) -> cloudfront.ResponseHeadersContentSecurityPolicy:
    return cloudfront.ResponseHeadersContentSecurityPolicy(content_security_policy=value, override=True)


# lower-cased header name -> (behavior field, parser)
SECURITY_HEADERS = {
    "strict-transport-security": ("strict_transport_security", strict_transport_security),
    "content-security-policy": ("content_security_policy", content_security_policy),
    "x-content-type-options": ("content_type_options", content_type_options),
    "x-frame-options": ("frame_options", frame_options),
    "x-xss-protection": ("xss_protection", xss_protection),
    "referrer-policy": ("referrer_policy", referrer_policy),
}


def split_security_headers(
        rules: HeaderSet
    ) -> Tuple[Optional[cloudfront.ResponseSecurityHeadersBehavior], Tuple[HeaderRule, ...]]:
    """
    Separate security headers from custom headers.

    Args:
        rules: Header rules with at most one rule per header name

    Returns:
        The security headers behavior (None when no rule is a security
        header) and the remaining rules, in their original order

    Raises:
        ValueError: If a security header value cannot be expressed in a
            response headers policy
    """
    settings: Dict[str, object] = {}
    custom = []
    for rule in rules:
        entry = SECURITY_HEADERS.get(rule.name)
        if entry is None:
            custom.append(rule)
            continue
        field, parse = entry
        settings[field] = parse(rule.value)
        logger.debug("Header %s mapped to security headers behavior", rule.key)

    behavior = cloudfront.ResponseSecurityHeadersBehavior(**settings) if settings else None
    return behavior, tuple(custom)
