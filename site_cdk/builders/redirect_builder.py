"""
Apex redirect builder for the static site CDK project.

When the site lives on ``www.<domain>``, requests to the bare domain are sent
to it over HTTPS.
"""

from __future__ import annotations
from typing import Optional
from aws_cdk import aws_route53 as route53
from aws_cdk import aws_route53_patterns as route53_patterns
from constructs import Construct

REDIRECTED_SUB_DOMAIN = "www"

def build_apex_redirect(
        scope: Construct,
        construct_id: str,
        *,
        domain_name: str,
        sub_domain: str,
        zone: route53.IHostedZone
    ) -> Optional[route53_patterns.HttpsRedirect]:
    """
    Redirect the apex domain to the www site.

    Args:
        scope: CDK construct scope
        construct_id: Construct ID
        domain_name: Apex domain name
        sub_domain: Site sub-domain
        zone: Hosted zone of the apex domain

    Returns:
        The redirect construct, or None when the site is not on www
    """
    if sub_domain.lower() != REDIRECTED_SUB_DOMAIN:
        return None

    return route53_patterns.HttpsRedirect(
        scope,
        construct_id,
        record_names=[domain_name],
        target_domain=f"{sub_domain}.{domain_name}",
        zone=zone,
    )
