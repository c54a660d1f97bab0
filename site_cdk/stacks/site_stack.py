"""
Static site stack for the static site CDK project.

This stack wires the response header transform, the static website and the
apex redirect together. Header rules come from the configured header set file
unless they are passed in directly.
"""

from __future__ import annotations
from typing import Optional

from aws_cdk import Stack
from constructs import Construct

from site_cdk.builders.header_transform_builder import build_header_transform
from site_cdk.builders.redirect_builder import build_apex_redirect
from site_cdk.builders.static_site_builder import StaticWebsite, hosted_zone_for
from site_cdk.configs.config_manager import ConfigManager
from site_cdk.configs.site_cfg import SiteCfg
from site_cdk.edge.header_rules import HeaderSet


class StaticSiteStack(Stack):
    """
    Stack for deploying the static website.

    Must be deployed to us-east-1: Lambda@Edge functions and CloudFront
    certificates are only accepted from that region.
    """

    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            site: SiteCfg,
            header_set: Optional[HeaderSet] = None,
            **kwargs
        ) -> None:
        """
        Initialize the static site stack.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            site: Site configuration
            header_set: Response headers; loaded from site.headers_file when None
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        config_mgr = ConfigManager(self, site)
        if header_set is None:
            header_set = config_mgr.load_header_set()

        self.headers = build_header_transform(
            self,
            "Headers",
            strategy=site.header_strategy,
            header_set=header_set,
            versioning=site.versioning,
            edge=site.edge,
            config_mgr=config_mgr,
            policy_file=site.edge_policy_file,
        )

        zone = hosted_zone_for(self, site.domain_name, site.hosted_zone_id)

        self.redirect = build_apex_redirect(
            self,
            "Redirect",
            domain_name=site.domain_name,
            sub_domain=site.sub_domain,
            zone=zone,
        )

        self.site = StaticWebsite(
            self,
            "Website",
            site_domain=site.site_domain,
            zone=zone,
            assets=site.assets,
            behavior_options=self.headers.behavior_options,
        )
