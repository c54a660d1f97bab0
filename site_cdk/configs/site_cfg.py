"""
Project configuration management for the static site CDK project.

This module provides configuration classes and utilities for the site domain,
the target account and the edge header function. It reads the "site" object
from cdk.json context, applies command-line overrides and provides type-safe
access to the values.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union
from aws_cdk import App, Stack
from functools import lru_cache
from site_cdk.configs.error_handler import ErrorHandler

HEADER_STRATEGIES = ["edge_function", "response_headers_policy"]
VERSIONING_MODES = ["explicit", "delegated"]

@dataclass(frozen=True)
class EdgeCfg:
    """
    Edge function settings.

    Attributes:
        runtime: Node.js runtime name
        memory: Memory size in MB
        timeout: Timeout in seconds
    """
    runtime: str = "nodejs20.x"
    memory: int = 128
    timeout: int = 5

@dataclass(frozen=True)
class SiteCfg:
    """
    Main project configuration container.

    Attributes:
        domain_name: Apex domain, e.g. example.com
        sub_domain: Site sub-domain, e.g. www
        account_id: AWS account ID
        region: AWS region (Lambda@Edge requires us-east-1)
        assets: Directory holding the built static site
        hosted_zone_id: Optional zone id, skips the hosted zone lookup
        headers_file: Header set file under configs/headers
        header_strategy: How headers are applied at the edge
        versioning: How edge function versions are published
        edge: Edge function settings
        edge_policy_file: Optional policy file for the edge function role
    """
    domain_name: str
    sub_domain: str
    account_id: str
    region: str = "us-east-1"
    assets: str = "../site/build"
    hosted_zone_id: Optional[str] = None
    headers_file: str = "security.json"
    header_strategy: str = "edge_function"
    versioning: str = "explicit"
    edge: EdgeCfg = field(default_factory=EdgeCfg)
    edge_policy_file: Optional[str] = "edge_function.json"

    @property
    def site_domain(self) -> str:
        """Fully qualified site name, e.g. www.example.com."""
        return f"{self.sub_domain}.{self.domain_name}"

    def vars(self, stack: Stack) -> dict[str, str]:
        """
        Generate placeholder variables for JSON configuration expansion.

        Args:
            stack: CDK stack instance

        Returns:
            Dictionary of variable name to value mappings
        """
        return {
            "DomainName": self.domain_name,
            "SubDomain": self.sub_domain,
            "SiteDomain": self.site_domain,
            "AccountId": stack.account or self.account_id,
            "Region": stack.region or self.region,
            "Partition": stack.partition,
        }

def _node(obj: Union[App, Stack]):
    """
    Get the CDK node from an App or Stack.

    Args:
        obj: CDK App or Stack instance

    Returns:
        CDK node instance
    """
    return (obj if isinstance(obj, App) else Stack.of(obj)).node

@lru_cache(maxsize=1)
def get_cfg(obj: Union[App, Stack]) -> SiteCfg:
    """
    Load project configuration from cdk.json context.

    Reads the "site" object once and applies the overrides
    -c domainName=..., -c subDomain=... and -c account=....

    Args:
        obj: CDK App or Stack instance

    Returns:
        Validated project configuration

    Raises:
        ValueError: If required context keys are missing or a value is not allowed
    """
    node = _node(obj)
    ctx = node.try_get_context("site") or {}

    domain_name = node.try_get_context("domainName") or ctx.get("domain_name")
    sub_domain = node.try_get_context("subDomain") or ctx.get("sub_domain")
    account_id = node.try_get_context("account") or ctx.get("account_id")

    # Validate required configuration
    missing = []
    if not domain_name:
        missing.append("site.domain_name (-c domainName=yoursite.com)")
    if not sub_domain:
        missing.append("site.sub_domain (-c subDomain=www)")
    if not account_id:
        missing.append("site.account_id (-c account=<your AWS account number>)")

    ErrorHandler.validate_context_keys(missing, "cdk.json")

    header_strategy = ctx.get("header_strategy", "edge_function")
    versioning = ctx.get("versioning", "explicit")
    ErrorHandler.validate_enum_value(header_strategy, HEADER_STRATEGIES, "header_strategy", "Site")
    ErrorHandler.validate_enum_value(versioning, VERSIONING_MODES, "versioning", "Site")

    edge_ctx = ctx.get("edge") or {}

    return SiteCfg(
        domain_name=domain_name,
        sub_domain=sub_domain,
        account_id=str(account_id),
        region=ctx.get("region", "us-east-1"),
        assets=ctx.get("assets", "../site/build"),
        hosted_zone_id=ctx.get("hosted_zone_id"),
        headers_file=ctx.get("headers_file", "security.json"),
        header_strategy=header_strategy,
        versioning=versioning,
        edge=EdgeCfg(
            runtime=edge_ctx.get("runtime", "nodejs20.x"),
            memory=edge_ctx.get("memory", 128),
            timeout=edge_ctx.get("timeout", 5),
        ),
        edge_policy_file=ctx.get("edge_policy_file", "edge_function.json"),
    )
