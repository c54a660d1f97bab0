"""
Response header transforms for the static site CDK project.

A transform turns a HeaderSet into options for the distribution's default
cache behavior. Two transforms are available:

  edge_function            generated Lambda@Edge viewer-response handler
  response_headers_policy  CloudFront response headers policy, no code

The distribution only sees ``behavior_options``, so either can be used without
touching the header rules or the site construct.
"""

from __future__ import annotations
import dataclasses
import logging
from typing import Any, Dict, Optional
from aws_cdk import CfnOutput, RemovalPolicy, Stack
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_lambda as _lambda
from constructs import Construct
from site_cdk.builders.lambda_builder import build_edge_function
from site_cdk.builders.policy_builder import build_edge_role
from site_cdk.builders.security_headers_builder import split_security_headers
from site_cdk.configs.config_manager import ConfigManager
from site_cdk.configs.error_handler import ErrorHandler
from site_cdk.configs.site_cfg import EdgeCfg, HEADER_STRATEGIES, VERSIONING_MODES
from site_cdk.edge.function_source import build_function_source, checksum
from site_cdk.edge.header_rules import HeaderSet, last_value_per_header

logger = logging.getLogger(__name__)


def version_key(source: str, edge: EdgeCfg) -> str:
    """Checksum over everything a published function version freezes."""
    return checksum("\n".join([source, edge.runtime.lower(), str(edge.memory), str(edge.timeout)]))


class ResponseHeaderTransform(Construct):
    """Base class: subclasses fill ``behavior_options``."""

    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)
        self.behavior_options: Dict[str, Any] = {}


class EdgeFunctionHeaders(ResponseHeaderTransform):
    """
    Adds headers with a generated viewer-response Lambda@Edge function.

    With ``versioning="explicit"`` the published version is keyed by the
    source fingerprint together with the runtime, memory and timeout, since a
    version snapshots all of them: the same HeaderSet and settings always map
    to the same version resource, any change to a new resource that
    CloudFormation creates and binds to the distribution before the old one
    leaves the template.
    Published versions are retained because edge replicas can outlive the
    stack update.

    With ``versioning="delegated"`` no fingerprint is computed and the CDK
    ``current_version`` (hashed from the function's own properties) is used.
    """

    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            header_set: HeaderSet,
            versioning: str,
            edge: EdgeCfg,
            config_mgr: ConfigManager,
            policy_file: Optional[str] = None
        ) -> None:
        super().__init__(scope, construct_id)
        ErrorHandler.validate_enum_value(versioning, VERSIONING_MODES, "versioning", "Edge function")

        source, fingerprint = build_function_source(header_set)
        self.source = source

        role = build_edge_role(self, "Role", config_mgr=config_mgr, policy_file=policy_file)
        self.function = build_edge_function(
            self,
            "Function",
            dataclasses.asdict(edge),
            source=source,
            role=role,
        )

        if versioning == "explicit":
            self.fingerprint: Optional[str] = fingerprint
            self.version_key: Optional[str] = version_key(source, edge)
            self.version: _lambda.IVersion = _lambda.Version(
                self,
                f"Version{self.version_key}",
                lambda_=self.function,
                description=f"Response headers {fingerprint}",
                removal_policy=RemovalPolicy.RETAIN,
            )
            logger.info(
                "Edge header function pinned to fingerprint %s (version key %s)",
                fingerprint,
                self.version_key,
            )
        else:
            self.fingerprint = None
            self.version_key = None
            self.version = self.function.current_version
            logger.info("Edge header function versioned from its content hash")

        self.behavior_options = {
            "edge_lambdas": [
                cloudfront.EdgeLambda(
                    event_type=cloudfront.LambdaEdgeEventType.VIEWER_RESPONSE,
                    function_version=self.version,
                )
            ]
        }

        CfnOutput(self, "HeadersVersion", value=self.version.edge_arn)


class ResponseHeadersPolicyHeaders(ResponseHeaderTransform):
    """
    Adds headers with a CloudFront response headers policy.

    Repeated header names collapse to their last value, the same result the
    edge function produces at runtime. Security headers go to the policy's
    security headers behavior, everything else to its custom headers.
    """

    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            header_set: HeaderSet
        ) -> None:
        super().__init__(scope, construct_id)

        rules = last_value_per_header(header_set)
        if not rules:
            logger.info("No response headers configured; skipping response headers policy")
            self.policy = None
            return

        security, custom = split_security_headers(rules)
        custom_behavior = None
        if custom:
            custom_behavior = cloudfront.ResponseCustomHeadersBehavior(
                custom_headers=[
                    cloudfront.ResponseCustomHeader(header=r.key, value=r.value, override=True)
                    for r in custom
                ]
            )

        self.policy = cloudfront.ResponseHeadersPolicy(
            self,
            "Policy",
            comment=f"Response headers for {Stack.of(self).stack_name}",
            security_headers_behavior=security,
            custom_headers_behavior=custom_behavior,
        )
        self.behavior_options = {"response_headers_policy": self.policy}


def build_header_transform(
        scope: Construct,
        construct_id: str,
        *,
        strategy: str,
        header_set: HeaderSet,
        versioning: str,
        edge: EdgeCfg,
        config_mgr: ConfigManager,
        policy_file: Optional[str] = None
    ) -> ResponseHeaderTransform:
    """
    Build the response header transform selected by ``strategy``.

    Args:
        scope: CDK construct scope
        construct_id: Construct ID
        strategy: "edge_function" or "response_headers_policy"
        header_set: Ordered header rules
        versioning: "explicit" or "delegated" (edge_function only)
        edge: Edge function settings
        config_mgr: Config manager for the role policy file
        policy_file: Policy file for the edge function role

    Returns:
        Transform exposing ``behavior_options``

    Raises:
        ValueError: If strategy or versioning is unknown
    """
    ErrorHandler.validate_enum_value(strategy, HEADER_STRATEGIES, "header_strategy", "Site")

    if strategy == "edge_function":
        return EdgeFunctionHeaders(
            scope,
            construct_id,
            header_set=header_set,
            versioning=versioning,
            edge=edge,
            config_mgr=config_mgr,
            policy_file=policy_file,
        )
    return ResponseHeadersPolicyHeaders(scope, construct_id, header_set=header_set)
