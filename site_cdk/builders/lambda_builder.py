"""
Edge function builders for the static site CDK project.

This module declares the Lambda function that runs as a CloudFront
viewer-response trigger. The function code is generated at synth time and
shipped inline, so the builder only deals with runtime selection and the
Lambda@Edge limits for viewer triggers.
"""

from __future__ import annotations
from aws_cdk import Duration
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from constructs import Construct
from site_cdk.configs.error_handler import ErrorHandler, ValidationDecorators

# Lambda@Edge limits for viewer request/response triggers
VIEWER_MAX_MEMORY_MB = 128
VIEWER_MAX_TIMEOUT_S = 5

INLINE_HANDLER = "index.handler"

def runtime_from(s: str) -> _lambda.Runtime:
    """
    Convert string to Lambda runtime enum.

    Args:
        s: String representation of runtime

    Returns:
        Lambda runtime enum

    Raises:
        ValueError: If runtime string is not supported
    """
    s = (s or "nodejs20.x").lower()
    m = {
        "nodejs18.x": _lambda.Runtime.NODEJS_18_X,
        "nodejs20.x": _lambda.Runtime.NODEJS_20_X,
        "nodejs22.x": _lambda.Runtime.NODEJS_22_X,
    }
    ErrorHandler.validate_enum_value(s, list(m.keys()), "runtime", "Edge function")
    return m[s]

def validate_edge_limits(conf: dict) -> None:
    """
    Check memory and timeout against the viewer trigger limits.

    Args:
        conf: Edge function configuration dictionary

    Raises:
        ValueError: If memory or timeout is not a positive integer or too large
    """
    ErrorHandler.validate_positive_integer(conf["memory"], "memory", "Edge function")
    ErrorHandler.validate_positive_integer(conf["timeout"], "timeout", "Edge function")
    ErrorHandler.validate_max_value(conf["memory"], VIEWER_MAX_MEMORY_MB, "memory", "Edge function")
    ErrorHandler.validate_max_value(conf["timeout"], VIEWER_MAX_TIMEOUT_S, "timeout", "Edge function")

@ValidationDecorators.validate_required_config_fields(
    ["runtime", "memory", "timeout"],
    context="Edge function"
)
def build_edge_function(
        scope: Construct,
        logical_name: str,
        conf: dict,
        *,
        source: str,
        role: iam.IRole
    ) -> _lambda.Function:
    """
    Build an edge function from configuration and generated source.

    Args:
        scope: CDK construct scope
        logical_name: Logical name for the function
        conf: Edge function configuration dictionary
        source: Generated handler source
        role: Execution role trusted by Lambda@Edge

    Returns:
        Lambda function instance
    """
    validate_edge_limits(conf)

    # Lambda@Edge functions cannot have environment variables
    return _lambda.Function(
        scope,
        logical_name,
        runtime=runtime_from(conf["runtime"]),
        handler=INLINE_HANDLER,
        code=_lambda.Code.from_inline(source),
        memory_size=int(conf["memory"]),
        timeout=Duration.seconds(int(conf["timeout"])),
        role=role,
    )
