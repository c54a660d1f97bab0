"""
IAM role and policy builders for the static site CDK project.

This module builds the execution role of the edge header function. Lambda@Edge
replicates the function to CloudFront edge locations, so the role must be
assumable by both the Lambda and the Lambda@Edge service principals. Extra
managed and inline policies come from a JSON policy file validated with the
centralized error handler.
"""

from __future__ import annotations
from typing import Any, List, Optional
from aws_cdk import aws_iam as iam
from constructs import Construct
from site_cdk.configs.config_manager import ConfigManager
from site_cdk.configs.error_handler import ErrorHandler

EDGE_PRINCIPALS = ("lambda.amazonaws.com", "edgelambda.amazonaws.com")

def _ensure_list(obj: Any) -> List[Any]:
    """
    Ensure obj is a list, wrapping it if it's a single item.

    Args:
        obj: Object to ensure is a list

    Returns:
        List containing the object or the object itself if already a list
    """
    if isinstance(obj, list):
        return obj
    return [obj]

def _attach_managed(
        role: iam.Role,
        policies: List[str]
    ) -> None:
    """
    Attach managed policies to a role.

    Args:
        role: IAM role to attach policies to
        policies: List of policy names or ARNs
    """
    for policy in policies:
        if policy.startswith("arn:"):
            role.add_managed_policy(
                iam.ManagedPolicy.from_managed_policy_arn(
                    role,
                    f"Managed-{policy.split('/')[-1]}",
                    policy
                )
            )
        else:
            role.add_managed_policy(
                iam.ManagedPolicy.from_aws_managed_policy_name(policy)
            )

def _attach_inline(
        role: iam.Role,
        name: str,
        statements: list[dict]
    ) -> None:
    """
    Attach inline policy to a role.

    Args:
        role: IAM role to attach policy to
        name: Name of the inline policy
        statements: List of IAM policy statements
    """
    doc = iam.PolicyDocument(
        statements=[iam.PolicyStatement.from_json(s) for s in statements]
    )
    iam.Policy(
        role,
        f"Inline-{name}",
        document=doc,
        roles=[role]
    )

def validate_policy_config(raw: dict) -> None:
    """
    Validate policy configuration structure.

    Args:
        raw: Policy configuration dictionary

    Raises:
        ValueError: If configuration structure is invalid
        TypeError: If a section has the wrong type
    """
    ErrorHandler.validate_type(raw, dict, "policy config", "Policy")

    allowed = {"managed", "inline"}
    extra = set(raw.keys()) - allowed
    if extra:
        raise ValueError(f"Unknown keys in policy config: {', '.join(sorted(extra))}")

    if "managed" in raw:
        ErrorHandler.validate_type(
            raw["managed"],
            (list, tuple),
            "managed",
            "Policy"
        )

    inline = raw.get("inline", {})
    ErrorHandler.validate_type(inline, dict, "inline", "Policy")

    for name, stmts in inline.items():
        ErrorHandler.validate_string_not_empty(
            name,
            "inline policy name",
            "Policy"
        )
        lst = _ensure_list(stmts)
        ErrorHandler.validate_list_not_empty(
            lst,
            f"inline policy '{name}'",
            "Policy"
        )

        for i, s in enumerate(lst):
            ErrorHandler.validate_type(
                s,
                dict,
                f"statement #{i} in '{name}'",
                "Policy"
            )

            # Validate required fields for IAM statement
            ErrorHandler.validate_required_fields(
                s,
                ["Effect", "Action"],
                f"Statement #{i} in '{name}'"
            )

            # Check for Resource or NotResource
            if "Resource" not in s and "NotResource" not in s:
                raise ValueError(
                    f"Statement #{i} in '{name}' must include Resource or NotResource"
                )

def apply_policies_to_role(
        role: iam.Role,
        raw: dict
    ) -> None:
    """
    Apply a validated policy configuration to a role.

    The configuration has this structure:
    {
      "managed": ["service-role/AWSLambdaBasicExecutionRole"],
      "inline": {
        "ReadSiteBucket": [
          {
            "Effect": "Allow",
            "Action": ["s3:GetObject"],
            "Resource": ["arn:aws:s3:::${SiteDomain}/*"]
          }
        ]
      }
    }

    Args:
        role: IAM role to apply policies to
        raw: Policy configuration dictionary

    Raises:
        ValueError: If policy configuration is invalid
    """
    validate_policy_config(raw)

    # Apply managed policies
    if "managed" in raw:
        _attach_managed(role, raw["managed"])

    # Apply inline policies
    for name, statements in raw.get("inline", {}).items():
        _attach_inline(
            role,
            name,
            _ensure_list(statements)
        )

def build_edge_role(
        scope: Construct,
        construct_id: str,
        *,
        config_mgr: ConfigManager,
        policy_file: Optional[str] = None
    ) -> iam.Role:
    """
    Build the execution role of an edge function.

    Args:
        scope: CDK construct scope
        construct_id: Construct ID of the role
        config_mgr: Config manager used to load the policy file
        policy_file: Policy file under configs/iam/policies (optional)

    Returns:
        IAM role trusted by Lambda and Lambda@Edge

    Raises:
        ValueError: If the policy configuration is invalid
        FileNotFoundError: If the policy file is not found
    """
    role = iam.Role(
        scope,
        construct_id,
        assumed_by=iam.CompositePrincipal(
            *(iam.ServicePrincipal(p) for p in EDGE_PRINCIPALS)
        ),
    )

    if policy_file:
        apply_policies_to_role(
            role,
            config_mgr.load_config("policies", policy_file)
        )

    return role
