"""
Static website builder for the static site CDK project.

This module provides a builder for the site hosting resources: the content
bucket, the TLS certificate, the CloudFront distribution with the response
header transform on its default behavior, the DNS alias record and the asset
deployment with cache invalidation.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_route53 as route53,
    aws_route53_targets as targets,
    aws_s3 as s3,
    aws_s3_deployment as s3_deployment,
    CfnOutput,
    Duration,
    RemovalPolicy,
)
from constructs import Construct
from site_cdk.configs.error_handler import validate_assets_directory

INDEX_DOCUMENT = "index.html"
# SPA routes that do not exist as objects fall back to the index page
ERROR_STATUSES = (403, 404)
ERROR_CACHING_TTL = Duration.days(1)

def hosted_zone_for(
        scope: Construct,
        domain_name: str,
        hosted_zone_id: Optional[str] = None
    ) -> route53.IHostedZone:
    """
    Resolve the hosted zone of the apex domain.

    Args:
        scope: CDK construct scope
        domain_name: Apex domain name
        hosted_zone_id: Zone id; when missing the zone is looked up by name

    Returns:
        Hosted zone reference
    """
    if hosted_zone_id:
        return route53.HostedZone.from_hosted_zone_attributes(
            scope,
            "Zone",
            hosted_zone_id=hosted_zone_id,
            zone_name=domain_name,
        )
    return route53.HostedZone.from_lookup(scope, "Zone", domain_name=domain_name)

class StaticWebsite(Construct):
    """
    Static website served by CloudFront from an S3 website bucket.

    Creates the content bucket, certificate, distribution, alias record and
    asset deployment for ``site_domain``.
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            site_domain: str,
            zone: route53.IHostedZone,
            assets: str,
            behavior_options: Optional[Dict[str, Any]] = None
        ) -> None:
        """
        Initialize the static website builder.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            site_domain: Fully qualified site name (bucket name and alias)
            zone: Hosted zone of the apex domain
            assets: Directory with the built site
            behavior_options: Extra default behavior options from the header transform
        """
        super().__init__(scope, construct_id)
        validate_assets_directory(assets)

        CfnOutput(self, "Site", value=f"https://{site_domain}")

        # Content bucket
        self.bucket = s3.Bucket(
            self,
            "SiteBucket",
            bucket_name=site_domain,
            website_index_document=INDEX_DOCUMENT,
            website_error_document=INDEX_DOCUMENT,
            public_read_access=True,
            block_public_access=s3.BlockPublicAccess(
                block_public_policy=False,
                block_public_acls=False,
                ignore_public_acls=False,
                restrict_public_buckets=False
            ),
            removal_policy=RemovalPolicy.RETAIN,
        )
        CfnOutput(self, "Bucket", value=self.bucket.bucket_name)

        # TLS certificate
        self.certificate = acm.Certificate(
            self,
            "SiteCertificate",
            domain_name=site_domain,
            validation=acm.CertificateValidation.from_dns(zone),
        )
        CfnOutput(self, "Certificate", value=self.certificate.certificate_arn)

        # CloudFront distribution that provides HTTPS
        self.distribution = cloudfront.Distribution(
            self,
            "SiteDistribution",
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3StaticWebsiteOrigin(self.bucket),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                **(behavior_options or {}),
            ),
            domain_names=[site_domain],
            certificate=self.certificate,
            minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
            ssl_support_method=cloudfront.SSLMethod.SNI,
            default_root_object=INDEX_DOCUMENT,
            error_responses=[
                cloudfront.ErrorResponse(
                    http_status=status,
                    response_http_status=403,
                    response_page_path=f"/{INDEX_DOCUMENT}",
                    ttl=ERROR_CACHING_TTL,
                )
                for status in ERROR_STATUSES
            ],
        )
        CfnOutput(self, "DistributionId", value=self.distribution.distribution_id)

        # Route53 alias record for the CloudFront distribution
        route53.ARecord(
            self,
            "SiteAliasRecord",
            record_name=site_domain,
            target=route53.RecordTarget.from_alias(targets.CloudFrontTarget(self.distribution)),
            zone=zone,
        )

        # Deploy site contents to S3 bucket
        s3_deployment.BucketDeployment(
            self,
            "DeployWithInvalidation",
            sources=[s3_deployment.Source.asset(assets)],
            destination_bucket=self.bucket,
            distribution=self.distribution,
            distribution_paths=["/*"],
        )
