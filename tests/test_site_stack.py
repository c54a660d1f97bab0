"""
Unit tests for the StaticSiteStack.

These tests synthesize the stack and check the CloudFormation template: the
site resources, the generated edge function and how its versions are
published across repeated synths.
"""

import json
from pathlib import Path

import pytest
from aws_cdk import assertions

from site_cdk.configs.site_cfg import EdgeCfg
from site_cdk.edge.function_source import build_function_source
from site_cdk.edge.header_rules import HeaderRule, header_rules_from

FRAME = HeaderRule("X-Frame-Options", "DENY")
REFERRER = HeaderRule("Referrer-Policy", "same-origin")
PERMISSIONS = HeaderRule("Permissions-Policy", "camera=()")

SECURITY_HEADERS_FILE = Path(__file__).parent.parent / "site_cdk" / "configs" / "headers" / "security.json"


def version_ids(template):
    return set(template.find_resources("AWS::Lambda::Version"))


class TestSiteResources:

    @pytest.fixture(autouse=True)
    def _template(self, synth):
        self.stack, self.template = synth()

    def test_content_bucket(self):
        self.template.has_resource_properties("AWS::S3::Bucket", {
            "BucketName": "www.example.com",
            "WebsiteConfiguration": {
                "IndexDocument": "index.html",
                "ErrorDocument": "index.html",
            },
        })

    def test_certificate_for_site_domain(self):
        self.template.has_resource_properties("AWS::CertificateManager::Certificate", {
            "DomainName": "www.example.com",
            "ValidationMethod": "DNS",
        })

    def test_distribution(self):
        self.template.has_resource_properties("AWS::CloudFront::Distribution", {
            "DistributionConfig": assertions.Match.object_like({
                "Aliases": ["www.example.com"],
                "DefaultRootObject": "index.html",
                "ViewerCertificate": assertions.Match.object_like({
                    "MinimumProtocolVersion": "TLSv1.2_2021",
                    "SslSupportMethod": "sni-only",
                }),
                "CustomErrorResponses": assertions.Match.array_with([
                    {
                        "ErrorCode": 404,
                        "ResponseCode": 403,
                        "ResponsePagePath": "/index.html",
                        "ErrorCachingMinTTL": 86400,
                    }
                ]),
            })
        })

    def test_alias_record(self):
        self.template.has_resource_properties("AWS::Route53::RecordSet", {
            "Name": "www.example.com.",
            "Type": "A",
            "HostedZoneId": "Z0123456789ABCDEFGHIJ",
        })

    def test_assets_deployed_with_invalidation(self):
        self.template.has_resource_properties("Custom::CDKBucketDeployment", {
            "DistributionPaths": ["/*"],
        })

    def test_edge_function_code_is_the_generated_source(self):
        self.template.has_resource_properties("AWS::Lambda::Function", {
            "Code": {"ZipFile": build_function_source([FRAME]).source},
            "Handler": "index.handler",
            "Runtime": "nodejs20.x",
            "MemorySize": 128,
            "Timeout": 5,
        })

    def test_edge_function_has_no_environment(self):
        functions = self.template.find_resources("AWS::Lambda::Function", {
            "Properties": {"Runtime": "nodejs20.x"}
        })
        assert len(functions) == 1
        assert "Environment" not in next(iter(functions.values()))["Properties"]

    def test_edge_role_trusts_lambda_at_edge(self):
        roles = self.template.find_resources("AWS::IAM::Role")
        assert any("edgelambda.amazonaws.com" in json.dumps(r) for r in roles.values())

    def test_outputs(self):
        outputs = self.template.find_outputs("*")
        for name in ("WebsiteSite", "WebsiteBucket", "WebsiteCertificate", "WebsiteDistributionId", "HeadersHeadersVersion"):
            assert any(k.startswith(name) for k in outputs), name


class TestApexRedirect:

    def test_www_site_redirects_apex(self, synth):
        _, template = synth()
        template.has_resource_properties("AWS::S3::Bucket", {
            "WebsiteConfiguration": {
                "RedirectAllRequestsTo": {"HostName": "www.example.com", "Protocol": "https"}
            }
        })

    def test_other_sub_domains_do_not_redirect(self, synth):
        stack, template = synth(sub_domain="app")
        assert stack.redirect is None
        template.resource_count_is("AWS::S3::Bucket", 1)
        template.has_resource_properties("AWS::S3::Bucket", {"BucketName": "app.example.com"})


class TestExplicitVersioning:

    def test_distribution_uses_the_fingerprinted_version(self, synth):
        stack, template = synth()
        ids = version_ids(template)
        assert len(ids) == 1
        (version_id,) = ids
        assert stack.headers.fingerprint == build_function_source([FRAME]).fingerprint

        template.has_resource_properties("AWS::CloudFront::Distribution", {
            "DistributionConfig": assertions.Match.object_like({
                "DefaultCacheBehavior": assertions.Match.object_like({
                    "LambdaFunctionAssociations": [
                        assertions.Match.object_like({
                            "EventType": "viewer-response",
                            "LambdaFunctionARN": {"Ref": version_id},
                        })
                    ]
                })
            })
        })

    def test_versions_are_retained(self, synth):
        _, template = synth()
        template.has_resource("AWS::Lambda::Version", {
            "DeletionPolicy": "Retain",
            "UpdateReplacePolicy": "Retain",
        })

    def test_unchanged_headers_publish_the_same_version(self, synth):
        _, first = synth([FRAME, REFERRER])
        _, second = synth([FRAME, REFERRER])
        assert version_ids(first) == version_ids(second)

    def test_added_header_publishes_a_new_version(self, synth):
        s1, first = synth([FRAME])
        s2, second = synth([FRAME, REFERRER])
        assert s1.headers.fingerprint != s2.headers.fingerprint
        assert version_ids(first).isdisjoint(version_ids(second))

    def test_runtime_change_publishes_a_new_version(self, synth):
        s1, first = synth(edge=EdgeCfg(runtime="nodejs18.x"))
        s2, second = synth(edge=EdgeCfg(runtime="nodejs22.x"))
        assert s1.headers.fingerprint == s2.headers.fingerprint
        assert version_ids(first).isdisjoint(version_ids(second))

    def test_timeout_change_publishes_a_new_version(self, synth):
        _, base = synth()
        _, again = synth(edge=EdgeCfg())
        _, shorter = synth(edge=EdgeCfg(timeout=3))
        assert version_ids(base) == version_ids(again)
        assert version_ids(base).isdisjoint(version_ids(shorter))

    def test_empty_header_set_still_deploys(self, synth):
        stack, template = synth(())
        assert stack.headers.source == build_function_source(()).source
        template.resource_count_is("AWS::Lambda::Version", 1)


class TestDelegatedVersioning:

    def test_uses_current_version(self, synth):
        stack, template = synth(versioning="delegated")
        assert stack.headers.fingerprint is None
        ids = version_ids(template)
        assert len(ids) == 1
        assert "CurrentVersion" in next(iter(ids))

    def test_version_follows_the_code(self, synth):
        _, same_a = synth([FRAME], versioning="delegated")
        _, same_b = synth([FRAME], versioning="delegated")
        _, changed = synth([FRAME, REFERRER], versioning="delegated")
        assert version_ids(same_a) == version_ids(same_b)
        assert version_ids(same_a) != version_ids(changed)


class TestResponseHeadersPolicy:

    def test_policy_replaces_the_edge_function(self, synth):
        _, template = synth(
            [FRAME, REFERRER, PERMISSIONS, HeaderRule("X-Frame-Options", "SAMEORIGIN")],
            header_strategy="response_headers_policy",
        )
        template.resource_count_is("AWS::Lambda::Version", 0)
        template.has_resource_properties("AWS::CloudFront::ResponseHeadersPolicy", {
            "ResponseHeadersPolicyConfig": assertions.Match.object_like({
                "SecurityHeadersConfig": {
                    "FrameOptions": {"FrameOption": "SAMEORIGIN", "Override": True},
                    "ReferrerPolicy": {"ReferrerPolicy": "same-origin", "Override": True},
                },
                "CustomHeadersConfig": {
                    "Items": [
                        {"Header": "Permissions-Policy", "Value": "camera=()", "Override": True},
                    ]
                },
            })
        })
        template.has_resource_properties("AWS::CloudFront::Distribution", {
            "DistributionConfig": assertions.Match.object_like({
                "DefaultCacheBehavior": assertions.Match.object_like({
                    "ResponseHeadersPolicyId": assertions.Match.any_value(),
                })
            })
        })

    def test_only_security_headers_leave_no_custom_headers(self, synth):
        _, template = synth([FRAME, REFERRER], header_strategy="response_headers_policy")
        template.has_resource_properties("AWS::CloudFront::ResponseHeadersPolicy", {
            "ResponseHeadersPolicyConfig": assertions.Match.object_like({
                "CustomHeadersConfig": assertions.Match.absent(),
            })
        })

    def test_bundled_security_headers(self, synth):
        with open(SECURITY_HEADERS_FILE, "r", encoding="utf-8") as f:
            rules = header_rules_from(json.load(f)["headers"])
        _, template = synth(rules, header_strategy="response_headers_policy")
        template.has_resource_properties("AWS::CloudFront::ResponseHeadersPolicy", {
            "ResponseHeadersPolicyConfig": assertions.Match.object_like({
                "SecurityHeadersConfig": {
                    "StrictTransportSecurity": {
                        "AccessControlMaxAgeSec": 31536000,
                        "IncludeSubdomains": True,
                        "Preload": True,
                        "Override": True,
                    },
                    "ContentSecurityPolicy": {
                        "ContentSecurityPolicy": "script-src 'self' 'unsafe-inline';",
                        "Override": True,
                    },
                    "ContentTypeOptions": {"Override": True},
                    "FrameOptions": {"FrameOption": "DENY", "Override": True},
                    "XSSProtection": {"Protection": True, "ModeBlock": True, "Override": True},
                    "ReferrerPolicy": {"ReferrerPolicy": "same-origin", "Override": True},
                },
                "CustomHeadersConfig": {
                    "Items": [
                        assertions.Match.object_like({"Header": "Permissions-Policy", "Override": True}),
                    ]
                },
            })
        })

    def test_unmappable_security_header_fails_synth(self, synth):
        with pytest.raises(ValueError, match="Strict-Transport-Security directive 'max-age=forever'"):
            synth(
                [HeaderRule("Strict-Transport-Security", "max-age=forever")],
                header_strategy="response_headers_policy",
            )

    def test_no_headers_no_policy(self, synth):
        stack, template = synth((), header_strategy="response_headers_policy")
        assert stack.headers.policy is None
        template.resource_count_is("AWS::CloudFront::ResponseHeadersPolicy", 0)


class TestValidation:

    def test_missing_assets_directory(self, synth, tmp_path):
        with pytest.raises(FileNotFoundError, match="Site assets directory not found"):
            synth(assets=str(tmp_path / "missing"))

    def test_edge_memory_limit(self, synth):
        with pytest.raises(ValueError, match="'memory' must be at most 128"):
            synth(edge=EdgeCfg(memory=256))

    def test_unsupported_runtime(self, synth):
        with pytest.raises(ValueError, match="'runtime' must be one of"):
            synth(edge=EdgeCfg(runtime="python3.12"))

    def test_unknown_strategy(self, synth):
        with pytest.raises(ValueError, match="'header_strategy' must be one of"):
            synth(header_strategy="cloudfront_function")
