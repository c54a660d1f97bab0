# tests/conftest.py
import dataclasses

import pytest
import aws_cdk as cdk
from aws_cdk import assertions

from site_cdk.configs.site_cfg import SiteCfg
from site_cdk.edge.header_rules import HeaderRule
from site_cdk.stacks.site_stack import StaticSiteStack

TEST_ENV = cdk.Environment(account="123456789012", region="us-east-1")

FRAME = HeaderRule("X-Frame-Options", "DENY")


@pytest.fixture
def assets_dir(tmp_path):
    site = tmp_path / "build"
    site.mkdir()
    (site / "index.html").write_text("<html><body>hello</body></html>", encoding="utf-8")
    return str(site)


@pytest.fixture
def site_cfg(assets_dir):
    return SiteCfg(
        domain_name="example.com",
        sub_domain="www",
        account_id="123456789012",
        assets=assets_dir,
        hosted_zone_id="Z0123456789ABCDEFGHIJ",
    )


@pytest.fixture
def synth(site_cfg):
    """Synthesize a fresh app; keyword overrides are applied to the site config."""

    def _synth(header_set=(FRAME,), **overrides):
        cfg = dataclasses.replace(site_cfg, **overrides)
        app = cdk.App()
        stack = StaticSiteStack(app, "TestSite", env=TEST_ENV, site=cfg, header_set=tuple(header_set))
        return stack, assertions.Template.from_stack(stack)

    return _synth
