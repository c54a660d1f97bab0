import logging
import os

import aws_cdk as cdk
from aws_cdk import Environment
from site_cdk.configs.site_cfg import get_cfg
from site_cdk.stacks.site_stack import StaticSiteStack

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = cdk.App()
cfg = get_cfg(app)

# Lambda@Edge and CloudFront certificates must live in us-east-1
SITE_ENV = Environment(account=cfg.account_id, region=cfg.region)

StaticSiteStack(
    app,
    "WebSite",
    env=SITE_ENV,
    site=cfg,
)

app.synth()
