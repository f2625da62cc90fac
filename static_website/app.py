#!/usr/bin/env python3
"""CDK application entry point for static website infrastructure."""

import logging
import os
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import aws_cdk as cdk
import boto3

from static_website.errors import StaticWebsiteError
from static_website.resolver import ResolutionCache
from static_website.stacks import StaticWebsiteStack
from static_website.validation import load_config

logger = logging.getLogger(__name__)

# ACM certificates and WAF ACLs used by CloudFront must live here
EDGE_REGION = "us-east-1"


def get_account_id() -> str:
  """Get AWS account ID from the CDK environment or current credentials."""
  account = os.environ.get("CDK_DEFAULT_ACCOUNT")
  if account:
    return account
  sts = boto3.client("sts")
  return str(sts.get_caller_identity()["Account"])


def stack_name(domain_name: str) -> str:
  return f"StaticWebsite-{domain_name.replace('.', '-')}"


def main() -> None:
  """Create CDK app with a stack for each configured website."""
  logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
  app = cdk.App()

  # Load and validate configuration
  config_path = app.node.try_get_context("config") or "website.yaml"
  try:
    config = load_config(Path(config_path))
  except StaticWebsiteError as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)

  account_id = get_account_id()
  cache = ResolutionCache()

  for website in config.websites:
    if website.region != EDGE_REGION and (website.create_certificate or website.enable_waf):
      logger.warning(
        "%s: certificates and WAF ACLs for CloudFront must be created in %s, not %s",
        website.domain_name,
        EDGE_REGION,
        website.region,
      )
    StaticWebsiteStack(
      app,
      stack_name(website.domain_name),
      website_config=website,
      resolved=cache.resolve(website),
      env=cdk.Environment(
        account=account_id,
        region=website.region,
      ),
      description=f"Static website infrastructure for {website.domain_name}",
    )

  app.synth()


if __name__ == "__main__":
  main()
