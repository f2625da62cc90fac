"""Pytest fixtures for configuration, resolver and CDK construct tests."""

from typing import Any

import aws_cdk as cdk
import pytest

from static_website.config import WebsiteConfig


@pytest.fixture
def app() -> cdk.App:
  """Create a CDK App for testing."""
  return cdk.App()


@pytest.fixture
def stack(app: cdk.App) -> cdk.Stack:
  """Create a CDK Stack for testing."""
  return cdk.Stack(app, "TestStack", env=cdk.Environment(region="us-east-1"))


@pytest.fixture
def raw_website() -> dict[str, Any]:
  """Minimal valid raw website mapping."""
  return {
    "project_name": "example-site",
    "bucket_name": "example-site-content",
    "domain_name": "example.com",
  }


@pytest.fixture
def website() -> WebsiteConfig:
  """Website with every default toggle."""
  return WebsiteConfig(
    project_name="example-site",
    bucket_name="example-site-content",
    domain_name="example.com",
  )
