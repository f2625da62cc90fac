"""CDK stack for a single static website."""

from typing import Any

import aws_cdk as cdk
from constructs import Construct

from static_website.cdk_constructs import StaticWebsiteConstruct
from static_website.config import WebsiteConfig
from static_website.resolver import ResolvedResourceSet, resolve


class StaticWebsiteStack(cdk.Stack):
  """Stack for a single static website."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    website_config: WebsiteConfig,
    resolved: ResolvedResourceSet | None = None,
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    resolved = resolved or resolve(website_config)
    self.site = StaticWebsiteConstruct(self, "Site", resolved=resolved)

    # Tag resources with project info
    for key, value in resolved.tags.items():
      cdk.Tags.of(self).add(key, value)
    cdk.Tags.of(self).add("Project", website_config.project_name)
    cdk.Tags.of(self).add("Domain", website_config.domain_name)
