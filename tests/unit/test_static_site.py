"""Tests for the StaticWebsiteConstruct."""

import dataclasses

import pytest
from aws_cdk import App, Environment, Stack
from aws_cdk.assertions import Match, Template

from static_website.cdk_constructs import StaticWebsiteConstruct
from static_website.config import CloudFrontFunction, GeoRestriction, WebsiteConfig
from static_website.resolver import resolve
from static_website.stacks import StaticWebsiteStack

BASE = WebsiteConfig(
  project_name="example-site",
  bucket_name="example-site-content",
  domain_name="example.com",
)


def _template(config: WebsiteConfig) -> Template:
  app = App()
  stack = Stack(app, "TestStack", env=Environment(region="us-east-1"))
  StaticWebsiteConstruct(stack, "TestSite", resolved=resolve(config))
  return Template.from_stack(stack)


def _output_descriptions(template: Template) -> set[str]:
  return {o.get("Description") for o in template.find_outputs("*").values()}


class TestStaticWebsiteConstruct:
  """Test the construct with default options."""

  @pytest.fixture
  def template(self) -> Template:
    """Create a template with default options."""
    return _template(BASE)

  def test_creates_private_s3_bucket(self, template: Template) -> None:
    """Verify S3 bucket is private, versioned and serves the index document."""
    template.has_resource_properties(
      "AWS::S3::Bucket",
      {
        "BucketName": "example-site-content",
        "VersioningConfiguration": {"Status": "Enabled"},
        "WebsiteConfiguration": {
          "IndexDocument": "index.html",
          "ErrorDocument": "error.html",
        },
        "PublicAccessBlockConfiguration": {
          "BlockPublicAcls": True,
          "BlockPublicPolicy": True,
          "IgnorePublicAcls": True,
          "RestrictPublicBuckets": True,
        },
      },
    )

  def test_bucket_retained_by_default(self, template: Template) -> None:
    template.has_resource("AWS::S3::Bucket", {"DeletionPolicy": "Retain"})

  def test_creates_origin_access_control(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::OriginAccessControl",
      {
        "OriginAccessControlConfig": Match.object_like(
          {
            "Name": "example-site-oac",
            "OriginAccessControlOriginType": "s3",
            "SigningBehavior": "always",
            "SigningProtocol": "sigv4",
          }
        ),
      },
    )

  def test_creates_cloudfront_distribution(self, template: Template) -> None:
    """Verify CloudFront distribution uses the ACM certificate."""
    template.has_resource_properties(
      "AWS::CloudFront::Distribution",
      {
        "DistributionConfig": Match.object_like(
          {
            "Aliases": ["example.com"],
            "DefaultRootObject": "index.html",
            "PriceClass": "PriceClass_100",
            "IPV6Enabled": True,
            "ViewerCertificate": Match.object_like(
              {
                "MinimumProtocolVersion": "TLSv1.2_2021",
                "SslSupportMethod": "sni-only",
              }
            ),
            "CustomErrorResponses": Match.array_with(
              [
                Match.object_like(
                  {
                    "ErrorCode": 404,
                    "ResponseCode": 404,
                    "ResponsePagePath": "/error.html",
                  }
                )
              ]
            ),
          }
        ),
      },
    )

  def test_creates_cache_policy(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::CachePolicy",
      {
        "CachePolicyConfig": Match.object_like(
          {"DefaultTTL": 3600, "MinTTL": 0, "MaxTTL": 86400}
        ),
      },
    )

  def test_creates_certificate_with_dns_validation(self, template: Template) -> None:
    """Verify certificate uses DNS validation, not email."""
    template.has_resource_properties(
      "AWS::CertificateManager::Certificate",
      {
        "DomainName": "example.com",
        "ValidationMethod": "DNS",
      },
    )

  def test_creates_route53_hosted_zone(self, template: Template) -> None:
    """Verify Route 53 hosted zone is created."""
    template.has_resource_properties(
      "AWS::Route53::HostedZone",
      {"Name": "example.com."},
    )

  def test_creates_alias_records(self, template: Template) -> None:
    for record_type in ("A", "AAAA"):
      template.has_resource_properties(
        "AWS::Route53::RecordSet",
        {
          "Name": "example.com.",
          "Type": record_type,
          "AliasTarget": Match.object_like({"HostedZoneId": Match.any_value()}),
        },
      )
    template.resource_count_is("AWS::Route53::RecordSet", 2)

  def test_no_optional_resources(self, template: Template) -> None:
    template.resource_count_is("AWS::WAFv2::WebACL", 0)
    template.resource_count_is("AWS::Logs::LogGroup", 0)
    template.resource_count_is("AWS::CloudFront::Function", 0)

  def test_outputs(self, template: Template) -> None:
    template.has_output("*", {"Value": "https://example.com", "Description": "Website URL"})
    descriptions = _output_descriptions(template)
    assert "ACM certificate ARN" in descriptions
    assert "Route 53 hosted zone name servers" in descriptions
    assert "WAF Web ACL ARN" not in descriptions
    assert "DNS records used to validate the certificate" not in descriptions


class TestWithoutCertificate:
  """Distribution falls back to the CloudFront default certificate."""

  @pytest.fixture
  def template(self) -> Template:
    return _template(dataclasses.replace(BASE, create_certificate=False))

  def test_no_certificate(self, template: Template) -> None:
    template.resource_count_is("AWS::CertificateManager::Certificate", 0)

  def test_default_viewer_certificate(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::Distribution",
      {
        "DistributionConfig": Match.object_like(
          {
            "Aliases": Match.absent(),
            "ViewerCertificate": {
              "CloudFrontDefaultCertificate": True,
              "MinimumProtocolVersion": "TLSv1",
            },
          }
        ),
      },
    )

  def test_certificate_outputs_absent(self, template: Template) -> None:
    descriptions = _output_descriptions(template)

    assert "ACM certificate ARN" not in descriptions
    assert "ARN of the validated ACM certificate" not in descriptions
    assert "Website URL" in descriptions


class TestExistingHostedZone:
  """Records go into an imported zone."""

  @pytest.fixture
  def template(self) -> Template:
    return _template(
      dataclasses.replace(
        BASE, create_hosted_zone=False, hosted_zone_id="Z1", create_www_record=True
      )
    )

  def test_no_hosted_zone_created(self, template: Template) -> None:
    template.resource_count_is("AWS::Route53::HostedZone", 0)

  def test_records_use_existing_zone(self, template: Template) -> None:
    records = template.find_resources("AWS::Route53::RecordSet")

    assert len(records) == 3
    assert {r["Properties"]["HostedZoneId"] for r in records.values()} == {"Z1"}

  def test_www_cname(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::Route53::RecordSet",
      {"Name": "www.example.com.", "Type": "CNAME", "TTL": "300"},
    )

  def test_certificate_validated_in_existing_zone(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CertificateManager::Certificate",
      {
        "DomainValidationOptions": [{"DomainName": "example.com", "HostedZoneId": "Z1"}],
      },
    )

  def test_zone_outputs(self, template: Template) -> None:
    template.has_output("*", {"Value": "Z1", "Description": "Route 53 hosted zone ID"})
    assert "Route 53 hosted zone name servers" not in _output_descriptions(template)


class TestWithWafAndLogging:
  """WAF Web ACL attached to the distribution, plus CloudWatch logging."""

  @pytest.fixture
  def template(self) -> Template:
    return _template(
      dataclasses.replace(
        BASE,
        enable_waf=True,
        enable_cloudfront_logging=True,
        cloudfront_log_retention_days=14,
      )
    )

  def test_creates_web_acl(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::WAFv2::WebACL",
      {
        "Name": "example-site-waf",
        "Scope": "CLOUDFRONT",
        "DefaultAction": {"Allow": {}},
        "Rules": Match.array_with(
          [
            Match.object_like(
              {
                "Name": "AWSManagedRulesCommonRuleSet",
                "Priority": 1,
                "OverrideAction": {"None": {}},
              }
            )
          ]
        ),
      },
    )

  def test_distribution_uses_web_acl(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::Distribution",
      {
        "DistributionConfig": Match.object_like(
          {"WebACLId": {"Fn::GetAtt": [Match.any_value(), "Arn"]}}
        ),
      },
    )

  def test_creates_log_group(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::Logs::LogGroup",
      {"LogGroupName": "/aws/cloudfront/example-site", "RetentionInDays": 14},
    )
    template.resource_count_is("AWS::Logs::ResourcePolicy", 1)

  def test_log_policy_grants_log_group_arn(self, template: Template) -> None:
    """The log group ARN already covers its streams; no suffix is appended."""
    policy = next(iter(template.find_resources("AWS::Logs::ResourcePolicy").values()))
    parts = policy["Properties"]["PolicyDocument"]["Fn::Join"][1]
    arn_index = next(
      i for i, part in enumerate(parts) if isinstance(part, dict) and "Fn::GetAtt" in part
    )

    assert parts[arn_index]["Fn::GetAtt"][1] == "Arn"
    assert parts[arn_index - 1].endswith('"Resource":"')
    assert parts[arn_index + 1].startswith('"')

  def test_outputs(self, template: Template) -> None:
    descriptions = _output_descriptions(template)

    assert "WAF Web ACL ARN" in descriptions
    assert "CloudWatch log group for CloudFront logs" in descriptions


class TestDistributionOptions:
  """Functions, geo restriction and price class."""

  @pytest.fixture
  def template(self) -> Template:
    return _template(
      dataclasses.replace(
        BASE,
        cloudfront_price_class="PriceClass_All",
        geo_restrictions=GeoRestriction("whitelist", ("US", "CA")),
        cloudfront_functions=(
          CloudFrontFunction(
            "example-rewrite",
            "function handler(event) { return event.request; }",
          ),
        ),
      )
    )

  def test_function(self, template: Template) -> None:
    template.resource_count_is("AWS::CloudFront::Function", 1)
    template.has_resource_properties(
      "AWS::CloudFront::Function",
      {"Name": "example-rewrite"},
    )

  def test_function_association(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::Distribution",
      {
        "DistributionConfig": Match.object_like(
          {
            "DefaultCacheBehavior": Match.object_like(
              {
                "FunctionAssociations": [
                  Match.object_like({"EventType": "viewer-request"}),
                ],
              }
            ),
          }
        ),
      },
    )

  def test_geo_restriction_and_price_class(self, template: Template) -> None:
    template.has_resource_properties(
      "AWS::CloudFront::Distribution",
      {
        "DistributionConfig": Match.object_like(
          {
            "PriceClass": "PriceClass_All",
            "Restrictions": {
              "GeoRestriction": {
                "RestrictionType": "whitelist",
                "Locations": ["US", "CA"],
              }
            },
          }
        ),
      },
    )


class TestStaticWebsiteStack:
  """Stack-level tagging."""

  def test_tags_applied(self) -> None:
    app = App()
    config = dataclasses.replace(BASE, common_tags={"Team": "web"})
    stack = StaticWebsiteStack(
      app,
      "WebsiteStack",
      website_config=config,
      env=Environment(region="us-east-1"),
    )
    template = Template.from_stack(stack)

    template.has_resource_properties(
      "AWS::S3::Bucket",
      {
        "Tags": Match.array_with(
          [
            {"Key": "Domain", "Value": "example.com"},
            {"Key": "Project", "Value": "example-site"},
            {"Key": "Team", "Value": "web"},
          ]
        ),
      },
    )
