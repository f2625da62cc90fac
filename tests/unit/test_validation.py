"""Tests for configuration validation rules."""

import dataclasses
import logging
import tempfile
from pathlib import Path

import pytest

from static_website.config import (
  CloudFrontFunction,
  CustomErrorResponse,
  GeoRestriction,
  WafRule,
  WebsiteConfig,
)
from static_website.errors import MISSING_DEPENDENCY, ConfigValidationError
from static_website.validation import collect_errors, load_config, validate_website


def _fields(config: WebsiteConfig) -> set[str]:
  return {e.field for e in collect_errors(config)}


class TestNamePatterns:
  """Project, bucket and domain name patterns."""

  def test_valid_config_has_no_errors(self, website: WebsiteConfig) -> None:
    assert collect_errors(website) == []

  @pytest.mark.parametrize("name", ["valid-bucket-2024", "my.site.bucket", "a1"])
  def test_valid_bucket_names(self, website: WebsiteConfig, name: str) -> None:
    assert _fields(dataclasses.replace(website, bucket_name=name)) == set()

  @pytest.mark.parametrize("name", ["Invalid_Bucket", "-bucket", "bucket-", "a"])
  def test_invalid_bucket_names(self, website: WebsiteConfig, name: str) -> None:
    assert _fields(dataclasses.replace(website, bucket_name=name)) == {"bucket_name"}

  def test_long_bucket_name_only_warns(
    self, website: WebsiteConfig, caplog: pytest.LogCaptureFixture
  ) -> None:
    """The 3-63 length bound is reported as a warning, not an error."""
    config = dataclasses.replace(website, bucket_name="b" * 70)

    with caplog.at_level(logging.WARNING, logger="static_website.validation"):
      errors = collect_errors(config)

    assert errors == []
    assert "70 characters" in caplog.text

  def test_domain_without_tld(self, website: WebsiteConfig) -> None:
    assert _fields(dataclasses.replace(website, domain_name="example")) == {"domain_name"}

  def test_domain_with_tld(self, website: WebsiteConfig) -> None:
    assert _fields(dataclasses.replace(website, domain_name="example.com")) == set()

  def test_invalid_subject_alternative_name(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website, subject_alternative_names=("www.example.com", "bad_name.com")
    )
    assert _fields(config) == {"subject_alternative_names[1]"}

  def test_project_name(self, website: WebsiteConfig) -> None:
    assert _fields(dataclasses.replace(website, project_name="my site")) == {"project_name"}

  def test_tags(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(website, common_tags={"Team": "web", "Bad Key": "x#y"})
    errors = collect_errors(config)

    assert len(errors) == 2
    assert {e.field for e in errors} == {"common_tags['Bad Key']"}


class TestEnumeratedValues:
  """Range and choice rules."""

  def test_price_class(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(website, cloudfront_price_class="PriceClass_300")
    assert _fields(config) == {"cloudfront_price_class"}

  @pytest.mark.parametrize("days,valid", [(0, False), (1, True), (3653, True), (3654, False)])
  def test_log_retention_bounds(self, website: WebsiteConfig, days: int, valid: bool) -> None:
    config = dataclasses.replace(website, cloudfront_log_retention_days=days)
    assert (_fields(config) == set()) is valid

  def test_function_event_type(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website,
      cloudfront_functions=(
        CloudFrontFunction("ok", "code", "viewer-response"),
        CloudFrontFunction("bad", "code", "origin-request"),
      ),
    )
    assert _fields(config) == {"cloudfront_functions[1].event_type"}

  @pytest.mark.parametrize("code,valid", [(399, False), (400, True), (599, True), (600, False)])
  def test_error_code_bounds(self, website: WebsiteConfig, code: int, valid: bool) -> None:
    config = dataclasses.replace(website, custom_error_responses=(CustomErrorResponse(code),))
    assert (_fields(config) == set()) is valid

  def test_geo_restriction_type(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(website, geo_restrictions=GeoRestriction("none", ()))
    assert _fields(config) == {"geo_restrictions.restriction_type"}

  def test_waf_block_override_rejected(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website, waf_rules=(WafRule("rule", 1, "Group", override_action="block"),)
    )
    assert _fields(config) == {"waf_rules[0].override_action"}

  def test_waf_count_override_accepted(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website, waf_rules=(WafRule("rule", 1, "Group", override_action="count"),)
    )
    assert _fields(config) == set()


class TestHostedZoneDependency:
  """hosted_zone_id is required when records go into an existing zone."""

  def test_missing_zone_id(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(website, create_hosted_zone=False)
    errors = collect_errors(config)

    assert [(e.field, e.kind) for e in errors] == [("hosted_zone_id", MISSING_DEPENDENCY)]

  def test_zone_id_supplied(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(website, create_hosted_zone=False, hosted_zone_id="Z1")
    assert collect_errors(config) == []

  def test_no_records_requested(self, website: WebsiteConfig) -> None:
    """Without records or a certificate there is nothing to put in a zone."""
    config = dataclasses.replace(
      website,
      create_hosted_zone=False,
      create_dns_record=False,
      create_certificate=False,
    )
    assert collect_errors(config) == []


class TestValidateWebsite:
  """validate_website combines structural and constraint errors."""

  def test_returns_config(self, raw_website: dict) -> None:
    config = validate_website(raw_website)

    assert config.domain_name == "example.com"

  def test_collects_all_errors(self, raw_website: dict) -> None:
    """All violations are reported, not just the first."""
    raw_website.update(
      bucket_name="Invalid_Bucket",
      domain_name="example",
      waf_rules=[{"name": "r", "priority": 1, "managed_rule_group": "g", "override_action": "block"}],
      create_hosted_zone=False,
      enable_waf="true",
    )

    with pytest.raises(ConfigValidationError) as exc_info:
      validate_website(raw_website)

    error = exc_info.value
    assert {e.field for e in error.errors} == {
      "bucket_name",
      "domain_name",
      "waf_rules[0].override_action",
      "hosted_zone_id",
      "enable_waf",
    }
    assert [e.field for e in error.missing_dependencies] == ["hosted_zone_id"]

  def test_structural_error_not_duplicated(self, raw_website: dict) -> None:
    """A missing field is reported once, not also as a pattern mismatch."""
    del raw_website["domain_name"]

    with pytest.raises(ConfigValidationError) as exc_info:
      validate_website(raw_website)

    assert [str(e) for e in exc_info.value.errors] == ["domain_name: is required"]


class TestLoadConfig:
  """load_config validates every website in a file."""

  def test_reports_errors_with_website_path(self) -> None:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
      f.write(
        """
websites:
  - project_name: good
    bucket_name: good-bucket
    domain_name: good.com
  - project_name: bad
    bucket_name: Bad_Bucket
    domain_name: bad.com
"""
      )

    with pytest.raises(ConfigValidationError) as exc_info:
      load_config(Path(f.name))

    assert [e.field for e in exc_info.value.errors] == ["websites[1].bucket_name"]
    assert f.name in str(exc_info.value)

  def test_structural_and_constraint_errors_reported_together(self, tmp_path: Path) -> None:
    """A wrongly typed flag does not hide pattern violations in the same file."""
    path = tmp_path / "website.yaml"
    path.write_text(
      """
websites:
  - project_name: example-site
    bucket_name: Invalid_Bucket
    domain_name: example
    enable_waf: 'yes'
"""
    )

    with pytest.raises(ConfigValidationError) as exc_info:
      load_config(path)

    assert {e.field for e in exc_info.value.errors} == {
      "websites[0].enable_waf",
      "websites[0].bucket_name",
      "websites[0].domain_name",
    }

  def test_missing_field_reported_once(self, tmp_path: Path) -> None:
    path = tmp_path / "website.yaml"
    path.write_text(
      """
websites:
  - project_name: example-site
    bucket_name: example-site-content
"""
    )

    with pytest.raises(ConfigValidationError) as exc_info:
      load_config(path)

    assert [str(e) for e in exc_info.value.errors] == ["websites[0].domain_name: is required"]

  def test_non_mapping_website_entry(self, tmp_path: Path) -> None:
    path = tmp_path / "website.yaml"
    path.write_text(
      """
websites:
  - example.com
  - project_name: bad
    bucket_name: Bad_Bucket
    domain_name: bad.com
"""
    )

    with pytest.raises(ConfigValidationError) as exc_info:
      load_config(path)

    assert [str(e) for e in exc_info.value.errors] == [
      "websites[0]: must be a mapping",
      "websites[1].bucket_name: must start and end with a lowercase letter or number "
      "and contain only lowercase letters, numbers, dots and hyphens",
    ]

  def test_top_level_list(self, tmp_path: Path) -> None:
    path = tmp_path / "website.yaml"
    path.write_text("- project_name: example-site\n")

    with pytest.raises(ConfigValidationError) as exc_info:
      load_config(path)

    assert [e.field for e in exc_info.value.errors] == ["document"]


class TestUniqueNames:
  """Names and priorities that become resource identities must be unique."""

  def test_duplicate_function_names(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website,
      cloudfront_functions=(
        CloudFrontFunction("rewrite", "code"),
        CloudFrontFunction("rewrite", "other code", "viewer-response"),
      ),
    )

    assert _fields(config) == {"cloudfront_functions[1].name"}

  def test_duplicate_waf_rule_name_and_priority(self, website: WebsiteConfig) -> None:
    config = dataclasses.replace(
      website,
      waf_rules=(
        WafRule("common", 1, "AWSManagedRulesCommonRuleSet"),
        WafRule("common", 1, "AWSManagedRulesKnownBadInputsRuleSet"),
        WafRule("bad-inputs", 2, "AWSManagedRulesKnownBadInputsRuleSet"),
      ),
    )

    assert _fields(config) == {"waf_rules[1].name", "waf_rules[1].priority"}

  def test_default_waf_rules_are_unique(self, website: WebsiteConfig) -> None:
    assert collect_errors(dataclasses.replace(website, enable_waf=True)) == []
