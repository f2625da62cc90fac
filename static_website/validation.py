"""Field-level validation for website configuration.

Every rule is checked independently and all violations are reported
together, so a single run surfaces every problem in a configuration file.
"""

import logging
import re
from pathlib import Path
from typing import Any

from .config import Config, WebsiteConfig, parse_config_file, parse_website
from .errors import MISSING_DEPENDENCY, ConfigValidationError, FieldError

logger = logging.getLogger(__name__)

PROJECT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")
DOMAIN_NAME_PATTERN = re.compile(
  r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.[a-zA-Z]{2,}$"
)
TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_.:/=+\-@]+$")

# Documented S3 limits; the name pattern alone does not enforce them.
BUCKET_NAME_MIN_LENGTH = 3
BUCKET_NAME_MAX_LENGTH = 63

PRICE_CLASSES = ("PriceClass_100", "PriceClass_200", "PriceClass_All")
FUNCTION_EVENT_TYPES = ("viewer-request", "viewer-response")
GEO_RESTRICTION_TYPES = ("whitelist", "blacklist")
WAF_OVERRIDE_ACTIONS = ("none", "count")
LOG_RETENTION_RANGE = (1, 3653)
ERROR_CODE_RANGE = (400, 599)


def _prefixed(path: str, name: str) -> str:
  return f"{path}.{name}" if path else name


def _check_bucket_length(config: WebsiteConfig) -> None:
  length = len(config.bucket_name)
  if not BUCKET_NAME_MIN_LENGTH <= length <= BUCKET_NAME_MAX_LENGTH:
    logger.warning(
      "bucket_name %r is %d characters; S3 expects %d-%d",
      config.bucket_name,
      length,
      BUCKET_NAME_MIN_LENGTH,
      BUCKET_NAME_MAX_LENGTH,
    )


def collect_errors(config: WebsiteConfig, path: str = "") -> list[FieldError]:
  """Return every constraint the config violates (empty when valid)."""
  errors: list[FieldError] = []

  def fail(name: str, message: str, kind: str | None = None) -> None:
    if kind:
      errors.append(FieldError(_prefixed(path, name), message, kind))
    else:
      errors.append(FieldError(_prefixed(path, name), message))

  if not PROJECT_NAME_PATTERN.match(config.project_name):
    fail("project_name", "must contain only letters, numbers and hyphens")

  if not BUCKET_NAME_PATTERN.match(config.bucket_name):
    fail(
      "bucket_name",
      "must start and end with a lowercase letter or number and contain only "
      "lowercase letters, numbers, dots and hyphens",
    )
  else:
    _check_bucket_length(config)

  if not DOMAIN_NAME_PATTERN.match(config.domain_name):
    fail("domain_name", "must be a valid domain name")
  for i, name in enumerate(config.subject_alternative_names):
    if not DOMAIN_NAME_PATTERN.match(name):
      fail(f"subject_alternative_names[{i}]", "must be a valid domain name")

  for key, value in config.common_tags.items():
    if not TAG_PATTERN.match(key):
      fail(f"common_tags[{key!r}]", "tag key contains invalid characters")
    if not TAG_PATTERN.match(value):
      fail(f"common_tags[{key!r}]", "tag value contains invalid characters")

  if config.cloudfront_price_class not in PRICE_CLASSES:
    fail("cloudfront_price_class", f"must be one of {', '.join(PRICE_CLASSES)}")

  low, high = LOG_RETENTION_RANGE
  if not low <= config.cloudfront_log_retention_days <= high:
    fail("cloudfront_log_retention_days", f"must be between {low} and {high}")

  function_names: set[str] = set()
  for i, function in enumerate(config.cloudfront_functions):
    if function.name in function_names:
      fail(f"cloudfront_functions[{i}].name", f"duplicate function name {function.name!r}")
    function_names.add(function.name)
    if function.event_type not in FUNCTION_EVENT_TYPES:
      fail(
        f"cloudfront_functions[{i}].event_type",
        f"must be one of {', '.join(FUNCTION_EVENT_TYPES)}",
      )

  low, high = ERROR_CODE_RANGE
  for i, response in enumerate(config.custom_error_responses):
    if not low <= response.error_code <= high:
      fail(f"custom_error_responses[{i}].error_code", f"must be between {low} and {high}")

  geo = config.geo_restrictions
  if geo is not None and geo.restriction_type not in GEO_RESTRICTION_TYPES:
    fail(
      "geo_restrictions.restriction_type",
      f"must be one of {', '.join(GEO_RESTRICTION_TYPES)}",
    )

  rule_names: set[str] = set()
  rule_priorities: set[int] = set()
  for i, rule in enumerate(config.waf_rules):
    if rule.name in rule_names:
      fail(f"waf_rules[{i}].name", f"duplicate rule name {rule.name!r}")
    if rule.priority in rule_priorities:
      fail(f"waf_rules[{i}].priority", f"duplicate rule priority {rule.priority}")
    rule_names.add(rule.name)
    rule_priorities.add(rule.priority)
    if rule.override_action not in WAF_OVERRIDE_ACTIONS:
      fail(
        f"waf_rules[{i}].override_action",
        f"must be one of {', '.join(WAF_OVERRIDE_ACTIONS)}",
      )

  if not config.create_hosted_zone and config.requests_dns_records:
    if not config.hosted_zone_id:
      fail(
        "hosted_zone_id",
        "is required when create_hosted_zone is false and DNS records are requested",
        MISSING_DEPENDENCY,
      )

  return errors


def validate_website(raw: dict[str, Any], path: str = "") -> WebsiteConfig:
  """Parse and validate a raw website mapping.

  Raises ConfigValidationError with structural and constraint errors combined.
  Constraint errors on a field that already failed to parse are dropped.
  """
  config, errors = parse_website(raw, path)
  broken = {e.field for e in errors}
  errors.extend(e for e in collect_errors(config, path) if e.field not in broken)
  if errors:
    raise ConfigValidationError(errors)
  return config


def validate_config(config: Config, source: str | None = None) -> Config:
  """Validate every website in a loaded Config."""
  errors: list[FieldError] = []
  for i, website in enumerate(config.websites):
    errors.extend(collect_errors(website, path=f"websites[{i}]"))
  if errors:
    raise ConfigValidationError(errors, source=source)
  return config


def load_config(path: Path | str = "website.yaml") -> Config:
  """Load a YAML file and validate every website in it.

  Structural and constraint errors from every website are raised together;
  constraint errors on a field that already failed to parse are dropped.
  """
  entries, errors = parse_config_file(path)
  broken = {e.field for e in errors}
  for website_path, website in entries:
    errors.extend(e for e in collect_errors(website, website_path) if e.field not in broken)
  if errors:
    raise ConfigValidationError(errors, source=str(path))

  config = Config(websites=[website for _, website in entries])
  logger.info("Loaded %d website(s) from %s", len(config.websites), path)
  return config
