"""Configuration model and YAML loader for static websites."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigValidationError, FieldError


@dataclass(frozen=True)
class RoutingRule:
  """S3 website redirect rule."""

  key_prefix_equals: str | None = None
  http_error_code_returned_equals: str | None = None
  host_name: str | None = None
  protocol: str | None = None  # "http" or "https"
  replace_key_prefix_with: str | None = None
  replace_key_with: str | None = None
  http_redirect_code: str | None = None


@dataclass(frozen=True)
class CloudFrontFunction:
  """CloudFront function attached to the default cache behavior."""

  name: str
  code: str
  event_type: str = "viewer-request"
  comment: str = ""


@dataclass(frozen=True)
class CustomErrorResponse:
  """CloudFront custom error response."""

  error_code: int
  response_code: int | None = None
  response_page_path: str | None = None
  error_caching_min_ttl: int = 300


@dataclass(frozen=True)
class GeoRestriction:
  """CloudFront geo restriction ("whitelist" or "blacklist")."""

  restriction_type: str
  locations: tuple[str, ...] = ()


@dataclass(frozen=True)
class WafRule:
  """Managed rule group referenced by the Web ACL."""

  name: str
  priority: int
  managed_rule_group: str
  vendor_name: str = "AWS"
  override_action: str = "none"
  excluded_rules: tuple[str, ...] = ()


DEFAULT_ERROR_RESPONSES = (
  CustomErrorResponse(404, 404, "/error.html"),
  CustomErrorResponse(403, 404, "/error.html"),
)

DEFAULT_WAF_RULES = (
  WafRule("AWSManagedRulesCommonRuleSet", 1, "AWSManagedRulesCommonRuleSet"),
  WafRule(
    "AWSManagedRulesKnownBadInputsRuleSet", 2, "AWSManagedRulesKnownBadInputsRuleSet"
  ),
)


@dataclass(frozen=True)
class WebsiteConfig:
  """Configuration for a single static website."""

  project_name: str
  bucket_name: str
  domain_name: str
  subject_alternative_names: tuple[str, ...] = ()
  common_tags: dict[str, str] = field(default_factory=dict, hash=False)
  region: str = "us-east-1"

  # Certificate and DNS
  create_certificate: bool = True
  create_hosted_zone: bool = True
  hosted_zone_id: str | None = None
  create_dns_record: bool = True
  create_ipv6_record: bool = True
  create_www_record: bool = False

  # Bucket
  enable_versioning: bool = True
  force_destroy: bool = False
  index_document: str = "index.html"
  error_document: str = "error.html"
  routing_rules: tuple[RoutingRule, ...] = ()

  # Distribution
  cloudfront_price_class: str = "PriceClass_100"
  cloudfront_default_ttl: int = 3600
  cloudfront_min_ttl: int = 0
  cloudfront_max_ttl: int = 86400
  cloudfront_compress: bool = True
  enable_ipv6: bool = True
  cloudfront_functions: tuple[CloudFrontFunction, ...] = ()
  custom_error_responses: tuple[CustomErrorResponse, ...] = DEFAULT_ERROR_RESPONSES
  geo_restrictions: GeoRestriction | None = None

  # WAF
  enable_waf: bool = False
  waf_rules: tuple[WafRule, ...] = DEFAULT_WAF_RULES

  # Logging
  enable_cloudfront_logging: bool = False
  cloudfront_log_retention_days: int = 30

  @property
  def requests_dns_records(self) -> bool:
    """Whether any record has to be written into a hosted zone."""
    return self.create_dns_record or self.create_www_record or self.create_certificate


REQUIRED_FIELDS = ("project_name", "bucket_name", "domain_name")

_STR_FIELDS = ("region", "index_document", "error_document", "cloudfront_price_class")
_BOOL_FIELDS = (
  "create_certificate",
  "create_hosted_zone",
  "create_dns_record",
  "create_ipv6_record",
  "create_www_record",
  "enable_versioning",
  "force_destroy",
  "cloudfront_compress",
  "enable_ipv6",
  "enable_waf",
  "enable_cloudfront_logging",
)
_INT_FIELDS = (
  "cloudfront_default_ttl",
  "cloudfront_min_ttl",
  "cloudfront_max_ttl",
  "cloudfront_log_retention_days",
)


class _Reader:
  """Typed accessors over a raw mapping that record errors instead of raising."""

  def __init__(self, data: dict[str, Any], path: str, errors: list[FieldError]) -> None:
    self.data = data
    self.path = path
    self.errors = errors

  def _name(self, key: str) -> str:
    return f"{self.path}.{key}" if self.path else key

  def error(self, key: str, message: str) -> None:
    self.errors.append(FieldError(self._name(key), message))

  def text(self, key: str, default: Any = None, required: bool = False) -> Any:
    value = self.data.get(key)
    if value is None:
      if required:
        self.error(key, "is required")
      return default
    if not isinstance(value, str):
      self.error(key, f"must be a string, got {type(value).__name__}")
      return default
    return value

  def flag(self, key: str, default: bool) -> bool:
    value = self.data.get(key)
    if value is None:
      return default
    if not isinstance(value, bool):
      self.error(key, f"must be a boolean, got {type(value).__name__}")
      return default
    return value

  def number(self, key: str, default: Any = None, required: bool = False) -> Any:
    value = self.data.get(key)
    if value is None:
      if required:
        self.error(key, "is required")
      return default
    if isinstance(value, bool) or not isinstance(value, int):
      self.error(key, f"must be an integer, got {type(value).__name__}")
      return default
    return value

  def texts(self, key: str) -> tuple[str, ...]:
    value = self.data.get(key)
    if value is None:
      return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
      self.error(key, "must be a list of strings")
      return ()
    return tuple(value)

  def mappings(self, key: str) -> list[tuple[str, dict[str, Any]]] | None:
    """Return (path, item) pairs for a list of mappings, or None if absent."""
    value = self.data.get(key)
    if value is None:
      return None
    if not isinstance(value, list):
      self.error(key, "must be a list")
      return []
    items = []
    for i, item in enumerate(value):
      item_path = f"{self._name(key)}[{i}]"
      if not isinstance(item, dict):
        self.errors.append(FieldError(item_path, "must be a mapping"))
        continue
      items.append((item_path, item))
    return items


def _routing_rule(data: dict[str, Any], path: str, errors: list[FieldError]) -> RoutingRule:
  r = _Reader(data, path, errors)
  return RoutingRule(
    key_prefix_equals=r.text("key_prefix_equals"),
    http_error_code_returned_equals=r.text("http_error_code_returned_equals"),
    host_name=r.text("host_name"),
    protocol=r.text("protocol"),
    replace_key_prefix_with=r.text("replace_key_prefix_with"),
    replace_key_with=r.text("replace_key_with"),
    http_redirect_code=r.text("http_redirect_code"),
  )


def _cloudfront_function(
  data: dict[str, Any], path: str, errors: list[FieldError]
) -> CloudFrontFunction:
  r = _Reader(data, path, errors)
  return CloudFrontFunction(
    name=r.text("name", "", required=True),
    code=r.text("code", "", required=True),
    event_type=r.text("event_type", "viewer-request"),
    comment=r.text("comment", ""),
  )


def _error_response(
  data: dict[str, Any], path: str, errors: list[FieldError]
) -> CustomErrorResponse:
  r = _Reader(data, path, errors)
  return CustomErrorResponse(
    error_code=r.number("error_code", 0, required=True),
    response_code=r.number("response_code"),
    response_page_path=r.text("response_page_path"),
    error_caching_min_ttl=r.number("error_caching_min_ttl", 300),
  )


def _waf_rule(data: dict[str, Any], path: str, errors: list[FieldError]) -> WafRule:
  r = _Reader(data, path, errors)
  return WafRule(
    name=r.text("name", "", required=True),
    priority=r.number("priority", 0, required=True),
    managed_rule_group=r.text("managed_rule_group", "", required=True),
    vendor_name=r.text("vendor_name", "AWS"),
    override_action=r.text("override_action", "none"),
    excluded_rules=r.texts("excluded_rules"),
  )


def _tag_text(value: Any) -> str | None:
  # Numbers are written unquoted in YAML; anything else is not a tag string
  if isinstance(value, str):
    return value
  if isinstance(value, (int, float)) and not isinstance(value, bool):
    return str(value)
  return None


def _tags(tags: dict[Any, Any], r: _Reader) -> dict[str, str]:
  result = {}
  for key, value in tags.items():
    name = f"common_tags[{key!r}]"
    key_text = _tag_text(key)
    value_text = _tag_text(value)
    if key_text is None:
      r.error(name, "tag key must be a string")
    elif value_text is None:
      r.error(name, f"tag value must be a string, got {type(value).__name__}")
    else:
      result[key_text] = value_text
  return result


def _known_fields() -> set[str]:
  return set(WebsiteConfig.__dataclass_fields__)


def parse_website(
  raw: dict[str, Any], path: str = ""
) -> tuple[WebsiteConfig, list[FieldError]]:
  """Build a WebsiteConfig from a raw mapping.

  Structural problems (missing required keys, unknown keys, wrong types) are
  returned as field errors alongside a best-effort config, so that they can be
  reported together with constraint violations.
  """
  errors: list[FieldError] = []
  r = _Reader(raw, path, errors)

  for key in sorted(set(raw) - _known_fields()):
    r.error(key, "is not a recognised setting")

  kwargs: dict[str, Any] = {}
  for key in REQUIRED_FIELDS:
    kwargs[key] = r.text(key, "", required=True)
  for key in _STR_FIELDS:
    value = r.text(key)
    if value is not None:
      kwargs[key] = value
  for key in _BOOL_FIELDS:
    kwargs[key] = r.flag(key, WebsiteConfig.__dataclass_fields__[key].default)
  for key in _INT_FIELDS:
    value = r.number(key)
    if value is not None:
      kwargs[key] = value

  kwargs["hosted_zone_id"] = r.text("hosted_zone_id")
  kwargs["subject_alternative_names"] = r.texts("subject_alternative_names")

  tags = raw.get("common_tags")
  if tags is not None and not isinstance(tags, dict):
    r.error("common_tags", "must be a mapping")
  elif tags:
    kwargs["common_tags"] = _tags(tags, r)

  builders = {
    "routing_rules": _routing_rule,
    "cloudfront_functions": _cloudfront_function,
    "custom_error_responses": _error_response,
    "waf_rules": _waf_rule,
  }
  for key, build in builders.items():
    items = r.mappings(key)
    if items is not None:
      kwargs[key] = tuple(build(item, item_path, errors) for item_path, item in items)

  geo = raw.get("geo_restrictions")
  if geo is not None:
    if isinstance(geo, dict):
      g = _Reader(geo, r._name("geo_restrictions"), errors)
      kwargs["geo_restrictions"] = GeoRestriction(
        restriction_type=g.text("restriction_type", "", required=True),
        locations=g.texts("locations"),
      )
    else:
      r.error("geo_restrictions", "must be a mapping")

  return WebsiteConfig(**kwargs), errors


@dataclass
class Config:
  """Multi-website configuration."""

  websites: list[WebsiteConfig] = field(default_factory=list)

  @classmethod
  def from_yaml(cls, path: Path | str = "website.yaml") -> "Config":
    """Load configuration from YAML file.

    Raises ConfigValidationError listing every structural problem found
    across all websites.
    """
    entries, errors = parse_config_file(path)
    if errors:
      raise ConfigValidationError(errors, source=str(path))
    return cls(websites=[website for _, website in entries])


def merged_entries(data: Any, errors: list[FieldError]) -> list[tuple[str, dict[str, Any]]]:
  """Merge the ``defaults`` mapping under each website entry.

  Returns ``(path, entry)`` pairs. Anything that is not shaped like a
  configuration document is reported in ``errors`` and skipped.
  """
  if data is None:
    return []
  if not isinstance(data, dict):
    errors.append(FieldError("document", "must be a mapping with a websites list"))
    return []

  defaults = data.get("defaults") or {}
  if not isinstance(defaults, dict):
    errors.append(FieldError("defaults", "must be a mapping"))
    defaults = {}

  websites = data.get("websites") or []
  if not isinstance(websites, list):
    errors.append(FieldError("websites", "must be a list"))
    return []

  entries = []
  for i, entry in enumerate(websites):
    path = f"websites[{i}]"
    if not isinstance(entry, dict):
      errors.append(FieldError(path, "must be a mapping"))
      continue
    entries.append((path, {**defaults, **entry}))
  return entries


def parse_config_file(
  path: Path | str,
) -> tuple[list[tuple[str, WebsiteConfig]], list[FieldError]]:
  """Read a YAML file into ``(path, website)`` pairs plus every structural error."""
  with open(path) as f:
    data = yaml.safe_load(f)

  errors: list[FieldError] = []
  websites = []
  for website_path, entry in merged_entries(data, errors):
    website, website_errors = parse_website(entry, path=website_path)
    websites.append((website_path, website))
    errors.extend(website_errors)
  return websites, errors
