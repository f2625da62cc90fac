"""Resolve a website configuration into the set of resources it requires.

Resolution runs in two phases. The first decides which entities exist and
assigns each an identity; the second builds every entity, taking references
only from first-phase identities. An entity's presence is therefore decided
exactly once, and every consumer of an absent entity sees the same ``None``.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any

from .config import (
  CloudFrontFunction,
  CustomErrorResponse,
  GeoRestriction,
  RoutingRule,
  WafRule,
  WebsiteConfig,
)
from .errors import MissingDependencyError

logger = logging.getLogger(__name__)

LOG_DELIVERY_PRINCIPAL = "delivery.logs.amazonaws.com"


@dataclass(frozen=True)
class Ref:
  """Attribute of another entity that is only known once it is provisioned."""

  entity: str
  attribute: str

  def __str__(self) -> str:
    return f"${{{self.entity}.{self.attribute}}}"


ZoneId = str | Ref


@dataclass(frozen=True)
class Bucket:
  name: str
  versioning: bool
  force_destroy: bool
  index_document: str
  error_document: str
  routing_rules: tuple[RoutingRule, ...]
  arn: Ref
  regional_domain_name: Ref
  website_endpoint: Ref


@dataclass(frozen=True)
class OriginAccessControl:
  name: str
  origin_type: str
  signing_behavior: str
  signing_protocol: str
  id: Ref


@dataclass(frozen=True)
class Certificate:
  domain_name: str
  subject_alternative_names: tuple[str, ...]
  validation_method: str
  arn: Ref
  status: Ref
  validation_arn: Ref

  @property
  def validation_domains(self) -> tuple[str, ...]:
    """One domain validation option per certificate name, in order."""
    return tuple(dict.fromkeys((self.domain_name, *self.subject_alternative_names)))


@dataclass(frozen=True)
class CertificateValidationRecord:
  domain_name: str
  zone_id: ZoneId
  name: Ref
  type: Ref
  value: Ref
  ttl: int = 60
  allow_overwrite: bool = True


@dataclass(frozen=True)
class HostedZone:
  name: str
  zone_id: Ref
  name_servers: Ref


@dataclass(frozen=True)
class AliasTarget:
  dns_name: Ref
  zone_id: Ref | str
  evaluate_target_health: bool = False


@dataclass(frozen=True)
class DnsRecord:
  name: str
  type: str
  zone_id: ZoneId
  alias: AliasTarget | None = None
  records: tuple[Ref | str, ...] = ()
  ttl: int | None = None


@dataclass(frozen=True)
class Function:
  name: str
  code: str
  event_type: str
  comment: str
  runtime: str
  arn: Ref


@dataclass(frozen=True)
class ViewerCertificate:
  cloudfront_default_certificate: bool
  minimum_protocol_version: str
  acm_certificate_arn: Ref | None = None
  ssl_support_method: str | None = None


@dataclass(frozen=True)
class Distribution:
  comment: str
  aliases: tuple[str, ...]
  origin_id: str
  origin_domain_name: Ref
  origin_access_control_id: Ref
  default_root_object: str
  price_class: str
  is_ipv6_enabled: bool
  compress: bool
  default_ttl: int
  min_ttl: int
  max_ttl: int
  viewer_protocol_policy: str
  custom_error_responses: tuple[CustomErrorResponse, ...]
  geo_restriction: GeoRestriction | None
  function_associations: tuple[tuple[str, Ref], ...]
  viewer_certificate: ViewerCertificate
  id: Ref
  arn: Ref
  domain_name: Ref
  hosted_zone_id: Ref


@dataclass(frozen=True)
class WebAcl:
  name: str
  scope: str
  default_action: str
  metric_name: str
  rules: tuple[WafRule, ...]
  id: Ref
  arn: Ref


@dataclass(frozen=True)
class WebAclAssociation:
  web_acl_arn: Ref
  distribution_id: Ref


@dataclass(frozen=True)
class LogGroup:
  name: str
  retention_in_days: int
  arn: Ref


@dataclass(frozen=True)
class LogDeliveryPolicy:
  name: str
  service_principal: str
  log_group_arn: Ref


@dataclass(frozen=True)
class ResolvedResourceSet:
  """Every resource a website configuration materialises.

  Optional entities are ``None`` when absent; repeated entities are tuples.
  """

  project_name: str
  domain_name: str
  region: str
  tags: dict[str, str] = field(hash=False)
  bucket: Bucket
  origin_access_control: OriginAccessControl
  distribution: Distribution
  zone_id: ZoneId | None
  certificate: Certificate | None = None
  certificate_validation_records: tuple[CertificateValidationRecord, ...] = ()
  hosted_zone: HostedZone | None = None
  dns_records: tuple[DnsRecord, ...] = ()
  functions: tuple[Function, ...] = ()
  web_acl: WebAcl | None = None
  web_acl_association: WebAclAssociation | None = None
  log_group: LogGroup | None = None
  log_delivery_policy: LogDeliveryPolicy | None = None

  @property
  def presence(self) -> dict[str, bool]:
    return {
      "certificate": self.certificate is not None,
      "hosted_zone": self.hosted_zone is not None,
      "web_acl": self.web_acl is not None,
      "web_acl_association": self.web_acl_association is not None,
      "log_group": self.log_group is not None,
      "log_delivery_policy": self.log_delivery_policy is not None,
    }

  def record(self, record_type: str) -> DnsRecord | None:
    """Return the DNS record of the given type, if one was resolved."""
    return next((r for r in self.dns_records if r.type == record_type), None)

  def to_dict(self) -> dict[str, Any]:
    """Canonical JSON-ready form; references render as ``${entity.attr}``."""
    return plain(self)


def plain(value: Any) -> Any:
  """Convert dataclasses, refs and containers into JSON-ready values."""
  if isinstance(value, Ref):
    return str(value)
  if is_dataclass(value) and not isinstance(value, type):
    return {f.name: plain(getattr(value, f.name)) for f in fields(value)}
  if isinstance(value, dict):
    return {str(k): plain(v) for k, v in sorted(value.items())}
  if isinstance(value, (list, tuple)):
    return [plain(v) for v in value]
  return value


def fingerprint(config: WebsiteConfig) -> str:
  """Stable SHA-256 of a config, usable as a cache key."""
  payload = json.dumps(plain(config), sort_keys=True, separators=(",", ":"))
  return hashlib.sha256(payload.encode()).hexdigest()


# Phase 1: presence and identity


@dataclass(frozen=True)
class Identity:
  address: str
  name: str

  def ref(self, attribute: str) -> Ref:
    return Ref(self.address, attribute)


def _identify(config: WebsiteConfig) -> dict[str, Identity]:
  """Decide which entities exist and name them."""
  project = config.project_name
  ids = {
    "bucket": Identity("bucket", config.bucket_name),
    "origin_access_control": Identity("origin_access_control", f"{project}-oac"),
    "distribution": Identity("distribution", f"{project}-distribution"),
  }

  if config.create_certificate:
    ids["certificate"] = Identity("certificate", config.domain_name)
    ids["certificate_validation"] = Identity("certificate_validation", config.domain_name)
    for domain in (config.domain_name, *config.subject_alternative_names):
      ids[f"validation_record:{domain}"] = Identity(
        f"certificate_validation_record[{domain}]", domain
      )

  if config.create_hosted_zone:
    ids["hosted_zone"] = Identity("hosted_zone", config.domain_name)

  if config.create_dns_record:
    ids["record:A"] = Identity("dns_record.apex_a", config.domain_name)
    if config.create_ipv6_record:
      ids["record:AAAA"] = Identity("dns_record.apex_aaaa", config.domain_name)
  if config.create_www_record:
    ids["record:CNAME"] = Identity("dns_record.www_cname", f"www.{config.domain_name}")

  for function in config.cloudfront_functions:
    ids[f"function:{function.name}"] = Identity(f"function[{function.name}]", function.name)

  if config.enable_waf:
    ids["web_acl"] = Identity("web_acl", f"{project}-waf")
    if "distribution" in ids:
      ids["web_acl_association"] = Identity("web_acl_association", f"{project}-waf")

  if config.enable_cloudfront_logging:
    ids["log_group"] = Identity("log_group", f"/aws/cloudfront/{project}")
    ids["log_delivery_policy"] = Identity("log_delivery_policy", f"{project}-cloudfront-logs")

  return ids


# Phase 2: references


class _Linker:
  """Builds entities from phase-one identities."""

  def __init__(self, config: WebsiteConfig, ids: dict[str, Identity]) -> None:
    self.config = config
    self.ids = ids

  def ref(self, key: str, attribute: str, needed_by: str) -> Ref:
    identity = self.ids.get(key)
    if identity is None:
      raise MissingDependencyError(f"{key}.{attribute}", needed_by)
    return identity.ref(attribute)

  def zone_id(self, needed_by: str) -> ZoneId:
    if "hosted_zone" in self.ids:
      return self.ids["hosted_zone"].ref("zone_id")
    if self.config.hosted_zone_id:
      return self.config.hosted_zone_id
    raise MissingDependencyError("hosted_zone_id", needed_by)

  def bucket(self) -> Bucket:
    c = self.config
    ident = self.ids["bucket"]
    return Bucket(
      name=ident.name,
      versioning=c.enable_versioning,
      force_destroy=c.force_destroy,
      index_document=c.index_document,
      error_document=c.error_document,
      routing_rules=c.routing_rules,
      arn=ident.ref("arn"),
      regional_domain_name=ident.ref("bucket_regional_domain_name"),
      website_endpoint=ident.ref("website_endpoint"),
    )

  def origin_access_control(self) -> OriginAccessControl:
    ident = self.ids["origin_access_control"]
    return OriginAccessControl(
      name=ident.name,
      origin_type="s3",
      signing_behavior="always",
      signing_protocol="sigv4",
      id=ident.ref("id"),
    )

  def certificate(self) -> Certificate | None:
    ident = self.ids.get("certificate")
    if ident is None:
      return None
    return Certificate(
      domain_name=ident.name,
      subject_alternative_names=self.config.subject_alternative_names,
      validation_method="DNS",
      arn=ident.ref("arn"),
      status=ident.ref("status"),
      validation_arn=self.ref("certificate_validation", "certificate_arn", "certificate"),
    )

  def validation_records(
    self, certificate: Certificate | None
  ) -> tuple[CertificateValidationRecord, ...]:
    if certificate is None:
      return ()
    records = []
    for domain in certificate.validation_domains:
      needed_by = self.ids[f"validation_record:{domain}"].address
      option = f"domain_validation_options[{domain}]"
      records.append(
        CertificateValidationRecord(
          domain_name=domain,
          zone_id=self.zone_id(needed_by),
          name=self.ref("certificate", f"{option}.resource_record_name", needed_by),
          type=self.ref("certificate", f"{option}.resource_record_type", needed_by),
          value=self.ref("certificate", f"{option}.resource_record_value", needed_by),
        )
      )
    return tuple(records)

  def hosted_zone(self) -> HostedZone | None:
    ident = self.ids.get("hosted_zone")
    if ident is None:
      return None
    return HostedZone(
      name=ident.name,
      zone_id=ident.ref("zone_id"),
      name_servers=ident.ref("name_servers"),
    )

  def functions(self) -> tuple[Function, ...]:
    return tuple(self._function(f) for f in self.config.cloudfront_functions)

  def _function(self, function: CloudFrontFunction) -> Function:
    ident = self.ids[f"function:{function.name}"]
    return Function(
      name=ident.name,
      code=function.code,
      event_type=function.event_type,
      comment=function.comment,
      runtime="cloudfront-js-2.0",
      arn=ident.ref("arn"),
    )

  def distribution(self, certificate: Certificate | None) -> Distribution:
    c = self.config
    ident = self.ids["distribution"]
    needed_by = ident.address

    if certificate is not None:
      viewer_certificate = ViewerCertificate(
        cloudfront_default_certificate=False,
        minimum_protocol_version="TLSv1.2_2021",
        acm_certificate_arn=self.ref("certificate_validation", "certificate_arn", needed_by),
        ssl_support_method="sni-only",
      )
      aliases = certificate.validation_domains
    else:
      viewer_certificate = ViewerCertificate(
        cloudfront_default_certificate=True,
        minimum_protocol_version="TLSv1",
      )
      aliases = ()

    return Distribution(
      comment=f"{c.project_name} static website",
      aliases=aliases,
      origin_id=f"S3-{c.bucket_name}",
      origin_domain_name=self.ref("bucket", "bucket_regional_domain_name", needed_by),
      origin_access_control_id=self.ref("origin_access_control", "id", needed_by),
      default_root_object=c.index_document,
      price_class=c.cloudfront_price_class,
      is_ipv6_enabled=c.enable_ipv6,
      compress=c.cloudfront_compress,
      default_ttl=c.cloudfront_default_ttl,
      min_ttl=c.cloudfront_min_ttl,
      max_ttl=c.cloudfront_max_ttl,
      viewer_protocol_policy="redirect-to-https",
      custom_error_responses=c.custom_error_responses,
      geo_restriction=c.geo_restrictions,
      function_associations=tuple(
        (f.event_type, self.ref(f"function:{f.name}", "arn", needed_by))
        for f in c.cloudfront_functions
      ),
      viewer_certificate=viewer_certificate,
      id=ident.ref("id"),
      arn=ident.ref("arn"),
      domain_name=ident.ref("domain_name"),
      hosted_zone_id=ident.ref("hosted_zone_id"),
    )

  def dns_records(self) -> tuple[DnsRecord, ...]:
    records = []
    for record_type in ("A", "AAAA"):
      ident = self.ids.get(f"record:{record_type}")
      if ident is None:
        continue
      records.append(
        DnsRecord(
          name=ident.name,
          type=record_type,
          zone_id=self.zone_id(ident.address),
          alias=AliasTarget(
            dns_name=self.ref("distribution", "domain_name", ident.address),
            zone_id=self.ref("distribution", "hosted_zone_id", ident.address),
          ),
        )
      )

    ident = self.ids.get("record:CNAME")
    if ident is not None:
      records.append(
        DnsRecord(
          name=ident.name,
          type="CNAME",
          zone_id=self.zone_id(ident.address),
          records=(self.ref("distribution", "domain_name", ident.address),),
          ttl=300,
        )
      )
    return tuple(records)

  def web_acl(self) -> WebAcl | None:
    ident = self.ids.get("web_acl")
    if ident is None:
      return None
    return WebAcl(
      name=ident.name,
      scope="CLOUDFRONT",
      default_action="allow",
      metric_name=ident.name.replace("-", ""),
      rules=tuple(sorted(self.config.waf_rules, key=lambda r: r.priority)),
      id=ident.ref("id"),
      arn=ident.ref("arn"),
    )

  def web_acl_association(self) -> WebAclAssociation | None:
    ident = self.ids.get("web_acl_association")
    if ident is None:
      return None
    return WebAclAssociation(
      web_acl_arn=self.ref("web_acl", "arn", ident.address),
      distribution_id=self.ref("distribution", "id", ident.address),
    )

  def log_group(self) -> LogGroup | None:
    ident = self.ids.get("log_group")
    if ident is None:
      return None
    return LogGroup(
      name=ident.name,
      retention_in_days=self.config.cloudfront_log_retention_days,
      arn=ident.ref("arn"),
    )

  def log_delivery_policy(self) -> LogDeliveryPolicy | None:
    ident = self.ids.get("log_delivery_policy")
    if ident is None:
      return None
    return LogDeliveryPolicy(
      name=ident.name,
      service_principal=LOG_DELIVERY_PRINCIPAL,
      log_group_arn=self.ref("log_group", "arn", ident.address),
    )


def resolve(config: WebsiteConfig) -> ResolvedResourceSet:
  """Compute the resources a validated website configuration requires.

  Raises MissingDependencyError for the first reference that cannot be
  resolved; no partial set is ever returned.
  """
  ids = _identify(config)
  link = _Linker(config, ids)

  certificate = link.certificate()
  zone_id: ZoneId | None
  if "hosted_zone" in ids:
    zone_id = ids["hosted_zone"].ref("zone_id")
  else:
    zone_id = config.hosted_zone_id

  resolved = ResolvedResourceSet(
    project_name=config.project_name,
    domain_name=config.domain_name,
    region=config.region,
    tags=dict(sorted(config.common_tags.items())),
    bucket=link.bucket(),
    origin_access_control=link.origin_access_control(),
    distribution=link.distribution(certificate),
    zone_id=zone_id,
    certificate=certificate,
    certificate_validation_records=link.validation_records(certificate),
    hosted_zone=link.hosted_zone(),
    dns_records=link.dns_records(),
    functions=link.functions(),
    web_acl=link.web_acl(),
    web_acl_association=link.web_acl_association(),
    log_group=link.log_group(),
    log_delivery_policy=link.log_delivery_policy(),
  )
  logger.debug(
    "Resolved %s: %s",
    config.domain_name,
    ", ".join(name for name, present in resolved.presence.items() if present) or "core only",
  )
  return resolved


class ResolutionCache:
  """Caller-owned memo of resolved sets keyed by config fingerprint."""

  def __init__(self) -> None:
    self._entries: dict[str, ResolvedResourceSet] = {}

  def __len__(self) -> int:
    return len(self._entries)

  def resolve(self, config: WebsiteConfig) -> ResolvedResourceSet:
    key = fingerprint(config)
    if key not in self._entries:
      self._entries[key] = resolve(config)
    return self._entries[key]

  def clear(self) -> None:
    self._entries.clear()
