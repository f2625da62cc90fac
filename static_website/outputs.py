"""Project a resolved resource set onto consumer-facing outputs."""

from dataclasses import dataclass, field, fields
from typing import Any

from .resolver import ResolvedResourceSet, Ref

SENSITIVE_OUTPUTS = frozenset({"certificate_validation_records"})
MASK = "(sensitive value)"

OUTPUT_DESCRIPTIONS = {
  "s3_bucket_id": "S3 bucket name",
  "s3_bucket_arn": "S3 bucket ARN",
  "s3_bucket_regional_domain_name": "S3 bucket regional domain name",
  "s3_website_url": "S3 static website endpoint URL",
  "cloudfront_distribution_id": "CloudFront distribution ID",
  "cloudfront_distribution_arn": "CloudFront distribution ARN",
  "cloudfront_distribution_domain_name": "CloudFront distribution domain name",
  "cloudfront_distribution_hosted_zone_id": "CloudFront distribution hosted zone ID",
  "website_url": "Website URL",
  "acm_certificate_arn": "ACM certificate ARN",
  "acm_certificate_validation_arn": "ARN of the validated ACM certificate",
  "acm_certificate_status": "ACM certificate status",
  "certificate_validation_records": "DNS records used to validate the certificate",
  "route53_zone_id": "Route 53 hosted zone ID",
  "route53_name_servers": "Route 53 hosted zone name servers",
  "waf_web_acl_id": "WAF Web ACL ID",
  "waf_web_acl_arn": "WAF Web ACL ARN",
  "cloudwatch_log_group_name": "CloudWatch log group for CloudFront logs",
  "cloudwatch_log_group_arn": "CloudWatch log group ARN",
  "cloudfront_function_arns": "CloudFront function ARNs by name",
}


def _text(value: Ref | str | None) -> str | None:
  return None if value is None else str(value)


@dataclass(frozen=True)
class OutputSet:
  """Outputs of a website stack; absent sources are ``None``."""

  s3_bucket_id: str
  s3_bucket_arn: str
  s3_bucket_regional_domain_name: str
  s3_website_url: str
  cloudfront_distribution_id: str
  cloudfront_distribution_arn: str
  cloudfront_distribution_domain_name: str
  cloudfront_distribution_hosted_zone_id: str
  website_url: str
  acm_certificate_arn: str | None
  acm_certificate_validation_arn: str | None
  acm_certificate_status: str | None
  certificate_validation_records: dict[str, dict[str, str]] | None = field(
    repr=False, hash=False
  )
  route53_zone_id: str | None = None
  route53_name_servers: str | None = None
  waf_web_acl_id: str | None = None
  waf_web_acl_arn: str | None = None
  cloudwatch_log_group_name: str | None = None
  cloudwatch_log_group_arn: str | None = None
  cloudfront_function_arns: dict[str, str] | None = field(default=None, hash=False)

  def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
    """Return outputs by name, masking sensitive values unless asked not to."""
    result: dict[str, Any] = {}
    for f in fields(self):
      value = getattr(self, f.name)
      if f.name in SENSITIVE_OUTPUTS and value is not None and not include_sensitive:
        value = MASK
      result[f.name] = value
    return result


def project(resolved: ResolvedResourceSet) -> OutputSet:
  """Derive outputs from a resolved resource set."""
  bucket = resolved.bucket
  distribution = resolved.distribution
  certificate = resolved.certificate
  zone = resolved.hosted_zone

  if certificate is not None:
    website_url = f"https://{resolved.domain_name}"
    validation_records = {
      record.domain_name: {
        "name": str(record.name),
        "type": str(record.type),
        "value": str(record.value),
      }
      for record in resolved.certificate_validation_records
    }
  else:
    website_url = f"https://{distribution.domain_name}"
    validation_records = None

  function_arns = {f.name: str(f.arn) for f in resolved.functions} or None

  return OutputSet(
    s3_bucket_id=bucket.name,
    s3_bucket_arn=str(bucket.arn),
    s3_bucket_regional_domain_name=str(bucket.regional_domain_name),
    s3_website_url=f"http://{bucket.website_endpoint}",
    cloudfront_distribution_id=str(distribution.id),
    cloudfront_distribution_arn=str(distribution.arn),
    cloudfront_distribution_domain_name=str(distribution.domain_name),
    cloudfront_distribution_hosted_zone_id=str(distribution.hosted_zone_id),
    website_url=website_url,
    acm_certificate_arn=_text(certificate and certificate.arn),
    acm_certificate_validation_arn=_text(certificate and certificate.validation_arn),
    acm_certificate_status=_text(certificate and certificate.status),
    certificate_validation_records=validation_records,
    route53_zone_id=_text(resolved.zone_id),
    route53_name_servers=_text(zone and zone.name_servers),
    waf_web_acl_id=_text(resolved.web_acl and resolved.web_acl.id),
    waf_web_acl_arn=_text(resolved.web_acl and resolved.web_acl.arn),
    cloudwatch_log_group_name=_text(resolved.log_group and resolved.log_group.name),
    cloudwatch_log_group_arn=_text(resolved.log_group and resolved.log_group.arn),
    cloudfront_function_arns=function_arns,
  )
