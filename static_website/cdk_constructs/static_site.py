"""Composite construct materialising a resolved static website."""

from aws_cdk import CfnOutput, Fn, Stack
from constructs import Construct

from ..outputs import OUTPUT_DESCRIPTIONS, OutputSet, project
from ..resolver import ResolvedResourceSet
from .access_logs import AccessLogGroup
from .certificate import DnsValidatedCertificate
from .distribution import CloudFrontDistribution
from .dns import DnsRecords
from .storage import StorageBucket
from .waf import WebApplicationFirewall

# Fixed hosted zone used by every CloudFront alias target.
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"


def output_id(name: str) -> str:
  """CloudFormation output id for an output name (``website_url`` -> ``WebsiteUrl``)."""
  return "".join(part.capitalize() for part in name.split("_"))


class StaticWebsiteConstruct(Construct):
  """Complete static website infrastructure.

  Creates every entity present in the resolved set:
  - S3 bucket for static content (private, Origin Access Control)
  - CloudFront distribution with optional functions and geo restriction
  - (Optional) ACM certificate, DNS validated
  - (Optional) Route 53 hosted zone, or an imported one
  - (Optional) A / AAAA alias records and a www CNAME
  - (Optional) WAF Web ACL attached to the distribution
  - (Optional) CloudWatch log group with log delivery policy
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    resolved: ResolvedResourceSet,
  ) -> None:
    super().__init__(scope, id)

    self.resolved = resolved
    self.outputs: OutputSet = project(resolved)

    self.bucket = StorageBucket(self, "Storage", bucket=resolved.bucket)

    self.dns = DnsRecords(
      self,
      "Dns",
      domain_name=resolved.domain_name,
      hosted_zone=resolved.hosted_zone,
      zone_id=resolved.zone_id,
    )

    self.certificate: DnsValidatedCertificate | None = None
    if resolved.certificate is not None:
      if self.dns.hosted_zone is None:
        raise ValueError(f"Certificate for {resolved.domain_name} needs a hosted zone")
      self.certificate = DnsValidatedCertificate(
        self,
        "Certificate",
        certificate=resolved.certificate,
        hosted_zone=self.dns.hosted_zone,
      )

    self.firewall: WebApplicationFirewall | None = None
    if resolved.web_acl is not None:
      self.firewall = WebApplicationFirewall(self, "Firewall", web_acl=resolved.web_acl)

    web_acl_arn = None
    if resolved.web_acl_association is not None and self.firewall is not None:
      web_acl_arn = self.firewall.web_acl.attr_arn

    self.distribution = CloudFrontDistribution(
      self,
      "Cdn",
      distribution=resolved.distribution,
      origin_access_control=resolved.origin_access_control,
      bucket=self.bucket.bucket,
      certificate=self.certificate.certificate if self.certificate else None,
      functions=resolved.functions,
      web_acl_arn=web_acl_arn,
    )

    self.dns.create_distribution_records(
      distribution=self.distribution.distribution,
      records=resolved.dns_records,
    )

    self.access_logs: AccessLogGroup | None = None
    if resolved.log_group is not None:
      self.access_logs = AccessLogGroup(
        self,
        "AccessLogs",
        log_group=resolved.log_group,
        delivery_policy=resolved.log_delivery_policy,
      )

    self._add_outputs()

  def _cdk_values(self) -> dict[str, str]:
    """CloudFormation values for each output whose source is materialised."""
    bucket = self.bucket.bucket
    distribution = self.distribution.distribution
    stack = Stack.of(self)

    values = {
      "s3_bucket_id": bucket.bucket_name,
      "s3_bucket_arn": bucket.bucket_arn,
      "s3_bucket_regional_domain_name": bucket.bucket_regional_domain_name,
      "s3_website_url": bucket.bucket_website_url,
      "cloudfront_distribution_id": distribution.distribution_id,
      "cloudfront_distribution_arn": stack.format_arn(
        service="cloudfront",
        region="",
        resource="distribution",
        resource_name=distribution.distribution_id,
      ),
      "cloudfront_distribution_domain_name": distribution.distribution_domain_name,
      "cloudfront_distribution_hosted_zone_id": CLOUDFRONT_HOSTED_ZONE_ID,
    }

    if self.certificate is not None:
      values["website_url"] = f"https://{self.resolved.domain_name}"
      # CloudFormation only completes the certificate once it is validated
      values["acm_certificate_arn"] = self.certificate.certificate.certificate_arn
      values["acm_certificate_validation_arn"] = self.certificate.certificate.certificate_arn
    else:
      values["website_url"] = f"https://{distribution.distribution_domain_name}"

    if self.dns.hosted_zone is not None:
      values["route53_zone_id"] = self.dns.hosted_zone.hosted_zone_id
      if self.dns.created:
        values["route53_name_servers"] = Fn.join(
          ",", self.dns.hosted_zone.hosted_zone_name_servers or []
        )

    if self.firewall is not None:
      values["waf_web_acl_id"] = self.firewall.web_acl.attr_id
      values["waf_web_acl_arn"] = self.firewall.web_acl.attr_arn

    if self.access_logs is not None:
      values["cloudwatch_log_group_name"] = self.access_logs.log_group.ref
      values["cloudwatch_log_group_arn"] = self.access_logs.log_group.attr_arn

    return values

  def _add_outputs(self) -> None:
    values = self._cdk_values()
    for name, projected in self.outputs.to_dict().items():
      if projected is None or name not in values:
        continue
      CfnOutput(
        self,
        output_id(name),
        value=values[name],
        description=OUTPUT_DESCRIPTIONS[name],
      )

    for name, function in self.distribution.functions.items():
      CfnOutput(
        self,
        f"CloudfrontFunctionArn{output_id(name.replace('-', '_'))}",
        value=function.function_arn,
        description=f"CloudFront function ARN for {name}",
      )
