"""Route 53 DNS constructs."""

from aws_cdk import Duration
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_route53 as route53
from aws_cdk import aws_route53_targets as targets
from constructs import Construct

from ..resolver import DnsRecord, HostedZone, Ref


class DnsRecords(Construct):
  """Route 53 hosted zone (created or imported) and distribution records."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    domain_name: str,
    hosted_zone: HostedZone | None,
    zone_id: str | Ref | None,
  ) -> None:
    super().__init__(scope, id)

    self.domain_name = domain_name
    self.created = hosted_zone is not None
    self.hosted_zone: route53.IHostedZone | None

    if hosted_zone is not None:
      self.hosted_zone = route53.HostedZone(
        self,
        "HostedZone",
        zone_name=hosted_zone.name,
      )
    elif isinstance(zone_id, str):
      self.hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
        self,
        "HostedZone",
        hosted_zone_id=zone_id,
        zone_name=domain_name,
      )
    else:
      self.hosted_zone = None

  def create_distribution_records(
    self,
    distribution: cloudfront.IDistribution,
    records: tuple[DnsRecord, ...],
  ) -> None:
    """Create the A, AAAA and www CNAME records pointing at the distribution."""
    if not records:
      return
    if self.hosted_zone is None:
      raise ValueError(f"No hosted zone available for {self.domain_name} records")

    target = route53.RecordTarget.from_alias(targets.CloudFrontTarget(distribution))

    for record in records:
      if record.type == "A":
        route53.ARecord(
          self,
          "ApexARecord",
          zone=self.hosted_zone,
          record_name=record.name,
          target=target,
        )
      elif record.type == "AAAA":
        route53.AaaaRecord(
          self,
          "ApexAAAARecord",
          zone=self.hosted_zone,
          record_name=record.name,
          target=target,
        )
      elif record.type == "CNAME":
        route53.CnameRecord(
          self,
          "WwwCnameRecord",
          zone=self.hosted_zone,
          record_name=record.name,
          domain_name=distribution.distribution_domain_name,
          ttl=Duration.seconds(record.ttl or 300),
        )
      else:
        raise ValueError(f"Unsupported record type: {record.type}")
