"""ACM certificate for the distribution's custom domains."""

from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_route53 as route53
from constructs import Construct

from ..resolver import Certificate


class DnsValidatedCertificate(Construct):
  """ACM certificate validated through records in the site's hosted zone.

  CloudFormation writes one validation record per domain into the zone and
  waits until the certificate is issued, so the ARN it exposes is always
  that of a validated certificate.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    certificate: Certificate,
    hosted_zone: route53.IHostedZone,
  ) -> None:
    super().__init__(scope, id)

    apex, *alternative_names = certificate.validation_domains

    self.certificate = acm.Certificate(
      self,
      "Certificate",
      domain_name=apex,
      subject_alternative_names=alternative_names or None,
      validation=acm.CertificateValidation.from_dns(hosted_zone),
    )
