"""CDK constructs for static website infrastructure."""

from .access_logs import AccessLogGroup
from .certificate import DnsValidatedCertificate
from .distribution import CloudFrontDistribution
from .dns import DnsRecords
from .static_site import StaticWebsiteConstruct
from .storage import StorageBucket
from .waf import WebApplicationFirewall

__all__ = [
  "AccessLogGroup",
  "CloudFrontDistribution",
  "DnsRecords",
  "DnsValidatedCertificate",
  "StaticWebsiteConstruct",
  "StorageBucket",
  "WebApplicationFirewall",
]
