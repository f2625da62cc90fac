"""S3 bucket serving as the CloudFront origin."""

from aws_cdk import RemovalPolicy
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ..config import RoutingRule
from ..resolver import Bucket

_PROTOCOLS = {
  "http": s3.RedirectProtocol.HTTP,
  "https": s3.RedirectProtocol.HTTPS,
}


def _routing_rule(rule: RoutingRule) -> s3.RoutingRule:
  condition = None
  if rule.key_prefix_equals or rule.http_error_code_returned_equals:
    condition = s3.RoutingRuleCondition(
      key_prefix_equals=rule.key_prefix_equals,
      http_error_code_returned_equals=rule.http_error_code_returned_equals,
    )

  replace_key = None
  if rule.replace_key_with is not None:
    replace_key = s3.ReplaceKey.with_(rule.replace_key_with)
  elif rule.replace_key_prefix_with is not None:
    replace_key = s3.ReplaceKey.prefix_with(rule.replace_key_prefix_with)

  return s3.RoutingRule(
    condition=condition,
    host_name=rule.host_name,
    protocol=_PROTOCOLS.get(rule.protocol or ""),
    replace_key=replace_key,
    http_redirect_code=rule.http_redirect_code,
  )


class StorageBucket(Construct):
  """Private S3 bucket; content is only reachable through CloudFront."""

  def __init__(self, scope: Construct, id: str, *, bucket: Bucket) -> None:
    super().__init__(scope, id)

    removal_policy = RemovalPolicy.DESTROY if bucket.force_destroy else RemovalPolicy.RETAIN

    self.bucket = s3.Bucket(
      self,
      "Bucket",
      bucket_name=bucket.name,
      versioned=bucket.versioning,
      website_index_document=bucket.index_document,
      website_error_document=bucket.error_document,
      website_routing_rules=[_routing_rule(r) for r in bucket.routing_rules] or None,
      block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
      encryption=s3.BucketEncryption.S3_MANAGED,
      enforce_ssl=True,
      removal_policy=removal_policy,
      auto_delete_objects=bucket.force_destroy,
    )
