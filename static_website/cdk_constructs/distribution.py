"""CloudFront distribution for static website."""

from aws_cdk import Duration
from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ..config import CustomErrorResponse, GeoRestriction
from ..resolver import Distribution, Function, OriginAccessControl

PRICE_CLASSES = {
  "PriceClass_100": cloudfront.PriceClass.PRICE_CLASS_100,
  "PriceClass_200": cloudfront.PriceClass.PRICE_CLASS_200,
  "PriceClass_All": cloudfront.PriceClass.PRICE_CLASS_ALL,
}

EVENT_TYPES = {
  "viewer-request": cloudfront.FunctionEventType.VIEWER_REQUEST,
  "viewer-response": cloudfront.FunctionEventType.VIEWER_RESPONSE,
}


def _error_response(response: CustomErrorResponse) -> cloudfront.ErrorResponse:
  return cloudfront.ErrorResponse(
    http_status=response.error_code,
    response_http_status=response.response_code,
    response_page_path=response.response_page_path,
    ttl=Duration.seconds(response.error_caching_min_ttl),
  )


def _geo_restriction(geo: GeoRestriction | None) -> cloudfront.GeoRestriction | None:
  if geo is None:
    return None
  if geo.restriction_type == "whitelist":
    return cloudfront.GeoRestriction.allowlist(*geo.locations)
  return cloudfront.GeoRestriction.denylist(*geo.locations)


class CloudFrontDistribution(Construct):
  """CloudFront distribution with a private S3 origin behind Origin Access Control."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    distribution: Distribution,
    origin_access_control: OriginAccessControl,
    bucket: s3.IBucket,
    certificate: acm.ICertificate | None = None,
    functions: tuple[Function, ...] = (),
    web_acl_arn: str | None = None,
  ) -> None:
    super().__init__(scope, id)

    oac = cloudfront.S3OriginAccessControl(
      self,
      "OriginAccessControl",
      origin_access_control_name=origin_access_control.name,
      signing=cloudfront.Signing.SIGV4_ALWAYS,
    )

    cache_policy = cloudfront.CachePolicy(
      self,
      "CachePolicy",
      default_ttl=Duration.seconds(distribution.default_ttl),
      min_ttl=Duration.seconds(distribution.min_ttl),
      max_ttl=Duration.seconds(distribution.max_ttl),
      enable_accept_encoding_gzip=distribution.compress,
      enable_accept_encoding_brotli=distribution.compress,
    )

    self.functions: dict[str, cloudfront.Function] = {}
    associations = []
    for function in functions:
      cf_function = cloudfront.Function(
        self,
        f"Function-{function.name}",
        function_name=function.name,
        comment=function.comment or None,
        code=cloudfront.FunctionCode.from_inline(function.code),
        runtime=cloudfront.FunctionRuntime.JS_2_0,
      )
      self.functions[function.name] = cf_function
      associations.append(
        cloudfront.FunctionAssociation(
          function=cf_function,
          event_type=EVENT_TYPES[function.event_type],
        )
      )

    # Custom domains are only attached when an ACM certificate exists
    viewer: dict = {}
    if certificate is not None:
      viewer = {
        "certificate": certificate,
        "domain_names": list(distribution.aliases),
        "minimum_protocol_version": cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
        "ssl_support_method": cloudfront.SSLMethod.SNI,
      }

    self.distribution = cloudfront.Distribution(
      self,
      "Distribution",
      comment=distribution.comment,
      default_behavior=cloudfront.BehaviorOptions(
        origin=origins.S3BucketOrigin.with_origin_access_control(
          bucket,
          origin_access_control=oac,
          origin_id=distribution.origin_id,
        ),
        viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
        allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
        cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
        cache_policy=cache_policy,
        compress=distribution.compress,
        function_associations=associations or None,
      ),
      default_root_object=distribution.default_root_object,
      price_class=PRICE_CLASSES[distribution.price_class],
      enable_ipv6=distribution.is_ipv6_enabled,
      error_responses=[_error_response(r) for r in distribution.custom_error_responses]
      or None,
      geo_restriction=_geo_restriction(distribution.geo_restriction),
      web_acl_id=web_acl_arn,
      **viewer,
    )

    if certificate is None:
      vc = distribution.viewer_certificate
      cfn_distribution = self.distribution.node.default_child
      cfn_distribution.add_property_override(  # type: ignore[union-attr]
        "DistributionConfig.ViewerCertificate",
        {
          "CloudFrontDefaultCertificate": vc.cloudfront_default_certificate,
          "MinimumProtocolVersion": vc.minimum_protocol_version,
        },
      )
