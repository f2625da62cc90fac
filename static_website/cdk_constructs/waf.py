"""WAF Web ACL protecting the CloudFront distribution."""

from aws_cdk import aws_wafv2 as wafv2
from constructs import Construct

from ..config import WafRule
from ..resolver import WebAcl


def _visibility(metric_name: str) -> wafv2.CfnWebACL.VisibilityConfigProperty:
  return wafv2.CfnWebACL.VisibilityConfigProperty(
    cloud_watch_metrics_enabled=True,
    metric_name=metric_name,
    sampled_requests_enabled=True,
  )


def _rule(rule: WafRule) -> wafv2.CfnWebACL.RuleProperty:
  if rule.override_action == "count":
    override = wafv2.CfnWebACL.OverrideActionProperty(count={})
  else:
    override = wafv2.CfnWebACL.OverrideActionProperty(none={})

  excluded = [wafv2.CfnWebACL.ExcludedRuleProperty(name=n) for n in rule.excluded_rules]
  return wafv2.CfnWebACL.RuleProperty(
    name=rule.name,
    priority=rule.priority,
    override_action=override,
    statement=wafv2.CfnWebACL.StatementProperty(
      managed_rule_group_statement=wafv2.CfnWebACL.ManagedRuleGroupStatementProperty(
        name=rule.managed_rule_group,
        vendor_name=rule.vendor_name,
        excluded_rules=excluded or None,
      )
    ),
    visibility_config=_visibility(rule.name),
  )


class WebApplicationFirewall(Construct):
  """CLOUDFRONT-scoped Web ACL built from managed rule groups.

  CloudFront has no separate association resource; the ACL ARN is attached
  through the distribution's ``web_acl_id``.
  """

  def __init__(self, scope: Construct, id: str, *, web_acl: WebAcl) -> None:
    super().__init__(scope, id)

    self.web_acl = wafv2.CfnWebACL(
      self,
      "WebAcl",
      name=web_acl.name,
      scope=web_acl.scope,
      default_action=wafv2.CfnWebACL.DefaultActionProperty(allow={}),
      visibility_config=_visibility(web_acl.metric_name),
      rules=[_rule(r) for r in web_acl.rules],
    )
