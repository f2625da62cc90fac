"""CloudWatch log group for CloudFront logs."""

from aws_cdk import Stack
from aws_cdk import aws_logs as logs
from constructs import Construct

from ..resolver import LogDeliveryPolicy, LogGroup


class AccessLogGroup(Construct):
  """Log group plus the resource policy that lets log delivery write to it."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    log_group: LogGroup,
    delivery_policy: LogDeliveryPolicy | None = None,
  ) -> None:
    super().__init__(scope, id)

    # CfnLogGroup takes any retention value; the L2 construct only accepts its enum
    self.log_group = logs.CfnLogGroup(
      self,
      "LogGroup",
      log_group_name=log_group.name,
      retention_in_days=log_group.retention_in_days,
    )

    if delivery_policy is not None:
      document = {
        "Version": "2012-10-17",
        "Statement": [
          {
            "Sid": "CloudFrontLogDelivery",
            "Effect": "Allow",
            "Principal": {"Service": delivery_policy.service_principal},
            "Action": ["logs:CreateLogStream", "logs:PutLogEvents"],
            "Resource": self.log_group.attr_arn,
          }
        ],
      }
      self.delivery_policy = logs.CfnResourcePolicy(
        self,
        "DeliveryPolicy",
        policy_name=delivery_policy.name,
        policy_document=Stack.of(self).to_json_string(document),
      )
