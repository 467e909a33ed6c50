"""Module to create a VPC with flow logging and validated private addressing.

The component attributes are validated as a whole before any resource is
created. Flow logs go to a CloudWatch log group (with an IAM role that
VPC Flow Logs assumes) or to an S3 bucket.
"""
import json
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.reference import ResourceReference
from tf_aws_synth.lib.schema import (
    Attributes,
    AttributeSchema,
    Field,
    forbidden_unless,
    required_with,
)
from tf_aws_synth.lib.tf_classes import TFStack
from tf_aws_synth.resources.aws_cloudwatch_log_group import RETENTION_DAYS
from tf_aws_synth.resources.aws_vpc import INSTANCE_TENANCIES

MAX_AVAILABILITY_ZONES = 6
FLOW_LOGS_SERVICE = "vpc-flow-logs.amazonaws.com"

_vpc_cidr = validators.cidr_block(16, 28)


def _private_vpc_cidr(value: str) -> None:
    _vpc_cidr(value)
    validators.private_cidr(value)


SECURITY_CONFIG_SCHEMA = AttributeSchema(
    "security_config",
    fields=[
        Field("encryption_at_rest", kind=bool, default=False),
        Field("kms_key_arn", check=validators.arn("kms")),
    ],
    rules=[
        required_with("kms_key_arn", "encryption_at_rest", True),
    ],
)

MONITORING_CONFIG_SCHEMA = AttributeSchema(
    "monitoring_config",
    fields=[
        Field("enable_detailed_monitoring", kind=bool, default=False),
        Field("enable_cloudwatch", kind=bool, default=False),
    ],
)

SCHEMA = AttributeSchema(
    "secure_vpc",
    fields=[
        Field("cidr_block", required=True, check=_private_vpc_cidr),
        Field("availability_zones", kind=list, required=True, min_items=1,
              max_items=MAX_AVAILABILITY_ZONES,
              items=Field("availability_zones",
                          check=validators.availability_zone),
              check=validators.single_region),
        Field("enable_dns_hostnames", kind=bool, default=True),
        Field("enable_dns_support", kind=bool, default=True),
        Field("enable_flow_logs", kind=bool, default=True),
        Field("flow_log_destination", default="cloud-watch-logs",
              choices=("cloud-watch-logs", "s3")),
        Field("flow_log_bucket_arn", check=validators.arn("s3")),
        Field("flow_log_retention_days", kind=int, default=30,
              choices=RETENTION_DAYS),
        Field("flow_log_traffic_type", default="ALL",
              choices=("ACCEPT", "REJECT", "ALL")),
        Field("instance_tenancy", default="default", choices=INSTANCE_TENANCIES),
        Field("security_config", kind=dict, schema=SECURITY_CONFIG_SCHEMA,
              default={}),
        Field("monitoring_config", kind=dict, schema=MONITORING_CONFIG_SCHEMA,
              default={}),
        validators.tags_field(),
    ],
    rules=[
        required_with("flow_log_bucket_arn", "flow_log_destination", "s3",
                      message="S3 flow log destination requires "
                              "flow_log_bucket_arn"),
        forbidden_unless("flow_log_bucket_arn", "flow_log_destination", "s3"),
    ],
)


def region(attrs: Attributes) -> str:
    """EG: us-east-1a -> us-east-1."""
    return validators.region_of(attrs.availability_zones[0])


def security_features(attrs: Attributes) -> List[str]:
    features = []
    if attrs.enable_flow_logs:
        features.append("VPC_FLOW_LOGS")
    if attrs.enable_dns_support and attrs.enable_dns_hostnames:
        features.append("DNS_RESOLUTION")
    if attrs.security_config.encryption_at_rest:
        features.append("ENCRYPTION_AT_REST")
    if attrs.monitoring_config.enable_detailed_monitoring:
        features.append("DETAILED_MONITORING")
    return features


def security_level(attrs: Attributes) -> str:
    """basic (0-1 features), enhanced (2-3) or maximum (4)."""
    count = len(security_features(attrs))
    if count <= 1:
        return "basic"
    if count <= 3:
        return "enhanced"
    return "maximum"


def compliance_features(attrs: Attributes) -> List[str]:
    features = []
    if attrs.enable_flow_logs:
        features.append("VPC Flow Logs")
    if attrs.enable_dns_support and attrs.enable_dns_hostnames:
        features.append("DNS Resolution")
    if attrs.monitoring_config.enable_cloudwatch:
        features.append("CloudWatch Monitoring")
    if attrs.security_config.encryption_at_rest:
        features.append("Encryption at Rest")
    if validators.is_rfc1918_private(attrs.cidr_block):
        features.append("Private CIDR Range")
    return features


COMPUTED = {
    "region": region,
    "security_level": security_level,
    "compliance_features": compliance_features,
    "estimated_subnet_capacity":
        lambda attrs: validators.subnet_capacity(attrs.cidr_block, 24),
    "is_rfc1918_private":
        lambda attrs: validators.is_rfc1918_private(attrs.cidr_block),
}


@dataclass
class SecureVpcReference:
    """Define the references created by secure_vpc."""

    name: str
    attributes: Attributes
    vpc: ResourceReference
    log_group: Optional[ResourceReference] = None
    flow_log_role: Optional[ResourceReference] = None
    flow_log: Optional[ResourceReference] = None

    def __post_init__(self) -> None:
        self.computed: Dict[str, Any] = {
            name: func(self.attributes) for name, func in COMPUTED.items()
        }

    def __getattr__(self, name: str) -> Any:
        computed = self.__dict__.get("computed", {})
        if name in computed:
            return computed[name]
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    @property
    def id(self) -> str:
        return self.vpc.id

    def all_resources(self) -> List[ResourceReference]:
        resources = [self.vpc, self.log_group, self.flow_log_role, self.flow_log]
        return [r for r in resources if r is not None]


def _flow_log_role_policy(log_group: ResourceReference) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Action": [
                "logs:CreateLogStream",
                "logs:PutLogEvents",
                "logs:DescribeLogGroups",
                "logs:DescribeLogStreams",
            ],
            "Resource": f"{log_group.arn}:*",
        }],
    })


def _assume_role_policy() -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Service": FLOW_LOGS_SERVICE},
            "Action": "sts:AssumeRole",
        }],
    })


def secure_vpc(
    stack: TFStack,
    name: str,
    attributes: Optional[dict] = None
) -> SecureVpcReference:
    """Validate the component attributes, then create its resources."""
    attrs = SCHEMA.validate(attributes)
    stack.check_zone_region(attrs.availability_zones)
    tags = {"Name": name, **attrs.tags}

    vpc = stack.aws_vpc(f"{name}_vpc", {
        "cidr_block": attrs.cidr_block,
        "enable_dns_hostnames": attrs.enable_dns_hostnames,
        "enable_dns_support": attrs.enable_dns_support,
        "instance_tenancy": attrs.instance_tenancy,
        "tags": tags,
    })
    result = SecureVpcReference(name=name, attributes=attrs, vpc=vpc)
    if not attrs.enable_flow_logs:
        return result

    flow_log = {
        "vpc_id": vpc.id,
        "traffic_type": attrs.flow_log_traffic_type,
        "log_destination_type": attrs.flow_log_destination,
        "tags": tags,
    }
    if attrs.flow_log_destination == "s3":
        flow_log["log_destination"] = attrs.flow_log_bucket_arn
    else:
        log_group = {
            "name": f"/aws/vpc/flow-logs/{name}",
            "retention_in_days": attrs.flow_log_retention_days,
            "tags": tags,
        }
        if attrs.security_config.encryption_at_rest:
            log_group["kms_key_id"] = attrs.security_config.kms_key_arn
        result.log_group = stack.aws_cloudwatch_log_group(
            f"{name}_flow_logs", log_group
        )
        result.flow_log_role = stack.aws_iam_role(f"{name}_flow_logs_role", {
            "name_prefix": f"{name[:24]}-flow-logs-",
            "assume_role_policy": _assume_role_policy(),
            "inline_policy": [{
                "name": "flow-logs-delivery",
                "policy": _flow_log_role_policy(result.log_group),
            }],
            "tags": tags,
        })
        flow_log["log_destination"] = result.log_group.arn
        flow_log["iam_role_arn"] = result.flow_log_role.arn

    result.flow_log = stack.aws_flow_log(f"{name}_flow_log", flow_log)
    return result
