"""Module to define the aws_flow_log resource.

A flow log watches exactly one of a VPC, subnet, network interface or
transit gateway attachment. CloudWatch destinations also need an IAM role.
"""
from typing import Optional

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

DESTINATION_TYPES = ("cloud-watch-logs", "s3", "kinesis-data-firehose")
SOURCES = (
    "vpc_id",
    "subnet_id",
    "eni_id",
    "transit_gateway_attachment_id",
)


def _destination_settings(attrs) -> None:
    if attrs.log_destination_type == "cloud-watch-logs" \
            and attrs.iam_role_arn is None:
        raise SchemaError(
            "iam_role_arn is required for cloud-watch-logs destinations",
            field="iam_role_arn",
            rule="conditional"
        )
    if attrs.log_destination_type != "cloud-watch-logs" \
            and attrs.log_destination is None:
        raise SchemaError(
            f"log_destination is required for {attrs.log_destination_type} "
            "destinations",
            field="log_destination",
            rule="conditional"
        )


def _aggregation_interval(attrs) -> None:
    if attrs.transit_gateway_attachment_id is not None \
            and attrs.max_aggregation_interval not in (None, 60):
        raise SchemaError(
            "transit gateway flow logs only support a 60 second "
            "max_aggregation_interval",
            field="max_aggregation_interval",
            rule="conditional"
        )


SCHEMA = AttributeSchema(
    "aws_flow_log",
    fields=[
        Field("vpc_id", check=validators.aws_id("vpc")),
        Field("subnet_id", check=validators.aws_id("subnet")),
        Field("eni_id", check=validators.aws_id("eni")),
        Field("transit_gateway_attachment_id",
              check=validators.aws_id("tgw-attach")),
        Field("traffic_type", default="ALL", choices=("ACCEPT", "REJECT", "ALL")),
        Field("log_destination_type", default="cloud-watch-logs",
              choices=DESTINATION_TYPES),
        Field("log_destination", check=validators.arn()),
        Field("iam_role_arn", check=validators.arn("iam")),
        Field("log_format"),
        Field("max_aggregation_interval", kind=int, choices=(60, 600)),
        validators.tags_field(),
    ],
    rules=[
        exactly_one_of(*SOURCES),
        _destination_settings,
        _aggregation_interval,
    ],
)


def source_type(attrs) -> Optional[str]:
    """EG: vpc, subnet, eni or transit_gateway_attachment."""
    for source in SOURCES:
        if attrs.get(source) is not None:
            return source[:-len("_id")]
    return None


RESOURCE_DEF = TFResourceDef(
    type="aws_flow_log",
    schema=SCHEMA,
    outputs=["id", "arn"],
    computed={
        "destination_type": lambda attrs: attrs.log_destination_type,
        "source_type": source_type,
        "captures_rejected_traffic":
            lambda attrs: attrs.traffic_type in ("REJECT", "ALL"),
    },
)
