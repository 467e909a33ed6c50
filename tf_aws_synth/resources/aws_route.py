"""Module to define the aws_route resource.

A route has exactly one destination and exactly one target.
"""
from typing import Optional

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

DEFAULT_ROUTE = "0.0.0.0/0"

DESTINATIONS = ("destination_cidr_block", "destination_ipv6_cidr_block")

TARGET_FIELDS = [
    Field("gateway_id", check=validators.aws_id("igw", "vgw")),
    Field("nat_gateway_id", check=validators.aws_id("nat")),
    Field("transit_gateway_id", check=validators.aws_id("tgw")),
    Field("vpc_peering_connection_id", check=validators.aws_id("pcx")),
    Field("network_interface_id", check=validators.aws_id("eni")),
    Field("vpc_endpoint_id", check=validators.aws_id("vpce")),
    Field("egress_only_gateway_id", check=validators.aws_id("eigw")),
]
TARGETS = tuple(fld.name for fld in TARGET_FIELDS)

SCHEMA = AttributeSchema(
    "aws_route",
    fields=[
        Field("route_table_id", required=True, check=validators.aws_id("rtb")),
        Field("destination_cidr_block", check=validators.any_cidr),
        Field("destination_ipv6_cidr_block", check=validators.ipv6_cidr),
    ] + TARGET_FIELDS,
    rules=[
        exactly_one_of(*DESTINATIONS),
        exactly_one_of(*TARGETS),
    ],
)


def target_type(attrs) -> Optional[str]:
    """Name the kind of target, EG: nat_gateway."""
    for target in TARGETS:
        if attrs.get(target) is not None:
            return target[:-len("_id")]
    return None


RESOURCE_DEF = TFResourceDef(
    type="aws_route",
    schema=SCHEMA,
    outputs=["id", "instance_id", "instance_owner_id", "origin", "state"],
    computed={
        "target_type": target_type,
        "is_default_route":
            lambda attrs: attrs.destination_cidr_block == DEFAULT_ROUTE,
    },
)
