"""Module to define the aws_subnet resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

SCHEMA = AttributeSchema(
    "aws_subnet",
    fields=[
        Field("vpc_id", required=True, check=validators.aws_id("vpc")),
        Field("cidr_block", required=True, check=validators.cidr_block(16, 28)),
        Field("availability_zone", required=True,
              check=validators.availability_zone),
        Field("map_public_ip_on_launch", kind=bool, default=False),
        Field("assign_ipv6_address_on_creation", kind=bool),
        Field("ipv6_cidr_block", check=validators.ipv6_cidr),
        validators.tags_field(),
    ],
)


def _is_public(attrs) -> bool:
    return bool(attrs.map_public_ip_on_launch)


def _subnet_type(attrs) -> str:
    return "public" if _is_public(attrs) else "private"


def _ip_capacity(attrs) -> int:
    return validators.usable_ip_count(attrs.cidr_block)


RESOURCE_DEF = TFResourceDef(
    type="aws_subnet",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "availability_zone",
        "availability_zone_id",
        "cidr_block",
        "vpc_id",
        "owner_id",
    ],
    computed={
        "is_public": _is_public,
        "is_private": lambda attrs: not _is_public(attrs),
        "subnet_type": _subnet_type,
        "ip_capacity": _ip_capacity,
    },
)
