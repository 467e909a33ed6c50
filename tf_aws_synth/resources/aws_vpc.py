"""Module to define the aws_vpc resource.

AWS VPCs accept IPv4 ranges between /16 and /28.
"""
from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    forbidden_unless,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

INSTANCE_TENANCIES = ("default", "dedicated", "host")

SCHEMA = AttributeSchema(
    "aws_vpc",
    fields=[
        Field("cidr_block", required=True, check=validators.cidr_block(16, 28)),
        Field("instance_tenancy", default="default", choices=INSTANCE_TENANCIES),
        Field("enable_dns_hostnames", kind=bool, default=True),
        Field("enable_dns_support", kind=bool, default=True),
        Field("enable_network_address_usage_metrics", kind=bool),
        Field("assign_generated_ipv6_cidr_block", kind=bool),
        Field("ipv4_ipam_pool_id"),
        Field("ipv4_netmask_length", kind=int, min_value=16, max_value=28),
        validators.tags_field(),
    ],
    rules=[
        forbidden_unless("ipv4_netmask_length", "ipv4_ipam_pool_id"),
    ],
)


def _is_rfc1918_private(attrs) -> bool:
    return validators.is_rfc1918_private(attrs.cidr_block)


def _estimated_subnet_capacity(attrs) -> int:
    """How many /24 subnets fit in the VPC."""
    return validators.subnet_capacity(attrs.cidr_block, 24)


RESOURCE_DEF = TFResourceDef(
    type="aws_vpc",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "cidr_block",
        "default_security_group_id",
        "default_route_table_id",
        "default_network_acl_id",
        "main_route_table_id",
        "owner_id",
    ],
    computed={
        "is_rfc1918_private": _is_rfc1918_private,
        "estimated_subnet_capacity": _estimated_subnet_capacity,
    },
)
