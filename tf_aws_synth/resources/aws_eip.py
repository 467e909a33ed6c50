"""Module to define the aws_eip resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    mutually_exclusive,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources import pricing

SCHEMA = AttributeSchema(
    "aws_eip",
    fields=[
        Field("domain", default="vpc", choices=("vpc", "standard")),
        Field("instance", check=validators.aws_id("i")),
        Field("network_interface", check=validators.aws_id("eni")),
        Field("associate_with_private_ip", check=validators.ip_address),
        Field("public_ipv4_pool"),
        validators.tags_field(),
    ],
    rules=[
        mutually_exclusive("instance", "network_interface"),
    ],
)


def _estimated_monthly_idle_cost(attrs) -> float:
    """Cost while the address is not associated with anything."""
    if attrs.instance or attrs.network_interface:
        return 0.0
    return pricing.monthly(pricing.EIP_IDLE_HOURLY)


RESOURCE_DEF = TFResourceDef(
    type="aws_eip",
    schema=SCHEMA,
    outputs=[
        "id",
        "allocation_id",
        "association_id",
        "public_ip",
        "public_dns",
        "private_ip",
        "private_dns",
    ],
    computed={
        "is_vpc": lambda attrs: attrs.domain == "vpc",
        "estimated_monthly_idle_cost": _estimated_monthly_idle_cost,
    },
)
