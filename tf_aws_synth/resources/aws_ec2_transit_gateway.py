"""Module to define the aws_ec2_transit_gateway resource.

Feature switches take the AWS "enable"/"disable" strings.
"""
from typing import Optional

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources import pricing

SWITCH = ("enable", "disable")

# Private ASN ranges AWS accepts for the Amazon side of the gateway.
PRIVATE_ASN_RANGES = (
    (64512, 65534),
    (4200000000, 4294967294),
)


def _private_asn(value: int) -> None:
    if any(low <= value <= high for low, high in PRIVATE_ASN_RANGES):
        return
    raise SchemaError(
        f"amazon_side_asn {value} must be in 64512-65534 or "
        "4200000000-4294967294",
        rule="range"
    )


def _switch(name: str, default: Optional[str] = None) -> Field:
    if default is None:
        return Field(name, choices=SWITCH)
    return Field(name, choices=SWITCH, default=default)


SCHEMA = AttributeSchema(
    "aws_ec2_transit_gateway",
    fields=[
        Field("description", max_length=255),
        Field("amazon_side_asn", kind=int, check=_private_asn),
        _switch("auto_accept_shared_attachments", "disable"),
        _switch("default_route_table_association", "enable"),
        _switch("default_route_table_propagation", "enable"),
        _switch("dns_support", "enable"),
        _switch("vpn_ecmp_support", "enable"),
        _switch("multicast_support"),
        _switch("security_group_referencing_support"),
        Field("transit_gateway_cidr_blocks", kind=list, max_items=5,
              items=Field("transit_gateway_cidr_blocks",
                          check=validators.any_cidr)),
        validators.tags_field(),
    ],
)


def _estimated_monthly_cost(attrs) -> float:
    """Attachments and data processing are billed separately."""
    return pricing.monthly(pricing.TRANSIT_GATEWAY_HOURLY)


RESOURCE_DEF = TFResourceDef(
    type="aws_ec2_transit_gateway",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "association_default_route_table_id",
        "propagation_default_route_table_id",
        "owner_id",
    ],
    computed={
        "is_auto_accept":
            lambda attrs: attrs.auto_accept_shared_attachments == "enable",
        "uses_default_route_tables": lambda attrs: (
            attrs.default_route_table_association == "enable"
            and attrs.default_route_table_propagation == "enable"
        ),
        "estimated_monthly_cost": _estimated_monthly_cost,
    },
)
