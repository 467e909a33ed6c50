"""Module to define the aws_ec2_transit_gateway_vpc_attachment resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources import pricing

SWITCH = ("enable", "disable")

SCHEMA = AttributeSchema(
    "aws_ec2_transit_gateway_vpc_attachment",
    fields=[
        Field("transit_gateway_id", required=True,
              check=validators.aws_id("tgw")),
        Field("vpc_id", required=True, check=validators.aws_id("vpc")),
        Field("subnet_ids", kind=list, required=True, min_items=1,
              items=Field("subnet_ids", check=validators.aws_id("subnet"))),
        Field("appliance_mode_support", choices=SWITCH),
        Field("dns_support", choices=SWITCH),
        Field("ipv6_support", choices=SWITCH),
        Field("transit_gateway_default_route_table_association", kind=bool),
        Field("transit_gateway_default_route_table_propagation", kind=bool),
        validators.tags_field(),
    ],
)


def routing_pattern(attrs) -> str:
    """Classify how the attachment uses the default route table.

    Unset flags take Terraform's default of true.
    EG: association only equates to "hub_and_spoke_receiver".
    """
    associate = attrs.transit_gateway_default_route_table_association is not False
    propagate = attrs.transit_gateway_default_route_table_propagation is not False
    if associate and propagate:
        return "full_mesh"
    if associate:
        return "hub_and_spoke_receiver"
    if propagate:
        return "hub_and_spoke_sender"
    return "isolated"


RESOURCE_DEF = TFResourceDef(
    type="aws_ec2_transit_gateway_vpc_attachment",
    schema=SCHEMA,
    outputs=["id", "vpc_owner_id"],
    computed={
        "is_highly_available": lambda attrs: len(attrs.subnet_ids) > 1,
        "availability_zones_count": lambda attrs: len(attrs.subnet_ids),
        "supports_appliance_mode_inspection":
            lambda attrs: attrs.appliance_mode_support == "enable",
        "routing_pattern": routing_pattern,
        "estimated_monthly_cost": lambda attrs: pricing.monthly(
            pricing.TRANSIT_GATEWAY_ATTACHMENT_HOURLY
        ),
    },
)
