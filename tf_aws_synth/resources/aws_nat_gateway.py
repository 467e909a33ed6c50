"""Module to define the aws_nat_gateway resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    forbidden_unless,
    required_with,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources import pricing

SCHEMA = AttributeSchema(
    "aws_nat_gateway",
    fields=[
        Field("subnet_id", required=True, check=validators.aws_id("subnet")),
        Field("connectivity_type", default="public",
              choices=("public", "private")),
        Field("allocation_id", check=validators.aws_id("eipalloc")),
        Field("private_ip", check=validators.ip_address),
        validators.tags_field(),
    ],
    rules=[
        required_with("allocation_id", "connectivity_type", "public",
                      message="public NAT gateways require an allocation_id "
                              "(the Elastic IP to use)"),
        forbidden_unless("allocation_id", "connectivity_type", "public"),
    ],
)


def _estimated_monthly_cost(attrs) -> float:
    """Hourly charge only; data processing is billed per GB on top."""
    return pricing.monthly(pricing.NAT_GATEWAY_HOURLY)


RESOURCE_DEF = TFResourceDef(
    type="aws_nat_gateway",
    schema=SCHEMA,
    outputs=[
        "id",
        "allocation_id",
        "subnet_id",
        "network_interface_id",
        "private_ip",
        "public_ip",
    ],
    computed={
        "is_public": lambda attrs: attrs.connectivity_type == "public",
        "estimated_monthly_cost": _estimated_monthly_cost,
    },
)
