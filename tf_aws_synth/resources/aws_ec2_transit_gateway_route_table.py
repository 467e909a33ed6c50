"""Module to define the aws_ec2_transit_gateway_route_table resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

SCHEMA = AttributeSchema(
    "aws_ec2_transit_gateway_route_table",
    fields=[
        Field("transit_gateway_id", required=True,
              check=validators.aws_id("tgw")),
        validators.tags_field(),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_ec2_transit_gateway_route_table",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "default_association_route_table",
        "default_propagation_route_table",
    ],
)
