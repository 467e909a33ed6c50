"""Module to define the aws_route_table_association resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

SCHEMA = AttributeSchema(
    "aws_route_table_association",
    fields=[
        Field("route_table_id", required=True, check=validators.aws_id("rtb")),
        Field("subnet_id", check=validators.aws_id("subnet")),
        Field("gateway_id", check=validators.aws_id("igw", "vgw")),
    ],
    rules=[
        exactly_one_of("subnet_id", "gateway_id"),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_route_table_association",
    schema=SCHEMA,
    outputs=["id"],
    computed={
        "is_gateway_association": lambda attrs: attrs.gateway_id is not None,
    },
)
