"""Module to define the aws_ec2_transit_gateway_route_table_association resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

SCHEMA = AttributeSchema(
    "aws_ec2_transit_gateway_route_table_association",
    fields=[
        Field("transit_gateway_attachment_id", required=True,
              check=validators.aws_id("tgw-attach")),
        Field("transit_gateway_route_table_id", required=True,
              check=validators.aws_id("tgw-rtb")),
        Field("replace_existing_association", kind=bool),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_ec2_transit_gateway_route_table_association",
    schema=SCHEMA,
    outputs=["id", "resource_id", "resource_type"],
    computed={
        "replaces_default_association":
            lambda attrs: attrs.replace_existing_association is True,
    },
)
