"""Module to define the aws_ec2_transit_gateway_route resource.

A route either forwards to an attachment or drops traffic as a blackhole.
"""
from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources.aws_route import DEFAULT_ROUTE

SCHEMA = AttributeSchema(
    "aws_ec2_transit_gateway_route",
    fields=[
        Field("destination_cidr_block", required=True,
              check=validators.any_cidr),
        Field("transit_gateway_route_table_id", required=True,
              check=validators.aws_id("tgw-rtb")),
        Field("transit_gateway_attachment_id",
              check=validators.aws_id("tgw-attach")),
        Field("blackhole", kind=bool),
    ],
    rules=[
        exactly_one_of(
            "transit_gateway_attachment_id", "blackhole",
            message="specify either 'transit_gateway_attachment_id' or "
                    "'blackhole', not both and not neither"
        ),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_ec2_transit_gateway_route",
    schema=SCHEMA,
    outputs=["id"],
    computed={
        "is_blackhole": lambda attrs: attrs.blackhole is True,
        "is_default_route":
            lambda attrs: attrs.destination_cidr_block == DEFAULT_ROUTE,
    },
)
