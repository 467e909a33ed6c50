"""Module to define the aws_internet_gateway resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

SCHEMA = AttributeSchema(
    "aws_internet_gateway",
    fields=[
        Field("vpc_id", check=validators.aws_id("vpc")),
        validators.tags_field(),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_internet_gateway",
    schema=SCHEMA,
    outputs=["id", "arn", "owner_id", "vpc_id"],
    computed={
        "is_attached": lambda attrs: attrs.vpc_id is not None,
    },
)
