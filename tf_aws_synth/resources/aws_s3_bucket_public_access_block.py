"""Module to define the aws_s3_bucket_public_access_block resource."""

from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources.aws_s3_bucket import PUBLIC_ACCESS_FLAGS

SCHEMA = AttributeSchema(
    "aws_s3_bucket_public_access_block",
    fields=[Field("bucket", required=True, min_length=1)]
    + [Field(flag, kind=bool) for flag in PUBLIC_ACCESS_FLAGS],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_s3_bucket_public_access_block",
    schema=SCHEMA,
    outputs=["id"],
    computed={
        "fully_blocked": lambda attrs: all(
            attrs.get(flag) is True for flag in PUBLIC_ACCESS_FLAGS
        ),
    },
)
