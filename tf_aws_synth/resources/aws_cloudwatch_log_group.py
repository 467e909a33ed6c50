"""Module to define the aws_cloudwatch_log_group resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    mutually_exclusive,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

# Retention periods CloudWatch Logs accepts; 0 keeps events forever.
RETENTION_DAYS = (
    0, 1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365, 400, 545, 731,
    1096, 1827, 2192, 2557, 2922, 3288, 3653,
)
LOG_GROUP_NAME = r"^[A-Za-z0-9_\-/.#]{1,512}$"

SCHEMA = AttributeSchema(
    "aws_cloudwatch_log_group",
    fields=[
        Field("name", pattern=LOG_GROUP_NAME),
        Field("name_prefix"),
        Field("retention_in_days", kind=int, choices=RETENTION_DAYS),
        Field("kms_key_id", check=validators.arn("kms")),
        Field("log_group_class", choices=("STANDARD", "INFREQUENT_ACCESS")),
        Field("skip_destroy", kind=bool),
        validators.tags_field(),
    ],
    rules=[
        mutually_exclusive("name", "name_prefix"),
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_cloudwatch_log_group",
    schema=SCHEMA,
    outputs=["id", "arn", "name"],
    computed={
        "has_retention": lambda attrs: bool(attrs.retention_in_days),
        "is_encrypted": lambda attrs: attrs.kms_key_id is not None,
    },
)
