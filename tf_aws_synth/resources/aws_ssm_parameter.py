"""Module to define the aws_ssm_parameter resource."""

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
    forbidden_unless,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

PARAMETER_TYPES = ("String", "StringList", "SecureString")
TIERS = ("Standard", "Advanced", "Intelligent-Tiering")
PARAMETER_NAME = r"^/?[A-Za-z0-9_.\-/]{1,2048}$"
STANDARD_MAX_VALUE = 4096


def _value_fits_tier(attrs) -> None:
    value = attrs.value if attrs.value is not None else attrs.insecure_value
    if attrs.tier == "Standard" and value is not None \
            and not validators.is_interpolation(value) \
            and len(value) > STANDARD_MAX_VALUE:
        raise SchemaError(
            f"values over {STANDARD_MAX_VALUE} characters need the "
            "Advanced tier",
            field="value",
            rule="length"
        )


SCHEMA = AttributeSchema(
    "aws_ssm_parameter",
    fields=[
        Field("name", required=True, pattern=PARAMETER_NAME),
        Field("type", required=True, choices=PARAMETER_TYPES),
        Field("value"),
        Field("insecure_value"),
        Field("description", max_length=1024),
        Field("key_id"),
        Field("tier", default="Standard", choices=TIERS),
        Field("allowed_pattern"),
        Field("data_type", choices=("text", "aws:ec2:image", "aws:ssm:integration")),
        Field("overwrite", kind=bool),
        validators.tags_field(),
    ],
    rules=[
        exactly_one_of("value", "insecure_value"),
        forbidden_unless(
            "key_id", "type", "SecureString",
            message="key_id can only be used with SecureString parameters"
        ),
        forbidden_unless(
            "insecure_value", "type", "String",
            message="insecure_value can only be used with String parameters"
        ),
        _value_fits_tier,
    ],
)

RESOURCE_DEF = TFResourceDef(
    type="aws_ssm_parameter",
    schema=SCHEMA,
    outputs=["id", "arn", "name", "version"],
    computed={
        "is_secure": lambda attrs: attrs.type == "SecureString",
        "is_list": lambda attrs: attrs.type == "StringList",
        "is_hierarchical": lambda attrs: attrs.name.startswith("/"),
    },
)
