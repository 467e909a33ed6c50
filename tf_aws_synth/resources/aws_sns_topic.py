"""Module to define the aws_sns_topic resource.

Delivery status feedback is configured per protocol with
<protocol>_success_feedback_role_arn, <protocol>_success_feedback_sample_rate
and <protocol>_failure_feedback_role_arn.
"""
from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    forbidden_unless,
    required_with,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

FIFO_SUFFIX = ".fifo"
FEEDBACK_PROTOCOLS = ("application", "http", "lambda", "sqs", "firehose")


def _fifo_naming(attrs) -> None:
    if attrs.name is None:
        return
    if attrs.fifo_topic and not attrs.name.endswith(FIFO_SUFFIX):
        raise SchemaError(
            "FIFO topic names must end with '.fifo' suffix",
            field="name",
            rule="format"
        )
    if not attrs.fifo_topic and attrs.name.endswith(FIFO_SUFFIX):
        raise SchemaError(
            "Standard topic names cannot end with '.fifo' suffix",
            field="name",
            rule="format"
        )


def _feedback_fields():
    fields = []
    for protocol in FEEDBACK_PROTOCOLS:
        fields.extend([
            Field(f"{protocol}_success_feedback_role_arn",
                  check=validators.arn("iam")),
            Field(f"{protocol}_success_feedback_sample_rate", kind=int,
                  min_value=0, max_value=100),
            Field(f"{protocol}_failure_feedback_role_arn",
                  check=validators.arn("iam")),
        ])
    return fields


def _feedback_rules():
    return [
        required_with(
            f"{protocol}_success_feedback_role_arn",
            f"{protocol}_success_feedback_sample_rate",
            message=f"{protocol}_success_feedback_sample_rate requires "
                    f"{protocol}_success_feedback_role_arn to be set"
        )
        for protocol in FEEDBACK_PROTOCOLS
    ]


SCHEMA = AttributeSchema(
    "aws_sns_topic",
    fields=[
        Field("name", pattern=r"^[A-Za-z0-9_-]{1,256}(\.fifo)?$"),
        Field("name_prefix"),
        Field("display_name", max_length=100),
        Field("kms_master_key_id"),
        Field("fifo_topic", kind=bool, default=False),
        Field("content_based_deduplication", kind=bool),
        Field("delivery_policy", check=validators.json_document),
        Field("policy", check=validators.json_document),
        Field("message_data_protection_policy", check=validators.json_document),
        Field("signature_version", kind=int, choices=(1, 2)),
        Field("tracing_config", choices=("Active", "PassThrough")),
    ] + _feedback_fields() + [
        validators.tags_field(),
    ],
    rules=[
        _fifo_naming,
        forbidden_unless(
            "content_based_deduplication", "fifo_topic",
            message="content_based_deduplication is only valid for FIFO topics"
        ),
    ] + _feedback_rules(),
)


def feedback_protocols(attrs) -> list:
    """Protocols with a success or failure feedback role, EG: ["sqs"]."""
    return [
        protocol for protocol in FEEDBACK_PROTOCOLS
        if attrs.get(f"{protocol}_success_feedback_role_arn")
        or attrs.get(f"{protocol}_failure_feedback_role_arn")
    ]


RESOURCE_DEF = TFResourceDef(
    type="aws_sns_topic",
    schema=SCHEMA,
    outputs=["id", "arn", "owner", "beginning_archive_time"],
    computed={
        "topic_type": lambda attrs: "FIFO" if attrs.fifo_topic else "Standard",
        "is_fifo": lambda attrs: attrs.fifo_topic,
        "is_encrypted": lambda attrs: attrs.kms_master_key_id is not None,
        "has_access_policy": lambda attrs: attrs.policy is not None,
        "has_feedback_enabled": lambda attrs: bool(feedback_protocols(attrs)),
        "feedback_protocols": feedback_protocols,
        "tracing_enabled": lambda attrs: attrs.tracing_config == "Active",
    },
)
