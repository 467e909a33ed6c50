"""Module to define the aws_sqs_queue resource.

redrive_policy and redrive_allow_policy are given as hashes with the
AWS camelCase keys and written as the JSON strings Terraform expects.
"""
import json

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.emitter import EmitRule
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    forbidden_unless,
    mutually_exclusive,
    thaw,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

FIFO_SUFFIX = ".fifo"
QUEUE_NAME = r"^[A-Za-z0-9_-]{1,75}(\.fifo)?$|^[A-Za-z0-9_-]{1,80}$"


def _fifo_naming(attrs) -> None:
    if attrs.fifo_queue and not attrs.name.endswith(FIFO_SUFFIX):
        raise SchemaError(
            "FIFO queue names must end with '.fifo' suffix",
            field="name",
            rule="format"
        )
    if not attrs.fifo_queue and attrs.name.endswith(FIFO_SUFFIX):
        raise SchemaError(
            "Standard queue names cannot end with '.fifo' suffix",
            field="name",
            rule="format"
        )


def _source_queues_for_by_queue(attrs) -> None:
    if attrs.redrivePermission == "byQueue" and not attrs.sourceQueueArns:
        raise SchemaError(
            "sourceQueueArns must be specified when redrivePermission is 'byQueue'",
            field="sourceQueueArns",
            rule="conditional"
        )


def _fifo_only(name: str):
    return forbidden_unless(
        name, "fifo_queue",
        message=f"{name} is only valid for FIFO queues"
    )


def _standard_deduplication_scope(attrs) -> None:
    if not attrs.fifo_queue and attrs.deduplication_scope not in (None, "queue"):
        raise SchemaError(
            "deduplication_scope is only valid for FIFO queues unless set to 'queue'",
            field="deduplication_scope",
            rule="conditional"
        )


def _fifo_default(value: str):
    return lambda data: value if data.get("fifo_queue") is True else None


REDRIVE_POLICY_SCHEMA = AttributeSchema(
    "redrive_policy",
    fields=[
        Field("deadLetterTargetArn", required=True, check=validators.arn("sqs")),
        Field("maxReceiveCount", kind=int, default=3, min_value=1, max_value=1000),
    ],
)

REDRIVE_ALLOW_POLICY_SCHEMA = AttributeSchema(
    "redrive_allow_policy",
    fields=[
        Field("redrivePermission", default="allowAll",
              choices=("allowAll", "denyAll", "byQueue")),
        Field("sourceQueueArns", kind=list, max_items=10,
              items=Field("sourceQueueArns", check=validators.arn("sqs"))),
    ],
    rules=[_source_queues_for_by_queue],
)

SCHEMA = AttributeSchema(
    "aws_sqs_queue",
    fields=[
        Field("name", required=True, pattern=QUEUE_NAME),
        Field("fifo_queue", kind=bool, default=False),
        Field("content_based_deduplication", kind=bool),
        Field("deduplication_scope", choices=("messageGroup", "queue"),
              default_factory=_fifo_default("queue")),
        Field("fifo_throughput_limit", choices=("perMessageGroupId", "perQueue"),
              default_factory=_fifo_default("perQueue")),
        Field("visibility_timeout_seconds", kind=int, default=30,
              min_value=0, max_value=43200),
        Field("message_retention_seconds", kind=int, default=345600,
              min_value=60, max_value=1209600),
        Field("max_message_size", kind=int, default=262144,
              min_value=1024, max_value=262144),
        Field("delay_seconds", kind=int, default=0, min_value=0, max_value=900),
        Field("receive_wait_time_seconds", kind=int, default=0,
              min_value=0, max_value=20),
        Field("redrive_policy", kind=dict, schema=REDRIVE_POLICY_SCHEMA),
        Field("redrive_allow_policy", kind=dict,
              schema=REDRIVE_ALLOW_POLICY_SCHEMA),
        Field("kms_master_key_id"),
        Field("kms_data_key_reuse_period_seconds", kind=int,
              min_value=60, max_value=86400,
              default_factory=lambda data: 300 if data.get("kms_master_key_id") else None),
        Field("sqs_managed_sse_enabled", kind=bool),
        Field("policy", check=validators.json_document),
        validators.tags_field(),
    ],
    rules=[
        _fifo_naming,
        _fifo_only("content_based_deduplication"),
        _standard_deduplication_scope,
        _fifo_only("fifo_throughput_limit"),
        forbidden_unless("kms_data_key_reuse_period_seconds", "kms_master_key_id"),
        mutually_exclusive(
            "kms_master_key_id", "sqs_managed_sse_enabled",
            message="Cannot enable both KMS encryption and SQS managed "
                    "server-side encryption"
        ),
    ],
)


def _to_json(value) -> str:
    return json.dumps(thaw(value), sort_keys=True)


def encryption_type(attrs) -> str:
    """EG: KMS, SQS-SSE or None."""
    if attrs.kms_master_key_id:
        return "KMS"
    if attrs.sqs_managed_sse_enabled:
        return "SQS-SSE"
    return "None"


def _allows_all_sources(attrs) -> bool:
    policy = attrs.redrive_allow_policy
    return policy is None or policy.redrivePermission == "allowAll"


RESOURCE_DEF = TFResourceDef(
    type="aws_sqs_queue",
    schema=SCHEMA,
    outputs=["id", "arn", "url", "name"],
    emit_rules=[
        EmitRule("name"),
        EmitRule("fifo_queue"),
        EmitRule("content_based_deduplication"),
        EmitRule("deduplication_scope"),
        EmitRule("fifo_throughput_limit"),
        EmitRule("visibility_timeout_seconds"),
        EmitRule("message_retention_seconds"),
        EmitRule("max_message_size"),
        EmitRule("delay_seconds"),
        EmitRule("receive_wait_time_seconds"),
        EmitRule("redrive_policy", transform=_to_json),
        EmitRule("redrive_allow_policy", transform=_to_json),
        EmitRule("kms_master_key_id"),
        EmitRule("kms_data_key_reuse_period_seconds"),
        EmitRule("sqs_managed_sse_enabled"),
        EmitRule("policy"),
        EmitRule("tags"),
    ],
    computed={
        "queue_type": lambda attrs: "FIFO" if attrs.fifo_queue else "Standard",
        "is_fifo": lambda attrs: attrs.fifo_queue,
        "is_encrypted": lambda attrs: encryption_type(attrs) != "None",
        "encryption_type": encryption_type,
        "has_dlq": lambda attrs: attrs.redrive_policy is not None,
        "long_polling_enabled": lambda attrs: attrs.receive_wait_time_seconds > 0,
        "is_delay_queue": lambda attrs: attrs.delay_seconds > 0,
        "allows_all_sources": _allows_all_sources,
    },
)
