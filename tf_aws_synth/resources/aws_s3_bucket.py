"""Module to define the aws_s3_bucket resource.

Buckets are encrypted with AES256 unless told otherwise. A
public_access_block_configuration is written as a separate
aws_s3_bucket_public_access_block resource named <bucket>_public_access_block.
"""
from tf_aws_synth.lib import validators
from tf_aws_synth.lib.emitter import (
    BLOCK,
    BLOCKS,
    EmitRule,
)
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.reference import interpolate
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    at_least_one_of,
    forbidden_unless,
    mutually_exclusive,
    thaw,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

ACLS = (
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "log-delivery-write",
)
SSE_ALGORITHMS = ("AES256", "aws:kms", "aws:kms:dsse")
KMS_ALGORITHMS = ("aws:kms", "aws:kms:dsse")
STORAGE_CLASSES = (
    "STANDARD_IA",
    "ONEZONE_IA",
    "INTELLIGENT_TIERING",
    "GLACIER",
    "GLACIER_IR",
    "DEEP_ARCHIVE",
)
PUBLIC_ACCESS_FLAGS = (
    "block_public_acls",
    "block_public_policy",
    "ignore_public_acls",
    "restrict_public_buckets",
)
BUCKET_NAME = r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$"

DEFAULT_SSE_CONFIG = {
    "rule": {
        "apply_server_side_encryption_by_default": {"sse_algorithm": "AES256"},
    },
}

VERSIONING_SCHEMA = AttributeSchema(
    "versioning",
    fields=[
        Field("enabled", kind=bool, default=False),
        Field("mfa_delete", kind=bool),
    ],
)


def _kms_key_for_algorithm(attrs) -> None:
    if attrs.sse_algorithm in KMS_ALGORITHMS and attrs.kms_master_key_id is None:
        raise SchemaError(
            "kms_master_key_id is required when using aws:kms encryption",
            field="kms_master_key_id",
            rule="conditional"
        )
    if attrs.sse_algorithm == "AES256" and attrs.kms_master_key_id is not None:
        raise SchemaError(
            "kms_master_key_id can only be used with aws:kms encryption",
            field="kms_master_key_id",
            rule="conditional"
        )


SSE_DEFAULT_SCHEMA = AttributeSchema(
    "apply_server_side_encryption_by_default",
    fields=[
        Field("sse_algorithm", required=True, choices=SSE_ALGORITHMS),
        Field("kms_master_key_id", check=validators.arn_or_id("kms")),
    ],
    rules=[_kms_key_for_algorithm],
)

SSE_RULE_SCHEMA = AttributeSchema(
    "rule",
    fields=[
        Field("apply_server_side_encryption_by_default", kind=dict,
              required=True, schema=SSE_DEFAULT_SCHEMA),
        Field("bucket_key_enabled", kind=bool),
    ],
)

SSE_SCHEMA = AttributeSchema(
    "server_side_encryption_configuration",
    fields=[
        Field("rule", kind=dict, required=True, schema=SSE_RULE_SCHEMA),
    ],
)

TRANSITION_SCHEMA = AttributeSchema(
    "transition",
    fields=[
        Field("days", kind=int, min_value=0),
        Field("date"),
        Field("storage_class", required=True, choices=STORAGE_CLASSES),
    ],
    rules=[mutually_exclusive("days", "date")],
)

EXPIRATION_SCHEMA = AttributeSchema(
    "expiration",
    fields=[
        Field("days", kind=int, min_value=1),
        Field("date"),
        Field("expired_object_delete_marker", kind=bool),
    ],
)

NONCURRENT_TRANSITION_SCHEMA = AttributeSchema(
    "noncurrent_version_transition",
    fields=[
        Field("days", kind=int, required=True, min_value=0),
        Field("storage_class", required=True, choices=STORAGE_CLASSES),
    ],
)

NONCURRENT_EXPIRATION_SCHEMA = AttributeSchema(
    "noncurrent_version_expiration",
    fields=[
        Field("days", kind=int, required=True, min_value=1),
    ],
)


def _lifecycle_action(attrs) -> None:
    if not (attrs.transition or attrs.expiration
            or attrs.noncurrent_version_transition
            or attrs.noncurrent_version_expiration):
        raise SchemaError(
            f"Lifecycle rule '{attrs.id}' must have at least one action "
            "(transition, expiration, etc.)",
            field="id",
            rule="required"
        )


LIFECYCLE_RULE_SCHEMA = AttributeSchema(
    "lifecycle_rule",
    fields=[
        Field("id", required=True, min_length=1, max_length=255),
        Field("enabled", kind=bool, default=True),
        Field("prefix"),
        Field("tags", kind=dict),
        Field("abort_incomplete_multipart_upload_days", kind=int, min_value=1),
        Field("transition", kind=list, items=TRANSITION_SCHEMA),
        Field("expiration", kind=dict, schema=EXPIRATION_SCHEMA),
        Field("noncurrent_version_transition", kind=list,
              items=NONCURRENT_TRANSITION_SCHEMA),
        Field("noncurrent_version_expiration", kind=dict,
              schema=NONCURRENT_EXPIRATION_SCHEMA),
    ],
    rules=[_lifecycle_action],
)

CORS_RULE_SCHEMA = AttributeSchema(
    "cors_rule",
    fields=[
        Field("allowed_methods", kind=list, required=True, min_items=1,
              items=Field("allowed_methods",
                          choices=("GET", "PUT", "POST", "DELETE", "HEAD"))),
        Field("allowed_origins", kind=list, items=str, required=True, min_items=1),
        Field("allowed_headers", kind=list, items=str),
        Field("expose_headers", kind=list, items=str),
        Field("max_age_seconds", kind=int, min_value=0),
    ],
)

REDIRECT_SCHEMA = AttributeSchema(
    "redirect_all_requests_to",
    fields=[
        Field("host_name", required=True),
        Field("protocol", choices=("http", "https")),
    ],
)


def _redirect_all_requests(attrs) -> None:
    if attrs.redirect_all_requests_to is None:
        return
    if attrs.index_document is not None or attrs.error_document is not None:
        raise SchemaError(
            "Cannot specify both redirect_all_requests_to and "
            "index/error documents",
            field="redirect_all_requests_to",
            rule="exclusive"
        )


def _redirect_to_string(redirect) -> str:
    """Terraform takes the redirect as a single "protocol://host" string."""
    if redirect.protocol:
        return f"{redirect.protocol}://{redirect.host_name}"
    return redirect.host_name


WEBSITE_SCHEMA = AttributeSchema(
    "website",
    fields=[
        Field("index_document"),
        Field("error_document"),
        Field("redirect_all_requests_to", kind=dict, schema=REDIRECT_SCHEMA),
        Field("routing_rules", check=validators.json_document),
    ],
    rules=[_redirect_all_requests],
)

LOGGING_SCHEMA = AttributeSchema(
    "logging",
    fields=[
        Field("target_bucket", required=True),
        Field("target_prefix"),
    ],
)

DEFAULT_RETENTION_SCHEMA = AttributeSchema(
    "default_retention",
    fields=[
        Field("mode", required=True, choices=("COMPLIANCE", "GOVERNANCE")),
        Field("days", kind=int, min_value=1),
        Field("years", kind=int, min_value=1),
    ],
    rules=[
        mutually_exclusive("days", "years"),
        at_least_one_of("days", "years"),
    ],
)

OBJECT_LOCK_RULE_SCHEMA = AttributeSchema(
    "rule",
    fields=[
        Field("default_retention", kind=dict, required=True,
              schema=DEFAULT_RETENTION_SCHEMA),
    ],
)

OBJECT_LOCK_SCHEMA = AttributeSchema(
    "object_lock_configuration",
    fields=[
        Field("object_lock_enabled", choices=("Enabled",)),
        Field("rule", kind=dict, schema=OBJECT_LOCK_RULE_SCHEMA),
    ],
    rules=[forbidden_unless("rule", "object_lock_enabled")],
)

PUBLIC_ACCESS_BLOCK_SCHEMA = AttributeSchema(
    "public_access_block_configuration",
    fields=[Field(flag, kind=bool) for flag in PUBLIC_ACCESS_FLAGS],
)


def _object_lock_needs_versioning(attrs) -> None:
    lock = attrs.object_lock_configuration
    if lock is not None and lock.object_lock_enabled and not attrs.versioning.enabled:
        raise SchemaError(
            "Object lock requires versioning to be enabled",
            field="object_lock_configuration",
            rule="conditional"
        )


SCHEMA = AttributeSchema(
    "aws_s3_bucket",
    fields=[
        Field("bucket", pattern=BUCKET_NAME),
        Field("bucket_prefix", max_length=37),
        Field("acl", default="private", choices=ACLS),
        Field("force_destroy", kind=bool),
        Field("versioning", kind=dict, schema=VERSIONING_SCHEMA,
              default={"enabled": False}),
        Field("server_side_encryption_configuration", kind=dict,
              schema=SSE_SCHEMA, default=DEFAULT_SSE_CONFIG),
        Field("lifecycle_rule", kind=list, items=LIFECYCLE_RULE_SCHEMA, default=[]),
        Field("cors_rule", kind=list, items=CORS_RULE_SCHEMA, default=[]),
        Field("website", kind=dict, schema=WEBSITE_SCHEMA),
        Field("logging", kind=dict, schema=LOGGING_SCHEMA),
        Field("object_lock_configuration", kind=dict, schema=OBJECT_LOCK_SCHEMA),
        Field("public_access_block_configuration", kind=dict,
              schema=PUBLIC_ACCESS_BLOCK_SCHEMA),
        Field("policy", check=validators.json_document),
        validators.tags_field(),
    ],
    rules=[
        mutually_exclusive("bucket", "bucket_prefix"),
        _object_lock_needs_versioning,
    ],
)


def _render_website(website) -> dict:
    block = thaw(website)
    if website.redirect_all_requests_to is not None:
        block["redirect_all_requests_to"] = _redirect_to_string(
            website.redirect_all_requests_to
        )
    return block


def _sse_default(attrs):
    rule = attrs.server_side_encryption_configuration.rule
    return rule.apply_server_side_encryption_by_default


def _encryption_enabled(attrs) -> bool:
    return _sse_default(attrs).sse_algorithm is not None


def _kms_encrypted(attrs) -> bool:
    return _sse_default(attrs).sse_algorithm in KMS_ALGORITHMS


def _website_enabled(attrs) -> bool:
    website = attrs.website
    return website is not None and (
        website.index_document is not None
        or website.redirect_all_requests_to is not None
    )


def _public_access_blocked(attrs) -> bool:
    config = attrs.public_access_block_configuration
    return config is not None and all(
        config.get(flag) is True for flag in PUBLIC_ACCESS_FLAGS
    )


def _companions(name: str, attrs) -> list:
    config = attrs.public_access_block_configuration
    if config is None or not config.to_dict():
        return []
    return [(
        "aws_s3_bucket_public_access_block",
        f"{name}_public_access_block",
        {"bucket": interpolate("aws_s3_bucket", name, "id"), **thaw(config)},
    )]


RESOURCE_DEF = TFResourceDef(
    type="aws_s3_bucket",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "bucket",
        "bucket_domain_name",
        "bucket_regional_domain_name",
        "hosted_zone_id",
        "region",
        "website_endpoint",
        "website_domain",
    ],
    emit_rules=[
        EmitRule("bucket"),
        EmitRule("bucket_prefix"),
        EmitRule("acl"),
        EmitRule("force_destroy"),
        EmitRule("versioning", kind=BLOCK),
        EmitRule("server_side_encryption_configuration", kind=BLOCK,
                 schema=SSE_SCHEMA),
        EmitRule("lifecycle_rule", kind=BLOCKS, schema=LIFECYCLE_RULE_SCHEMA),
        EmitRule("cors_rule", kind=BLOCKS),
        EmitRule("website", transform=_render_website),
        EmitRule("logging", kind=BLOCK),
        EmitRule("object_lock_configuration", kind=BLOCK,
                 schema=OBJECT_LOCK_SCHEMA),
        EmitRule("policy"),
        EmitRule("tags"),
    ],
    companions=_companions,
    computed={
        "encryption_enabled": _encryption_enabled,
        "kms_encrypted": _kms_encrypted,
        "versioning_enabled": lambda attrs: attrs.versioning.enabled,
        "website_enabled": _website_enabled,
        "public_access_blocked": _public_access_blocked,
        "lifecycle_rules_count": lambda attrs: len(attrs.lifecycle_rule),
    },
)
