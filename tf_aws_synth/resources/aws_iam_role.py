"""Module to define the aws_iam_role resource."""

import json

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    mutually_exclusive,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

ROLE_NAME = r"^[\w+=,.@-]{1,64}$"
ROLE_PATH = r"^/$|^/[\x21-\x7e]*/$"

INLINE_POLICY_SCHEMA = AttributeSchema(
    "inline_policy",
    fields=[
        Field("name", required=True, pattern=ROLE_NAME),
        Field("policy", required=True, check=validators.json_document),
    ],
)

SCHEMA = AttributeSchema(
    "aws_iam_role",
    fields=[
        Field("name", pattern=ROLE_NAME),
        Field("name_prefix", max_length=38),
        Field("assume_role_policy", required=True,
              check=validators.json_document),
        Field("description", max_length=1000),
        Field("path", default="/", max_length=512, pattern=ROLE_PATH),
        Field("max_session_duration", kind=int, default=3600,
              min_value=3600, max_value=43200),
        Field("permissions_boundary", check=validators.arn("iam")),
        Field("force_detach_policies", kind=bool),
        Field("managed_policy_arns", kind=list,
              items=Field("managed_policy_arns", check=validators.arn("iam"))),
        Field("inline_policy", kind=list, items=INLINE_POLICY_SCHEMA),
        validators.tags_field(),
    ],
    rules=[
        mutually_exclusive("name", "name_prefix"),
    ],
)


def _statements(attrs) -> list:
    if validators.is_interpolation(attrs.assume_role_policy):
        return []
    document = json.loads(attrs.assume_role_policy)
    if not isinstance(document, dict):
        return []
    statements = document.get("Statement", [])
    if isinstance(statements, dict):
        statements = [statements]
    if not isinstance(statements, list):
        return []
    return [statement for statement in statements if isinstance(statement, dict)]


def trusted_services(attrs) -> list:
    """Service principals allowed to assume the role, EG: ["ec2.amazonaws.com"]."""
    services = []
    for statement in _statements(attrs):
        principal = statement.get("Principal")
        service = principal.get("Service", []) if isinstance(principal, dict) else []
        if isinstance(service, str):
            service = [service]
        if not isinstance(service, list):
            continue
        for name in service:
            if isinstance(name, str) and name not in services:
                services.append(name)
    return services


RESOURCE_DEF = TFResourceDef(
    type="aws_iam_role",
    schema=SCHEMA,
    outputs=["id", "arn", "name", "unique_id", "create_date"],
    computed={
        "trusted_services": trusted_services,
        "is_service_role": lambda attrs: bool(trusted_services(attrs)),
        "has_permissions_boundary":
            lambda attrs: attrs.permissions_boundary is not None,
    },
)
