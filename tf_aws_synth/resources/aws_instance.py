"""Module to define the aws_instance resource."""

import re

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    forbidden_unless,
    mutually_exclusive,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources import pricing

VOLUME_TYPES = ("standard", "gp2", "gp3", "io1", "io2", "sc1", "st1")
IOPS_VOLUME_TYPES = ("io1", "io2", "gp3")
INSTANCE_TYPE = r"^[a-z][a-z0-9-]*\.[a-z0-9]+$"
AMI_ID = re.compile(r"^ami-[0-9a-f]{8,17}$")


def _ami(value: str) -> None:
    if validators.is_interpolation(value) or AMI_ID.match(value):
        return
    raise SchemaError(
        f"invalid AMI id {value!r}; expected format ami-xxxxxxxx",
        rule="format"
    )


def _iops_for_volume_type(attrs) -> None:
    if attrs.iops is not None and attrs.volume_type not in IOPS_VOLUME_TYPES:
        raise SchemaError(
            "iops can only be specified for io1, io2 or gp3 volumes",
            field="iops",
            rule="conditional"
        )


def _throughput_for_volume_type(attrs) -> None:
    if attrs.throughput is not None and attrs.volume_type != "gp3":
        raise SchemaError(
            "throughput can only be specified for gp3 volumes",
            field="throughput",
            rule="conditional"
        )


_VOLUME_FIELDS = [
    Field("volume_type", choices=VOLUME_TYPES),
    Field("volume_size", kind=int, min_value=1, max_value=16384),
    Field("iops", kind=int, min_value=100, max_value=256000),
    Field("throughput", kind=int, min_value=125, max_value=1000),
    Field("encrypted", kind=bool),
    Field("kms_key_id", check=validators.arn_or_id("kms")),
    Field("delete_on_termination", kind=bool, default=True),
    validators.tags_field(),
]

ROOT_BLOCK_DEVICE_SCHEMA = AttributeSchema(
    "root_block_device",
    fields=_VOLUME_FIELDS,
    rules=[
        _iops_for_volume_type,
        _throughput_for_volume_type,
        forbidden_unless("kms_key_id", "encrypted"),
    ],
)

EBS_BLOCK_DEVICE_SCHEMA = ROOT_BLOCK_DEVICE_SCHEMA.extend(
    "ebs_block_device",
    fields=[
        Field("device_name", required=True, pattern=r"^/dev/[a-z0-9]+$|^xvd[a-z]+$"),
        Field("snapshot_id", check=validators.aws_id("snap")),
    ],
)

SCHEMA = AttributeSchema(
    "aws_instance",
    fields=[
        Field("ami", required=True, check=_ami),
        Field("instance_type", required=True, pattern=INSTANCE_TYPE),
        Field("availability_zone", check=validators.availability_zone),
        Field("subnet_id", check=validators.aws_id("subnet")),
        Field("vpc_security_group_ids", kind=list,
              items=Field("vpc_security_group_ids", check=validators.aws_id("sg"))),
        Field("key_name", max_length=255),
        Field("iam_instance_profile"),
        Field("associate_public_ip_address", kind=bool),
        Field("private_ip", check=validators.ip_address),
        Field("source_dest_check", kind=bool),
        Field("monitoring", kind=bool),
        Field("ebs_optimized", kind=bool),
        Field("disable_api_termination", kind=bool),
        Field("instance_initiated_shutdown_behavior", choices=("stop", "terminate")),
        Field("tenancy", choices=("default", "dedicated", "host")),
        Field("user_data"),
        Field("user_data_base64"),
        Field("user_data_replace_on_change", kind=bool),
        Field("root_block_device", kind=dict, schema=ROOT_BLOCK_DEVICE_SCHEMA),
        Field("ebs_block_device", kind=list, items=EBS_BLOCK_DEVICE_SCHEMA),
        validators.tags_field(),
        validators.tags_field("volume_tags"),
    ],
    rules=[
        mutually_exclusive(
            "user_data", "user_data_base64",
            message="cannot specify both 'user_data' and 'user_data_base64'"
        ),
        mutually_exclusive("availability_zone", "subnet_id",
                           message="'availability_zone' is implied by "
                                   "'subnet_id'; set only one of them"),
    ],
)


def compute_family(attrs) -> str:
    """EG: m5.large -> m5."""
    return attrs.instance_type.split(".", 1)[0]


def compute_size(attrs) -> str:
    """EG: m5.large -> large."""
    return attrs.instance_type.split(".", 1)[1]


def _will_have_public_ip(attrs) -> bool:
    return attrs.associate_public_ip_address is True


def _estimated_hourly_cost(attrs) -> float:
    return pricing.INSTANCE_HOURLY.get(
        attrs.instance_type, pricing.DEFAULT_INSTANCE_HOURLY
    )


def _estimated_monthly_cost(attrs) -> float:
    return pricing.monthly(_estimated_hourly_cost(attrs))


def _total_storage_gb(attrs) -> int:
    volumes = list(attrs.ebs_block_device or ())
    if attrs.root_block_device is not None:
        volumes.append(attrs.root_block_device)
    return sum(volume.volume_size or 0 for volume in volumes)


RESOURCE_DEF = TFResourceDef(
    type="aws_instance",
    schema=SCHEMA,
    outputs=[
        "id",
        "arn",
        "instance_state",
        "primary_network_interface_id",
        "private_dns",
        "private_ip",
        "public_dns",
        "public_ip",
        "availability_zone",
        "subnet_id",
    ],
    computed={
        "compute_family": compute_family,
        "compute_size": compute_size,
        "will_have_public_ip": _will_have_public_ip,
        "estimated_hourly_cost": _estimated_hourly_cost,
        "estimated_monthly_cost": _estimated_monthly_cost,
        "total_storage_gb": _total_storage_gb,
    },
)
