"""Module to define reusable format validators and network helpers.

Validators are plain callables that raise SchemaError without a field
name; the schema engine fills in the field path.
"""
import ipaddress
import json
import re
from functools import lru_cache
from typing import Callable, FrozenSet, Optional, Sequence

import boto3

from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import Field

INTERPOLATION = re.compile(r"^\$\{[^}]+\}$")

RFC1918_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)

AWS_RESERVED_IPS_PER_SUBNET = 5
MAX_TAGS = 50

_ARN = re.compile(
    r"^arn:(?P<partition>aws|aws-cn|aws-us-gov):(?P<service>[a-z0-9-]+):"
    r"(?P<region>[a-z0-9-]*):(?P<account>\d{12}|aws)?:(?P<resource>.+)$"
)
_AZ = re.compile(r"^(?P<region>[a-z]{2}(-gov)?-[a-z]+-\d)(?P<zone>[a-z])$")


def is_interpolation(value: object) -> bool:
    """Return True for Terraform interpolation strings like ${aws_vpc.main.id}."""
    return isinstance(value, str) and bool(INTERPOLATION.match(value))


def parse_cidr(value: str) -> ipaddress.IPv4Network:
    """Parse an IPv4 CIDR block or raise SchemaError."""
    if not isinstance(value, str) or "/" not in value:
        raise SchemaError(f"invalid CIDR block {value!r}", rule="format")
    try:
        return ipaddress.IPv4Network(value, strict=True)
    except ValueError:
        raise SchemaError(f"invalid CIDR block {value!r}", rule="format") from None


def cidr_block(
    min_prefix: int = 0,
    max_prefix: int = 32
) -> Callable[[str], None]:
    """Validate an IPv4 CIDR whose prefix length is within bounds.

    EG: cidr_block(16, 28)("10.0.0.0/8") raises
    "CIDR block too large (/8); prefix length must be between /16 and /28".
    """
    def check(value: str) -> None:
        if is_interpolation(value):
            return
        network = parse_cidr(value)
        bounds = f"between /{min_prefix} and /{max_prefix}"
        if network.prefixlen < min_prefix:
            raise SchemaError(
                f"CIDR block too large (/{network.prefixlen}); "
                f"prefix length must be {bounds}",
                rule="range"
            )
        if network.prefixlen > max_prefix:
            raise SchemaError(
                f"CIDR block too small (/{network.prefixlen}); "
                f"prefix length must be {bounds}",
                rule="range"
            )
    return check


def any_cidr(value: str) -> None:
    if is_interpolation(value):
        return
    parse_cidr(value)


def ipv6_cidr(value: str) -> None:
    if is_interpolation(value):
        return
    try:
        ipaddress.IPv6Network(value, strict=True)
    except ValueError:
        raise SchemaError(f"invalid IPv6 CIDR block {value!r}", rule="format") from None


def is_rfc1918_private(cidr: str) -> bool:
    """Return True when the CIDR block sits inside RFC1918 space."""
    try:
        network = ipaddress.IPv4Network(cidr, strict=False)
    except ValueError:
        return False
    return any(network.subnet_of(private) for private in RFC1918_NETWORKS)


def private_cidr(value: str) -> None:
    """Require an RFC1918 CIDR block."""
    if is_interpolation(value):
        return
    parse_cidr(value)
    if not is_rfc1918_private(value):
        raise SchemaError(
            f"CIDR block {value} is not in RFC1918 private address space "
            "(10.0.0.0/8, 172.16.0.0/12, 192.168.0.0/16)",
            rule="private_range"
        )


def subnet_capacity(cidr: str, subnet_prefix: int = 24) -> int:
    """Count how many /subnet_prefix networks fit in cidr."""
    try:
        network = ipaddress.IPv4Network(cidr, strict=False)
    except ValueError:
        return 0
    if network.prefixlen > subnet_prefix:
        return 0
    return 2 ** (subnet_prefix - network.prefixlen)


def usable_ip_count(cidr: str) -> int:
    """Usable host addresses in an AWS subnet (5 are reserved)."""
    try:
        network = ipaddress.IPv4Network(cidr, strict=False)
    except ValueError:
        return 0
    return max(network.num_addresses - AWS_RESERVED_IPS_PER_SUBNET, 0)


def aws_id(*prefixes: str) -> Callable[[str], None]:
    """Validate an AWS resource id like vpc-0a1b2c3d or an interpolation."""
    pattern = re.compile(
        r"^(%s)-[0-9a-f]{8,17}$" % "|".join(re.escape(p) for p in prefixes)
    )
    expected = " or ".join(f"{p}-xxxxxxxx" for p in prefixes)

    def check(value: str) -> None:
        if is_interpolation(value) or pattern.match(value):
            return
        raise SchemaError(
            f"invalid id {value!r}; expected format {expected}",
            rule="format"
        )
    return check


def arn(service: Optional[str] = None) -> Callable[[str], None]:
    """Validate an ARN, optionally for a specific service."""
    def check(value: str) -> None:
        if is_interpolation(value):
            return
        match = _ARN.match(value)
        if not match:
            raise SchemaError(f"invalid ARN {value!r}", rule="format")
        if service and match.group("service") != service:
            raise SchemaError(
                f"ARN {value!r} is not a {service} ARN",
                rule="format"
            )
    return check


def arn_or_id(service: str, *prefixes: str) -> Callable[[str], None]:
    """Validate a value that may be an ARN or a bare resource id."""
    arn_check = arn(service)
    id_check = aws_id(*prefixes) if prefixes else None

    def check(value: str) -> None:
        if value.startswith("arn:") or id_check is None:
            arn_check(value)
        else:
            id_check(value)
    return check


def json_document(value: str) -> None:
    """Require a JSON document, EG: an IAM or queue policy."""
    if is_interpolation(value):
        return
    try:
        json.loads(value)
    except ValueError as error:
        raise SchemaError(f"invalid JSON document: {error}", rule="format") from None


def tags(value) -> None:
    """Validate an AWS tag map."""
    if len(value) > MAX_TAGS:
        raise SchemaError(f"at most {MAX_TAGS} tags are allowed", rule="length")
    for key, tag_value in value.items():
        if not 1 <= len(key) <= 128:
            raise SchemaError(
                f"tag key {key!r} must be 1-128 characters",
                rule="length"
            )
        if key.lower().startswith("aws:"):
            raise SchemaError(
                f"tag key {key!r} uses the reserved 'aws:' prefix",
                rule="format"
            )
        if not isinstance(tag_value, str):
            raise SchemaError(
                f"tag {key!r} value must be a string",
                rule="type"
            )
        if len(tag_value) > 256:
            raise SchemaError(
                f"tag {key!r} value must be at most 256 characters",
                rule="length"
            )


def tags_field(name: str = "tags") -> Field:
    """Return the standard optional tags field."""
    return Field(name, kind=dict, default={}, check=tags)


@lru_cache(maxsize=1)
def known_regions() -> FrozenSet[str]:
    """Region names from the endpoint data bundled with botocore."""
    session = boto3.session.Session()
    regions = set()
    for partition in session.get_available_partitions():
        regions.update(
            session.get_available_regions("ec2", partition_name=partition)
        )
    return frozenset(regions)


def region(value: str) -> None:
    if is_interpolation(value):
        return
    if value not in known_regions():
        raise SchemaError(f"unknown AWS region {value!r}", rule="format")


def availability_zone(value: str) -> None:
    """Validate an AZ name such as us-east-1a."""
    if is_interpolation(value):
        return
    match = _AZ.match(value)
    if not match:
        raise SchemaError(
            f"invalid availability zone {value!r}; expected format us-east-1a",
            rule="format"
        )
    if match.group("region") not in known_regions():
        raise SchemaError(
            f"availability zone {value!r} is not in a known AWS region",
            rule="format"
        )


def region_of(zone: str) -> Optional[str]:
    """Return the region part of an AZ name, or None."""
    match = _AZ.match(zone)
    return match.group("region") if match else None


def single_region(zones: Sequence[str]) -> None:
    """Require every AZ in zones to belong to one region."""
    regions = []
    for zone in zones:
        region = region_of(zone)
        if region is not None and region not in regions:
            regions.append(region)
    if len(regions) > 1:
        raise SchemaError(
            "All availability zones must be from the same region. "
            f"Found: {', '.join(regions)}",
            rule="format"
        )


def port(value: int) -> None:
    if not -1 <= value <= 65535:
        raise SchemaError(f"port {value} must be between 0 and 65535", rule="range")


def ip_address(value: str) -> None:
    if is_interpolation(value):
        return
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise SchemaError(f"invalid IP address {value!r}", rule="format") from None
