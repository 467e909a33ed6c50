"""Module to define the aws_security_group resource.

Inline rules are given as "ingress_rules" and "egress_rules" and written
as "ingress" and "egress" blocks. Terraform's JSON syntax needs every
rule attribute present, so rule blocks carry empty defaults.
"""
import ipaddress

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.emitter import EmitRule
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    mutually_exclusive,
    thaw,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

PROTOCOLS = ("tcp", "udp", "icmp", "icmpv6", "-1", "all")
ANYWHERE = ("0.0.0.0/0", "::/0")
SSH_PORT = 22


def _port_range(attrs) -> None:
    if attrs.from_port > attrs.to_port:
        raise SchemaError(
            f"from_port ({attrs.from_port}) cannot be greater than "
            f"to_port ({attrs.to_port})",
            field="from_port",
            rule="range"
        )


def _protocol(value: str) -> None:
    if value in PROTOCOLS or value.isdigit():
        return
    raise SchemaError(
        f"protocol {value!r} is not valid; use one of "
        f"{', '.join(PROTOCOLS)} or a protocol number",
        rule="choices"
    )


RULE_SCHEMA = AttributeSchema(
    "security_group_rule",
    fields=[
        Field("from_port", kind=int, required=True, check=validators.port),
        Field("to_port", kind=int, required=True, check=validators.port),
        Field("protocol", required=True, check=_protocol),
        Field("cidr_blocks", kind=list, default=[],
              items=Field("cidr_blocks", check=validators.any_cidr)),
        Field("ipv6_cidr_blocks", kind=list, default=[],
              items=Field("ipv6_cidr_blocks", check=validators.ipv6_cidr)),
        Field("prefix_list_ids", kind=list, items=str, default=[]),
        Field("security_groups", kind=list, items=str, default=[]),
        Field("self", kind=bool, default=False),
        Field("description", default="", max_length=255),
    ],
    rules=[_port_range],
)

SCHEMA = AttributeSchema(
    "aws_security_group",
    fields=[
        Field("name", max_length=255),
        Field("name_prefix", max_length=100),
        Field("description", default="Managed by Terraform", max_length=255),
        Field("vpc_id", check=validators.aws_id("vpc")),
        Field("ingress_rules", kind=list, items=RULE_SCHEMA, default=[]),
        Field("egress_rules", kind=list, items=RULE_SCHEMA, default=[]),
        Field("revoke_rules_on_delete", kind=bool),
        validators.tags_field(),
    ],
    rules=[
        mutually_exclusive("name", "name_prefix"),
    ],
)


def _render_rules(rules):
    return [thaw(rule) for rule in rules]


def _covers_port(rule, port: int) -> bool:
    if rule.protocol in ("-1", "all"):
        return True
    return rule.protocol == "tcp" and rule.from_port <= port <= rule.to_port


def _open_to_anywhere(rule) -> bool:
    return any(cidr in ANYWHERE for cidr in rule.cidr_blocks + rule.ipv6_cidr_blocks)


def _allows_ssh_from_anywhere(attrs) -> bool:
    return any(
        _open_to_anywhere(rule) and _covers_port(rule, SSH_PORT)
        for rule in attrs.ingress_rules
    )


def _is_open_to_internet(attrs) -> bool:
    return any(_open_to_anywhere(rule) for rule in attrs.ingress_rules)


def _public_ingress_ports(attrs) -> list:
    """Sorted (from_port, to_port) pairs reachable from any address."""
    return sorted({
        (rule.from_port, rule.to_port)
        for rule in attrs.ingress_rules
        if _open_to_anywhere(rule)
    })


def _widest_ingress_prefix(attrs):
    prefixes = [
        ipaddress.ip_network(cidr).prefixlen
        for rule in attrs.ingress_rules
        for cidr in rule.cidr_blocks
        if not validators.is_interpolation(cidr)
    ]
    return min(prefixes) if prefixes else None


RESOURCE_DEF = TFResourceDef(
    type="aws_security_group",
    schema=SCHEMA,
    outputs=["id", "arn", "name", "owner_id", "vpc_id"],
    emit_rules=[
        EmitRule("name"),
        EmitRule("name_prefix"),
        EmitRule("description"),
        EmitRule("vpc_id"),
        EmitRule("ingress_rules", key="ingress", transform=_render_rules),
        EmitRule("egress_rules", key="egress", transform=_render_rules),
        EmitRule("revoke_rules_on_delete"),
        EmitRule("tags"),
    ],
    computed={
        "ingress_rule_count": lambda attrs: len(attrs.ingress_rules),
        "egress_rule_count": lambda attrs: len(attrs.egress_rules),
        "allows_ssh_from_anywhere": _allows_ssh_from_anywhere,
        "is_open_to_internet": _is_open_to_internet,
        "public_ingress_ports": _public_ingress_ports,
        "widest_ingress_prefix": _widest_ingress_prefix,
    },
)
