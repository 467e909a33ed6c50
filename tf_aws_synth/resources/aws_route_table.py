"""Module to define the aws_route_table resource.

Inline routes are given as a "routes" list and written as repeated
"route" blocks, in the order supplied. Terraform's JSON syntax needs
every route attribute present, so unset ones are written as "".
"""
from tf_aws_synth.lib import validators
from tf_aws_synth.lib.emitter import EmitRule
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef
from tf_aws_synth.resources.aws_route import (
    DEFAULT_ROUTE,
    TARGET_FIELDS,
    TARGETS,
)

# Every attribute of a Terraform inline route object.
ROUTE_KEYS = (
    "cidr_block",
    "ipv6_cidr_block",
    "destination_prefix_list_id",
    "carrier_gateway_id",
    "core_network_arn",
    "egress_only_gateway_id",
    "gateway_id",
    "local_gateway_id",
    "nat_gateway_id",
    "network_interface_id",
    "transit_gateway_id",
    "vpc_endpoint_id",
    "vpc_peering_connection_id",
)

ROUTE_SCHEMA = AttributeSchema(
    "route",
    fields=[
        Field("cidr_block", check=validators.any_cidr),
        Field("ipv6_cidr_block", check=validators.ipv6_cidr),
    ] + TARGET_FIELDS,
    rules=[
        exactly_one_of("cidr_block", "ipv6_cidr_block"),
        exactly_one_of(*TARGETS),
    ],
)

SCHEMA = AttributeSchema(
    "aws_route_table",
    fields=[
        Field("vpc_id", required=True, check=validators.aws_id("vpc")),
        Field("routes", kind=list, items=ROUTE_SCHEMA, default=[]),
        Field("propagating_vgws", kind=list,
              items=Field("propagating_vgws", check=validators.aws_id("vgw"))),
        validators.tags_field(),
    ],
)


def _render_routes(routes) -> list:
    return [
        {key: route.get(key, "") for key in ROUTE_KEYS}
        for route in routes
    ]


def _has_internet_route(attrs) -> bool:
    return any(
        route.cidr_block == DEFAULT_ROUTE and route.gateway_id is not None
        for route in attrs.routes
    )


RESOURCE_DEF = TFResourceDef(
    type="aws_route_table",
    schema=SCHEMA,
    outputs=["id", "arn", "owner_id", "vpc_id"],
    emit_rules=[
        EmitRule("vpc_id"),
        EmitRule("routes", key="route", transform=_render_routes),
        EmitRule("propagating_vgws"),
        EmitRule("tags"),
    ],
    computed={
        "route_count": lambda attrs: len(attrs.routes),
        "has_internet_route": _has_internet_route,
    },
)
