"""Module to create a transit gateway hub with its own route tables.

The hub disables the gateway's default route table association and
propagation; every attachment is associated with one of the hub's named
route tables instead. The gateway id is published to an SSM parameter so
other stacks can look it up.

EG: transit_hub(stack, "core", {
        "attachments": [{
            "name": "shared",
            "vpc_id": shared.vpc.id,
            "subnet_ids": shared.private_subnet_ids,
            "route_table": "egress",
        }],
        "routes": [{
            "route_table": "inspection",
            "destination_cidr_block": "0.0.0.0/0",
            "attachment": "shared",
        }],
    })
"""
from dataclasses import dataclass, field
from typing import (
    Dict,
    List,
    Optional,
)

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.reference import ResourceReference
from tf_aws_synth.lib.schema import (
    Attributes,
    AttributeSchema,
    Field,
    exactly_one_of,
)
from tf_aws_synth.lib.tf_classes import TFStack
from tf_aws_synth.resources.aws_ec2_transit_gateway import SCHEMA as TGW_SCHEMA

DEFAULT_ROUTE_TABLES = ["egress", "inspection"]
TABLE_NAME = r"^[a-z][a-z0-9_]{0,31}$"

ATTACHMENT_SCHEMA = AttributeSchema(
    "attachment",
    fields=[
        Field("name", required=True, pattern=TABLE_NAME),
        Field("vpc_id", required=True, check=validators.aws_id("vpc")),
        Field("subnet_ids", kind=list, required=True, min_items=1,
              items=Field("subnet_ids", check=validators.aws_id("subnet"))),
        Field("route_table"),
        Field("appliance_mode_support", choices=("enable", "disable")),
    ],
)

ROUTE_SCHEMA = AttributeSchema(
    "route",
    fields=[
        Field("route_table", required=True),
        Field("destination_cidr_block", required=True, check=validators.any_cidr),
        Field("attachment"),
        Field("blackhole", kind=bool),
    ],
    rules=[exactly_one_of("attachment", "blackhole")],
)


def _known_names(attrs) -> None:
    tables = set(attrs.route_tables)
    attachments = set()
    for index, attachment in enumerate(attrs.attachments):
        if attachment.name in attachments:
            raise SchemaError(
                f"duplicate attachment name {attachment.name!r}",
                field=f"attachments[{index}].name",
                rule="unique"
            )
        attachments.add(attachment.name)
        if attachment.route_table is not None and attachment.route_table not in tables:
            raise SchemaError(
                f"route table {attachment.route_table!r} is not one of "
                f"{', '.join(attrs.route_tables)}",
                field=f"attachments[{index}].route_table",
                rule="choices"
            )
    for index, route in enumerate(attrs.routes):
        if route.route_table not in tables:
            raise SchemaError(
                f"route table {route.route_table!r} is not one of "
                f"{', '.join(attrs.route_tables)}",
                field=f"routes[{index}].route_table",
                rule="choices"
            )
        if route.attachment is not None and route.attachment not in attachments:
            raise SchemaError(
                f"unknown attachment {route.attachment!r}",
                field=f"routes[{index}].attachment",
                rule="choices"
            )


def _unique_tables(value) -> None:
    if len(set(value)) != len(value):
        raise SchemaError("route table names must be unique", rule="unique")


SCHEMA = AttributeSchema(
    "transit_hub",
    fields=[
        TGW_SCHEMA.field("description"),
        TGW_SCHEMA.field("amazon_side_asn"),
        TGW_SCHEMA.field("auto_accept_shared_attachments"),
        TGW_SCHEMA.field("dns_support"),
        Field("route_tables", kind=list, min_items=1, check=_unique_tables,
              items=Field("route_tables", pattern=TABLE_NAME),
              default=DEFAULT_ROUTE_TABLES),
        Field("parameter_prefix", default="/network", pattern=r"^(/[A-Za-z0-9_.-]+)+$"),
        Field("attachments", kind=list, items=ATTACHMENT_SCHEMA, default=[]),
        Field("routes", kind=list, items=ROUTE_SCHEMA, default=[]),
        validators.tags_field(),
    ],
    rules=[_known_names],
)


@dataclass
class TransitHubReference:
    """Define the references created by transit_hub."""

    name: str
    attributes: Attributes
    transit_gateway: ResourceReference
    parameter: Optional[ResourceReference] = None
    route_tables: Dict[str, ResourceReference] = field(default_factory=dict)
    attachments: Dict[str, ResourceReference] = field(default_factory=dict)
    associations: Dict[str, ResourceReference] = field(default_factory=dict)
    routes: List[ResourceReference] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.transit_gateway.id

    def estimated_monthly_cost(self) -> float:
        return round(sum(
            attachment.estimated_monthly_cost
            for attachment in self.attachments.values()
        ), 2)

    def all_resources(self) -> List[ResourceReference]:
        resources = [self.transit_gateway, self.parameter]
        resources += list(self.route_tables.values())
        resources += list(self.attachments.values())
        resources += list(self.associations.values())
        resources += self.routes
        return [r for r in resources if r is not None]


def transit_hub(
    stack: TFStack,
    name: str,
    attributes: Optional[dict] = None
) -> TransitHubReference:
    """Validate the hub attributes, then create its resources."""
    attrs = SCHEMA.validate(attributes)
    tags = {"Name": name, **attrs.tags}

    tgw = {
        "description": attrs.description,
        "amazon_side_asn": attrs.amazon_side_asn,
        "auto_accept_shared_attachments": attrs.auto_accept_shared_attachments,
        "default_route_table_association": "disable",
        "default_route_table_propagation": "disable",
        "dns_support": attrs.dns_support,
        "tags": tags,
    }
    hub = TransitHubReference(
        name=name,
        attributes=attrs,
        transit_gateway=stack.aws_ec2_transit_gateway(f"{name}_tgw", tgw),
    )
    hub.parameter = stack.aws_ssm_parameter(f"{name}_tgw_id", {
        "name": f"{attrs.parameter_prefix}/{name}/transit-gateway-id",
        "type": "String",
        "value": hub.transit_gateway.id,
        "description": f"Transit gateway id for the {name} hub",
        "tags": tags,
    })

    for table in attrs.route_tables:
        hub.route_tables[table] = stack.aws_ec2_transit_gateway_route_table(
            f"{name}_{table}_rt", {
                "transit_gateway_id": hub.transit_gateway.id,
                "tags": {**tags, "Name": f"{name}-{table}"},
            }
        )

    for attachment in attrs.attachments:
        hub.attachments[attachment.name] = stack.aws_ec2_transit_gateway_vpc_attachment(
            f"{name}_{attachment.name}_attachment", {
                "transit_gateway_id": hub.transit_gateway.id,
                "vpc_id": attachment.vpc_id,
                "subnet_ids": list(attachment.subnet_ids),
                "appliance_mode_support": attachment.appliance_mode_support,
                "transit_gateway_default_route_table_association": False,
                "transit_gateway_default_route_table_propagation": False,
                "tags": {**tags, "Name": f"{name}-{attachment.name}"},
            }
        )
        table = attachment.route_table or attrs.route_tables[0]
        hub.associations[attachment.name] = \
            stack.aws_ec2_transit_gateway_route_table_association(
                f"{name}_{attachment.name}_association", {
                    "transit_gateway_attachment_id":
                        hub.attachments[attachment.name].id,
                    "transit_gateway_route_table_id": hub.route_tables[table].id,
                }
            )

    for index, route in enumerate(attrs.routes):
        target = {"blackhole": True} if route.blackhole else {
            "transit_gateway_attachment_id": hub.attachments[route.attachment].id,
        }
        hub.routes.append(stack.aws_ec2_transit_gateway_route(
            f"{name}_{route.route_table}_route_{index}", {
                "destination_cidr_block": route.destination_cidr_block,
                "transit_gateway_route_table_id":
                    hub.route_tables[route.route_table].id,
                **target,
            }
        ))
    return hub

