"""Module to create a VPC with public and private subnets in each AZ.

Each AZ gets a public subnet, a private subnet, an Elastic IP with a NAT
gateway in the public subnet, and a private route table that sends
0.0.0.0/0 through that NAT gateway. All public subnets share one route
table pointing at the internet gateway. Every subnet is associated with
its route table.

When subnet CIDRs are not supplied the VPC range is split into
2 * len(availability_zones) equal blocks (rounded up to a power of two):
public subnet i takes block i, private subnet i takes block i + az_count.

EG: vpc_with_subnets(stack, "app", "10.0.0.0/16", ["us-east-1a", "us-east-1b"])
    equates to public 10.0.0.0/18, 10.0.64.0/18 and
    private 10.0.128.0/18, 10.0.192.0/18
"""
import ipaddress
import math
from dataclasses import dataclass, field
from typing import (
    Dict,
    List,
    Optional,
    Sequence,
)

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.lib.reference import ResourceReference
from tf_aws_synth.lib.schema import (
    Attributes,
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.tf_classes import TFStack
from tf_aws_synth.resources.aws_route import DEFAULT_ROUTE
from tf_aws_synth.resources.aws_vpc import SCHEMA as VPC_SCHEMA

MAX_SUBNET_PREFIX = 28

# Extra tag maps callers may pass in attributes.
TAG_KEYS = (
    "vpc_tags",
    "igw_tags",
    "public_subnet_tags",
    "private_subnet_tags",
    "nat_tags",
    "route_table_tags",
)


@dataclass
class VpcWithSubnetsReference:
    """Define the references created by vpc_with_subnets."""

    name_prefix: str
    vpc: Optional[ResourceReference] = None
    internet_gateway: Optional[ResourceReference] = None
    public_subnets: List[ResourceReference] = field(default_factory=list)
    private_subnets: List[ResourceReference] = field(default_factory=list)
    eips: List[ResourceReference] = field(default_factory=list)
    nat_gateways: List[ResourceReference] = field(default_factory=list)
    public_route_table: Optional[ResourceReference] = None
    private_route_tables: List[ResourceReference] = field(default_factory=list)
    route_table_associations: List[ResourceReference] = field(default_factory=list)

    @property
    def public_subnet_ids(self) -> List[str]:
        return [subnet.id for subnet in self.public_subnets]

    @property
    def private_subnet_ids(self) -> List[str]:
        return [subnet.id for subnet in self.private_subnets]

    @property
    def availability_zone_count(self) -> int:
        return len(self.public_subnets)

    def all_resources(self) -> List[ResourceReference]:
        resources = [self.vpc, self.internet_gateway]
        resources += self.public_subnets + self.private_subnets
        resources += self.eips + self.nat_gateways
        resources += [self.public_route_table] + self.private_route_tables
        resources += self.route_table_associations
        return [r for r in resources if r is not None]

    def estimated_monthly_cost(self) -> float:
        return round(sum(
            nat.estimated_monthly_cost for nat in self.nat_gateways
        ), 2)


def split_cidr(vpc_cidr: str, az_count: int) -> List[str]:
    """Split vpc_cidr into 2 * az_count equal blocks, public first.

    Blocks beyond 2 * az_count (when az_count is not a power of two)
    are left unused.
    """
    network = validators.parse_cidr(vpc_cidr)
    subnet_bits = math.ceil(math.log2(az_count * 2))
    new_prefix = network.prefixlen + subnet_bits
    if new_prefix > MAX_SUBNET_PREFIX:
        raise SchemaError(
            f"VPC CIDR block {vpc_cidr} is too small to split into "
            f"{az_count * 2} subnets of at least /{MAX_SUBNET_PREFIX}",
            field="vpc_cidr",
            rule="range"
        )
    size = 2 ** (32 - new_prefix)
    base = int(network.network_address)
    return [
        str(ipaddress.IPv4Network((base + index * size, new_prefix)))
        for index in range(az_count * 2)
    ]


def _tags(name: str, extra: Optional[Dict[str, str]], **tags: str) -> dict:
    return {"Name": name, **tags, **(extra or {})}


def _zones(value) -> None:
    if not value:
        raise SchemaError(
            "At least one availability zone must be specified",
            rule="required"
        )
    validators.single_region(value)


def _one_cidr_per_zone(attrs) -> None:
    zone_count = len(attrs.availability_zones)
    for name in ("public_subnet_cidrs", "private_subnet_cidrs"):
        cidrs = attrs.get(name)
        if cidrs is not None and len(cidrs) != zone_count:
            raise SchemaError(
                f"expected one CIDR per availability zone "
                f"({zone_count}), got {len(cidrs)}",
                field=name,
                rule="length"
            )


def _subnets_inside_vpc(attrs) -> None:
    if validators.is_interpolation(attrs.vpc_cidr):
        return
    network = validators.parse_cidr(attrs.vpc_cidr)
    for name in ("public_subnet_cidrs", "private_subnet_cidrs"):
        for index, cidr in enumerate(attrs.get(name, ())):
            if validators.is_interpolation(cidr):
                continue
            if not validators.parse_cidr(cidr).subnet_of(network):
                raise SchemaError(
                    f"subnet CIDR {cidr} is not within the VPC CIDR "
                    f"{attrs.vpc_cidr}",
                    field=f"{name}[{index}]",
                    rule="range"
                )


_subnet_cidr = validators.cidr_block(16, MAX_SUBNET_PREFIX)


def _subnet_cidrs_field(name: str) -> Field:
    return Field(name, kind=list, items=Field(name, check=_subnet_cidr))


SCHEMA = AttributeSchema(
    "vpc_with_subnets",
    fields=[
        Field("vpc_cidr", required=True,
              check=VPC_SCHEMA.field("cidr_block").check),
        Field("availability_zones", kind=list, required=True,
              items=Field("availability_zones",
                          check=validators.availability_zone),
              check=_zones),
        _subnet_cidrs_field("public_subnet_cidrs"),
        _subnet_cidrs_field("private_subnet_cidrs"),
    ] + [validators.tags_field(key) for key in TAG_KEYS],
    rules=[
        _one_cidr_per_zone,
        _subnets_inside_vpc,
    ],
)


def _check_inputs(
    stack: TFStack,
    vpc_cidr: str,
    availability_zones: Sequence[str],
    public_subnet_cidrs: Optional[Sequence[str]],
    private_subnet_cidrs: Optional[Sequence[str]],
    attributes: dict
) -> Attributes:
    """Validate every input before the first resource is created."""
    attrs = SCHEMA.validate({
        **attributes,
        "vpc_cidr": vpc_cidr,
        "availability_zones": availability_zones,
        "public_subnet_cidrs": public_subnet_cidrs,
        "private_subnet_cidrs": private_subnet_cidrs,
    })
    stack.check_zone_region(attrs.availability_zones)
    return attrs


def vpc_with_subnets(
    stack: TFStack,
    name_prefix: str,
    vpc_cidr: str,
    availability_zones: Sequence[str],
    public_subnet_cidrs: Optional[Sequence[str]] = None,
    private_subnet_cidrs: Optional[Sequence[str]] = None,
    attributes: Optional[dict] = None,
) -> VpcWithSubnetsReference:
    """Create the VPC, subnets, NAT gateways and route tables."""
    attrs = _check_inputs(stack, vpc_cidr, availability_zones,
                          public_subnet_cidrs, private_subnet_cidrs,
                          dict(attributes or {}))

    az_count = len(availability_zones)
    if public_subnet_cidrs is None or private_subnet_cidrs is None:
        blocks = split_cidr(vpc_cidr, az_count)
        public_subnet_cidrs = public_subnet_cidrs or blocks[:az_count]
        private_subnet_cidrs = private_subnet_cidrs or blocks[az_count:]

    results = VpcWithSubnetsReference(name_prefix)
    results.vpc = stack.aws_vpc(f"{name_prefix}_vpc", {
        "cidr_block": vpc_cidr,
        "enable_dns_hostnames": True,
        "enable_dns_support": True,
        "tags": _tags(f"{name_prefix}-vpc", attrs.vpc_tags),
    })
    results.internet_gateway = stack.aws_internet_gateway(f"{name_prefix}_igw", {
        "vpc_id": results.vpc.id,
        "tags": _tags(f"{name_prefix}-igw", attrs.igw_tags),
    })

    for index, zone in enumerate(availability_zones):
        results.public_subnets.append(
            stack.aws_subnet(f"{name_prefix}_public_subnet_{index}", {
                "vpc_id": results.vpc.id,
                "cidr_block": public_subnet_cidrs[index],
                "availability_zone": zone,
                "map_public_ip_on_launch": True,
                "tags": _tags(f"{name_prefix}-public-{index}",
                              attrs.public_subnet_tags,
                              Type="public"),
            })
        )
        results.private_subnets.append(
            stack.aws_subnet(f"{name_prefix}_private_subnet_{index}", {
                "vpc_id": results.vpc.id,
                "cidr_block": private_subnet_cidrs[index],
                "availability_zone": zone,
                "map_public_ip_on_launch": False,
                "tags": _tags(f"{name_prefix}-private-{index}",
                              attrs.private_subnet_tags,
                              Type="private"),
            })
        )

    for index in range(az_count):
        eip = stack.aws_eip(f"{name_prefix}_nat_eip_{index}", {
            "domain": "vpc",
            "tags": _tags(f"{name_prefix}-nat-eip-{index}",
                          attrs.nat_tags),
        })
        results.eips.append(eip)
        results.nat_gateways.append(
            stack.aws_nat_gateway(f"{name_prefix}_nat_{index}", {
                "subnet_id": results.public_subnets[index].id,
                "allocation_id": eip.allocation_id,
                "tags": _tags(f"{name_prefix}-nat-{index}",
                              attrs.nat_tags),
            })
        )

    results.public_route_table = stack.aws_route_table(f"{name_prefix}_public_rt", {
        "vpc_id": results.vpc.id,
        "routes": [{
            "cidr_block": DEFAULT_ROUTE,
            "gateway_id": results.internet_gateway.id,
        }],
        "tags": _tags(f"{name_prefix}-public-rt",
                      attrs.route_table_tags),
    })
    for index in range(az_count):
        results.private_route_tables.append(
            stack.aws_route_table(f"{name_prefix}_private_rt_{index}", {
                "vpc_id": results.vpc.id,
                "routes": [{
                    "cidr_block": DEFAULT_ROUTE,
                    "nat_gateway_id": results.nat_gateways[index].id,
                }],
                "tags": _tags(f"{name_prefix}-private-rt-{index}",
                              attrs.route_table_tags),
            })
        )

    for index in range(az_count):
        results.route_table_associations.append(
            stack.aws_route_table_association(f"{name_prefix}_public_rta_{index}", {
                "subnet_id": results.public_subnets[index].id,
                "route_table_id": results.public_route_table.id,
            })
        )
        results.route_table_associations.append(
            stack.aws_route_table_association(f"{name_prefix}_private_rta_{index}", {
                "subnet_id": results.private_subnets[index].id,
                "route_table_id": results.private_route_tables[index].id,
            })
        )
    return results


def vpc_with_subnets_from_attributes(
    stack: TFStack,
    name_prefix: str,
    attributes: Optional[dict] = None
) -> VpcWithSubnetsReference:
    """Call vpc_with_subnets with every argument taken from one hash.

    EG: {"vpc_cidr": "10.0.0.0/16", "availability_zones": ["us-east-1a"],
         "vpc_tags": {"Tier": "core"}}
    """
    attributes = dict(attributes or {})
    return vpc_with_subnets(
        stack,
        name_prefix,
        vpc_cidr=attributes.pop("vpc_cidr", None),
        availability_zones=attributes.pop("availability_zones", None),
        public_subnet_cidrs=attributes.pop("public_subnet_cidrs", None),
        private_subnet_cidrs=attributes.pop("private_subnet_cidrs", None),
        attributes=attributes,
    )
