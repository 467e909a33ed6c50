"""Tests for the VPC, subnet, gateway and routing resources."""

import pytest

from tf_aws_synth.lib.errors import SchemaError
from tf_aws_synth.resources.aws_route_table import ROUTE_KEYS


def inline_route(**values):
    return {key: values.get(key, "") for key in ROUTE_KEYS}


class TestVpc:

    def test_cidr_block_too_large(self, stack, document):
        with pytest.raises(SchemaError, match=r"CIDR block too large \(/8\)") as excinfo:
            stack.aws_vpc("main", {"cidr_block": "10.0.0.0/8"})

        assert excinfo.value.field == "cidr_block"
        assert len(document) == 0

    def test_missing_cidr_block(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_vpc("main", {"enable_dns_support": False})

        assert excinfo.value.field == "cidr_block"
        assert excinfo.value.rule == "required"

    def test_computed_properties(self, stack):
        vpc = stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})
        public = stack.aws_vpc("public", {"cidr_block": "100.64.0.0/20"})

        assert vpc.is_rfc1918_private is True
        assert vpc.estimated_subnet_capacity == 256
        assert public.is_rfc1918_private is False
        assert public.estimated_subnet_capacity == 16

    def test_outputs(self, vpc):
        assert vpc.default_security_group_id == "${aws_vpc.main.default_security_group_id}"
        assert list(vpc.outputs)[0] == "id"

    def test_tenancy_enum(self, stack):
        with pytest.raises(SchemaError, match="must be one of"):
            stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16",
                                   "instance_tenancy": "shared"})

    def test_netmask_length_needs_ipam_pool(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16",
                                   "ipv4_netmask_length": 20})

        assert excinfo.value.field == "ipv4_netmask_length"


class TestSubnet:

    def test_subnet(self, stack, document, vpc):
        subnet = stack.aws_subnet("a", {
            "vpc_id": vpc.id,
            "cidr_block": "10.0.1.0/24",
            "availability_zone": "us-east-1a",
            "map_public_ip_on_launch": True,
        })

        assert subnet.ip_capacity == 251
        assert subnet.is_public is True
        assert subnet.is_private is False
        assert subnet.subnet_type == "public"
        assert document.get_resource("aws_subnet", "a") == {
            "vpc_id": "${aws_vpc.main.id}",
            "cidr_block": "10.0.1.0/24",
            "availability_zone": "us-east-1a",
            "map_public_ip_on_launch": True,
        }

    def test_private_by_default(self, stack, vpc):
        subnet = stack.aws_subnet("a", {
            "vpc_id": vpc.id,
            "cidr_block": "10.0.1.0/28",
            "availability_zone": "us-east-1a",
        })

        assert subnet.subnet_type == "private"
        assert subnet.ip_capacity == 11

    def test_availability_zone_is_required(self, stack, vpc):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_subnet("a", {"vpc_id": vpc.id, "cidr_block": "10.0.1.0/24"})

        assert excinfo.value.field == "availability_zone"

    def test_bad_vpc_id(self, stack):
        with pytest.raises(SchemaError, match="vpc-xxxxxxxx"):
            stack.aws_subnet("a", {
                "vpc_id": "main",
                "cidr_block": "10.0.1.0/24",
                "availability_zone": "us-east-1a",
            })

    def test_bad_availability_zone(self, stack, vpc):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_subnet("a", {
                "vpc_id": vpc.id,
                "cidr_block": "10.0.1.0/24",
                "availability_zone": "us-east",
            })

        assert excinfo.value.field == "availability_zone"


class TestGateways:

    def test_internet_gateway(self, stack, vpc):
        igw = stack.aws_internet_gateway("main", {"vpc_id": vpc.id})
        detached = stack.aws_internet_gateway("spare", {})

        assert igw.is_attached is True
        assert detached.is_attached is False

    def test_eip(self, stack, document):
        eip = stack.aws_eip("nat", {})

        assert document.get_resource("aws_eip", "nat") == {"domain": "vpc"}
        assert eip.is_vpc is True
        assert eip.allocation_id == "${aws_eip.nat.allocation_id}"
        assert eip.estimated_monthly_idle_cost == pytest.approx(3.65)

    def test_associated_eip_has_no_idle_cost(self, stack):
        eip = stack.aws_eip("web", {"instance": "i-0123456789abcdef0"})

        assert eip.estimated_monthly_idle_cost == 0.0

    def test_eip_instance_or_network_interface(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_eip("web", {
                "instance": "i-0123456789abcdef0",
                "network_interface": "eni-0123456789abcdef0",
            })

        assert excinfo.value.rule == "exclusive"

    def test_nat_gateway(self, stack, document):
        nat = stack.aws_nat_gateway("a", {
            "subnet_id": "${aws_subnet.public_a.id}",
            "allocation_id": "${aws_eip.nat.allocation_id}",
        })

        assert nat.is_public is True
        assert nat.estimated_monthly_cost == pytest.approx(32.85)
        assert document.get_resource("aws_nat_gateway", "a")["connectivity_type"] == "public"

    def test_public_nat_gateway_needs_allocation_id(self, stack):
        with pytest.raises(SchemaError, match="require an allocation_id"):
            stack.aws_nat_gateway("a", {"subnet_id": "${aws_subnet.public_a.id}"})

    def test_private_nat_gateway_rejects_allocation_id(self, stack):
        stack.aws_nat_gateway("b", {
            "subnet_id": "${aws_subnet.private_a.id}",
            "connectivity_type": "private",
        })
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_nat_gateway("c", {
                "subnet_id": "${aws_subnet.private_a.id}",
                "connectivity_type": "private",
                "allocation_id": "eipalloc-0a1b2c3d",
            })

        assert excinfo.value.field == "allocation_id"


class TestRoutes:

    def test_route(self, stack):
        route = stack.aws_route("default", {
            "route_table_id": "${aws_route_table.private.id}",
            "destination_cidr_block": "0.0.0.0/0",
            "nat_gateway_id": "${aws_nat_gateway.a.id}",
        })

        assert route.target_type == "nat_gateway"
        assert route.is_default_route is True

    def test_route_needs_exactly_one_target(self, stack):
        with pytest.raises(SchemaError, match="exactly one of"):
            stack.aws_route("default", {
                "route_table_id": "${aws_route_table.private.id}",
                "destination_cidr_block": "0.0.0.0/0",
            })
        with pytest.raises(SchemaError, match=r"\(got 2\)"):
            stack.aws_route("default", {
                "route_table_id": "${aws_route_table.private.id}",
                "destination_cidr_block": "0.0.0.0/0",
                "gateway_id": "${aws_internet_gateway.main.id}",
                "nat_gateway_id": "${aws_nat_gateway.a.id}",
            })

    def test_route_needs_exactly_one_destination(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_route("default", {
                "route_table_id": "${aws_route_table.private.id}",
                "destination_cidr_block": "0.0.0.0/0",
                "destination_ipv6_cidr_block": "::/0",
                "gateway_id": "${aws_internet_gateway.main.id}",
            })

        assert excinfo.value.field == "destination_ipv6_cidr_block"

    def test_route_table(self, stack, document, vpc):
        table = stack.aws_route_table("public", {
            "vpc_id": vpc.id,
            "routes": [
                {"cidr_block": "0.0.0.0/0", "gateway_id": "${aws_internet_gateway.main.id}"},
                {"cidr_block": "10.1.0.0/16", "transit_gateway_id": "tgw-0a1b2c3d"},
            ],
        })

        assert table.route_count == 2
        assert table.has_internet_route is True
        assert document.get_resource("aws_route_table", "public") == {
            "vpc_id": "${aws_vpc.main.id}",
            "route": [
                inline_route(cidr_block="0.0.0.0/0",
                             gateway_id="${aws_internet_gateway.main.id}"),
                inline_route(cidr_block="10.1.0.0/16", transit_gateway_id="tgw-0a1b2c3d"),
            ],
        }

    def test_route_table_routes_carry_every_attribute(self, stack, document, vpc):
        stack.aws_route_table("public", {
            "vpc_id": vpc.id,
            "routes": [{"ipv6_cidr_block": "::/0", "egress_only_gateway_id": "eigw-0a1b2c3d"}],
        })

        route = document.get_resource("aws_route_table", "public")["route"][0]
        assert set(route) == set(ROUTE_KEYS)
        assert route["ipv6_cidr_block"] == "::/0"
        assert route["egress_only_gateway_id"] == "eigw-0a1b2c3d"
        assert route["cidr_block"] == ""
        assert route["core_network_arn"] == ""

    def test_route_table_without_routes(self, stack, document, vpc):
        table = stack.aws_route_table("private", {"vpc_id": vpc.id})

        assert table.route_count == 0
        assert table.has_internet_route is False
        assert document.get_resource("aws_route_table", "private") == {
            "vpc_id": "${aws_vpc.main.id}",
        }

    def test_route_table_route_errors_carry_the_index(self, stack, vpc):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_route_table("public", {
                "vpc_id": vpc.id,
                "routes": [
                    {"cidr_block": "0.0.0.0/0", "gateway_id": "${aws_internet_gateway.main.id}"},
                    {"cidr_block": "10.1.0.0/16"},
                ],
            })

        assert excinfo.value.field.startswith("routes[1]")

    def test_route_table_association(self, stack):
        association = stack.aws_route_table_association("a", {
            "route_table_id": "${aws_route_table.public.id}",
            "subnet_id": "${aws_subnet.a.id}",
        })

        assert association.is_gateway_association is False

    def test_route_table_association_target(self, stack):
        with pytest.raises(SchemaError):
            stack.aws_route_table_association("a", {
                "route_table_id": "${aws_route_table.public.id}",
                "subnet_id": "${aws_subnet.a.id}",
                "gateway_id": "${aws_internet_gateway.main.id}",
            })
