"""Tests for the transit gateway resources."""

import pytest

from tf_aws_synth.lib.errors import SchemaError


@pytest.fixture
def tgw(stack):
    return stack.aws_ec2_transit_gateway("core", {"description": "Core"})


@pytest.fixture
def attachment_attributes(tgw):
    return {
        "transit_gateway_id": tgw.id,
        "vpc_id": "${aws_vpc.shared.id}",
        "subnet_ids": ["${aws_subnet.a.id}", "${aws_subnet.b.id}"],
    }


class TestTransitGateway:

    def test_defaults(self, tgw, document):
        assert document.get_resource("aws_ec2_transit_gateway", "core") == {
            "description": "Core",
            "auto_accept_shared_attachments": "disable",
            "default_route_table_association": "enable",
            "default_route_table_propagation": "enable",
            "dns_support": "enable",
            "vpn_ecmp_support": "enable",
        }
        assert tgw.is_auto_accept is False
        assert tgw.uses_default_route_tables is True
        assert tgw.estimated_monthly_cost == 0.0
        assert tgw.association_default_route_table_id == \
            "${aws_ec2_transit_gateway.core.association_default_route_table_id}"

    @pytest.mark.parametrize("asn", [64512, 65534, 4200000000, 4294967294])
    def test_private_asn(self, stack, asn):
        stack.aws_ec2_transit_gateway("core", {"amazon_side_asn": asn})

    @pytest.mark.parametrize("asn", [64511, 65535, 4199999999])
    def test_public_asn_rejected(self, stack, asn):
        with pytest.raises(SchemaError, match=f"amazon_side_asn {asn} must be in") as excinfo:
            stack.aws_ec2_transit_gateway("core", {"amazon_side_asn": asn})

        assert excinfo.value.field == "amazon_side_asn"

    def test_switch_values(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_ec2_transit_gateway("core", {"dns_support": "on"})

        assert excinfo.value.rule == "choices"

    def test_custom_route_tables(self, stack):
        tgw = stack.aws_ec2_transit_gateway("core", {
            "auto_accept_shared_attachments": "enable",
            "default_route_table_association": "disable",
        })

        assert tgw.is_auto_accept is True
        assert tgw.uses_default_route_tables is False


class TestVpcAttachment:

    def test_attachment(self, stack, attachment_attributes):
        attachment = stack.aws_ec2_transit_gateway_vpc_attachment(
            "shared", attachment_attributes
        )

        assert attachment.is_highly_available is True
        assert attachment.availability_zones_count == 2
        assert attachment.supports_appliance_mode_inspection is False
        assert attachment.routing_pattern == "full_mesh"
        assert attachment.estimated_monthly_cost == pytest.approx(36.5)

    def test_needs_a_subnet(self, stack, attachment_attributes):
        with pytest.raises(SchemaError, match="at least 1 item") as excinfo:
            stack.aws_ec2_transit_gateway_vpc_attachment(
                "shared", dict(attachment_attributes, subnet_ids=[])
            )

        assert excinfo.value.field == "subnet_ids"

    def test_subnet_ids_are_checked(self, stack, attachment_attributes):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_ec2_transit_gateway_vpc_attachment(
                "shared", dict(attachment_attributes, subnet_ids=["vpc-0a1b2c3d"])
            )

        assert excinfo.value.field == "subnet_ids[0]"

    @pytest.mark.parametrize("associate,propagate,pattern", [
        (None, None, "full_mesh"),
        (True, True, "full_mesh"),
        (True, False, "hub_and_spoke_receiver"),
        (False, True, "hub_and_spoke_sender"),
        (False, None, "hub_and_spoke_sender"),
        (False, False, "isolated"),
    ])
    def test_routing_pattern(self, stack, attachment_attributes, associate, propagate, pattern):
        attachment = stack.aws_ec2_transit_gateway_vpc_attachment("shared", dict(
            attachment_attributes,
            subnet_ids=["${aws_subnet.a.id}"],
            appliance_mode_support="enable",
            transit_gateway_default_route_table_association=associate,
            transit_gateway_default_route_table_propagation=propagate,
        ))

        assert attachment.routing_pattern == pattern
        assert attachment.is_highly_available is False
        assert attachment.supports_appliance_mode_inspection is True


class TestRouteTables:

    def test_route_table(self, stack, document, tgw):
        table = stack.aws_ec2_transit_gateway_route_table("egress", {
            "transit_gateway_id": tgw.id,
        })

        assert table.id == "${aws_ec2_transit_gateway_route_table.egress.id}"
        assert table.computed == {}
        assert document.get_resource("aws_ec2_transit_gateway_route_table", "egress") == {
            "transit_gateway_id": "${aws_ec2_transit_gateway.core.id}",
        }

    def test_route_table_needs_gateway(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_ec2_transit_gateway_route_table("egress", {})

        assert excinfo.value.field == "transit_gateway_id"

    def test_association(self, stack):
        association = stack.aws_ec2_transit_gateway_route_table_association("shared", {
            "transit_gateway_attachment_id": "tgw-attach-0a1b2c3d4e5f6a7b8",
            "transit_gateway_route_table_id": "tgw-rtb-0a1b2c3d4e5f6a7b8",
            "replace_existing_association": True,
        })

        assert association.replaces_default_association is True

    def test_association_ids(self, stack):
        with pytest.raises(SchemaError, match="tgw-rtb-xxxxxxxx"):
            stack.aws_ec2_transit_gateway_route_table_association("shared", {
                "transit_gateway_attachment_id": "tgw-attach-0a1b2c3d",
                "transit_gateway_route_table_id": "rtb-0a1b2c3d",
            })


class TestTransitGatewayRoute:

    def test_route_to_attachment(self, stack):
        route = stack.aws_ec2_transit_gateway_route("default", {
            "destination_cidr_block": "0.0.0.0/0",
            "transit_gateway_route_table_id": "${aws_ec2_transit_gateway_route_table.egress.id}",
            "transit_gateway_attachment_id": "${aws_ec2_transit_gateway_vpc_attachment.shared.id}",
        })

        assert route.is_blackhole is False
        assert route.is_default_route is True

    def test_blackhole_route(self, stack, document):
        route = stack.aws_ec2_transit_gateway_route("drop", {
            "destination_cidr_block": "10.0.0.0/8",
            "transit_gateway_route_table_id": "${aws_ec2_transit_gateway_route_table.egress.id}",
            "blackhole": True,
        })

        assert route.is_blackhole is True
        assert route.is_default_route is False
        assert document.get_resource("aws_ec2_transit_gateway_route", "drop")["blackhole"] is True

    @pytest.mark.parametrize("target", [
        {},
        {"blackhole": False},
        {"blackhole": True,
         "transit_gateway_attachment_id": "${aws_ec2_transit_gateway_vpc_attachment.shared.id}"},
    ])
    def test_attachment_or_blackhole(self, stack, target):
        with pytest.raises(SchemaError, match="either 'transit_gateway_attachment_id' or 'blackhole'"):
            stack.aws_ec2_transit_gateway_route("default", {
                "destination_cidr_block": "0.0.0.0/0",
                "transit_gateway_route_table_id": "${aws_ec2_transit_gateway_route_table.egress.id}",
                **target,
            })

    def test_destination_cidr(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_ec2_transit_gateway_route("default", {
                "destination_cidr_block": "10.0.0.1/8",
                "transit_gateway_route_table_id": "${aws_ec2_transit_gateway_route_table.egress.id}",
                "blackhole": True,
            })

        assert excinfo.value.field == "destination_cidr_block"
