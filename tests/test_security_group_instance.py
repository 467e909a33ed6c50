"""Tests for aws_security_group and aws_instance."""

import pytest

from tf_aws_synth.lib.errors import SchemaError

SSH_FROM_ANYWHERE = {
    "from_port": 22,
    "to_port": 22,
    "protocol": "tcp",
    "cidr_blocks": ["0.0.0.0/0"],
}
HTTPS_FROM_VPC = {
    "from_port": 443,
    "to_port": 443,
    "protocol": "tcp",
    "cidr_blocks": ["10.0.0.0/16"],
    "description": "HTTPS from the VPC",
}
ALL_EGRESS = {
    "from_port": 0,
    "to_port": 0,
    "protocol": "-1",
    "cidr_blocks": ["0.0.0.0/0"],
}


class TestSecurityGroup:

    def test_rules_are_written_in_full(self, stack, document, vpc):
        stack.aws_security_group("web", {
            "name": "web",
            "vpc_id": vpc.id,
            "ingress_rules": [SSH_FROM_ANYWHERE],
            "egress_rules": [ALL_EGRESS],
        })

        block = document.get_resource("aws_security_group", "web")
        assert block["description"] == "Managed by Terraform"
        assert block["ingress"] == [{
            "from_port": 22,
            "to_port": 22,
            "protocol": "tcp",
            "cidr_blocks": ["0.0.0.0/0"],
            "ipv6_cidr_blocks": [],
            "prefix_list_ids": [],
            "security_groups": [],
            "self": False,
            "description": "",
        }]
        assert block["egress"][0]["protocol"] == "-1"
        assert "ingress_rules" not in block

    def test_computed_properties(self, stack, vpc):
        group = stack.aws_security_group("web", {
            "vpc_id": vpc.id,
            "ingress_rules": [SSH_FROM_ANYWHERE, HTTPS_FROM_VPC],
            "egress_rules": [ALL_EGRESS],
        })

        assert group.ingress_rule_count == 2
        assert group.egress_rule_count == 1
        assert group.allows_ssh_from_anywhere is True
        assert group.is_open_to_internet is True
        assert group.public_ingress_ports == [(22, 22)]
        assert group.widest_ingress_prefix == 0

    def test_closed_group(self, stack, document, vpc):
        group = stack.aws_security_group("internal", {
            "vpc_id": vpc.id,
            "ingress_rules": [HTTPS_FROM_VPC],
        })

        assert group.allows_ssh_from_anywhere is False
        assert group.is_open_to_internet is False
        assert group.public_ingress_ports == []
        assert group.widest_ingress_prefix == 16
        assert "egress" not in document.get_resource("aws_security_group", "internal")

    def test_all_protocols_cover_ssh(self, stack):
        group = stack.aws_security_group("open", {
            "ingress_rules": [{
                "from_port": 0,
                "to_port": 0,
                "protocol": "-1",
                "ipv6_cidr_blocks": ["::/0"],
            }],
        })

        assert group.allows_ssh_from_anywhere is True

    def test_port_order(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_security_group("web", {
                "ingress_rules": [{"from_port": 443, "to_port": 80, "protocol": "tcp"}],
            })

        assert excinfo.value.message == "from_port (443) cannot be greater than to_port (80)"
        assert excinfo.value.field == "ingress_rules[0].from_port"

    @pytest.mark.parametrize("protocol", ["tcp", "udp", "icmp", "-1", "all", "47"])
    def test_valid_protocols(self, stack, protocol):
        stack.aws_security_group("web", {
            "ingress_rules": [{"from_port": 0, "to_port": 0, "protocol": protocol}],
        })

    def test_invalid_protocol(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_security_group("web", {
                "ingress_rules": [{"from_port": 0, "to_port": 0, "protocol": "gre"}],
            })

        assert excinfo.value.field == "ingress_rules[0].protocol"

    def test_invalid_rule_cidr(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_security_group("web", {
                "ingress_rules": [dict(SSH_FROM_ANYWHERE, cidr_blocks=["10.0.0.1/8"])],
            })

        assert excinfo.value.field == "ingress_rules[0].cidr_blocks[0]"

    def test_port_range(self, stack):
        with pytest.raises(SchemaError):
            stack.aws_security_group("web", {
                "ingress_rules": [dict(SSH_FROM_ANYWHERE, to_port=70000)],
            })

    def test_name_and_name_prefix(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_security_group("web", {"name": "web", "name_prefix": "web-"})

        assert excinfo.value.rule == "exclusive"


INSTANCE = {
    "ami": "ami-0123456789abcdef0",
    "instance_type": "m5.large",
    "subnet_id": "${aws_subnet.private_a.id}",
}


class TestInstance:

    def test_computed_properties(self, stack):
        instance = stack.aws_instance("app", INSTANCE)

        assert instance.compute_family == "m5"
        assert instance.compute_size == "large"
        assert instance.will_have_public_ip is False
        assert instance.estimated_hourly_cost == pytest.approx(0.096)
        assert instance.estimated_monthly_cost == pytest.approx(70.08)
        assert instance.total_storage_gb == 0

    def test_unknown_instance_type_uses_default_price(self, stack):
        instance = stack.aws_instance("app", dict(INSTANCE, instance_type="x9.huge"))

        assert instance.estimated_hourly_cost == pytest.approx(0.10)
        assert instance.estimated_monthly_cost == pytest.approx(73.0)

    def test_public_ip(self, stack):
        instance = stack.aws_instance("bastion", dict(
            INSTANCE, associate_public_ip_address=True
        ))

        assert instance.will_have_public_ip is True

    def test_block_devices(self, stack, document):
        instance = stack.aws_instance("db", dict(INSTANCE, **{
            "root_block_device": {"volume_type": "gp3", "volume_size": 20,
                                  "iops": 3000, "throughput": 250},
            "ebs_block_device": [{"device_name": "/dev/sdf", "volume_size": 100,
                                  "volume_type": "io2", "iops": 5000,
                                  "encrypted": True,
                                  "kms_key_id": "arn:aws:kms:us-east-1:123456789012:key/abc"}],
        }))

        assert instance.total_storage_gb == 120
        block = document.get_resource("aws_instance", "db")
        assert block["root_block_device"] == {
            "volume_type": "gp3",
            "volume_size": 20,
            "iops": 3000,
            "throughput": 250,
            "delete_on_termination": True,
        }
        assert block["ebs_block_device"][0]["device_name"] == "/dev/sdf"

    @pytest.mark.parametrize("device,field", [
        ({"volume_type": "gp2", "iops": 3000}, "root_block_device.iops"),
        ({"volume_type": "io1", "throughput": 250}, "root_block_device.throughput"),
        ({"kms_key_id": "arn:aws:kms:us-east-1:123456789012:key/abc"},
         "root_block_device.kms_key_id"),
        ({"volume_size": 0}, "root_block_device.volume_size"),
    ])
    def test_invalid_root_block_device(self, stack, device, field):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_instance("app", dict(INSTANCE, root_block_device=device))

        assert excinfo.value.field == field

    def test_ebs_block_device_needs_device_name(self, stack):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_instance("app", dict(INSTANCE, ebs_block_device=[{"volume_size": 10}]))

        assert excinfo.value.field == "ebs_block_device[0].device_name"

    def test_user_data_exclusive(self, stack):
        with pytest.raises(SchemaError, match="'user_data' and 'user_data_base64'"):
            stack.aws_instance("app", dict(
                INSTANCE, user_data="#!/bin/sh", user_data_base64="IyEvYmluL3No"
            ))

    def test_availability_zone_implied_by_subnet(self, stack):
        with pytest.raises(SchemaError, match="implied by 'subnet_id'"):
            stack.aws_instance("app", dict(INSTANCE, availability_zone="us-east-1a"))

    @pytest.mark.parametrize("key,value", [
        ("ami", "ami-xyz"),
        ("ami", "image-0123456789abcdef0"),
        ("instance_type", "large"),
    ])
    def test_invalid_identifiers(self, stack, key, value):
        with pytest.raises(SchemaError) as excinfo:
            stack.aws_instance("app", dict(INSTANCE, **{key: value}))

        assert excinfo.value.field == key
