"""Tests for TFStack and the validate, emit and reference cycle."""

import pytest

from tf_aws_synth.lib.errors import (
    DuplicateResourceError,
    SchemaError,
    UnknownResourceTypeError,
)
from tf_aws_synth.lib.project_classes import (
    AWSProvider,
    SynthProject,
    SynthTarget,
)
from tf_aws_synth.lib.reference import ResourceReference
from tf_aws_synth.lib.schema import (
    AttributeSchema,
    Field,
)
from tf_aws_synth.lib.synth_document import (
    ERROR,
    SynthesisDocument,
)
from tf_aws_synth.lib.tf_classes import (
    TFResource,
    TFStack,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef


def test_resource_returns_reference_and_emits_block(stack, document):
    vpc = stack.resource("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})

    assert isinstance(vpc, ResourceReference)
    assert vpc.id == "${aws_vpc.main.id}"
    assert document.get_resource("aws_vpc", "main") == {
        "cidr_block": "10.0.0.0/16",
        "instance_tenancy": "default",
        "enable_dns_hostnames": True,
        "enable_dns_support": True,
    }


def test_shortcut_methods(stack, vpc):
    subnet = stack.aws_subnet("a", {
        "vpc_id": vpc.id,
        "cidr_block": "10.0.1.0/24",
        "availability_zone": "us-east-1a",
    })

    assert subnet.vpc_id == "${aws_subnet.a.vpc_id}"
    assert subnet.attributes.vpc_id == "${aws_vpc.main.id}"
    assert stack.resources == {"aws_vpc.main": vpc, "aws_subnet.a": subnet}


def test_unknown_attribute_on_stack(stack):
    with pytest.raises(AttributeError):
        stack.gcp_network


@pytest.mark.parametrize("resource_type", ["aws_unicorn", "google_compute_network", "aws_vpc.main"])
def test_unknown_resource_type(stack, document, resource_type):
    with pytest.raises(UnknownResourceTypeError):
        stack.resource(resource_type, "main", {})
    assert len(document) == 0


@pytest.mark.parametrize("name", ["1main", "main.vpc", "", "has space", None])
def test_invalid_resource_names(stack, document, name):
    with pytest.raises(SchemaError) as excinfo:
        stack.aws_vpc(name, {"cidr_block": "10.0.0.0/16"})

    assert excinfo.value.field == "name"
    assert len(document) == 0


@pytest.mark.parametrize("name", ["main", "_private", "web-sg", "public_subnet_0"])
def test_valid_resource_names(stack, name):
    assert stack.aws_vpc(name, {"cidr_block": "10.0.0.0/16"}).tf_name == name


def test_schema_error_leaves_document_untouched(stack, document, vpc):
    before = document.to_dict()
    with pytest.raises(SchemaError):
        stack.aws_subnet("bad", {"vpc_id": vpc.id, "cidr_block": "10.0.1.0/24"})

    assert document.to_dict() == before
    assert "aws_subnet.bad" not in stack.resources


def test_emitting_twice_is_idempotent(stack, document):
    first = stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})
    second = stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})

    assert len(document) == 1
    assert first.id == second.id
    assert first.attributes == second.attributes


def test_last_write_wins(stack, document):
    stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})
    vpc = stack.aws_vpc("main", {"cidr_block": "10.1.0.0/16"})

    assert document.get_resource("aws_vpc", "main")["cidr_block"] == "10.1.0.0/16"
    assert stack.resources["aws_vpc.main"] is vpc


def test_duplicate_policy_comes_from_target():
    stack = TFStack(target=SynthTarget("dev", AWSProvider("us-east-1"), on_duplicate=ERROR))
    stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})

    with pytest.raises(DuplicateResourceError):
        stack.aws_vpc("main", {"cidr_block": "10.1.0.0/16"})


def test_provider_sections_from_target(project_stack, document):
    assert document.to_dict() == {
        "terraform": {
            "required_version": ">= 1.0",
            "required_providers": {
                "aws": {"source": "hashicorp/aws", "version": "~> 5.0"},
            },
        },
        "provider": {"aws": {"region": "us-east-1"}},
    }


def test_target_region_is_validated():
    target = SynthTarget("dev", AWSProvider(region="moon-base-1"))

    with pytest.raises(SchemaError) as excinfo:
        TFStack(target=target)
    assert excinfo.value.field == "provider.region"


def test_default_tags_are_merged_under_caller_tags(project_stack, document):
    project_stack.aws_vpc("main", {
        "cidr_block": "10.0.0.0/16",
        "tags": {"Name": "main", "owner": "network-team"},
    })

    assert document.get_resource("aws_vpc", "main")["tags"] == {
        "owner": "network-team",
        "environment": "dev",
        "Name": "main",
    }


def test_default_tags_apply_without_caller_tags(project_stack):
    vpc = project_stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})

    assert vpc.attributes.tags == {"owner": "platform", "environment": "dev"}


def test_untaggable_resources_get_no_tags(project_stack, document):
    project_stack.aws_route_table_association("a", {
        "route_table_id": "${aws_route_table.main.id}",
        "subnet_id": "${aws_subnet.a.id}",
    })

    assert "tags" not in document.get_resource("aws_route_table_association", "a")


def test_project_without_target_tags():
    project = SynthProject(name="net", targets=[SynthTarget("dev")])

    assert project.default_tags() == {}
    assert project.target().name == "dev"
    with pytest.raises(KeyError):
        project.target("prod")


def test_skipped_targets_are_not_the_default():
    project = SynthProject(
        name="net",
        targets=[SynthTarget("old", skip=True), SynthTarget("new")],
    )

    assert project.target().name == "new"
    assert project.target("old").skip is True


def test_companion_resources_are_emitted(stack, document):
    bucket = stack.aws_s3_bucket("logs", {
        "bucket": "acme-logs",
        "public_access_block_configuration": {
            "block_public_acls": True,
            "block_public_policy": True,
            "ignore_public_acls": True,
            "restrict_public_buckets": True,
        },
    })

    assert "public_access_block_configuration" not in \
        document.get_resource("aws_s3_bucket", "logs")
    assert document.get_resource(
        "aws_s3_bucket_public_access_block", "logs_public_access_block"
    ) == {
        "bucket": "${aws_s3_bucket.logs.id}",
        "block_public_acls": True,
        "block_public_policy": True,
        "ignore_public_acls": True,
        "restrict_public_buckets": True,
    }
    companion = stack.resources["aws_s3_bucket_public_access_block.logs_public_access_block"]
    assert companion.fully_blocked is True
    assert bucket.public_access_blocked is True


def test_failed_companion_owner_emits_nothing(stack, document):
    with pytest.raises(SchemaError):
        stack.aws_s3_bucket("logs", {
            "bucket": "acme-logs",
            "public_access_block_configuration": {"block_public_acls": True},
            "object_lock_configuration": {"object_lock_enabled": "Enabled"},
        })

    assert len(document) == 0
    assert stack.resources == {}


def test_output(stack, document, vpc):
    stack.output("vpc_id", vpc.id, description="Main VPC")

    assert document.output == {
        "vpc_id": {"value": "${aws_vpc.main.id}", "description": "Main VPC"},
    }


def test_outputs_named_like_metadata_resolve_to_interpolations(stack):
    queue = stack.aws_sqs_queue("events", {"name": "events-queue"})

    assert queue.name == "${aws_sqs_queue.events.name}"
    assert queue["name"] == queue.name
    assert queue.tf_type == "aws_sqs_queue"
    assert queue.tf_name == "events"
    assert queue.address == "aws_sqs_queue.events"


def test_failing_computed_property_writes_nothing(stack, document):
    tf_def = TFResourceDef(
        type="aws_thing",
        schema=AttributeSchema("aws_thing", fields=[Field("name")]),
        outputs=["id"],
        computed={"ratio": lambda attrs: 1 / len(attrs.name)},
    )

    with pytest.raises(ZeroDivisionError):
        TFResource(scope=stack, tf_def=tf_def, name="main", attributes={"name": ""})
    assert len(document) == 0


def test_reserved_output_names_are_rejected():
    with pytest.raises(ValueError, match="'keys' is reserved"):
        TFResourceDef(
            type="aws_thing",
            schema=AttributeSchema("aws_thing", fields=[Field("name")]),
            outputs=["id", "keys"],
        )


def test_conflicting_companion_leaves_owner_unwritten():
    document = SynthesisDocument(on_duplicate=ERROR)
    stack = TFStack(document)
    stack.aws_s3_bucket_public_access_block("logs_public_access_block", {
        "bucket": "other-bucket",
        "block_public_acls": False,
    })

    with pytest.raises(DuplicateResourceError):
        stack.aws_s3_bucket("logs", {
            "bucket": "acme-logs",
            "public_access_block_configuration": {"block_public_acls": True},
        })
    assert "aws_s3_bucket.logs" not in document
    assert "aws_s3_bucket.logs" not in stack.resources
    assert document.get_resource(
        "aws_s3_bucket_public_access_block", "logs_public_access_block"
    )["bucket"] == "other-bucket"
