"""Shared fixtures for the tf_aws_synth test suite."""

import logging

import pytest

from tf_aws_synth.lib.project_classes import (
    AWSProvider,
    SynthProject,
    SynthTarget,
    Tag,
)
from tf_aws_synth.lib.synth_document import SynthesisDocument
from tf_aws_synth.lib.tf_classes import TFStack


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees records from every test."""
    yield
    logger = logging.getLogger("tf_aws_synth")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def document():
    return SynthesisDocument()


@pytest.fixture
def stack(document):
    """A stack with no project or target, so no default tags or provider."""
    return TFStack(document)


@pytest.fixture
def project():
    return SynthProject(
        name="network",
        targets=[
            SynthTarget(
                name="dev",
                provider=AWSProvider(region="us-east-1"),
                tags=[Tag("environment", "dev")],
            ),
        ],
        tags=[Tag("owner", "platform"), Tag("environment", "base")],
    )


@pytest.fixture
def project_stack(document, project):
    return TFStack(document, project=project, target=project.target("dev"))


@pytest.fixture
def vpc(stack):
    return stack.aws_vpc("main", {"cidr_block": "10.0.0.0/16"})
