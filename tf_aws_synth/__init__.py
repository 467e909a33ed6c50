"""Declarative AWS resource constructors that emit Terraform JSON."""

from tf_aws_synth.lib.errors import (
    ConfigError,
    DuplicateResourceError,
    SchemaError,
    SynthesisError,
    UnknownResourceTypeError,
)
from tf_aws_synth.lib.reference import ResourceReference
from tf_aws_synth.lib.synth_document import SynthesisDocument
from tf_aws_synth.lib.tf_classes import TFStack

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DuplicateResourceError",
    "ResourceReference",
    "SchemaError",
    "SynthesisDocument",
    "SynthesisError",
    "TFStack",
    "UnknownResourceTypeError",
]
