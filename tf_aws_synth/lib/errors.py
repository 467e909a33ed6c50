"""Module to define the errors raised while synthesizing resources."""

from typing import Optional


class SynthesisError(Exception):
    """Base class for every error raised by tf_aws_synth."""


class SchemaError(SynthesisError, ValueError):
    """An attribute bag violated its resource schema.

    Raised on the first violated rule; validation never collects
    more than one error.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        rule: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.rule = rule

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message

    def nested(self, prefix: str) -> "SchemaError":
        """Return a copy whose field path is qualified by prefix."""
        field = f"{prefix}.{self.field}" if self.field else prefix
        return SchemaError(self.message, field=field, rule=self.rule)


class DuplicateResourceError(SynthesisError):
    """A different block was written under an existing (type, name)."""


class UnknownResourceTypeError(SynthesisError):
    """No resource definition exists for the requested Terraform type."""


class ConfigError(SynthesisError):
    """A synthesis definition file is missing keys or is malformed."""
