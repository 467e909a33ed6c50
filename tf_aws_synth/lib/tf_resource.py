"""Module to define TFResource definition."""

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
)

from tf_aws_synth.lib.emitter import (
    EmitRule,
    emit_rules_for,
)
from tf_aws_synth.lib.reference import RESERVED_NAMES
from tf_aws_synth.lib.schema import (
    Attributes,
    AttributeSchema,
)


@dataclass
class TFResourceDef:
    """Data class defining a resource type."""
    type: str                       # noqa: E501 The Terraform resource type EG: aws_vpc
    schema: AttributeSchema         # noqa: E501 The attribute schema callers must satisfy.
    outputs: Sequence[str]          # noqa: E501 Attributes Terraform exports after apply EG: id, arn.
    computed: Dict[str, Callable[[Attributes], Any]] = field(default_factory=dict)  # noqa: E501 Pure functions of the validated attributes.
    emit_rules: Optional[List[EmitRule]] = field(default=None)  # noqa: E501 Ordered serialization rules, derived from the schema if None.
    companions: Optional[Callable[[str, Attributes], List[Tuple[str, str, Dict[str, Any]]]]] = field(default=None)  # noqa: E501 Extra (type, name, attributes) resources created alongside EG: a bucket public access block.

    def __post_init__(self) -> None:
        if self.emit_rules is None:
            self.emit_rules = emit_rules_for(self.schema)
        outputs = list(self.outputs)
        if "id" in outputs:
            outputs.remove("id")
        self.outputs = ["id"] + outputs
        for name in [*self.outputs, *self.computed]:
            if name in RESERVED_NAMES or name.startswith("_"):
                raise ValueError(
                    f"{self.type}: '{name}' is reserved on ResourceReference"
                )

    @property
    def taggable(self) -> bool:
        return "tags" in self.schema
