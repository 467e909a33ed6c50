"""Module to render validated attributes into Terraform JSON blocks.

Emission is driven by an explicit, ordered list of EmitRule objects.
Absent fields are left out of the block entirely, never written as null.
The emitter does no validation; it trusts its Attributes input.
"""
import logging
import dataclasses
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
)

from tf_aws_synth.lib.schema import (
    Attributes,
    AttributeSchema,
    thaw,
)

logger = logging.getLogger(__name__)

VALUE = "value"
BLOCK = "block"
BLOCKS = "blocks"
MAP = "map"


@dataclass(frozen=True)
class EmitRule:
    """Data class defining how one field is written to a block."""
    field: str                                  # The validated attribute name.
    key: Optional[str] = None                   # Output key when renamed EG: ingress_rules -> ingress.
    kind: str = VALUE                           # value | block | blocks | map
    transform: Optional[Callable[[Any], Any]] = None  # Reshape the value before writing.
    omit_empty: bool = True                     # Skip empty lists and hashes.
    schema: Optional[AttributeSchema] = dataclasses.field(default=None, compare=False)

    @property
    def output_key(self) -> str:
        return self.key or self.field


def emit_rules_for(schema: AttributeSchema) -> List[EmitRule]:
    """Derive the default rule list from schema field order."""
    rules = []
    for fld in schema.fields:
        if fld.schema is not None:
            rules.append(EmitRule(fld.name, kind=BLOCK, schema=fld.schema))
        elif isinstance(fld.items, AttributeSchema):
            rules.append(EmitRule(fld.name, kind=BLOCKS, schema=fld.items))
        elif fld.kind is dict:
            rules.append(EmitRule(fld.name, kind=MAP))
        else:
            rules.append(EmitRule(fld.name))
    return rules


def _is_empty(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple)) and len(value) == 0


def _render_nested(value: Any, schema: Optional[AttributeSchema]) -> Any:
    if schema is not None and isinstance(value, Attributes):
        return render_block(value, emit_rules_for(schema))
    return thaw(value)


def render_block(
    attrs: Attributes,
    rules: Sequence[EmitRule]
) -> Dict[str, Any]:
    """Render attrs into a plain dict following rules in order."""
    block = {}
    for rule in rules:
        value = attrs.get(rule.field)
        if value is None:
            continue

        if rule.transform is not None:
            value = rule.transform(value)
            if value is None:
                continue
        elif rule.kind == BLOCK:
            value = _render_nested(value, rule.schema)
        elif rule.kind == BLOCKS:
            value = [_render_nested(item, rule.schema) for item in value]
        else:
            value = thaw(value)

        if rule.omit_empty and _is_empty(value):
            continue
        block[rule.output_key] = value
    return block


def emit(
    document,
    resource_type: str,
    resource_name: str,
    attrs: Attributes,
    rules: Sequence[EmitRule]
) -> Dict[str, Any]:
    """Write the rendered block to document.resource[type][name]."""
    block = render_block(attrs, rules)
    document.add_resource(resource_type, resource_name, block)
    logger.debug("Emitted %s.%s with %d keys",
                 resource_type, resource_name, len(block))
    return block
