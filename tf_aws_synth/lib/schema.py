"""Module to define attribute schemas and the validation engine.

An AttributeSchema is an ordered list of Field definitions plus a list
of cross-field rules. Each schema is compiled into a frozen pydantic
model; validate() turns a loosely typed attribute bag into an instance
of that model or raises SchemaError on the first violated constraint.

EG: schema = AttributeSchema("aws_vpc", fields=[
        Field("cidr_block", required=True, check=cidr_block(16, 28)),
        Field("enable_dns_support", kind=bool, default=True),
    ])
    schema.validate({"cidr_block": "10.0.0.0/16"}).enable_dns_support
    equates to: True
"""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Literal,
    Optional,
    Sequence,
    Tuple,
    Type,
)

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    StrictBool,
    ValidationError,
    confloat,
    conint,
    constr,
    create_model,
    field_validator,
    model_validator,
)
from pydantic import Field as ModelField

from tf_aws_synth.lib.errors import SchemaError


class _Sentinel:
    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


MISSING = _Sentinel("MISSING")
ANY = _Sentinel("ANY")

# pydantic error type -> the kind name used in "expected ..." messages
ERROR_KINDS = {
    "string_type": "string",
    "int_type": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "dict_type": "hash",
    "model_type": "hash",
    "tuple_type": "list",
    "list_type": "list",
}

# pydantic error type -> (message template, rule id)
ERROR_MESSAGES = {
    "missing": ("missing required attribute", "required"),
    "literal_error": ("{input!r} is not valid; must be one of {expected}", "choices"),
    "greater_than_equal": ("{input} is below the minimum of {ge}", "range"),
    "less_than_equal": ("{input} is above the maximum of {le}", "range"),
    "string_too_short": ("must be at least {min_length} characters", "length"),
    "string_too_long": ("must be at most {max_length} characters", "length"),
    "string_pattern_mismatch": ("{input!r} does not match the required format", "format"),
    "too_short": ("must contain at least {min_length} item(s)", "length"),
    "too_long": ("must contain at most {max_length} item(s)", "length"),
}

Rule = Callable[["Attributes"], None]


class Attributes(BaseModel):
    """Base class of every compiled schema model.

    Declared fields that were not supplied read as None, EG: attrs.kms_key_id.
    Instances are frozen; nested hashes are models and lists are tuples.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        validate_default=True,
        regex_engine="python-re",
        protected_namespaces=(),
    )

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field value, or default when it is unset or undeclared."""
        if name not in type(self).model_fields:
            return default
        value = getattr(self, name)
        return default if value is None else value

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain, mutable deep copy without the unset fields."""
        return thaw(self)


RESERVED_NAMES = frozenset(dir(Attributes))


def thaw(value: Any) -> Any:
    """Convert Attributes and tuples back into dicts and lists."""
    if isinstance(value, Attributes):
        return {
            name: thaw(getattr(value, name))
            for name in type(value).model_fields
            if getattr(value, name) is not None
        }
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class Field:
    """Data class defining one typed attribute."""

    name: str
    kind: type = str
    required: bool = False
    default: Any = MISSING
    default_factory: Optional[Callable[[Dict[str, Any]], Any]] = None
    choices: Optional[Tuple[Any, ...]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    check: Optional[Callable[[Any], None]] = None
    schema: Optional["AttributeSchema"] = None
    items: Any = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None


class AttributeSchema:
    """A named, ordered field list plus cross-field rules."""

    def __init__(
        self,
        name: str,
        fields: Sequence[Field],
        rules: Sequence[Rule] = ()
    ) -> None:
        self.name = name
        self.fields = tuple(fields)
        self.rules = tuple(rules)
        self._by_name = {}
        self._model = None
        for fld in self.fields:
            if fld.name in self._by_name:
                raise ValueError(f"{name}: field '{fld.name}' declared twice")
            if fld.name in RESERVED_NAMES or fld.name.startswith("_"):
                raise ValueError(f"{name}: field name '{fld.name}' is reserved")
            self._by_name[fld.name] = fld

    def __repr__(self) -> str:
        return f"AttributeSchema({self.name!r})"

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(fld.name for fld in self.fields)

    def field(self, name: str) -> Field:
        return self._by_name[name]

    @property
    def model(self) -> Type[Attributes]:
        """The pydantic model compiled from this schema, built on first use."""
        if self._model is None:
            self._model = _build_model(self)
        return self._model

    def extend(
        self,
        name: str,
        fields: Sequence[Field] = (),
        rules: Sequence[Rule] = ()
    ) -> "AttributeSchema":
        """Return a new schema with extra fields and rules appended."""
        return AttributeSchema(
            name,
            self.fields + tuple(fields),
            self.rules + tuple(rules)
        )

    def validate(self, raw: Optional[Mapping]) -> Attributes:
        """Validate raw against this schema, failing on the first error."""
        try:
            return self.model.model_validate({} if raw is None else raw)
        except ValidationError as error:
            raise _schema_error(self, error) from None

    def prepare(self, raw: Any) -> Dict[str, Any]:
        """Normalize keys, drop None values and apply computed defaults.

        Default factories receive the prepared input, EG: a FIFO queue
        gets deduplication_scope "queue" when fifo_queue is true.
        """
        if isinstance(raw, Attributes):
            raw = raw.to_dict()
        data = {
            key: value
            for key, value in _normalize_keys(raw).items()
            if value is not None
        }
        for fld in self.fields:
            if fld.name not in data and fld.default_factory is not None:
                value = fld.default_factory(data)
                if value is not None:
                    data[fld.name] = value
        return data


def validate(schema: AttributeSchema, raw: Optional[Mapping]) -> Attributes:
    """Validate an attribute bag against schema."""
    return schema.validate(raw)


def _normalize_keys(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise SchemaError(
            f"expected hash, got {type(raw).__name__}",
            rule="type"
        )
    normalized = {}
    for key, value in raw.items():
        if isinstance(key, Enum):
            key = key.value
        if not isinstance(key, str):
            raise SchemaError(
                f"attribute names must be strings, got {key!r}",
                rule="type"
            )
        normalized[key] = value
    return normalized


def _base_annotation(fld: Field) -> Any:
    """Map a Field's kind and constraints onto a pydantic type."""
    if fld.choices is not None:
        return Literal[tuple(fld.choices)]
    if fld.kind is str:
        return constr(
            strict=True,
            min_length=fld.min_length,
            max_length=fld.max_length,
            pattern=None if fld.pattern is None else rf"^(?:{fld.pattern})\Z",
        )
    if fld.kind is bool:
        return StrictBool
    if fld.kind is int:
        return conint(strict=True, ge=fld.min_value, le=fld.max_value)
    if fld.kind is float:
        return confloat(strict=True, ge=fld.min_value, le=fld.max_value)
    if fld.kind is dict:
        return Dict[str, Any] if fld.schema is None else fld.schema.model
    if fld.kind is list:
        return Annotated[
            Tuple[_item_annotation(fld.items), ...],
            ModelField(min_length=fld.min_items, max_length=fld.max_items),
        ]
    return fld.kind


def _item_annotation(items: Any) -> Any:
    if items is None:
        return Any
    if isinstance(items, AttributeSchema):
        return items.model
    if isinstance(items, Field):
        annotation = _base_annotation(items)
        if items.check is not None:
            annotation = Annotated[annotation, AfterValidator(_checker(items.check))]
        return annotation
    return _base_annotation(Field("item", kind=items))


def _checker(check: Callable[[Any], None]) -> Callable[[Any], Any]:
    def run_check(value: Any) -> Any:
        if value is not None:
            check(value)
        return value
    return run_check


def _field_check(check: Callable[[Any], None]) -> Callable[..., Any]:
    def check_field(cls, value: Any) -> Any:
        if value is not None:
            check(value)
        return value
    return check_field


def _field_definition(fld: Field) -> Tuple[Any, Any]:
    annotation = _base_annotation(fld)
    if fld.default is not MISSING:
        return (annotation, ModelField(default=fld.default))
    if fld.required and fld.default_factory is None:
        return (annotation, ...)
    return (Optional[annotation], ModelField(default=None))


def _build_model(schema: AttributeSchema) -> Type[Attributes]:
    """Compile schema into a pydantic model.

    Field checks become field validators, cross-field rules run in an
    after-model validator once every field has passed.
    """
    def prepare(cls, data: Any) -> Dict[str, Any]:
        return schema.prepare(data)

    def check_rules(self: Attributes) -> Attributes:
        for rule in schema.rules:
            rule(self)
        return self

    validators = {
        "prepare_input": model_validator(mode="before")(prepare),
        "check_rules": model_validator(mode="after")(check_rules),
    }
    for fld in schema.fields:
        if fld.check is not None:
            validators[f"check_{fld.name}"] = field_validator(fld.name)(
                _field_check(fld.check)
            )

    return create_model(
        schema.name,
        __base__=Attributes,
        __validators__=validators,
        **{fld.name: _field_definition(fld) for fld in schema.fields}
    )


def _error_path(loc: Sequence[Any]) -> str:
    """EG: ("routes", 0, "cidr_block") equates to "routes[0].cidr_block"."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _owning_schema(schema: AttributeSchema, loc: Sequence[Any]) -> AttributeSchema:
    """Follow loc through nested schemas to the one holding its last name."""
    for part in loc[:-1]:
        if isinstance(part, str) and part in schema:
            fld = schema.field(part)
            nested = fld.schema or fld.items
            if isinstance(nested, AttributeSchema):
                schema = nested
    return schema


def _schema_error(schema: AttributeSchema, error: ValidationError) -> SchemaError:
    """Translate the first pydantic error into a SchemaError.

    Unknown attributes are reported ahead of everything else.
    """
    errors = error.errors()
    detail = next(
        (e for e in errors if e["type"] == "extra_forbidden"),
        errors[0]
    )
    loc = detail["loc"]
    path = _error_path(loc) or None
    error_type = detail["type"]
    ctx = detail.get("ctx") or {}
    value = detail.get("input")

    if isinstance(ctx.get("error"), SchemaError):
        original = ctx["error"]
        return original.nested(path) if path else original
    if error_type == "extra_forbidden":
        owner = _owning_schema(schema, loc)
        return SchemaError(f"unknown attribute for {owner.name}",
                           field=path, rule="unknown")
    if error_type in ERROR_KINDS:
        return SchemaError(
            f"expected {ERROR_KINDS[error_type]}, got {type(value).__name__}",
            field=path,
            rule="type"
        )
    if error_type in ERROR_MESSAGES:
        template, rule = ERROR_MESSAGES[error_type]
        return SchemaError(template.format(input=value, **ctx),
                           field=path, rule=rule)
    return SchemaError(detail["msg"], field=path, rule="invalid")


def _is_set(value: Any) -> bool:
    return value is not None and value is not False


def mutually_exclusive(
    first: str,
    second: str,
    message: Optional[str] = None
) -> Rule:
    """Reject attribute bags that set both fields."""
    def rule(attrs: Attributes) -> None:
        if _is_set(attrs.get(first)) and _is_set(attrs.get(second)):
            raise SchemaError(
                message or f"cannot specify both '{first}' and '{second}'",
                field=first,
                rule="exclusive"
            )
    return rule


def exactly_one_of(*names: str, message: Optional[str] = None) -> Rule:
    """Require exactly one of names, not both and not neither."""
    def rule(attrs: Attributes) -> None:
        given = [n for n in names if _is_set(attrs.get(n))]
        if len(given) != 1:
            choices = ", ".join(f"'{n}'" for n in names)
            raise SchemaError(
                message or f"must specify exactly one of {choices}"
                f" (got {len(given)})",
                field=given[1] if len(given) > 1 else names[0],
                rule="exclusive"
            )
    return rule


def at_least_one_of(*names: str, message: Optional[str] = None) -> Rule:
    """Require one or more of names."""
    def rule(attrs: Attributes) -> None:
        if not any(_is_set(attrs.get(n)) for n in names):
            choices = ", ".join(f"'{n}'" for n in names)
            raise SchemaError(
                message or f"must specify at least one of {choices}",
                field=names[0],
                rule="required"
            )
    return rule


def required_with(
    name: str,
    trigger: str,
    value: Any = ANY,
    message: Optional[str] = None
) -> Rule:
    """Require name when trigger is set, or set to value."""
    def rule(attrs: Attributes) -> None:
        current = attrs.get(trigger)
        if value is ANY:
            triggered = _is_set(current)
            condition = f"'{trigger}' is set"
        else:
            triggered = current == value
            condition = f"'{trigger}' is {value!r}"
        if triggered and attrs.get(name) is None:
            raise SchemaError(
                message or f"'{name}' is required when {condition}",
                field=name,
                rule="conditional"
            )
    return rule


def forbidden_unless(
    name: str,
    trigger: str,
    value: Any = ANY,
    message: Optional[str] = None
) -> Rule:
    """Reject name unless trigger is set, or set to value."""
    def rule(attrs: Attributes) -> None:
        current = attrs.get(trigger)
        if value is ANY:
            allowed = _is_set(current)
            condition = f"'{trigger}' is set"
        else:
            allowed = current == value
            condition = f"'{trigger}' is {value!r}"
        if _is_set(attrs.get(name)) and not allowed:
            raise SchemaError(
                message or f"'{name}' is only valid when {condition}",
                field=name,
                rule="conditional"
            )
    return rule
