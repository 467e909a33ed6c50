"""Module to define ResourceReference and the interpolation helpers."""

from collections.abc import Mapping
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    Sequence,
)

from tf_aws_synth.lib.schema import Attributes


def interpolate(resource_type: str, resource_name: str, attribute: str) -> str:
    """Return ${type.name.attribute} for a not yet created resource.

    EG: interpolate("aws_vpc", "main", "id") equates to "${aws_vpc.main.id}"
    """
    return "${%s.%s.%s}" % (resource_type, resource_name, attribute)


class ResourceReference(Mapping):
    """Read-only handle returned by every resource constructor.

    Maps output names to interpolation strings and computed property
    names to the values derived from the validated attributes. Outputs
    take precedence over computed properties of the same name. Output
    and computed names resolve as attributes, EG: queue.name, so the
    resource's own type and name are kept under tf_type and tf_name.
    """

    def __init__(
        self,
        tf_type: str,
        tf_name: str,
        attributes: Attributes,
        outputs: Dict[str, str],
        computed: Dict[str, Any],
    ) -> None:
        self._type = tf_type
        self._name = tf_name
        self._attributes = attributes
        self._outputs = dict(outputs)
        self._computed = dict(computed)
        self._values = {**self._computed, **self._outputs}

    @property
    def tf_type(self) -> str:
        return self._type

    @property
    def tf_name(self) -> str:
        return self._name

    @property
    def address(self) -> str:
        return f"{self._type}.{self._name}"

    @property
    def attributes(self) -> Attributes:
        return self._attributes

    @property
    def outputs(self) -> Dict[str, str]:
        return dict(self._outputs)

    @property
    def computed(self) -> Dict[str, Any]:
        return dict(self._computed)

    def ref(self, attribute: str) -> str:
        """Interpolate any attribute, including ones not listed in outputs."""
        return interpolate(self._type, self._name, attribute)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(
                f"{self.address} has no output or computed property '{name}'"
            ) from None

    def __str__(self) -> str:
        return self._outputs.get("id", self.ref("id"))

    def __repr__(self) -> str:
        return f"ResourceReference({self.address})"


def build_reference(
    resource_type: str,
    resource_name: str,
    attrs: Attributes,
    outputs: Sequence[str],
    computed: Dict[str, Callable[[Attributes], Any]],
) -> ResourceReference:
    """Build the reference object for a validated resource."""
    return ResourceReference(
        tf_type=resource_type,
        tf_name=resource_name,
        attributes=attrs,
        outputs={
            output: interpolate(resource_type, resource_name, output)
            for output in outputs
        },
        computed={name: func(attrs) for name, func in computed.items()},
    )


RESERVED_NAMES = frozenset(dir(ResourceReference))
