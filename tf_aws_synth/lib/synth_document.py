"""Module to define the SynthesisDocument accumulator.

The document is owned by the caller and passed explicitly to each
TFStack. It mirrors the top-level sections of Terraform JSON:

    {
        "terraform": {"required_providers": {...}},
        "provider": {"aws": {...}},
        "resource": {"aws_vpc": {"main": {...}}},
        "output": {...}
    }
"""
import copy
import json
import logging
from pathlib import Path
from typing import (
    Any,
    Dict,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from tf_aws_synth.lib.errors import DuplicateResourceError

logger = logging.getLogger(__name__)

OVERWRITE = "overwrite"
ERROR = "error"
DUPLICATE_POLICIES = (OVERWRITE, ERROR)


class SynthesisDocument:
    """Accumulate Terraform JSON for one synthesis run."""

    def __init__(self, on_duplicate: str = OVERWRITE) -> None:
        if on_duplicate not in DUPLICATE_POLICIES:
            raise ValueError(
                f"on_duplicate must be one of {DUPLICATE_POLICIES}, "
                f"got {on_duplicate!r}"
            )
        self.on_duplicate = on_duplicate
        self.terraform: Dict[str, Any] = {}
        self.provider: Dict[str, Any] = {}
        self.resource: Dict[str, Dict[str, Any]] = {}
        self.output: Dict[str, Any] = {}

    def __contains__(self, address: str) -> bool:
        resource_type, _, resource_name = address.partition(".")
        return resource_name in self.resource.get(resource_type, {})

    def __len__(self) -> int:
        return sum(len(blocks) for blocks in self.resource.values())

    def check_resource(
        self,
        resource_type: str,
        resource_name: str,
        block: Dict[str, Any]
    ) -> None:
        """Raise DuplicateResourceError if storing block would break the policy."""
        existing = self.get_resource(resource_type, resource_name)
        if existing is not None and existing != block and self.on_duplicate == ERROR:
            raise DuplicateResourceError(
                f"{resource_type}.{resource_name} is already defined "
                "with different attributes"
            )

    def add_resource(
        self,
        resource_type: str,
        resource_name: str,
        block: Dict[str, Any]
    ) -> None:
        """Store block under (type, name); the last write wins."""
        self.check_resource(resource_type, resource_name, block)
        blocks = self.resource.setdefault(resource_type, {})
        existing = blocks.get(resource_name)
        if existing is not None and existing != block:
            logger.warning("Overwriting %s.%s with a different block",
                           resource_type, resource_name)
        blocks[resource_name] = copy.deepcopy(block)

    def add_resources(
        self,
        blocks: Sequence[Tuple[str, str, Dict[str, Any]]]
    ) -> None:
        """Store several (type, name, block) entries, or none of them.

        Every entry is checked against the duplicate policy first.
        """
        for resource_type, resource_name, block in blocks:
            self.check_resource(resource_type, resource_name, block)
        for resource_type, resource_name, block in blocks:
            self.add_resource(resource_type, resource_name, block)

    def get_resource(
        self,
        resource_type: str,
        resource_name: str
    ) -> Optional[Dict[str, Any]]:
        return self.resource.get(resource_type, {}).get(resource_name)

    def require_provider(
        self,
        name: str,
        source: str,
        version: Optional[str] = None
    ) -> None:
        providers = self.terraform.setdefault("required_providers", {})
        providers[name] = {"source": source}
        if version:
            providers[name]["version"] = version

    def set_required_version(self, version: str) -> None:
        self.terraform["required_version"] = version

    def set_provider(self, name: str, **config: Any) -> None:
        self.provider[name] = {k: v for k, v in config.items() if v is not None}

    def add_output(
        self,
        name: str,
        value: Any,
        description: Optional[str] = None,
        sensitive: bool = False
    ) -> None:
        output = {"value": value}
        if description:
            output["description"] = description
        if sensitive:
            output["sensitive"] = True
        self.output[name] = output

    def to_dict(self) -> Dict[str, Any]:
        """Return the document with empty sections dropped."""
        sections = {
            "terraform": self.terraform,
            "provider": self.provider,
            "resource": self.resource,
            "output": self.output,
        }
        return {k: copy.deepcopy(v) for k, v in sections.items() if v}

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def write(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json() + "\n")
        logger.info("Wrote %d resources to %s", len(self), path)
        return path
