"""Module to define the synthesis project configuration structures."""

from dataclasses import dataclass, field
from typing import (
    Dict,
    List,
    Optional,
)

from tf_aws_synth.lib.synth_document import OVERWRITE


@dataclass
class Tag:
    """Define AWS Tag structure."""

    key: str
    value: str


@dataclass
class AWSProvider:
    """Define AWS provider structure."""

    region: str = field(default="ap-southeast-2")
    profile: Optional[str] = field(default=None)
    source: str = field(default="hashicorp/aws")
    version: str = field(default="~> 5.0")


@dataclass
class SynthTarget:
    """Define a target environment that gets its own document."""

    name: str
    provider: AWSProvider = field(default_factory=AWSProvider)
    tags: List[Tag] = field(default_factory=list)
    on_duplicate: str = field(default=OVERWRITE)
    skip: bool = field(default=False)


@dataclass
class SynthProject:
    """Define SynthProject structure."""

    name: str
    targets: List[SynthTarget]
    tags: List[Tag] = field(default_factory=list)
    terraform_version: str = field(default=">= 1.0")

    def target(self, name: Optional[str] = None) -> SynthTarget:
        """Return the named target, or the first one that isn't skipped."""
        for target in self.targets:
            if name is None and not target.skip:
                return target
            if target.name == name:
                return target
        raise KeyError(name)

    def default_tags(self, target: Optional[SynthTarget] = None) -> Dict[str, str]:
        """Project tags overlaid with target tags."""
        tags = self.tags + (target.tags if target else [])
        return {tag.key: tag.value for tag in tags}
