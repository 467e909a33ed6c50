"""Module to load synthesis definitions from YAML.

A definition file names the project, its targets and the resources
to create:

    project: network
    tags:
      owner: platform
    targets:
      - name: dev
        region: us-east-1
        tags:
          environment: dev
    compositions:
      - type: vpc_with_subnets
        name: app
        attributes:
          vpc_cidr: 10.0.0.0/16
          availability_zones: [us-east-1a, us-east-1b]
    resources:
      - type: aws_security_group
        name: web
        attributes:
          vpc_id: ref:aws_vpc.app_vpc

Compositions run first, then resources, each in file order. A string
"ref:<type>.<name>[.<attribute>]" becomes the interpolation for a resource
created earlier in the run; the attribute defaults to id.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Union,
)

import yaml

from tf_aws_synth.compositions import COMPOSITIONS
from tf_aws_synth.lib.errors import ConfigError
from tf_aws_synth.lib.project_classes import (
    AWSProvider,
    SynthProject,
    SynthTarget,
    Tag,
)
from tf_aws_synth.lib.synth_document import (
    DUPLICATE_POLICIES,
    OVERWRITE,
    SynthesisDocument,
)
from tf_aws_synth.lib.tf_classes import TFStack

logger = logging.getLogger(__name__)

REF_PREFIX = "ref:"


@dataclass
class ResourceSpec:
    """Define one resource or composition entry of a definition file."""

    type: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SynthDefinition:
    """Define a parsed definition file."""

    project: SynthProject
    resources: List[ResourceSpec] = field(default_factory=list)
    compositions: List[ResourceSpec] = field(default_factory=list)


def _require(data: Mapping, key: str, where: str) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")
    if data.get(key) is None:
        raise ConfigError(f"{where}: missing required key '{key}'")
    return data[key]


def _tags(value: Any, where: str) -> List[Tag]:
    """Accept tags as a mapping or as a list of {key, value} items."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [Tag(str(k), str(v)) for k, v in value.items()]
    if isinstance(value, list):
        return [
            Tag(str(_require(item, "key", f"{where}[{n}]")),
                str(_require(item, "value", f"{where}[{n}]")))
            for n, item in enumerate(value)
        ]
    raise ConfigError(f"{where}: tags must be a mapping or a list")


def _target(data: Mapping, where: str) -> SynthTarget:
    on_duplicate = data.get("on_duplicate", OVERWRITE)
    if on_duplicate not in DUPLICATE_POLICIES:
        raise ConfigError(
            f"{where}.on_duplicate: must be one of "
            f"{', '.join(DUPLICATE_POLICIES)}, got {on_duplicate!r}"
        )
    provider = AWSProvider(region=_require(data, "region", where))
    if data.get("profile"):
        provider.profile = data["profile"]
    if data.get("provider_version"):
        provider.version = data["provider_version"]
    return SynthTarget(
        name=str(_require(data, "name", where)),
        provider=provider,
        tags=_tags(data.get("tags"), f"{where}.tags"),
        on_duplicate=on_duplicate,
        skip=bool(data.get("skip", False)),
    )


def _specs(items: Any, where: str) -> List[ResourceSpec]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ConfigError(f"{where}: expected a list")
    specs = []
    for n, item in enumerate(items):
        item_where = f"{where}[{n}]"
        attributes = item.get("attributes") if isinstance(item, Mapping) else None
        if attributes is not None and not isinstance(attributes, Mapping):
            raise ConfigError(f"{item_where}.attributes: expected a mapping")
        specs.append(ResourceSpec(
            type=str(_require(item, "type", item_where)),
            name=str(_require(item, "name", item_where)),
            attributes=dict(attributes or {}),
        ))
    return specs


def parse_definition(data: Any) -> SynthDefinition:
    """Build a SynthDefinition from already loaded YAML data."""
    if not isinstance(data, Mapping):
        raise ConfigError("definition must be a mapping at the top level")
    targets = _require(data, "targets", "definition")
    if not isinstance(targets, list) or not targets:
        raise ConfigError("definition.targets: expected a non-empty list")
    project = SynthProject(
        name=str(_require(data, "project", "definition")),
        targets=[
            _target(target, f"targets[{n}]") for n, target in enumerate(targets)
        ],
        tags=_tags(data.get("tags"), "tags"),
    )
    if data.get("terraform_version"):
        project.terraform_version = data["terraform_version"]
    definition = SynthDefinition(
        project=project,
        resources=_specs(data.get("resources"), "resources"),
        compositions=_specs(data.get("compositions"), "compositions"),
    )
    for spec in definition.compositions:
        if spec.type not in COMPOSITIONS:
            raise ConfigError(
                f"unknown composition type {spec.type!r}; expected one of "
                f"{', '.join(sorted(COMPOSITIONS))}"
            )
    return definition


def load_definition(path: Union[str, Path]) -> SynthDefinition:
    """Read and parse a YAML definition file."""
    path = Path(path)
    try:
        with path.open() as fp:
            data = yaml.safe_load(fp)
    except OSError as error:
        raise ConfigError(f"cannot read {path}: {error.strerror}") from error
    except yaml.YAMLError as error:
        raise ConfigError(f"invalid YAML in {path}: {error}") from error
    logger.debug("Loaded definition from %s", path)
    return parse_definition(data)


def resolve_value(value: Any, stack: TFStack) -> Any:
    """Replace ref: strings with interpolations of existing resources.

    EG: "ref:aws_vpc.main" equates to "${aws_vpc.main.id}"
    """
    if isinstance(value, Mapping):
        return {k: resolve_value(v, stack) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, stack) for item in value]
    if isinstance(value, str) and value.startswith(REF_PREFIX):
        parts = value[len(REF_PREFIX):].split(".", 2)
        if len(parts) < 2:
            raise ConfigError(
                f"invalid reference {value!r}; expected ref:<type>.<name>[.<attribute>]"
            )
        address = ".".join(parts[:2])
        if address not in stack.resources:
            raise ConfigError(
                f"reference {value!r} names {address}, which has not been declared"
            )
        attribute = parts[2] if len(parts) == 3 else "id"
        return stack.resources[address].ref(attribute)
    return value


def synthesize(
    definition: SynthDefinition,
    target_name: Optional[str] = None,
    document: Optional[SynthesisDocument] = None
) -> SynthesisDocument:
    """Create every composition and resource for one target."""
    try:
        target = definition.project.target(target_name)
    except KeyError:
        raise ConfigError(
            f"no target named {target_name!r}" if target_name
            else "every target is marked skip"
        ) from None
    if document is None:
        document = SynthesisDocument(on_duplicate=target.on_duplicate)
    stack = TFStack(document, project=definition.project, target=target)
    logger.info("Synthesizing %s for target %s (%s)",
                definition.project.name, target.name, target.provider.region)

    for spec in definition.compositions:
        logger.debug("Creating composition %s %s", spec.type, spec.name)
        COMPOSITIONS[spec.type](
            stack, spec.name, resolve_value(spec.attributes, stack)
        )
    for spec in definition.resources:
        logger.debug("Creating %s.%s", spec.type, spec.name)
        stack.resource(spec.type, spec.name, resolve_value(spec.attributes, stack))

    logger.info("Synthesized %d resources", len(document))
    return document
