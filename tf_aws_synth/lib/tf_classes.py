"""Module to define the TFStack synthesis context and TFResource."""

import functools
import importlib
import logging
import re
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from tf_aws_synth.lib import validators
from tf_aws_synth.lib.emitter import render_block
from tf_aws_synth.lib.errors import (
    SchemaError,
    UnknownResourceTypeError,
)
from tf_aws_synth.lib.project_classes import (
    SynthProject,
    SynthTarget,
)
from tf_aws_synth.lib.reference import (
    ResourceReference,
    build_reference,
)
from tf_aws_synth.lib.schema import Attributes
from tf_aws_synth.lib.synth_document import (
    OVERWRITE,
    SynthesisDocument,
)
from tf_aws_synth.lib.tf_resource import TFResourceDef

logger = logging.getLogger(__name__)

RESOURCE_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_-]*$")
RESOURCE_TYPE = re.compile(r"^aws_[a-z0-9_]+$")
RESOURCES_PACKAGE = "tf_aws_synth.resources"


class TFStack():
    """Synthesis context with predefined helpers.

    Every resource() call validates, emits and returns a reference:

        stack = TFStack(SynthesisDocument())
        vpc = stack.resource("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
        stack.aws_subnet("a", {"vpc_id": vpc.id, ...})
    """

    def __init__(
        self,
        document: Optional[SynthesisDocument] = None,
        project: Optional[SynthProject] = None,
        target: Optional[SynthTarget] = None,
    ) -> None:
        if document is None:
            document = SynthesisDocument(
                on_duplicate=target.on_duplicate if target else OVERWRITE
            )
        self.document = document
        self.project = project
        self.target = target
        self.resources: Dict[str, ResourceReference] = {}
        self._configure_provider()

    def __getattr__(self, name: str):
        if name.startswith("aws_"):
            return functools.partial(self.resource, name)
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    def _configure_provider(self) -> None:
        """Write the terraform and provider sections for the target."""
        if self.target is None:
            return
        provider = self.target.provider
        try:
            validators.region(provider.region)
        except SchemaError as error:
            raise error.nested("provider.region") from None

        if self.project is not None:
            self.document.set_required_version(self.project.terraform_version)
        self.document.require_provider("aws", provider.source, provider.version)
        self.document.set_provider(
            "aws",
            region=provider.region,
            profile=provider.profile
        )

    def default_tags(self) -> Dict[str, str]:
        if self.project is None:
            return {}
        return self.project.default_tags(self.target)

    def check_zone_region(
        self,
        zones: Sequence[str],
        field: str = "availability_zones"
    ) -> None:
        """Reject AZs outside the target provider's region.

        EG: us-west-2a on a stack targeting us-east-1.
        """
        if self.target is None:
            return
        regions = [validators.region_of(zone) for zone in zones]
        region = next((r for r in regions if r is not None), None)
        if region is not None and region != self.target.provider.region:
            raise SchemaError(
                f"availability zones are in {region} but the target "
                f"provider region is {self.target.provider.region}",
                field=field,
                rule="format"
            )

    def resource(
        self,
        resource_type: str,
        name: str,
        attributes: Optional[Mapping] = None
    ) -> ResourceReference:
        """Create a resource and return its reference."""
        resource = TFResource(
            scope=self,
            tf_def=self._get_tf_def(resource_type),
            name=name,
            attributes=attributes
        )
        self.resources[resource.address] = resource.reference
        self.resources.update(resource.companions)
        return resource.reference

    def output(
        self,
        name: str,
        value: Any,
        description: Optional[str] = None
    ) -> None:
        self.document.add_output(name, value, description=description)

    def _get_tf_def(self, resource_type: str) -> TFResourceDef:
        """Import the module that defines this resource type.

        Uses the dynamic nature of Python to find the definition:
        self._get_tf_def("aws_vpc") equates to:
        importlib.import_module("tf_aws_synth.resources.aws_vpc").RESOURCE_DEF
        """
        if not RESOURCE_TYPE.match(resource_type):
            raise UnknownResourceTypeError(
                f"unsupported resource type {resource_type!r}"
            )
        module_name = f"{RESOURCES_PACKAGE}.{resource_type}"
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as error:
            if error.name != module_name:
                raise
            raise UnknownResourceTypeError(
                f"unsupported resource type {resource_type!r}"
            ) from None
        return module.RESOURCE_DEF


class TFResource():
    """Class to validate, emit and reference one Terraform resource."""

    def __init__(
        self,
        scope: TFStack,
        tf_def: TFResourceDef,
        name: str,
        attributes: Optional[Mapping] = None
    ) -> None:
        self.stack = scope
        self.tf_def = tf_def
        self.name = self._get_resource_name(name)
        self._create_resource(attributes)

    @property
    def address(self) -> str:
        return f"{self.tf_def.type}.{self.name}"

    def _create_resource(self, attributes: Optional[Mapping]) -> None:
        """Validate attributes, build the references and emit the blocks.

        The resource and any companions are validated, referenced and
        checked against the duplicate policy before anything is written,
        so a failure leaves the document untouched.
        """
        self.attributes = self.tf_def.schema.validate(
            self._get_attributes(attributes)
        )
        companions = self._get_companions()

        self.reference = build_reference(
            self.tf_def.type,
            self.name,
            self.attributes,
            self.tf_def.outputs,
            self.tf_def.computed
        )
        self.block = render_block(self.attributes, self.tf_def.emit_rules)
        self.companions: Dict[str, ResourceReference] = {}
        blocks = [(self.tf_def.type, self.name, self.block)]
        for tf_def, name, attrs in companions:
            self.companions[f"{tf_def.type}.{name}"] = build_reference(
                tf_def.type, name, attrs, tf_def.outputs, tf_def.computed
            )
            blocks.append(
                (tf_def.type, name, render_block(attrs, tf_def.emit_rules))
            )

        self.stack.document.add_resources(blocks)
        for resource_type, name, block in blocks:
            logger.debug("Emitted %s.%s with %d keys",
                         resource_type, name, len(block))

    def _get_companions(self) -> List[Tuple[TFResourceDef, str, Attributes]]:
        """Validate the extra resources this definition creates."""
        if self.tf_def.companions is None:
            return []
        companions = []
        for resource_type, name, attributes in self.tf_def.companions(
            self.name, self.attributes
        ):
            tf_def = self.stack._get_tf_def(resource_type)
            try:
                attrs = tf_def.schema.validate(attributes)
            except SchemaError as error:
                raise error.nested(f"{resource_type}.{name}") from None
            companions.append((tf_def, self._get_resource_name(name), attrs))
        return companions

    def _get_resource_name(self, name: str) -> str:
        """Check the name is a valid Terraform identifier.

        EG: main, public_subnet_0, web-sg
        """
        if not isinstance(name, str) or not RESOURCE_NAME.match(name):
            raise SchemaError(
                f"invalid resource name {name!r}; must start with a letter "
                "or underscore and contain only letters, digits, '_' and '-'",
                field="name",
                rule="format"
            )
        return name

    def _get_attributes(self, attributes: Optional[Mapping]) -> Any:
        """Merge stack default tags under the caller's tags.

        EG: project tags {"owner": "net"} and caller tags {"Name": "vpc"}
        become {"owner": "net", "Name": "vpc"}.
        """
        if not isinstance(attributes, Mapping):
            return {} if attributes is None else attributes
        attributes = dict(attributes)
        default_tags = self.stack.default_tags()
        if not (default_tags and self.tf_def.taggable):
            return attributes
        tags = attributes.get("tags") or {}
        if isinstance(tags, Mapping):
            attributes["tags"] = {**default_tags, **tags}
        return attributes
