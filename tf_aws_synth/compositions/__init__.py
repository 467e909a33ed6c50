"""Higher level constructors built from several resources.

COMPOSITIONS maps the names used in definition files to callables taking
(stack, name, attributes).
"""
from tf_aws_synth.compositions.secure_vpc import (
    SecureVpcReference,
    secure_vpc,
)
from tf_aws_synth.compositions.transit_hub import (
    TransitHubReference,
    transit_hub,
)
from tf_aws_synth.compositions.vpc_with_subnets import (
    VpcWithSubnetsReference,
    vpc_with_subnets,
    vpc_with_subnets_from_attributes,
)

COMPOSITIONS = {
    "secure_vpc": secure_vpc,
    "transit_hub": transit_hub,
    "vpc_with_subnets": vpc_with_subnets_from_attributes,
}

__all__ = [
    "COMPOSITIONS",
    "SecureVpcReference",
    "TransitHubReference",
    "VpcWithSubnetsReference",
    "secure_vpc",
    "transit_hub",
    "vpc_with_subnets",
]
