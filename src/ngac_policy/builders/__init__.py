"""
Policy Builders

Assemble policy graphs from external domain data.
"""

from .consent import (
    AccessGrant,
    ConsentAgreement,
    ConsentPolicy,
    ConsentPolicyBuilder,
    ConsentPolicyDefinition,
    DataAsset,
    DataHandler,
    HandlerRole,
    PlatformUser,
    sample_definition,
)

__all__ = [
    "AccessGrant",
    "ConsentAgreement",
    "ConsentPolicy",
    "ConsentPolicyBuilder",
    "ConsentPolicyDefinition",
    "DataAsset",
    "DataHandler",
    "HandlerRole",
    "PlatformUser",
    "sample_definition",
]
