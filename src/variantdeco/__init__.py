"""
variantdeco
=====================

The variantdeco package provides variant-aware decorations for classes, fields and functions, backed by a
hierarchical metadata store.
"""

from variantdeco.__about__ import __version__ as version  # noqa: E402
from variantdeco.__about__ import __package_name__
from variantdeco.constants import DEFAULT_VARIANT, DecorationKeys, DecorationState
from variantdeco.protocol import EntryKind, OwnerStatus, TypeOracle
from variantdeco.config import DecorationConfig
from variantdeco.metadata import MetadataStore
from variantdeco.oracle import ReflectionTypeOracle
from variantdeco.registry import DecorationRegistry, DecoratorEntry, RegistryEntry, factory
from variantdeco.scheduler import DecorationScheduler, OwnerState, PendingEntry
from variantdeco.context import DECORATION_CONTEXT, DecorationContext, LazyDecorationContext
from variantdeco.decorators import (DeferredMember, apply, description, member, metadata, method, prop,
                                    prop_metadata, uses)
from variantdeco.decoration import Decoration
from variantdeco.utils.exceptions import (DecorationError, ConfigurationError, ApplicationError, RangeError,
                                          DuplicateRegistrationError)

# the package registers itself like any dependent library would
DECORATION_CONTEXT.metadata.register_library(__package_name__, version)

__all__ = [
    # constants and protocol
    "DEFAULT_VARIANT",
    "DecorationKeys",
    "DecorationState",
    "EntryKind",
    "OwnerStatus",
    "TypeOracle",

    # runtime
    "DecorationConfig",
    "MetadataStore",
    "ReflectionTypeOracle",
    "DecorationRegistry",
    "DecoratorEntry",
    "RegistryEntry",
    "factory",
    "DecorationScheduler",
    "OwnerState",
    "PendingEntry",
    "DECORATION_CONTEXT",
    "DecorationContext",
    "LazyDecorationContext",
    "Decoration",

    # annotation factories
    "DeferredMember",
    "apply",
    "description",
    "member",
    "metadata",
    "method",
    "prop",
    "prop_metadata",
    "uses",

    # exceptions
    "DecorationError",
    "ConfigurationError",
    "ApplicationError",
    "RangeError",
    "DuplicateRegistrationError",

    "version",
]
