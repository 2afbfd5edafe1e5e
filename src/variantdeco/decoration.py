# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Fluent builder registering variant-aware decorations.

Example::

    required = Decoration.for_("required").define(metadata("validation.required", True)).apply()
    Decoration.variant_as("strict").for_("required").extend(strict_check).apply()

    @uses("strict")
    class Model:
        name: str = member(required)
"""
from __future__ import annotations

import types
from typing import Any, Callable, Optional, Tuple

from variantdeco.constants import DecorationKeys
from variantdeco.context import DecorationContext, resolve_context
from variantdeco.decorators import DeferredMember, class_scope, is_class_body_member, method, prop
from variantdeco.protocol import EntryKind, VariantResolver
from variantdeco.registry import DecoratorEntry, normalize_entries, normalize_entry
from variantdeco.utils.exceptions import ConfigurationError
from variantdeco.utils.logging import vd_debug, vd_deprecation


class _builder_method:
    """Allows builder entry points to be called on the class (starting a fresh builder) or on an instance."""

    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn
        self.__doc__ = fn.__doc__

    def __get__(self, instance: Optional["Decoration"], owner: type) -> Callable[..., Any]:
        return types.MethodType(self.fn, instance if instance is not None else owner())


class Decoration:
    def __init__(self, variant: Optional[str] = None, context: Optional[DecorationContext] = None) -> None:
        self._context = context
        self.variant = variant or self.context.default_variant
        self.key: Optional[str] = None
        self._base: Optional[Tuple[DecoratorEntry, ...]] = None
        self._extensions: Tuple[DecoratorEntry, ...] = ()

    @property
    def context(self) -> DecorationContext:
        return resolve_context(self._context)

    @classmethod
    def variant_as(cls, variant: str, context: Optional[DecorationContext] = None) -> "Decoration":
        """Start a builder bound to ``variant``."""
        return cls(variant, context)

    @classmethod
    def flavoured_as(cls, flavour: str, context: Optional[DecorationContext] = None) -> "Decoration":
        vd_deprecation("`Decoration.flavoured_as` is deprecated, use `Decoration.variant_as` instead.", stacklevel=5)
        return cls.variant_as(flavour, context)

    @staticmethod
    def set_resolver(resolver: VariantResolver, context: Optional[DecorationContext] = None) -> None:
        resolve_context(context).registry.set_resolver(resolver)

    @_builder_method
    def for_(self, key: str) -> "Decoration":
        """Bind the builder to ``key``."""
        self.key = key
        return self

    def _require_key(self) -> str:
        if not self.key:
            raise ConfigurationError("A key must be provided with `for_` before decorators can be added")
        return self.key

    @staticmethod
    def _check_factories(entries: Tuple[DecoratorEntry, ...], action: str) -> None:
        if sum(1 for e in entries if e.kind is EntryKind.factory) > 1:
            raise ConfigurationError(f"When {action} using a parameterized decorator, only one is allowed")

    def define(self, *entries: Any) -> "Decoration":
        """Set the base behaviors of this builder's (key, variant), replacing any previous definition."""
        key = self._require_key()
        raw = tuple(normalize_entry(e) for e in entries)
        self._check_factories(raw, "defining")
        normalized = normalize_entries(raw)
        if not normalized and self.variant != self.context.default_variant:
            registered = self.context.registry.entry(key, self.variant)
            if registered is None or not registered.base:
                raise ConfigurationError(f"Variant `{self.variant}` of `{key}` must define at least one decorator or "
                                         "extend the default ones")
        self._base = normalized
        return self

    def extend(self, *entries: Any) -> "Decoration":
        """Append behaviors applied after the base set of this builder's (key, variant)."""
        key = self._require_key()
        if self.variant == self.context.default_variant:
            raise ConfigurationError(f"The default variant of `{key}` cannot be extended, use `define` instead")
        raw = tuple(normalize_entry(e) for e in entries)
        self._check_factories(raw, "extending")
        normalized = normalize_entries(raw)
        self._extensions = self._extensions + tuple(e for e in normalized if e not in self._extensions)
        return self

    def apply(self) -> Callable[..., Any]:
        """Register the configured behaviors and return the attach-ready dispatcher.

        The dispatcher is invoked as ``dispatcher(target, member=None, descriptor=None)``. Used as a decorator on a
        class-body function it defers the attachment until the owning class exists.
        """
        key = self._require_key()
        ctx = self.context
        ctx.registry.register(key, self.variant, base=self._base, extensions=self._extensions)
        default_variant = ctx.default_variant
        variant_hint = None if self.variant == default_variant else self.variant
        overrides = ctx.registry.snapshot_args(self._base)

        def attach(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
            if member is None:
                if isinstance(target, DeferredMember) or is_class_body_member(target):
                    return DeferredMember.join(target, attach)
                if class_scope(target) is not None:
                    raise ConfigurationError(
                        f"`{class_scope(target)}` already exists, attach its member with "
                        f"`{attach.__name__}(Owner, \"name\", function)` instead"
                    )
                return ctx.registry.dispatcher(key, variant_hint)(target)

            store = ctx.metadata
            owner = store.constr(target)
            if store.peek(owner, DecorationKeys.VARIANT.value) is None:
                store.assign_variant(owner, default_variant)
            self._tag_member(ctx, owner, member, descriptor)
            ctx.scheduler.register_pending(
                owner,
                target,
                lambda variant, args_override: ctx.registry.dispatcher(key, variant, args_override),
                member=member,
                descriptor=descriptor,
                args_override=overrides,
                definition_key=key,
            )
            return vars(target).get(member, descriptor) if hasattr(target, "__dict__") else descriptor

        attach.__name__ = attach.__qualname__ = f"{self.variant}_decorator_for_{key}"
        vd_debug(f"Built dispatcher {attach.__name__}")
        return attach

    @staticmethod
    def _tag_member(ctx: DecorationContext, owner: Any, member: str, descriptor: Any) -> None:
        if descriptor is None or isinstance(descriptor, property):
            prop(ctx)(owner, member)
        else:
            method(ctx)(owner, member, descriptor)

    def __repr__(self) -> str:
        return f"Decoration(key={self.key!r}, variant={self.variant!r})"
