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
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple
from pprint import pformat
import logging

from tabulate import tabulate

from variantdeco.metadata import MetadataStore
from variantdeco.protocol import ArgsOverrides, Behavior, BehaviorFactory, EntryKind, VariantResolver
from variantdeco.utils.exceptions import ApplicationError, ConfigurationError
from variantdeco.utils.logging import vd_info, vd_warn
from variantdeco.utils.paths import clone_args
from variantdeco.utils.warnings import non_callable_replacement_msg

log = logging.getLogger(__name__)


class DecoratorEntry(NamedTuple):
    """One registered behavior, either invoked directly or produced by calling a factory with ``args``.

    Factory entries registered without args (``args is None``) borrow the args of the base set when dispatched.
    """

    kind: EntryKind
    decorator: Callable[..., Any]
    args: Optional[Tuple[Any, ...]] = None

    @property
    def name(self) -> str:
        return getattr(self.decorator, "__qualname__", None) or repr(self.decorator)


def factory(decorator: BehaviorFactory, *args: Any) -> DecoratorEntry:
    """Build a parameterized entry: ``decorator(*args)`` is called at dispatch time to obtain the behavior."""
    if not callable(decorator):
        raise ApplicationError(f"A factory entry requires a callable, got {type(decorator).__name__}")
    return DecoratorEntry(EntryKind.factory, decorator, tuple(args))


def normalize_entry(entry: Any) -> DecoratorEntry:
    """Convert a user supplied entry into a tagged `DecoratorEntry`.

    Accepted shapes are a `DecoratorEntry`, a plain callable and a mapping of the form
    ``{"decorator": factory, "args": [...]}`` (``args`` may be omitted for extensions).
    """
    if isinstance(entry, DecoratorEntry):
        return entry
    if isinstance(entry, Mapping):
        if "decorator" not in entry or not callable(entry["decorator"]):
            raise ApplicationError(f"Factory entries require a callable `decorator`, got: {pformat(dict(entry))}")
        args = entry.get("args", None)
        if args is not None and not isinstance(args, (list, tuple)):
            raise ApplicationError(f"Factory entry args must be a list or tuple, got {type(args).__name__}")
        return DecoratorEntry(EntryKind.factory, entry["decorator"], tuple(args) if args is not None else None)
    if callable(entry):
        return DecoratorEntry(EntryKind.direct, entry)
    raise ApplicationError(f"Unexpected decorator entry type: {type(entry).__name__}")


def normalize_entries(entries: Sequence[Any]) -> Tuple[DecoratorEntry, ...]:
    normalized: List[DecoratorEntry] = []
    for entry in entries:
        entry = normalize_entry(entry)
        if entry not in normalized:
            normalized.append(entry)
    return tuple(normalized)


@dataclass
class RegistryEntry:
    # replaced wholesale by each `define()`
    base: Tuple[DecoratorEntry, ...] = ()
    # strictly additive across `extend()` calls
    extensions: Tuple[DecoratorEntry, ...] = ()


class DecorationRegistry:
    """Table of (key, variant) -> `RegistryEntry`, plus the swappable variant resolver used at dispatch time."""

    def __init__(self, metadata: MetadataStore) -> None:
        self.metadata = metadata
        self._table: Dict[str, Dict[str, RegistryEntry]] = {}
        self._resolver: VariantResolver = self.default_resolver

    @property
    def default_variant(self) -> str:
        return self.metadata.config.default_variant

    ################################################################################
    # Variant resolution
    ################################################################################

    def default_resolver(self, target: Any) -> str:
        """Resolve to the variant recorded for ``target``'s owner, or the default variant."""
        return self.metadata.variant_of(self.metadata.constr(target))

    def set_resolver(self, resolver: VariantResolver) -> None:
        if not callable(resolver):
            raise ConfigurationError(f"Variant resolvers must be callable, got {type(resolver).__name__}")
        self._resolver = resolver

    def reset_resolver(self) -> None:
        self._resolver = self.default_resolver

    @property
    def resolver(self) -> VariantResolver:
        return self._resolver

    @property
    def resolver_is_custom(self) -> bool:
        return self._resolver != self.default_resolver

    def resolve_variant(self, target: Any) -> str:
        return self._resolver(target) or self.default_variant

    ################################################################################
    # Registration
    ################################################################################

    def register(
        self,
        key: str,
        variant: str,
        base: Optional[Sequence[Any]] = None,
        extensions: Optional[Sequence[Any]] = None,
    ) -> RegistryEntry:
        """Register ``base`` (replacing any previous base) and append ``extensions`` for ``(key, variant)``."""
        if not key:
            raise ConfigurationError("No key provided for the decoration registry")
        if not variant:
            raise ConfigurationError("No variant provided for the decoration registry")
        entry = self._table.setdefault(key, {}).setdefault(variant, RegistryEntry())
        if base is not None:
            entry.base = normalize_entries(base)
        if extensions:
            if variant == self.default_variant:
                raise ConfigurationError(f"Extending the default variant `{variant}` of `{key}` is not allowed")
            merged = list(entry.extensions)
            merged.extend(e for e in normalize_entries(extensions) if e not in merged)
            entry.extensions = tuple(merged)
        log.debug(f"Registered `{key}`/`{variant}`: {len(entry.base)} base, {len(entry.extensions)} extension(s)")
        return entry

    def remove(self, key: str, variant: Optional[str] = None) -> None:
        if variant is None:
            del self._table[key]
        else:
            del self._table[key][variant]
        vd_info(f"Removed decorations for `{key}`" + (f" (variant `{variant}`)" if variant else ""))

    def has_key(self, key: str) -> bool:
        return key in self._table

    def entry(self, key: str, variant: str) -> Optional[RegistryEntry]:
        return self._table.get(key, {}).get(variant)

    def variants(self, key: str) -> List[str]:
        return list(self._table.get(key, {}))

    ################################################################################
    # Composition and dispatch
    ################################################################################

    def _parts(self, key: str, variant: str) -> Tuple[Tuple[DecoratorEntry, ...], Tuple[DecoratorEntry, ...]]:
        if key not in self._table:
            raise ApplicationError(f"No decorations registered for key `{key}`. Registered keys: "
                                   f"{pformat(list(self._table))}")
        buckets = self._table[key]
        resolved = buckets.get(variant)
        default = buckets.get(self.default_variant)
        base = resolved.base if resolved is not None and resolved.base else (default.base if default else ())
        source = resolved if resolved is not None else default
        extensions = source.extensions if source is not None else ()
        return base, extensions

    def compose(self, key: str, variant: str) -> Tuple[DecoratorEntry, ...]:
        """Ordered behaviors applied for ``key`` under ``variant``: the base set followed by the extension set."""
        base, extensions = self._parts(key, variant)
        return base + extensions

    def dispatcher(
        self, key: str, variant: Optional[str] = None, overrides: Optional[ArgsOverrides] = None
    ) -> Callable[..., Any]:
        """Return a function of ``(target, member=None, descriptor=None)`` applying the composed behaviors.

        With ``variant`` left as ``None`` the variant is resolved per call through the current resolver.
        """
        registry = self

        def dispatch(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
            resolved = variant or registry.resolve_variant(target)
            return registry._apply(key, resolved, target, member, descriptor, overrides or {})

        dispatch.__name__ = dispatch.__qualname__ = f"{variant or 'dynamic'}_decorator_for_{key}"
        return dispatch

    def _base_args(self, key: str, variant: str) -> Tuple[Dict[int, Tuple[Any, ...]], Dict[int, Tuple[Any, ...]]]:
        base, _ = self._parts(key, variant)
        default = self.entry(key, self.default_variant)
        default_base = default.base if default is not None else ()

        def _args_by_index(entries):
            return {i: e.args for i, e in enumerate(entries)
                    if isinstance(e, DecoratorEntry) and e.kind is EntryKind.factory and e.args is not None}

        return _args_by_index(base), _args_by_index(default_base)

    def _behavior_for(
        self, entry: Any, index: int, base_len: int, overrides: ArgsOverrides, base_args: Dict, default_args: Dict
    ) -> Behavior:
        if not isinstance(entry, DecoratorEntry):
            raise ApplicationError(f"Unexpected decorator entry type: {type(entry).__name__}")
        if entry.kind is EntryKind.direct:
            return entry.decorator
        if entry.kind is not EntryKind.factory:
            raise ApplicationError(f"Unexpected decorator entry kind: {entry.kind!r}")
        candidate = index if index < base_len else 0
        if index < base_len and index in overrides:
            args = overrides[index]
        elif entry.args is not None:
            args = entry.args
        else:
            args = base_args.get(candidate, default_args.get(candidate, default_args.get(0, ())))
        return entry.decorator(*clone_args(args))

    def _apply(
        self, key: str, variant: str, target: Any, member: Optional[str], descriptor: Any, overrides: ArgsOverrides
    ) -> Any:
        base, extensions = self._parts(key, variant)
        base_args, default_args = self._base_args(key, variant)
        current_target, current_descriptor = target, descriptor
        for index, entry in enumerate(base + extensions):
            behavior = self._behavior_for(entry, index, len(base), overrides, base_args, default_args)
            if member is None:
                result = behavior(current_target, None, None)
                if result is not None and result is not current_target:
                    if callable(result):
                        current_target = result
                    else:
                        vd_warn(non_callable_replacement_msg.format(behavior=entry.name))
            else:
                result = behavior(target, member, current_descriptor)
                if result is not None:
                    current_descriptor = result
        return current_target if member is None else current_descriptor

    def snapshot_args(self, base: Optional[Sequence[DecoratorEntry]]) -> Optional[ArgsOverrides]:
        """Copy the args of factory entries in ``base`` keyed by index, or ``None`` when there are none."""
        if not base:
            return None
        overrides = {i: clone_args(e.args) for i, e in enumerate(base)
                     if e.kind is EntryKind.factory and e.args is not None}
        return overrides or None

    ################################################################################
    # Introspection
    ################################################################################

    def available_keys_feedback(self) -> str:
        rows = []
        for key in sorted(self._table):
            for variant, entry in self._table[key].items():
                rows.append((key, variant, ", ".join(e.name for e in entry.base) or "-",
                             ", ".join(e.name for e in entry.extensions) or "-"))
        return tabulate(rows, headers=["Key", "Variant", "Base", "Extensions"])

    def available_keys(self) -> None:
        print(self.available_keys_feedback())

    def __str__(self) -> str:
        return f"Registered Decorations: {pformat({k: list(v) for k, v in self._table.items()})}"
