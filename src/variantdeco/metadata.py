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
"""Per-target metadata store.

Each class or function identity owns one nested bucket keyed by dot-delimited paths. Reads merge the buckets of a
class's inheritance chain into a freshly computed view, so later mutations of an ancestor are always observed.
"""
from __future__ import annotations

import inspect
import itertools
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Sequence

from variantdeco.config import DecorationConfig
from variantdeco.constants import DecorationKeys, DecorationState
from variantdeco.utils.exceptions import DuplicateRegistrationError, RangeError
from variantdeco.utils.paths import deep_merge, get_value_by_path, set_value_by_path, split_path

log = logging.getLogger(__name__)


class MetadataStore:
    def __init__(self, config: Optional[DecorationConfig] = None) -> None:
        self.config = config or DecorationConfig()
        self._buckets: Dict[str, Dict[str, Any]] = {}
        # owners are held for the lifetime of the store, like their buckets and variant registrations
        self._tokens: Dict[Any, str] = {}
        self._token_counter = itertools.count()
        self._property_index: Dict[str, Dict[str, None]] = {}
        self._variants: Dict[str, List[Any]] = {}
        self._libraries: Dict[str, str] = {}
        self._pending_resolver: Optional[Callable[[Any], None]] = None

    @property
    def splitter(self) -> str:
        return self.config.key_splitter

    @property
    def mirror(self) -> bool:
        return self.config.mirror

    @mirror.setter
    def mirror(self, enabled: bool) -> None:
        self.config.mirror = enabled

    def connect_pending_resolver(self, resolver: Optional[Callable[[Any], None]]) -> None:
        """Install the callback used to force resolution of owners still marked pending when they are read."""
        self._pending_resolver = resolver

    ################################################################################
    # Identity
    ################################################################################

    @staticmethod
    def constr(target: Any) -> Any:
        """Return the canonical owner of ``target``: classes and functions are their own owner, instances resolve
        to their class."""
        if isinstance(target, type) or inspect.isfunction(target) or inspect.isbuiltin(target):
            return target
        if inspect.ismethod(target):
            return target.__func__
        return type(target)

    def symbol(self, target: Any) -> str:
        owner = self.constr(target)
        try:
            return self._tokens[owner]
        except KeyError:
            name = getattr(owner, "__qualname__", None) or getattr(owner, "__name__", None) or repr(owner)
            token = f"{name}@{next(self._token_counter)}"
            self._tokens[owner] = token
            return token

    def _token_if_known(self, owner: Any) -> Optional[str]:
        try:
            return self._tokens.get(owner)
        except TypeError:  # unhashable, cannot have been registered
            return None

    def chain(self, target: Any) -> List[Any]:
        """Inheritance chain of ``target`` ordered from most-base to most-derived (``object`` excluded)."""
        owner = self.constr(target)
        if isinstance(owner, type):
            return [klass for klass in reversed(owner.__mro__) if klass is not object]
        return [owner]

    def key(self, *parts: Any) -> str:
        return self.splitter.join(str(p) for p in parts)

    ################################################################################
    # Raw access
    ################################################################################

    def bucket(self, target: Any) -> Optional[Dict[str, Any]]:
        """The live bucket of ``target`` itself, if any."""
        token = self._token_if_known(self.constr(target))
        return self._buckets.get(token) if token is not None else None

    def peek(self, target: Any, path: Optional[str] = None) -> Any:
        """Read ``target``'s own bucket without merging ancestors or triggering lazy resolution."""
        bucket = self.bucket(target)
        if bucket is None or path is None:
            return bucket
        return get_value_by_path(bucket, path, self.splitter)

    def _ensure_bucket(self, owner: Any) -> Dict[str, Any]:
        token = self.symbol(owner)
        bucket = self._buckets.get(token)
        if bucket is None:
            bucket = self._buckets[token] = {}
        if self.mirror and self.config.mirror_attr not in getattr(owner, "__dict__", {}):
            self._mirror(owner, bucket)
        return bucket

    def _mirror(self, owner: Any, bucket: Dict[str, Any]) -> None:
        try:
            setattr(owner, self.config.mirror_attr, MappingProxyType(bucket))
        except (AttributeError, TypeError) as err:  # e.g. builtins that do not accept attributes
            log.debug(f"Unable to mirror metadata onto {owner!r}: {err}")

    ################################################################################
    # Read / write
    ################################################################################

    def set(self, target: Any, path: str, value: Any) -> None:
        owner = self.constr(target)
        bucket = self._ensure_bucket(owner)
        set_value_by_path(bucket, path, value, self.splitter)
        self._index_properties(owner, path, value)

    def _index_properties(self, owner: Any, path: str, value: Any) -> None:
        segments = split_path(path, self.splitter)
        if not segments or segments[0] != DecorationKeys.PROPERTIES.value:
            return
        index = self._property_index.setdefault(self.symbol(owner), {})
        if len(segments) > 1:
            index[segments[1]] = None
        elif isinstance(value, dict):
            index.update(dict.fromkeys(value))

    def settle(self, target: Any) -> None:
        """Force resolution of any owner in ``target``'s chain still marked pending."""
        if self._pending_resolver is None:
            return
        for klass in self.chain(target):
            if self.peek(klass, DecorationKeys.DECORATION.value) == DecorationState.PENDING:
                self._pending_resolver(klass)

    def get(self, target: Any, path: Optional[str] = None, inherit: bool = True) -> Any:
        """Return the merged bucket for ``target`` (or the value at ``path`` within it).

        Buckets along the inheritance chain are deep-merged from most-base to most-derived: plain dictionaries merge
        key by key while every other value is taken from the most-derived class defining it. ``None`` is returned when
        no bucket exists or any segment of ``path`` is missing.
        """
        chain = self.chain(target) if inherit else [self.constr(target)]
        self.settle(target)
        buckets = [bucket for klass in chain if (bucket := self.bucket(klass)) is not None]
        if not buckets:
            return None
        merged = deep_merge(buckets)
        if path is None:
            return merged
        return get_value_by_path(merged, path, self.splitter)

    ################################################################################
    # Convenience accessors
    ################################################################################

    def properties(self, target: Any) -> Optional[List[str]]:
        """Known property names across the inheritance chain, base-most first."""
        chain = self.chain(target)
        self.settle(target)
        if not any(self.bucket(klass) is not None for klass in chain):
            return None
        names: Dict[str, None] = {}
        for klass in chain:
            token = self._token_if_known(klass)
            if token is not None:
                names.update(self._property_index.get(token, {}))
        return list(names)

    def methods(self, target: Any) -> Optional[List[str]]:
        methods = self.get(target, DecorationKeys.METHODS.value)
        if not isinstance(methods, dict):
            return None
        return list(methods)

    def type(self, target: Any, prop: str) -> Any:
        return self.get(target, self.key(DecorationKeys.PROPERTIES.value, prop))

    def params(self, target: Any, method: str) -> Optional[Sequence[Any]]:
        return self.get(target, self.key(DecorationKeys.METHODS.value, method, DecorationKeys.DESIGN_PARAMS.value))

    def return_type(self, target: Any, method: str) -> Any:
        return self.get(target, self.key(DecorationKeys.METHODS.value, method, DecorationKeys.DESIGN_RETURN.value))

    def param(self, target: Any, method: str, index: int) -> Any:
        params = self.params(target, method)
        if params is None:
            return None
        if index < 0 or index >= len(params):
            raise RangeError(f"Parameter index {index} out of range for `{method}`, which records {len(params)} "
                             "parameter(s)")
        return params[index]

    def description(self, target: Any, member: Optional[str] = None) -> Optional[str]:
        return self.get(target, self.key(DecorationKeys.DESCRIPTION.value, member or DecorationKeys.CLASS.value))

    ################################################################################
    # Variant registry
    ################################################################################

    def variant_of(self, target: Any) -> str:
        return self.peek(target, DecorationKeys.VARIANT.value) or self.config.default_variant

    def assign_variant(self, target: Any, variant: str) -> Any:
        """Move ``target`` from its previous variant bucket (default when none was recorded) to ``variant``'s."""
        owner = self.constr(target)
        previous = self.peek(owner, DecorationKeys.VARIANT.value) or self.config.default_variant
        if previous in self._variants:
            self._variants[previous] = [member for member in self._variants[previous] if member is not owner]
        members = self._variants.setdefault(variant, [])
        if not any(member is owner for member in members):
            members.append(owner)
        self.set(owner, DecorationKeys.VARIANT.value, variant)
        log.debug(f"Assigned variant `{variant}` to {self.symbol(owner)} (previously `{previous}`)")
        return owner

    def members_of(self, variant: str) -> List[Any]:
        return list(self._variants.get(variant, []))

    ################################################################################
    # Library registration
    ################################################################################

    def register_library(self, name: str, version: str) -> None:
        if name in self._libraries:
            raise DuplicateRegistrationError(f"Library `{name}` is already registered (version "
                                             f"{self._libraries[name]})")
        self._libraries[name] = version
        log.debug(f"Registered library {name}=={version}")

    def libraries(self) -> Dict[str, str]:
        return dict(self._libraries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(targets={len(self._buckets)}, libraries={list(self._libraries)})"
