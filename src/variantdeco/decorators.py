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
"""Annotation factories and class-body attachment helpers.

Every factory returns a behavior invoked as ``behavior(target, member, descriptor)``, so it can be registered with a
`Decoration` builder or used directly as a class decorator.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import MISSING
from typing import Any, Callable, List, Optional

from variantdeco.constants import DecorationKeys
from variantdeco.context import DecorationContext, resolve_context
from variantdeco.protocol import Behavior, Dispatcher

log = logging.getLogger(__name__)


def _unwrap(value: Any) -> Any:
    if isinstance(value, (staticmethod, classmethod)):
        return value.__func__
    if isinstance(value, property):
        return value.fget
    return value


def class_scope(value: Any) -> Optional[str]:
    """Qualified name of the class ``value`` is declared in, for a function (possibly wrapped by
    ``staticmethod``/``classmethod``/``property``) defined in a class body, else ``None``."""
    function = _unwrap(value)
    qualname = getattr(function, "__qualname__", None)
    if not inspect.isfunction(function) or not isinstance(qualname, str) or "." not in qualname:
        return None
    scope = qualname.rsplit(".", 1)[0]
    return None if scope.endswith("<locals>") else scope


def _class_body_executing(scope: str) -> bool:
    # a class body frame runs a code object named after the class, with `__qualname__` in its namespace
    frame = inspect.currentframe()
    try:
        while frame is not None:
            if frame.f_code.co_name == scope.rsplit(".", 1)[-1] and frame.f_locals.get("__qualname__") == scope:
                return True
            frame = frame.f_back
        return False
    finally:
        del frame


def is_class_body_member(value: Any) -> bool:
    """Whether ``value`` is a function declared in a class body that is still executing, i.e. one whose owner does
    not exist yet."""
    scope = class_scope(value)
    return scope is not None and _class_body_executing(scope)


class DeferredMember:
    """Class-body placeholder for a function decorated before its class exists.

    Python calls ``__set_name__`` while creating the class (before any class decorator runs). The original attribute is
    then restored and every stacked dispatcher performs its member-level attachment, innermost first.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        self.dispatchers: List[Dispatcher] = []

    @classmethod
    def join(cls, value: Any, dispatcher: Dispatcher) -> "DeferredMember":
        deferred = value if isinstance(value, DeferredMember) else cls(value)
        deferred.dispatchers.append(dispatcher)
        return deferred

    def __set_name__(self, owner: type, name: str) -> None:
        setattr(owner, name, self.value)
        if hasattr(type(self.value), "__set_name__"):
            self.value.__set_name__(owner, name)
        for dispatcher in self.dispatchers:
            dispatcher(owner, name, self.value)

    def __repr__(self) -> str:
        return f"DeferredMember({self.value!r}, dispatchers={len(self.dispatchers)})"


class _FieldAttachment:
    def __init__(self, dispatchers: tuple, default: Any) -> None:
        self.dispatchers = dispatchers
        self.default = default

    def __set_name__(self, owner: type, name: str) -> None:
        if self.default is MISSING:
            delattr(owner, name)
        else:
            setattr(owner, name, self.default)
        for dispatcher in self.dispatchers:
            dispatcher(owner, name, None)


def _owner_result(target: Any, member: Optional[str]) -> Any:
    # owner-level behaviors hand back their target so they also work as plain class decorators
    return target if member is None else None


def member(*dispatchers: Dispatcher, default: Any = MISSING) -> Any:
    """Attach ``dispatchers`` to an annotated field of the class being defined.

    Example::

        class Model:
            name: str = member(required_key, default="anonymous")
    """
    return _FieldAttachment(dispatchers, default)


def metadata(key: str, value: Any, context: Optional[DecorationContext] = None) -> Behavior:
    def metadata(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
        resolve_context(context).metadata.set(target, key, value)
        return _owner_result(target, member)

    return metadata


def prop(context: Optional[DecorationContext] = None) -> Behavior:
    """Record the declared type of a member under ``properties.<member>``."""

    def prop(target: Any, member: Optional[str] = None, descriptor: Any = None) -> None:
        ctx = resolve_context(context)
        owner = ctx.metadata.constr(target)
        design_type = ctx.oracle.property_type(owner, member)
        ctx.metadata.set(owner, ctx.metadata.key(DecorationKeys.PROPERTIES.value, member), design_type)

    return prop


def method(context: Optional[DecorationContext] = None) -> Behavior:
    """Record the declared parameter types and return type of a function member."""

    def method(target: Any, member: Optional[str] = None, descriptor: Any = None) -> None:
        ctx = resolve_context(context)
        owner = ctx.metadata.constr(target)
        function = descriptor if descriptor is not None else vars(owner).get(member)
        params, return_type = ctx.oracle.signature(function)
        store = ctx.metadata
        store.set(owner, store.key(DecorationKeys.METHODS.value, member, DecorationKeys.DESIGN_PARAMS.value),
                  list(params))
        store.set(owner, store.key(DecorationKeys.METHODS.value, member, DecorationKeys.DESIGN_RETURN.value),
                  return_type)

    return method


def description(text: str, context: Optional[DecorationContext] = None) -> Behavior:
    def description(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
        store = resolve_context(context).metadata
        path = store.key(DecorationKeys.DESCRIPTION.value, member or DecorationKeys.CLASS.value)
        return metadata(path, text, context)(target, member, descriptor)

    return description


def uses(variant: str, context: Optional[DecorationContext] = None) -> Behavior:
    """Assign ``variant`` to the decorated owner and settle its queued member decorations with it."""

    def uses(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
        ctx = resolve_context(context)
        owner = ctx.metadata.assign_variant(target, variant)
        ctx.scheduler.resolve(owner, variant)
        return _owner_result(target, member)

    return uses


def apply(*behaviors: Callable[..., Any]) -> Behavior:
    """Compose ``behaviors`` into one, invoking each in order with the same arguments."""

    def apply(target: Any, member: Optional[str] = None, descriptor: Any = None) -> Any:
        for behavior in behaviors:
            behavior(target, member, descriptor)
        return _owner_result(target, member)

    return apply


def prop_metadata(key: str, value: Any, context: Optional[DecorationContext] = None) -> Behavior:
    return apply(metadata(key, value, context), prop(context))
