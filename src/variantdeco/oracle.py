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
"""Default type-reflection oracle backed by ``typing`` and ``inspect``."""
import inspect
import logging
import typing
from typing import Any, Callable, Dict, Tuple

log = logging.getLogger(__name__)

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _unwrap_member(value: Any) -> Any:
    if isinstance(value, (staticmethod, classmethod)):
        return value.__func__
    if isinstance(value, property):
        return value.fget
    return value


class ReflectionTypeOracle:
    """Reads declared types from annotations.

    Forward references that cannot be evaluated fall back to the raw annotation objects (usually strings).
    """

    def _hints(self, obj: Any) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(obj)
        except Exception as err:  # unresolved forward references, unsupported objects
            log.debug(f"Falling back to raw annotations for {obj!r}: {err}")
            if isinstance(obj, type):
                merged: Dict[str, Any] = {}
                for klass in reversed(obj.__mro__):
                    merged.update(inspect.get_annotations(klass))
                return merged
            return dict(inspect.get_annotations(obj))

    def property_type(self, owner: Any, name: str) -> Any:
        hints = self._hints(owner)
        if name in hints:
            return hints[name]
        attr = _unwrap_member(getattr(owner, "__dict__", {}).get(name))
        if isinstance(attr, property) or callable(attr):
            return self.signature(attr)[1]
        return None

    def signature(self, function: Callable[..., Any]) -> Tuple[Tuple[Any, ...], Any]:
        function = _unwrap_member(function)
        if function is None:
            return (), None
        hints = self._hints(function)
        try:
            sig = inspect.signature(function)
        except (TypeError, ValueError):
            return (), hints.get("return")
        params = []
        for idx, param in enumerate(sig.parameters.values()):
            if param.kind in _SKIPPED_KINDS:
                continue
            if idx == 0 and param.name in ("self", "cls"):
                continue
            params.append(hints.get(param.name))
        return tuple(params), hints.get("return")
