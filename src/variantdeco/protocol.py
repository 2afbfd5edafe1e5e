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
from typing import Any, Callable, Optional, Protocol, Tuple, TypeAlias, runtime_checkable
from enum import auto, Enum


################################################################################
# variantdeco helper types
################################################################################

# a behavior is invoked as `behavior(target, member, descriptor)`, owner-level behaviors receive `None` for both
Behavior: TypeAlias = Callable[..., Any]
BehaviorFactory: TypeAlias = Callable[..., Behavior]
# the attach-ready dispatcher returned by `Decoration.apply()`
Dispatcher: TypeAlias = Callable[..., Any]
VariantResolver: TypeAlias = Callable[[Any], str]
# positional args keyed by base set index, snapshotted when a member attachment is queued
ArgsOverrides: TypeAlias = dict


class AutoStrEnum(Enum):
    def _generate_next_value_(name, _start, _count, _last_values) -> str:  # type: ignore
        return name


class EntryKind(AutoStrEnum):
    # a behavior invoked directly with (target, member, descriptor)
    direct = auto()
    # a behavior factory called with its args to obtain the behavior
    factory = auto()


class OwnerStatus(AutoStrEnum):
    unset = auto()
    pending = auto()
    resolved = auto()


@runtime_checkable
class TypeOracle(Protocol):
    """Supplies declared type information for members and functions.

    The decoration runtime stores whatever an oracle returns without validating it.
    """

    def property_type(self, owner: Any, name: str) -> Any: ...

    def signature(self, function: Callable[..., Any]) -> Tuple[Tuple[Any, ...], Any]: ...


@runtime_checkable
class PendingResolver(Protocol):
    def __call__(self, owner: Any, variant: Optional[str] = None) -> None: ...
