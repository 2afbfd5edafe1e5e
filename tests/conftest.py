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
from typing import Any, Callable, List, Optional

import pytest

from variantdeco import DECORATION_CONTEXT, Decoration, DecorationConfig, DecorationContext, metadata


@pytest.fixture
def ctx():
    """An isolated decoration context, active for builders and factories for the duration of a test."""
    context = DecorationContext(DecorationConfig(default_variant="default", mirror=True))
    with DECORATION_CONTEXT.activate(context):
        yield context


@pytest.fixture
def calls() -> List[str]:
    return []


@pytest.fixture
def recorder(calls) -> Callable[[str], Callable[..., Any]]:
    """Build behaviors that record their name when invoked."""

    def make(name: str) -> Callable[..., Any]:
        def behavior(target: Any, member: Optional[str] = None, descriptor: Any = None) -> None:
            calls.append(name)

        behavior.__name__ = behavior.__qualname__ = name
        return behavior

    return make


@pytest.fixture
def checks_key(ctx):
    """A `checks` decoration whose `v` variant writes different metadata than its default variant."""
    dispatcher = Decoration.for_("checks").define(
        metadata("checks.default_only", True), metadata("checks.level", "default")
    ).apply()
    Decoration.variant_as("v").for_("checks").define(
        metadata("checks.level", "v"), metadata("checks.v_only", True)
    ).apply()
    return dispatcher
