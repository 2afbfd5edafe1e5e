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
from typing import List

import pytest

from variantdeco import (ConfigurationError, Decoration, DeferredMember, ReflectionTypeOracle, TypeOracle, apply,
                         description, member, metadata, method, prop, prop_metadata, uses)
from variantdeco.decorators import class_scope, is_class_body_member


class TestAnnotationFactories:

    def test_description(self, ctx):
        @description("a model")
        class Model:
            name: str = member(description("the name"))

        assert Model.__name__ == "Model"
        assert ctx.metadata.description(Model) == "a model"
        assert ctx.metadata.description(Model, "name") == "the name"

    def test_prop_metadata(self, ctx):
        class Model:
            name: str = member(prop_metadata("validation.required", True), default="anonymous")
            tags: List[str] = member(prop())

        assert Model.name == "anonymous"
        assert not hasattr(Model, "tags")
        assert ctx.metadata.get(Model, "validation.required") is True
        assert ctx.metadata.type(Model, "name") is str
        assert ctx.metadata.type(Model, "tags") == List[str]
        assert ctx.metadata.properties(Model) == ["name", "tags"]

    def test_method(self, ctx):
        class Model:
            def run(self, steps: int, label, *args, **kwargs) -> bool:
                return True

        method()(Model, "run")
        assert ctx.metadata.params(Model, "run") == [int, None]
        assert ctx.metadata.return_type(Model, "run") is bool
        assert ctx.metadata.param(Model, "run", 0) is int

    def test_uses_and_apply(self, ctx):
        @apply(metadata("origin", "tests"), uses("x"))
        class Model:
            pass

        assert Model.__name__ == "Model"
        assert ctx.metadata.get(Model, "origin") == "tests"
        assert ctx.metadata.variant_of(Model) == "x"
        assert ctx.metadata.members_of("x") == [Model]

    def test_standalone_function_is_an_owner(self, ctx):
        tagged = Decoration.for_("tagged").define(metadata("role", "handler")).apply()

        @tagged
        def handle(event: str) -> None:
            return None

        assert callable(handle)
        assert ctx.metadata.get(handle, "role") == "handler"
        assert handle._vd_metadata["role"] == "handler"


class TestClassBodyAttachment:

    def test_class_body_detection(self):
        seen = {}

        def local():
            pass

        class Model:
            def run(self):
                pass

            seen["run"] = is_class_body_member(run)

            @staticmethod
            def build():
                pass

            seen["build"] = is_class_body_member(build)

        assert seen == {"run": True, "build": True}
        assert not is_class_body_member(local)
        assert class_scope(local) is None
        # the owner exists once the class statement completes
        assert not is_class_body_member(Model.__dict__["run"])
        assert class_scope(Model.__dict__["run"]) == Model.__qualname__
        assert not is_class_body_member(Model)

    def test_stacked_dispatchers_share_placeholder(self, ctx):
        first = Decoration.for_("first").define(metadata("checks.first", True)).apply()
        second = Decoration.for_("second").define(metadata("checks.second", True)).apply()
        placeholders = []

        class Model:
            @second
            @first
            def run(self) -> int:
                return 1

            placeholders.append(run)

        (placeholder,) = placeholders
        assert isinstance(placeholder, DeferredMember)
        assert len(placeholder.dispatchers) == 2
        assert Model.__dict__["run"] is placeholder.value
        assert Model().run() == 1
        assert ctx.metadata.get(Model, "checks") == {"first": True, "second": True}
        assert ctx.metadata.return_type(Model, "run") is int

    def test_member_of_existing_class_rejected(self, ctx):
        tagged = Decoration.for_("tagged").define(metadata("checks.tagged", True)).apply()

        class Model:
            def run(self) -> int:
                return 1

        with pytest.raises(ConfigurationError, match="already exists"):
            tagged(Model.run)
        assert ctx.metadata.get(Model) is None

        tagged(Model, "run", Model.__dict__["run"])
        assert ctx.metadata.get(Model, "checks.tagged") is True
        assert Model().run() == 1

    def test_property_members(self, ctx):
        checked = Decoration.for_("checked").define(metadata("checks.size", True)).apply()

        class Model:
            @checked
            @property
            def size(self) -> int:
                return 3

        assert Model().size == 3
        assert ctx.metadata.type(Model, "size") is int
        assert ctx.metadata.get(Model, "checks.size") is True


class TestReflectionTypeOracle:

    def test_protocol(self):
        assert isinstance(ReflectionTypeOracle(), TypeOracle)

    def test_unresolvable_forward_reference(self):
        class Model:
            owner: "Missing"  # noqa: F821

        assert ReflectionTypeOracle().property_type(Model, "owner") == "Missing"

    def test_signature_unwraps_descriptors(self):
        class Model:
            @staticmethod
            def build(size: int) -> "Model":
                pass

            @classmethod
            def create(cls, name: str):
                pass

        oracle = ReflectionTypeOracle()
        assert oracle.signature(Model.__dict__["create"]) == ((str,), None)
        params, _ = oracle.signature(Model.__dict__["build"])
        assert params == (int,)
        assert oracle.signature(None) == ((), None)
