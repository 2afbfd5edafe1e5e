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
import gc

import pytest

import variantdeco
from variantdeco import DECORATION_CONTEXT, DecorationConfig, DuplicateRegistrationError, MetadataStore, RangeError
from variantdeco.utils.metadata_diff import diff_buckets, revert_diff
from variantdeco.utils.paths import clone_value


class TestMetadataStore:

    def test_three_level_chain_merge(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        class B(A):
            pass

        class C(B):
            pass

        store.set(A, "opts.color", "red")
        store.set(A, "opts.size", 1)
        store.set(A, "tags", ["a"])
        store.set(B, "opts.size", 2)
        store.set(B, "tags", ["b"])
        store.set(C, "opts.shape", "round")
        assert store.get(C, "opts") == {"color": "red", "size": 2, "shape": "round"}
        assert store.get(C, "tags") == ["b"]
        assert store.get(B, "opts") == {"color": "red", "size": 2}
        assert store.get(A, "opts") == {"color": "red", "size": 1}
        assert store.get(C, "opts", inherit=False) == {"shape": "round"}

    def test_reads_are_fresh_views(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        class B(A):
            pass

        store.set(A, "opts.color", "red")
        view = store.get(B)
        view["opts"]["color"] = "blue"
        assert store.get(A, "opts.color") == "red"
        store.set(A, "opts.color", "green")
        assert store.get(B, "opts.color") == "green"

    def test_missing_paths(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        class Unknown:
            pass

        assert store.get(Unknown) is None
        store.set(A, "opts.color", "red")
        assert store.get(A, "opts.missing.deeper") is None
        assert store.get(A, "opts.color.deeper") is None
        # non-mapping intermediates are replaced on write
        store.set(A, "opts.color.shade", "dark")
        assert store.get(A, "opts.color") == {"shade": "dark"}
        # empty paths are ignored
        store.set(A, "", "ignored")
        assert store.get(A) == {"opts": {"color": {"shade": "dark"}}}

    def test_instances_resolve_to_their_class(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        store.set(A(), "opts.color", "red")
        assert store.get(A, "opts.color") == "red"
        assert store.symbol(A()) == store.symbol(A)
        assert store.symbol(A).split("@")[0].endswith("A")

    def test_mirroring(self):
        store = MetadataStore(DecorationConfig(mirror=True, mirror_attr="_meta"))

        class A:
            pass

        def standalone():
            pass

        store.set(A, "opts.color", "red")
        store.set(standalone, "opts.kind", "function")
        assert A._meta["opts"]["color"] == "red"
        assert standalone._meta["opts"]["kind"] == "function"
        with pytest.raises(TypeError):
            A._meta["opts"] = {}
        store.set(A, "opts.size", 2)
        assert A._meta["opts"]["size"] == 2
        # the attribute itself stays rebindable; the store neither depends on it nor overwrites it
        A._meta = {"own": True}
        store.set(A, "opts.shape", "round")
        assert A._meta == {"own": True}
        assert store.get(A, "opts") == {"color": "red", "size": 2, "shape": "round"}

        quiet = MetadataStore(DecorationConfig(mirror=False, mirror_attr="_quiet"))
        quiet.set(A, "opts.color", "red")
        assert not hasattr(A, "_quiet")

    def test_properties_index(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        class B(A):
            pass

        class Unknown:
            pass

        store.set(A, "properties.x", int)
        store.set(A, "properties", {"y": str})
        store.set(B, "properties.z", float)
        assert store.properties(B) == ["x", "y", "z"]
        assert store.properties(A) == ["x", "y"]
        assert store.properties(Unknown) is None
        assert store.type(B, "z") is float

    def test_method_helpers(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        store.set(A, "methods.run.params", [int])
        store.set(A, "methods.run.return", str)
        assert store.methods(A) == ["run"]
        assert store.param(A, "run", 0) is int
        assert store.return_type(A, "run") is str
        assert store.param(A, "walk", 0) is None
        with pytest.raises(RangeError, match="Parameter index 2 out of range"):
            store.param(A, "run", 2)
        with pytest.raises(RangeError, match="Parameter index -1 out of range"):
            store.param(A, "run", -1)

    def test_owners_held_for_store_lifetime(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        def define():
            class Transient:
                pass

            store.assign_variant(Transient, "v")
            return store.symbol(Transient)

        token = define()
        gc.collect()
        (owner,) = store.members_of("v")
        assert store.symbol(owner) == token
        assert store.peek(owner, "variant") == "v"

    def test_descriptions(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        store.set(A, store.key("description", "class"), "a model")
        store.set(A, store.key("description", "name"), "the name")
        assert store.description(A) == "a model"
        assert store.description(A, "name") == "the name"

    def test_variant_registry(self):
        store = MetadataStore(DecorationConfig(mirror=False))

        class A:
            pass

        assert store.variant_of(A) == "default"
        assert store.assign_variant(A, "x") is A
        assert store.members_of("x") == [A]
        store.assign_variant(A, "y")
        assert store.members_of("x") == []
        assert store.members_of("y") == [A]
        assert store.variant_of(A()) == "y"

    def test_library_registration_guard(self):
        store = MetadataStore(DecorationConfig(mirror=False))
        store.register_library("L", "1.0")
        with pytest.raises(DuplicateRegistrationError, match="Library `L` is already registered"):
            store.register_library("L", "1.0")
        assert store.libraries() == {"L": "1.0"}

    def test_package_registers_itself(self):
        libraries = DECORATION_CONTEXT.context.metadata.libraries()
        assert libraries[variantdeco.__package_name__] == variantdeco.version


class TestMetadataDiff:

    def test_revert_restores_previous_bucket(self):
        before = {"checks": {"level": "default"}, "tags": ["a"], "properties": {"f": int}}
        bucket = clone_value(before)
        bucket["checks"]["level"] = "v"
        bucket["checks"]["extra"] = {"nested": True}
        bucket["tags"] = ["b"]
        del bucket["properties"]
        diff = diff_buckets(before, bucket)
        assert {entry.path for entry in diff} == {
            ("checks", "level"), ("checks", "extra", "nested"), ("tags",), ("properties",)
        }
        revert_diff(bucket, diff)
        assert bucket == before
