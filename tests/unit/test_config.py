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
import pytest
import yaml

from variantdeco import ConfigurationError, Decoration, DecorationConfig, DecorationContext
from variantdeco.config import VD_DEFAULT_VARIANT_ENV, VD_MIRROR_ENV
from variantdeco.constants import DEFAULT_MIRROR_ATTR


class TestDecorationConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(VD_DEFAULT_VARIANT_ENV, raising=False)
        monkeypatch.delenv(VD_MIRROR_ENV, raising=False)
        cfg = DecorationConfig()
        assert cfg.default_variant == "default"
        assert cfg.mirror is True
        assert cfg.mirror_attr == DEFAULT_MIRROR_ATTR
        assert cfg.key_splitter == "."

    @pytest.mark.parametrize("raw, expected", [("0", False), ("false", False), ("Yes", True), ("1", True)],
                             ids=["zero", "false", "yes", "one"])
    def test_env_overrides(self, monkeypatch, raw, expected):
        monkeypatch.setenv(VD_DEFAULT_VARIANT_ENV, "base")
        monkeypatch.setenv(VD_MIRROR_ENV, raw)
        cfg = DecorationConfig()
        assert cfg.default_variant == "base"
        assert cfg.mirror is expected

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError, match="`default_variant` must be a non-empty string"):
            DecorationConfig(default_variant="")
        with pytest.raises(ConfigurationError, match="`key_splitter` must be a non-empty string"):
            DecorationConfig(key_splitter="")

    def test_from_yaml(self, tmp_path):
        cfg_file = tmp_path / "decoration.yaml"
        cfg_file.write_text("default_variant: base\nmirror: false\nkey_splitter: /\n")
        cfg = DecorationConfig.from_yaml(cfg_file)
        assert cfg.to_dict() == {"default_variant": "base", "mirror": False, "mirror_attr": DEFAULT_MIRROR_ATTR,
                                 "key_splitter": "/"}
        assert "!DecorationConfig" in yaml.dump(cfg)

    def test_from_yaml_rejects_unknown_keys(self, tmp_path):
        cfg_file = tmp_path / "decoration.yaml"
        cfg_file.write_text("default_variant: base\nflavour: nope\n")
        with pytest.raises(ConfigurationError, match="Unknown decoration config keys: \\['flavour'\\]"):
            DecorationConfig.from_yaml(cfg_file)
        cfg_file.write_text("- not\n- a mapping\n")
        with pytest.raises(ConfigurationError, match="Expected a mapping"):
            DecorationConfig.from_yaml(cfg_file)

    def test_context_uses_config(self):
        context = DecorationContext(DecorationConfig(default_variant="base", mirror=False, key_splitter="/"))
        builder = Decoration(context=context)
        assert builder.variant == "base"

        class Target:
            pass

        context.metadata.set(Target, "opts/color", "red")
        assert context.metadata.get(Target, "opts") == {"color": "red"}
        assert context.metadata.variant_of(Target) == "base"
        assert not hasattr(Target, DEFAULT_MIRROR_ATTR)

    def test_contexts_are_isolated(self, ctx):
        other = DecorationContext(DecorationConfig(mirror=False))
        Decoration.for_("k").define(lambda target, member=None, descriptor=None: None).apply()
        assert ctx.registry.has_key("k")
        assert not other.registry.has_key("k")
