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
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Union
import logging
import os

import yaml

from variantdeco.constants import DEFAULT_VARIANT, DEFAULT_MIRROR_ATTR, KEY_SPLITTER
from variantdeco.utils.exceptions import ConfigurationError

log = logging.getLogger(__name__)

VD_DEFAULT_VARIANT_ENV = "VARIANTDECO_DEFAULT_VARIANT"
VD_MIRROR_ENV = "VARIANTDECO_MIRROR"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes")


@dataclass(kw_only=True)
class DecorationConfig(yaml.YAMLObject):
    """Settings shared by the metadata store, registry and scheduler of one `DecorationContext`."""

    yaml_tag = "!DecorationConfig"

    default_variant: str = field(default_factory=lambda: os.getenv(VD_DEFAULT_VARIANT_ENV, DEFAULT_VARIANT))
    mirror: bool = field(default_factory=lambda: _env_flag(VD_MIRROR_ENV, True))
    mirror_attr: str = DEFAULT_MIRROR_ATTR
    key_splitter: str = KEY_SPLITTER

    def __post_init__(self):
        if not self.default_variant:
            raise ConfigurationError("`default_variant` must be a non-empty string")
        if not self.key_splitter:
            raise ConfigurationError("`key_splitter` must be a non-empty string")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "DecorationConfig":
        known = {f.name for f in fields(cls)}
        if unknown := set(cfg) - known:
            raise ConfigurationError(f"Unknown decoration config keys: {sorted(unknown)}. Valid keys: {sorted(known)}")
        return cls(**cfg)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DecorationConfig":
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"Expected a mapping in decoration config file {path}, got {type(cfg).__name__}")
        log.debug(f"Loaded decoration config from {path}: {cfg}")
        return cls.from_dict(cfg)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
