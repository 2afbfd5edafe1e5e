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
"""Helpers for dot-delimited paths over nested metadata dictionaries."""
from copy import deepcopy
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from variantdeco.constants import KEY_SPLITTER


def is_plain_dict(value: Any) -> bool:
    # subclasses (OrderedDict, defaultdict etc.) are treated as opaque leaf values
    return type(value) is dict


def split_path(path: str, splitter: str = KEY_SPLITTER) -> List[str]:
    if not path:
        return []
    return path.split(splitter)


def get_value_by_path(obj: Optional[Dict[str, Any]], path: str, splitter: str = KEY_SPLITTER) -> Any:
    """Walk ``path`` through ``obj``, returning ``None`` as soon as any segment is missing."""
    current: Any = obj
    for segment in split_path(path, splitter):
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]
    return current


def set_value_by_path(obj: Dict[str, Any], path: str, value: Any, splitter: str = KEY_SPLITTER) -> None:
    """Set ``value`` at ``path``, creating (or replacing non-mapping) intermediate containers.

    Empty paths are ignored.
    """
    segments = split_path(path, splitter)
    if not segments:
        return
    current = obj
    for segment in segments[:-1]:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]
    current[segments[-1]] = value


def clone_value(value: Any) -> Any:
    """Copy nested containers (dict, list, tuple, set) while leaving classes, functions and other objects shared."""
    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return value
    if isinstance(value, list):
        return [clone_value(item) for item in value]
    if isinstance(value, tuple) and not hasattr(value, "_fields"):
        return tuple(clone_value(item) for item in value)
    if isinstance(value, set):
        return {clone_value(item) for item in value}
    if isinstance(value, datetime):
        return deepcopy(value)
    if is_plain_dict(value):
        return {k: clone_value(v) for k, v in value.items()}
    return value


def clone_args(args: Optional[Sequence[Any]]) -> tuple:
    if not args:
        return ()
    return tuple(clone_value(arg) for arg in args)


def deep_merge(buckets: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge ``buckets`` ordered from most-base to most-derived into a new dictionary.

    Plain dictionaries are merged recursively (later keys override earlier ones), every other value (lists, tuples,
    primitives, classes) is replaced outright by the most-derived bucket that defines it.
    """
    merged: Dict[str, Any] = {}
    for bucket in buckets:
        _merge_into(merged, bucket)
    return merged


def _merge_into(dest: Dict[str, Any], src: Dict[str, Any]) -> None:
    for key, value in src.items():
        if is_plain_dict(value):
            existing = dest.get(key)
            if not is_plain_dict(existing):
                existing = dest[key] = {}
            _merge_into(existing, value)
        else:
            dest[key] = clone_value(value)
