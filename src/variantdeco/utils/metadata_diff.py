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
"""Path-level diffs over metadata buckets, used to roll back a provisional application."""
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from variantdeco.utils.paths import clone_value, is_plain_dict


class MetadataDiffEntry(NamedTuple):
    path: Tuple[str, ...]
    previous_value: Any
    existed: bool


def _values_differ(prev: Any, nxt: Any) -> bool:
    if prev is nxt:
        return False
    try:
        return bool(prev != nxt)
    except Exception:
        # values whose equality is ambiguous (e.g. array-likes) are treated as changed
        return True


def diff_buckets(
    before: Optional[Dict[str, Any]],
    after: Optional[Dict[str, Any]],
    base_path: Tuple[str, ...] = (),
    result: Optional[List[MetadataDiffEntry]] = None,
) -> List[MetadataDiffEntry]:
    """Record, for every leaf path changed between ``before`` and ``after``, what is needed to undo the change."""
    if result is None:
        result = []
    before = before or {}
    after = after or {}
    keys = list(before.keys()) + [k for k in after.keys() if k not in before]
    for key in keys:
        path = base_path + (key,)
        prev_exists, next_exists = key in before, key in after
        prev_value, next_value = before.get(key), after.get(key)
        if not next_exists:
            result.append(MetadataDiffEntry(path, clone_value(prev_value), True))
        elif not prev_exists:
            if is_plain_dict(next_value):
                diff_buckets(None, next_value, path, result)
            else:
                result.append(MetadataDiffEntry(path, None, False))
        elif is_plain_dict(prev_value) and is_plain_dict(next_value):
            diff_buckets(prev_value, next_value, path, result)
        elif _values_differ(prev_value, next_value):
            result.append(MetadataDiffEntry(path, clone_value(prev_value), True))
    return result


def _node_at(bucket: Dict[str, Any], path: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    current: Any = bucket
    for segment in path:
        if not is_plain_dict(current) or not is_plain_dict(current.get(segment)):
            return None
        current = current[segment]
    return current


def prune_empty_ancestors(bucket: Dict[str, Any], path: Tuple[str, ...]) -> None:
    """Delete now-empty containers along ``path``, deepest first."""
    for depth in range(len(path), 0, -1):
        parent = _node_at(bucket, path[:depth - 1])
        if parent is None:
            break
        key = path[depth - 1]
        value = parent.get(key)
        if not is_plain_dict(value) or value:
            break
        del parent[key]


def revert_diff(bucket: Dict[str, Any], diff: List[MetadataDiffEntry]) -> None:
    """Restore every changed path in ``bucket`` to its recorded previous state, in place."""
    for entry in reversed(diff):
        if not entry.path:
            continue
        current = bucket
        for segment in entry.path[:-1]:
            if not is_plain_dict(current.get(segment)):
                current[segment] = {}
            current = current[segment]
        leaf = entry.path[-1]
        if entry.existed:
            current[leaf] = clone_value(entry.previous_value)
        else:
            current.pop(leaf, None)
            prune_empty_ancestors(bucket, entry.path[:-1])
