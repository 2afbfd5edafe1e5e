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
import warnings
from pathlib import Path
from typing import Optional, Type, Union

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent
_stdlib_format_warning = warnings.formatwarning


def emitted_by_variantdeco(filename: str) -> bool:
    """Whether ``filename`` is a module of the installed `variantdeco` package."""
    try:
        return Path(filename).resolve().is_relative_to(_PACKAGE_ROOT)
    except (OSError, ValueError):
        return False


def format_package_warning(
    message: Union[Warning, str], category: Type[Warning], filename: str, lineno: int, line: Optional[str] = None
) -> str:
    """Single-line ``file:line: Category: message`` format for warnings raised inside the package.

    The `vd_warn` helpers point ``stacklevel`` at package frames in some call paths, where echoing the source line
    only repeats the helper call. Warnings from anywhere else keep the standard format.
    """
    if emitted_by_variantdeco(filename):
        return f"{filename}:{lineno}: {category.__name__}: {message}\n"
    return _stdlib_format_warning(message, category, filename, lineno, line)


warnings.formatwarning = format_package_warning

eager_resolution_failed_msg = "Eager variant resolution failed for `{owner}`, deferring until the owner is resolved: {err}"
non_callable_replacement_msg = ("Owner-level behavior `{behavior}` returned a non-callable value which was ignored as a "
                                "replacement target.")
