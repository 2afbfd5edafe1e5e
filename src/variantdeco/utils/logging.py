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
import logging
import warnings
from typing import Any, Union

log = logging.getLogger(__name__)

################################################################################
# Locally-defined logging helpers
# originally based upon https://bit.ly/orig_fabric_logging_utils and
# https://bit.ly/lightning_core_utils
################################################################################


def _debug(*args: Any, stacklevel: int = 2, **kwargs: Any) -> None:
    kwargs["stacklevel"] = stacklevel
    log.debug(*args, **kwargs)


def vd_debug(*args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
    """Emit debug-level messages attributed to the caller."""
    _debug(*args, stacklevel=stacklevel, **kwargs)


def _info(*args: Any, stacklevel: int = 2, **kwargs: Any) -> None:
    kwargs["stacklevel"] = stacklevel
    log.info(*args, **kwargs)


def vd_info(*args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
    """Emit info-level messages attributed to the caller."""
    _info(*args, stacklevel=stacklevel, **kwargs)


def _warn(message: Union[str, Warning], stacklevel: int = 2, **kwargs: Any) -> None:
    warnings.warn(message, stacklevel=stacklevel, **kwargs)


def vd_warn(message: Union[str, Warning], stacklevel: int = 3, **kwargs: Any) -> None:
    """Emit warn-level messages attributed to the caller."""
    _warn(message, stacklevel=stacklevel, **kwargs)


vd_deprecation_category = DeprecationWarning


def vd_deprecation(message: Union[str, Warning], stacklevel: int = 4, **kwargs: Any) -> None:
    """Emit a deprecation warning."""
    category = kwargs.pop("category", vd_deprecation_category)
    vd_warn(message, stacklevel=stacklevel, category=category, **kwargs)
