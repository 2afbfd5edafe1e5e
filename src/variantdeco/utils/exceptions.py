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

log = logging.getLogger(__name__)


class DecorationError(Exception):
    """Exception used to inform users of misuse with variantdeco."""


class ConfigurationError(DecorationError, ValueError):
    """Raised when a decoration builder or context is configured incorrectly.

    Examples include calling `define`/`extend` before `for_`, extending the default variant or registering more than
    one parameterized entry in a single call.
    """


class ApplicationError(DecorationError, TypeError):
    """Raised when a composed behavior list cannot be applied (e.g. an entry is neither a callable nor a factory
    with args)."""


class RangeError(DecorationError, IndexError):
    """Raised when a requested parameter index exceeds the recorded parameter count of a function."""


class DuplicateRegistrationError(DecorationError, ValueError):
    """Raised when a library name is registered more than once."""
