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
from enum import Enum

# The distinguished variant that always exists, used as the fallback for every key
DEFAULT_VARIANT = "default"

# Delimiter used to traverse nested metadata paths
KEY_SPLITTER = "."

# Attribute under which a target's live metadata bucket is mirrored (read-only)
DEFAULT_MIRROR_ATTR = "_vd_metadata"

LIBRARY_NAME = "variantdeco"


class DecorationKeys(str, Enum):
    """Well-known metadata keys written by the decoration runtime and the bundled annotation factories."""

    LIBRARIES = "libraries"
    # map of member names to their declared types
    PROPERTIES = "properties"
    # map of function names to their declared parameter and return types
    METHODS = "methods"
    # key used for owner-level entries in `description`
    CLASS = "class"
    # human-friendly descriptions per owner and member
    DESCRIPTION = "description"
    CONSTRUCTOR = "constructor"
    DESIGN_TYPE = "type"
    DESIGN_PARAMS = "params"
    DESIGN_RETURN = "return"
    # variant assigned to an owner
    VARIANT = "variant"
    # state of an owner's deferred decorations, see `DecorationState`
    DECORATION = "decoration"

    def __str__(self) -> str:
        return self.value


class DecorationState(str, Enum):
    # UNSET is represented by the absence of the `decoration` key
    PENDING = "pending"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value
