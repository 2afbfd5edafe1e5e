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

import variantdeco.registry
from variantdeco.utils.warnings import emitted_by_variantdeco, format_package_warning


class TestWarningFormat:

    def test_formatter_installed(self):
        assert warnings.formatwarning is format_package_warning

    def test_package_warning_single_line(self):
        filename = variantdeco.registry.__file__
        assert emitted_by_variantdeco(filename)
        formatted = format_package_warning("ignored", UserWarning, filename, 7, line="vd_warn(msg)")
        assert formatted == f"{filename}:7: UserWarning: ignored\n"

    def test_other_paths_keep_standard_format(self, tmp_path):
        # a directory merely named after the package is not the package
        filename = str(tmp_path / "variantdeco" / "app.py")
        assert not emitted_by_variantdeco(filename)
        formatted = format_package_warning("careful", UserWarning, filename, 3, line="call()")
        assert formatted.startswith(f"{filename}:3: UserWarning: careful\n")
        assert "call()" in formatted
