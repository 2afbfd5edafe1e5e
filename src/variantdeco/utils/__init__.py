from variantdeco.utils.exceptions import (DecorationError, ConfigurationError, ApplicationError, RangeError,
                                          DuplicateRegistrationError)
from variantdeco.utils.logging import vd_debug, vd_info, vd_warn, vd_deprecation
from variantdeco.utils.warnings import eager_resolution_failed_msg, non_callable_replacement_msg
from variantdeco.utils.paths import (split_path, get_value_by_path, set_value_by_path, clone_value, clone_args,
                                     deep_merge, is_plain_dict)
from variantdeco.utils.metadata_diff import MetadataDiffEntry, diff_buckets, revert_diff, prune_empty_ancestors

__all__ = [
    # exceptions
    "DecorationError",
    "ConfigurationError",
    "ApplicationError",
    "RangeError",
    "DuplicateRegistrationError",

    # logging
    "vd_debug",
    "vd_info",
    "vd_warn",
    "vd_deprecation",

    # warnings
    "eager_resolution_failed_msg",
    "non_callable_replacement_msg",

    # paths
    "split_path",
    "get_value_by_path",
    "set_value_by_path",
    "clone_value",
    "clone_args",
    "deep_merge",
    "is_plain_dict",

    # metadata_diff
    "MetadataDiffEntry",
    "diff_buckets",
    "revert_diff",
    "prune_empty_ancestors",
]
