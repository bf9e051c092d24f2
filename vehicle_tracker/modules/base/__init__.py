"""Building blocks shared by tracker modules."""

from .preferences import ModulePreferences
from .typed_config import (
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

__all__ = [
    "ModulePreferences",
    "get_pref_bool",
    "get_pref_float",
    "get_pref_int",
    "get_pref_path",
    "get_pref_str",
]
