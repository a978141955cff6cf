from .loader import get_bool_env, get_int_env, get_str_env
from .options import SessionOptions, coerce_options

__all__ = [
    "SessionOptions",
    "coerce_options",
    "get_bool_env",
    "get_int_env",
    "get_str_env",
]
