"""Translate C headers into Go declarations."""

from .errors import FormatError, TranslationError, UnbalancedBlockError
from .naming import export_name, next_enum_value
from .translator import COMMENT_LINE, Config, Translator, translate
from .typemap import TypeMapper, TypeRegistry

__version__ = "0.1.0"

__all__ = [
    "COMMENT_LINE",
    "Config",
    "FormatError",
    "TranslationError",
    "Translator",
    "TypeMapper",
    "TypeRegistry",
    "UnbalancedBlockError",
    "export_name",
    "next_enum_value",
    "translate",
]
