from __future__ import annotations

import re
from typing import Dict, Iterator, Optional, Tuple


_QUALIFIERS = ("const", "volatile", "restrict")

# LP64 widths for every target system; plain `char` is handled by TypeMapper.
_BASE_MAP: Dict[str, str] = {
    "signed char": "int8",
    "unsigned char": "uint8",
    "short": "int16",
    "short int": "int16",
    "signed short": "int16",
    "signed short int": "int16",
    "unsigned short": "uint16",
    "unsigned short int": "uint16",
    "int": "int32",
    "signed": "int32",
    "signed int": "int32",
    "unsigned": "uint32",
    "unsigned int": "uint32",
    "long": "int64",
    "long int": "int64",
    "signed long": "int64",
    "signed long int": "int64",
    "long long": "int64",
    "long long int": "int64",
    "signed long long": "int64",
    "signed long long int": "int64",
    "unsigned long": "uint64",
    "unsigned long int": "uint64",
    "unsigned long long": "uint64",
    "unsigned long long int": "uint64",
    "size_t": "uint64",
    "float": "float32",
    "double": "float64",
    "long double": "float64",
    "int8_t": "int8",
    "uint8_t": "uint8",
    "int16_t": "int16",
    "uint16_t": "uint16",
    "int32_t": "int32",
    "uint32_t": "uint32",
    "int64_t": "int64",
    "uint64_t": "uint64",
}


def normalize_ctype(spelling: str) -> str:
    words = [w for w in re.split(r"\s+", spelling.strip()) if w and w not in _QUALIFIERS]
    return " ".join(words)


class TypeRegistry:
    """Type names declared so far in the file being translated."""

    def __init__(self) -> None:
        self._types: Dict[str, str] = {}

    def add(self, ctype: str, gotype: Optional[str] = None) -> None:
        ctype = normalize_ctype(ctype)
        self._types.setdefault(ctype, gotype or ctype)

    def get(self, ctype: str) -> Optional[str]:
        return self._types.get(normalize_ctype(ctype))

    def __contains__(self, ctype: object) -> bool:
        return isinstance(ctype, str) and normalize_ctype(ctype) in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)


class TypeMapper:
    def __init__(self, char_signed: bool = True) -> None:
        self.char_signed = char_signed

    def resolve(self, ctype: str, registry: Optional[TypeRegistry] = None) -> Tuple[str, bool]:
        key = normalize_ctype(ctype)

        if registry is not None:
            declared = registry.get(key)
            if declared is not None:
                return declared, True

        if key == "char":
            return ("int8" if self.char_signed else "uint8"), True

        gotype = _BASE_MAP.get(key)
        if gotype is not None:
            return gotype, True

        return ctype, False
