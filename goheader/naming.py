from __future__ import annotations

import re
from typing import Optional


_RE_INT_LITERAL = re.compile(
    r"^(?P<sign>[+-]?)\s*(?P<digits>0[xX][0-9a-fA-F]+|0[bB][01]+|0[0-7]*|[1-9][0-9]*)(?P<suffix>[uUlLzZ]*)$"
)
_RE_FLOAT_LITERAL = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?[fFlL]?$")

_INT_SUFFIX_CHARS = set("uUlLzZ")

_RE_SUFFIXED_TOKEN = re.compile(
    r"\b(?:(?P<int>0[xX][0-9a-fA-F]+|0[bB][01]+|\d+)[uUlL]+"
    r"|(?P<flt>\d+\.\d*(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+)[fFlL])\b"
)

_RE_GO_TOKEN = re.compile(
    r"(?P<num>0[xX][0-9a-fA-F]+|0[bB][01]+|(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<ident>[A-Za-z_]\w*)"
    r'|(?P<str>"(?:[^"\\]|\\.)*")'
    r"|(?P<chr>'(?:[^'\\]|\\.)+')"
    r"|(?P<op><<|>>|&\^|&&|\|\||==|!=|<=|>=|[-+*/%&|^<>!()])"
)
_GO_UNARY = frozenset(("+", "-", "^", "!"))

GO_KEYWORDS = frozenset(
    (
        "break", "case", "chan", "const", "continue", "default", "defer", "else",
        "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
        "map", "package", "range", "return", "select", "struct", "switch", "type",
        "var",
    )
)


def title(name: str) -> str:
    return name[:1].upper() + name[1:]


def export_name(ident: str) -> str:
    """Exported Go name for a C identifier.

    The prefix up to the last underscore that is not the final character is
    dropped (`st_mode` -> `Mode`, `tm_gmt_off` -> `Off`), then the first letter
    is upper-cased. Applying it to its own result changes nothing.
    """
    cut = ident.rfind("_", 0, len(ident) - 1)
    if cut >= 0:
        ident = ident[cut + 1 :]
    return title(ident)


def parse_c_int(text: str) -> Optional[int]:
    m = _RE_INT_LITERAL.match(text.strip())
    if not m:
        return None

    digits = m.group("digits")
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif digits[:2] in ("0b", "0B"):
        value = int(digits[2:], 2)
    elif len(digits) > 1 and digits[0] == "0":
        value = int(digits[1:], 8)
    else:
        value = int(digits)

    return -value if m.group("sign") == "-" else value


def next_enum_value(previous: Optional[int]) -> Optional[int]:
    if previous is None:
        return None
    return previous + 1


def normalize_int_literal(s: str) -> str:
    if not s:
        return s
    i = len(s)
    while i > 0 and s[i - 1] in _INT_SUFFIX_CHARS:
        i -= 1
    return s[:i]


def normalize_float_literal(s: str) -> str:
    if not s:
        return s
    if s[-1] in ("f", "F", "l", "L"):
        core = s[:-1]
        if any(ch in core for ch in (".", "e", "E")):
            return core
    return s


def normalize_literal(value: str) -> str:
    """Drop C suffixes from numeric literals; other text passes unchanged.

    A whole-value literal goes through the literal helpers above, and inside
    larger expressions every integer or float token loses its suffix
    (`1UL << 2` -> `1 << 2`).
    """
    v = value.strip()
    if _RE_INT_LITERAL.match(v):
        return normalize_int_literal(v)
    if _RE_FLOAT_LITERAL.match(v):
        return normalize_float_literal(v)
    if not _RE_SUFFIXED_TOKEN.search(v):
        return value
    return _RE_SUFFIXED_TOKEN.sub(lambda m: m.group("int") or m.group("flt"), v)


def is_go_keyword(name: str) -> bool:
    return name in GO_KEYWORDS


def is_go_expr(value: str) -> bool:
    """Whether `value` parses as a Go constant expression.

    Accepts identifiers, numbers, string and rune literals joined by Go's
    binary operators, with unary `+ - ^ !` and parentheses. Calls, casts,
    commas and C-only operators are rejected.
    """
    toks = []
    pos = 0
    s = value.strip()
    while pos < len(s):
        m = _RE_GO_TOKEN.match(s, pos)
        if not m or m.end() == pos:
            return False
        toks.append((m.lastgroup, m.group(m.lastgroup)))
        pos = m.end()
        while pos < len(s) and s[pos].isspace():
            pos += 1

    depth = 0
    want_operand = True
    for kind, tok in toks:
        if want_operand:
            if kind == "op" and tok in _GO_UNARY:
                continue
            if tok == "(":
                depth += 1
                continue
            if kind == "op":
                return False
            want_operand = False
        else:
            if tok == ")":
                if depth == 0:
                    return False
                depth -= 1
                continue
            if kind != "op" or tok == "(" or tok == "!":
                return False
            want_operand = True

    return bool(toks) and depth == 0 and not want_operand
