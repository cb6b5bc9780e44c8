from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple


class Mode(enum.Enum):
    NONE = "none"
    TYPE_BLOCK = "type block"
    CONST_BLOCK = "const block"
    STRUCT = "struct"
    ENUM = "enum"


@dataclass
class TranslationState:
    in_comment: bool = False
    mode: Mode = Mode.NONE
    last_enum_value: Optional[int] = None


class Kind(enum.Enum):
    COMMENT_SINGLE = "comment"
    COMMENT_OPEN = "comment open"
    COMMENT_TEXT = "comment text"
    COMMENT_CLOSE = "comment close"
    TYPEDEF = "typedef"
    DEFINE = "define"
    ENUM_OPEN = "enum open"
    ENUM_END = "enum end"
    ENUM_VALUE = "enum value"
    ENUM_IMPLICIT = "enum implicit"
    ENUM_OTHER = "enum other"
    STRUCT_OPEN = "struct open"
    STRUCT_FIELD = "struct field"
    STRUCT_END = "struct end"
    STRUCT_OTHER = "struct other"
    BLANK = "blank"
    LINE_COMMENT = "line comment"
    UNTRANSLATED = "untranslated"


@dataclass
class LineMatch:
    kind: Kind
    fields: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.fields.get(name) or ""


_DECLARATOR = r"(?P<stars>\**)\s*(?P<name>[A-Za-z_]\w*)(?P<array>\s*\[[^\]]*\])?"

RE_COMMENT_DECORATION = re.compile(r"^\s*(?:/\*)?[\s*]*")

RE_TYPEDEF = re.compile(
    r"^\s*typedef\s+(?P<ctype>[^;{}(),]+?)(?:\s+|\s*(?=\*))" + _DECLARATOR + r"\s*;(?P<rest>.*)$"
)
RE_TYPEDEF_START = re.compile(r"^\s*typedef\s")

RE_DEFINE = re.compile(r"^\s*#\s*(?:define|DEFINE)\s+(?P<name>[^\s(]+(?:\([^)]*\))?)\s+(?P<value>.*\S)\s*$")
RE_DEFINE_START = re.compile(r"^\s*#\s*(?:define|DEFINE)\s")
RE_MACRO_ARGS = re.compile(r"\(.*\)")

RE_ENUM_OPEN = re.compile(r"^\s*enum(?:\s+(?P<tag>[A-Za-z_]\w*))?\s*\{\s*(?P<rest>//.*)?$")
RE_ENUM_END = re.compile(r"^\s*\}\s*(?P<name>[A-Za-z_]\w*)?\s*;?\s*(?P<rest>//.*)?$")
RE_ENUM_VALUE = re.compile(
    r"^\s*(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<value>[^,]+?)\s*(?:,\s*)?(?P<rest>//.*)?$"
)
RE_ENUM_IMPLICIT = re.compile(r"^\s*(?P<name>[A-Za-z_]\w*)\s*,?\s*(?P<rest>//.*)?$")

RE_STRUCT_OPEN = re.compile(r"^\s*struct\s+(?P<tag>[A-Za-z_]\w*)\s*\{\s*(?P<rest>//.*)?$")
RE_STRUCT_FIELD = re.compile(
    r"^\s*(?P<ctype>[^;{}(),=#]+?)(?:\s+|\s*(?=\*))" + _DECLARATOR + r"\s*;(?P<rest>.*)$"
)
RE_STRUCT_END = re.compile(r"^\s*\}(?P<rest>.*)$")

RE_BLANK = re.compile(r"^\s*$")
RE_LINE_COMMENT = re.compile(r"^\s*//")
RE_ANY = re.compile(r"^(?P<text>.*)$")


def _anywhere(mode: Mode) -> bool:
    return True


def _top_level(mode: Mode) -> bool:
    return mode not in (Mode.STRUCT, Mode.ENUM)


def _in_enum(mode: Mode) -> bool:
    return mode == Mode.ENUM


def _in_struct(mode: Mode) -> bool:
    return mode == Mode.STRUCT


Rule = Tuple[Kind, Callable[[Mode], bool], "re.Pattern[str]"]

# Order matters: later rules assume the earlier ones already declined the line.
RULES: List[Rule] = [
    (Kind.TYPEDEF, _anywhere, RE_TYPEDEF),
    (Kind.DEFINE, _top_level, RE_DEFINE),
    (Kind.ENUM_OPEN, _top_level, RE_ENUM_OPEN),
    (Kind.BLANK, _in_enum, RE_BLANK),
    (Kind.LINE_COMMENT, _in_enum, RE_LINE_COMMENT),
    (Kind.ENUM_END, _in_enum, RE_ENUM_END),
    (Kind.ENUM_VALUE, _in_enum, RE_ENUM_VALUE),
    (Kind.ENUM_IMPLICIT, _in_enum, RE_ENUM_IMPLICIT),
    (Kind.ENUM_OTHER, _in_enum, RE_ANY),
    (Kind.STRUCT_OPEN, _top_level, RE_STRUCT_OPEN),
    (Kind.BLANK, _in_struct, RE_BLANK),
    (Kind.LINE_COMMENT, _in_struct, RE_LINE_COMMENT),
    (Kind.STRUCT_END, _in_struct, RE_STRUCT_END),
    (Kind.STRUCT_FIELD, _in_struct, RE_STRUCT_FIELD),
    (Kind.STRUCT_OTHER, _in_struct, RE_ANY),
    (Kind.BLANK, _anywhere, RE_BLANK),
    (Kind.LINE_COMMENT, _anywhere, RE_LINE_COMMENT),
    (Kind.UNTRANSLATED, _anywhere, RE_ANY),
]


def strip_comment_decoration(text: str) -> str:
    return RE_COMMENT_DECORATION.sub("", text).rstrip()


def _find_unquoted(s: str, tokens: Tuple[str, ...], start: int = 0) -> int:
    """Index of the first of `tokens` outside string and char literals, or -1."""
    quote = ""
    i = start
    n = len(s)
    while i < n:
        ch = s[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif s.startswith(tokens, i):
            return i
        i += 1
    return -1


def split_line_comment(s: str) -> Tuple[str, Optional[str]]:
    """Split `s` at the first `//` that is not inside a string or char literal."""
    i = _find_unquoted(s, ("//",))
    if i < 0:
        return s, None
    return s[:i], s[i:]


@dataclass
class CommentScan:
    code: str
    texts: List[str]
    # Text after a `/*` that is not closed on this line.
    open_text: Optional[str] = None


def scan_comments(line: str) -> CommentScan:
    """Pull the `/* ... */` comments out of a line of code.

    Markers inside string or char literals and anything after a `//` are
    left alone.
    """
    code: List[str] = []
    texts: List[str] = []
    pos = 0
    while True:
        i = _find_unquoted(line, ("/*", "//"), pos)
        if i < 0 or line.startswith("//", i):
            code.append(line[pos:])
            return CommentScan("".join(code), texts)
        code.append(line[pos:i] + " ")
        end = line.find("*/", i + 2)
        if end < 0:
            return CommentScan("".join(code), texts, line[i + 2 :].strip())
        if line[i + 2 : end].strip():
            texts.append(line[i + 2 : end].strip())
        pos = end + 2


def starts_typedef(line: Optional[str]) -> bool:
    return line is not None and RE_TYPEDEF_START.match(line) is not None


def starts_define(line: Optional[str]) -> bool:
    return line is not None and RE_DEFINE_START.match(line) is not None


def _classify_comment(line: str) -> LineMatch:
    idx = line.find("*/")
    if idx >= 0:
        return LineMatch(
            Kind.COMMENT_CLOSE,
            {"text": strip_comment_decoration(line[:idx]), "rest": line[idx + 2 :]},
        )
    return LineMatch(Kind.COMMENT_TEXT, {"text": strip_comment_decoration(line)})


def classify(line: str, state: TranslationState) -> LineMatch:
    if state.in_comment:
        return _classify_comment(line)

    sc = scan_comments(line)
    if sc.open_text is not None:
        code = sc.code.rstrip()
        if sc.texts:
            code = (code + " // " if code.strip() else "// ") + " ".join(sc.texts)
        return LineMatch(Kind.COMMENT_OPEN, {"code": code, "text": sc.open_text})
    if sc.texts or sc.code != line:
        return LineMatch(Kind.COMMENT_SINGLE, {"code": sc.code.rstrip(), "text": " ".join(sc.texts)})

    for kind, applies, pattern in RULES:
        if not applies(state.mode):
            continue
        m = pattern.match(line)
        if m:
            return LineMatch(kind, {k: v for k, v in m.groupdict().items() if v is not None})

    raise AssertionError("RE_ANY matches every line")
