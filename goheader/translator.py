from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import UnbalancedBlockError
from .grammar import (
    RE_MACRO_ARGS,
    Kind,
    LineMatch,
    Mode,
    TranslationState,
    classify,
    split_line_comment,
    starts_define,
    starts_typedef,
)
from .naming import (
    export_name,
    is_go_expr,
    is_go_keyword,
    next_enum_value,
    normalize_literal,
    parse_c_int,
    title,
)
from .typemap import TypeMapper, TypeRegistry


logger = logging.getLogger(__name__)

COMMENT_LINE = "//!!! "

GO_BASE = """// {cmd}
// MACHINE GENERATED; DO NOT EDIT
// ===

package {pkg}

"""


def go_base(cmd: str, pkg: str) -> str:
    return GO_BASE.format(cmd=cmd, pkg=pkg)


@dataclass
class Config:
    char_signed: bool = True
    # C starts a valueless first enumerator at 0; False flags it instead.
    enum_zero_start: bool = True


class Out:
    def __init__(self) -> None:
        self.lines: List[str] = []
        self.ind: int = 0

    def w(self, s: str = "") -> None:
        self.lines.append(("\t" * self.ind) + s if s else "")

    def get(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""


class LineReader:
    """Right-trimmed source lines with a one-line lookahead."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._it = iter(lines)
        self._ahead: List[str] = []
        self.lineno = 0

    def _pull(self) -> Optional[str]:
        try:
            return next(self._it).rstrip()
        except StopIteration:
            return None

    def peek(self) -> Optional[str]:
        if not self._ahead:
            nxt = self._pull()
            if nxt is None:
                return None
            self._ahead.append(nxt)
        return self._ahead[0]

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        line = self._ahead.pop(0) if self._ahead else self._pull()
        if line is None:
            raise StopIteration
        self.lineno += 1
        return line


class Translator:
    def __init__(self, cfg: Optional[Config] = None, filename: Optional[str] = None) -> None:
        self.cfg = cfg or Config()
        self.filename = filename
        self.state = TranslationState()
        self.registry = TypeRegistry()
        self.types = TypeMapper(char_signed=self.cfg.char_signed)
        self.out = Out()
        self.lineno = 0
        self.flagged = 0
        self._reader: Optional[LineReader] = None
        self._block_at = 0
        self._comment_at = 0
        self._handlers: Dict[Kind, Callable[[LineMatch, str], None]] = {
            Kind.COMMENT_SINGLE: self._comment_single,
            Kind.COMMENT_OPEN: self._comment_open,
            Kind.COMMENT_TEXT: self._comment_text,
            Kind.COMMENT_CLOSE: self._comment_close,
            Kind.TYPEDEF: self._typedef,
            Kind.DEFINE: self._define,
            Kind.ENUM_OPEN: self._enum_open,
            Kind.ENUM_END: self._enum_end,
            Kind.ENUM_VALUE: self._enum_value,
            Kind.ENUM_IMPLICIT: self._enum_implicit,
            Kind.ENUM_OTHER: self._untranslated,
            Kind.STRUCT_OPEN: self._struct_open,
            Kind.STRUCT_FIELD: self._struct_field,
            Kind.STRUCT_END: self._struct_end,
            Kind.STRUCT_OTHER: self._untranslated,
            Kind.BLANK: self._blank,
            Kind.LINE_COMMENT: self._line_comment,
            Kind.UNTRANSLATED: self._untranslated,
        }

    def run(self, lines: Iterable[str]) -> str:
        self._reader = LineReader(lines)
        for line in self._reader:
            self.lineno = self._reader.lineno
            self.feed(line)
        self.finish()
        logger.debug("%s: %d lines, %d flagged", self.filename or "<input>", self.lineno, self.flagged)
        return self.out.get()

    def feed(self, line: str) -> None:
        m = classify(line, self.state)
        self._handlers[m.kind](m, line)

    def finish(self) -> None:
        if self.state.in_comment:
            raise UnbalancedBlockError("block comment not terminated", self.filename, self._comment_at)
        if self.state.mode == Mode.STRUCT:
            raise UnbalancedBlockError("struct body not closed", self.filename, self._block_at)
        if self.state.mode == Mode.ENUM:
            raise UnbalancedBlockError("enum body not closed", self.filename, self._block_at)
        self._close_group()

    # === helpers

    def _peek(self) -> Optional[str]:
        return self._reader.peek() if self._reader is not None else None

    def _flag(self, text: str) -> None:
        self.flagged += 1
        logger.debug("%s:%d: untranslated: %s", self.filename or "<input>", self.lineno, text.strip())
        self.out.w(COMMENT_LINE + text)

    def _emit(self, text: str, ok: bool) -> None:
        if ok:
            self.out.w(text)
        else:
            self._flag(text)

    def _open_group(self, keyword: str, mode: Mode) -> None:
        self.out.w(f"{keyword} (")
        self.out.ind += 1
        self.state.mode = mode

    def _close_group(self) -> None:
        if self.state.mode in (Mode.TYPE_BLOCK, Mode.CONST_BLOCK):
            self.out.ind -= 1
            self.out.w(")")
            self.state.mode = Mode.NONE

    def _trailing(self, rest: str) -> Tuple[str, bool]:
        rest = rest.strip()
        if not rest:
            return "", True
        return " " + rest, rest.startswith("//")

    def _gotype(self, ctype: str, stars: str, array: str) -> Tuple[str, bool]:
        depth = len(stars) + ctype.count("*")
        gotype, ok = self.types.resolve(ctype.replace("*", " ").strip(), self.registry)
        gotype = "*" * depth + gotype
        if array:
            size = array.strip()[1:-1].strip()
            if not size:
                return f"[]{gotype}", False
            gotype = f"[{normalize_literal(size)}]{gotype}"
        return gotype, ok

    # === comments

    def _comment_single(self, m: LineMatch, line: str) -> None:
        code, text = m.get("code"), m.get("text")
        if code.strip():
            self.feed(f"{code} // {text}" if text else code)
        else:
            self.out.w(f"// {text}" if text else "//")

    def _comment_open(self, m: LineMatch, line: str) -> None:
        code, text = m.get("code"), m.get("text")
        if code.strip():
            self.feed(code)
        self.state.in_comment = True
        self._comment_at = self.lineno
        if text:
            self.out.w("// " + text)

    def _comment_text(self, m: LineMatch, line: str) -> None:
        text = m.get("text")
        self.out.w(f"// {text}" if text else "//")

    def _comment_close(self, m: LineMatch, line: str) -> None:
        text, rest = m.get("text"), m.get("rest")
        if text:
            self.out.w("// " + text)
        self.state.in_comment = False
        if rest.strip():
            self.feed(rest)

    # === typedef

    def _typedef(self, m: LineMatch, line: str) -> None:
        name = m.get("name")
        if self.state.mode in (Mode.STRUCT, Mode.ENUM):
            self._flag(line)
            return

        keyword = is_go_keyword(name)
        if not keyword:
            self.registry.add(name)
        gotype, ok = self._gotype(m.get("ctype"), m.get("stars"), m.get("array"))
        trailing, rest_ok = self._trailing(m.get("rest"))
        decl = f"{name} {gotype}{trailing}"
        ok = ok and rest_ok and not keyword

        if self.state.mode == Mode.TYPE_BLOCK:
            self._emit(decl, ok)
            return

        self._close_group()
        if starts_typedef(self._peek()):
            self._open_group("type", Mode.TYPE_BLOCK)
            self._emit(decl, ok)
        else:
            self._emit("type " + decl, ok)

    # === define

    def _define(self, m: LineMatch, line: str) -> None:
        name = m.get("name")
        value, comment = split_line_comment(m.get("value"))
        value = value.strip()

        if self.state.mode == Mode.TYPE_BLOCK:
            self._close_group()

        # Function-like macros have no Go equivalent.
        if "(" in name or RE_MACRO_ARGS.search(value):
            self._flag(line)
            return

        value = normalize_literal(value)
        if is_go_keyword(name) or not is_go_expr(value):
            self._flag(line)
            return

        decl = f"{name} = {value}"
        if comment:
            decl += " " + comment.strip()

        if self.state.mode == Mode.CONST_BLOCK:
            self.out.w(decl)
        elif starts_define(self._peek()):
            self._open_group("const", Mode.CONST_BLOCK)
            self.out.w(decl)
        else:
            self.out.w("const " + decl)

    # === enum

    def _enum_open(self, m: LineMatch, line: str) -> None:
        tag = m.get("tag")

        if self.state.mode == Mode.TYPE_BLOCK:
            self._close_group()
        if self.state.mode != Mode.CONST_BLOCK:
            self._open_group("const", Mode.CONST_BLOCK)

        self.state.mode = Mode.ENUM
        self.state.last_enum_value = -1 if self.cfg.enum_zero_start else None
        self._block_at = self.lineno

        if tag:
            self.registry.add(f"enum {tag}", "int32")
            self.out.w(f"// enum {title(tag)}")
        else:
            self.out.w("// enum")

    def _enum_end(self, m: LineMatch, line: str) -> None:
        if m.get("name"):
            self._flag(line.strip())
        self.out.w()
        self.state.mode = Mode.CONST_BLOCK
        self.state.last_enum_value = None

    def _enum_value(self, m: LineMatch, line: str) -> None:
        value = m.get("value")
        trailing, _ = self._trailing(m.get("rest"))
        self.state.last_enum_value = parse_c_int(value)
        value = normalize_literal(value)
        if not is_go_expr(value):
            self._flag(line.strip())
            return
        self.out.w(f"{title(m.get('name'))} = {value}{trailing}")

    def _enum_implicit(self, m: LineMatch, line: str) -> None:
        value = next_enum_value(self.state.last_enum_value)
        if value is None:
            self._flag(line.strip())
            return
        trailing, _ = self._trailing(m.get("rest"))
        self.state.last_enum_value = value
        self.out.w(f"{title(m.get('name'))} = {value}{trailing}")

    # === struct

    def _struct_open(self, m: LineMatch, line: str) -> None:
        tag = m.get("tag")
        self._close_group()

        name = title(tag)
        self.registry.add(f"struct {tag}", name)
        trailing, _ = self._trailing(m.get("rest"))
        self.out.w(f"type {name} struct {{{trailing}")
        self.out.ind += 1
        self.state.mode = Mode.STRUCT
        self._block_at = self.lineno

    def _struct_field(self, m: LineMatch, line: str) -> None:
        gotype, ok = self._gotype(m.get("ctype"), m.get("stars"), m.get("array"))
        trailing, rest_ok = self._trailing(m.get("rest"))
        self._emit(f"{export_name(m.get('name'))} {gotype}{trailing}", ok and rest_ok)

    def _struct_end(self, m: LineMatch, line: str) -> None:
        rest = m.get("rest").strip()
        if rest.startswith(";"):
            rest = rest[1:].strip()

        self.out.ind -= 1
        self.state.mode = Mode.NONE
        if not rest or rest.startswith("//"):
            self.out.w(f"}} {rest}" if rest else "}")
            return
        self.out.w("}")
        self._flag(line.strip())

    # === everything else

    def _blank(self, m: LineMatch, line: str) -> None:
        if self.state.mode in (Mode.TYPE_BLOCK, Mode.CONST_BLOCK):
            self._close_group()
        self.out.w()

    def _line_comment(self, m: LineMatch, line: str) -> None:
        self.out.w(line.strip())

    def _untranslated(self, m: LineMatch, line: str) -> None:
        self._flag(line)


def translate(
    lines: Iterable[str],
    package: str,
    cmd: str = "goheader",
    cfg: Optional[Config] = None,
    filename: Optional[str] = None,
) -> str:
    """Translate C header lines into raw (unformatted) Go source."""
    return go_base(cmd, package) + Translator(cfg, filename).run(lines)
