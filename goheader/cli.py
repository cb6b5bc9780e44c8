from __future__ import annotations

import argparse
import errno
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import TranslationError
from .gofmt import format_source
from .translator import Config, Translator, go_base


logger = logging.getLogger(__name__)

VALID_SYSTEMS = ("linux", "freebsd", "openbsd", "darwin", "plan9")


@dataclass
class Options:
    system: str
    package: str
    cmd: str = "goheader"
    write: bool = False
    debug: bool = False
    output_dir: str = "."
    gofmt: str = "gofmt"
    config: Config = field(default_factory=Config)


@dataclass
class FileResult:
    path: str
    output: Optional[str] = None
    written: Optional[str] = None
    error: Optional[str] = None
    flagged: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def read_source(path: str) -> str:
    with open(path, "rb") as f:
        data = f.read()

    if data.startswith((b"\xff\xfe", b"\xfe\xff")):
        return data.decode("utf-16", errors="replace")
    if b"\x00" in data[:256]:
        return data.decode("utf-16-le", errors="replace")

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def is_header(name: str) -> bool:
    return not name.startswith(".") and name.endswith(".h")


def collect_input_paths(inp: str) -> Tuple[List[str], List[OSError]]:
    """Headers under `inp`, plus the directories that could not be read.

    An unreadable subdirectory does not stop the walk.
    """
    if os.path.isdir(inp):
        acc: List[str] = []
        errors: List[OSError] = []

        for root, _, names in os.walk(inp, onerror=errors.append):
            for n in names:
                if is_header(n):
                    acc.append(os.path.join(root, n))
        acc.sort()
        return acc, errors

    if not os.path.exists(inp):
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), inp)
    return [inp], []


def output_name(path: str, system: str) -> str:
    base = os.path.basename(path)
    if base.endswith(".h"):
        base = base[:-2]
    return f"h-{base}_{system}.go"


def process_file(
    path: str,
    opts: Options,
    formatter: Optional[Callable[[str], str]] = None,
) -> FileResult:
    try:
        text = read_source(path)
        tr = Translator(opts.config, filename=path)
        src = go_base(opts.cmd, opts.package) + tr.run(text.splitlines())

        if not opts.debug:
            if formatter is not None:
                src = formatter(src)
            else:
                src = format_source(src, gofmt=opts.gofmt, filename=path)

        if not opts.write:
            return FileResult(path, output=src, flagged=tr.flagged)

        out_path = os.path.join(opts.output_dir, output_name(path, opts.system))
        os.makedirs(opts.output_dir or ".", exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(src)
        return FileResult(path, written=out_path, flagged=tr.flagged)

    except TranslationError as e:
        return FileResult(path, error=str(e) if e.filename else f"{path}: {e}")
    except OSError as e:
        return FileResult(path, error=f"{path}: {e.strerror or e}")


def run(
    paths: Sequence[str],
    opts: Options,
    jobs: int = 1,
    formatter: Optional[Callable[[str], str]] = None,
) -> List[FileResult]:
    results: List[FileResult] = []
    files: List[str] = []

    for p in paths:
        try:
            found, errors = collect_input_paths(p)
        except OSError as e:
            errors = [e]
            found = []
        files.extend(found)
        for e in errors:
            path = e.filename or p
            results.append(FileResult(path, error=f"{path}: {e.strerror or e}"))

    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            results.extend(ex.map(lambda f: process_file(f, opts, formatter), files))
    else:
        results.extend(process_file(f, opts, formatter) for f in files)

    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    ap = argparse.ArgumentParser(prog="goheader", description="Translate C headers into Go declarations.")
    ap.add_argument("paths", nargs="*", help=".h files or directories to walk")
    ap.add_argument("-s", "--system", default="", help="target operating system (see -l)")
    ap.add_argument("-p", "--package", default="", help="name of the Go package")
    ap.add_argument("-l", "--list-systems", action="store_true", help="list valid systems and exit")
    ap.add_argument("-w", "--write", action="store_true", help="write each translation to h-<name>_<system>.go")
    ap.add_argument("-d", "--debug", action="store_true", help="output the raw translation, without gofmt")
    ap.add_argument("-o", "--output-dir", default=".", help="directory for files written with -w")
    ap.add_argument("-j", "--jobs", type=int, default=1, help="translate this many files concurrently")
    ap.add_argument("--gofmt", default="gofmt", help="gofmt executable")
    ap.add_argument("--strict-enums", action="store_true", help="flag a valueless first enumerator instead of starting at 0")
    ap.add_argument("-v", "--verbose", action="store_true", help="log every untranslated line")

    g = ap.add_mutually_exclusive_group()
    g.add_argument("--char-signed", action="store_true", help="plain C `char` maps to int8 (default)")
    g.add_argument("--char-unsigned", action="store_true", help="plain C `char` maps to uint8")

    args = ap.parse_args(argv)

    if args.list_systems:
        print("  = Systems\n")
        print("  " + " ".join(VALID_SYSTEMS))
        return 0

    if not args.system or not args.package or not args.paths:
        ap.error("-s SYSTEM, -p PACKAGE and at least one path are required")

    system = args.system.lower()
    if system not in VALID_SYSTEMS:
        ap.error(f"invalid system {args.system!r} (choose from {', '.join(VALID_SYSTEMS)})")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    opts = Options(
        system=system,
        package=args.package,
        cmd=" ".join(["goheader"] + argv),
        write=args.write,
        debug=args.debug,
        output_dir=args.output_dir,
        gofmt=args.gofmt,
        config=Config(char_signed=not args.char_unsigned, enum_zero_start=not args.strict_enums),
    )

    results = run(args.paths, opts, jobs=max(1, args.jobs))

    for r in results:
        if not r.ok:
            logger.error("%s", r.error)
            continue
        if r.written:
            print(f"[ok] wrote {r.written}")
        else:
            sys.stdout.write(r.output or "")
        if r.flagged:
            logger.info("%s: %d untranslated line(s)", r.path, r.flagged)

    return 2 if any(not r.ok for r in results) else 0


if __name__ == "__main__":
    sys.exit(main())
