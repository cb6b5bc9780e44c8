from __future__ import annotations

import subprocess
from typing import Optional

from .errors import FormatError


def format_source(src: str, gofmt: str = "gofmt", filename: Optional[str] = None) -> str:
    """Run `src` through gofmt and return the canonical Go source."""
    try:
        p = subprocess.run(
            [gofmt],
            input=src,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise FormatError(f"cannot run {gofmt}: {e}", filename) from e

    if p.returncode != 0:
        raise FormatError(f"gofmt failed:\n{p.stderr.strip()}", filename)
    return p.stdout
