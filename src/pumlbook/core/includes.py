"""Recursive expansion of ``{{#plantuml path}}`` directives.

A directive is replaced by the contents of the file it names.  That text
may hold further directives, which are resolved relative to *its* directory
one level deeper.  There is no visited set: a file that includes itself is
expanded until the depth ceiling, where the remaining directives are left
as literal text (escaped ones are still unescaped) and a warning is
logged.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import DEFAULT_MAX_DEPTH
from .errors import PathError, ResolutionError
from .models import IncludeLink
from .rewriter import rewrite
from .scanner import find_includes

logger = logging.getLogger(__name__)


class IncludeResolver:
    """Expand directives relative to a moving base directory.

    Parameters
    ----------
    max_depth
        Expansion stops once this many nested files have been read.
    source
        Name of the originating document, used in diagnostics.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, source: str = "<unknown>") -> None:
        self.max_depth = max_depth
        self.source = source

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_path(self, link: IncludeLink, base_dir: Path) -> Path:
        """Return the regular file *link* points at from *base_dir*."""
        if Path(link.path).name in ("", ".", ".."):
            raise PathError(f"include path {link.path!r} does not name a file")

        path = base_dir / link.path
        if not path.is_file():
            raise ResolutionError(f"{path} does not exist or is not a regular file")
        return path

    def load(self, link: IncludeLink, base_dir: Path, depth: int = 0) -> str:
        """Read the file behind *link* and expand its own directives."""
        path = self.resolve_path(link, base_dir)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResolutionError(f"could not read {path}") from exc

        logger.debug("Included %s at depth %d (from %s)", path, depth + 1, self.source)
        return self.expand(raw, path.parent, depth + 1)

    def expand(self, text: str, base_dir: Path, depth: int = 0) -> str:
        """Replace every directive in *text* with the referenced contents."""
        if depth >= self.max_depth:
            pending = [link for link in find_includes(text) if not link.escaped]
            if pending:
                logger.warning(
                    "Maximum include depth %d reached in %s, leaving %d directive(s) unexpanded: %s",
                    self.max_depth,
                    self.source,
                    len(pending),
                    pending[0].text,
                )
            return rewrite(text, find_includes(text), _literal)

        return rewrite(
            text,
            find_includes(text),
            lambda link: self._substitute(link, base_dir, depth),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _substitute(self, link: IncludeLink, base_dir: Path, depth: int) -> str:
        if link.escaped:
            return link.text[1:]
        return self.load(link, base_dir, depth)


def _literal(link: IncludeLink) -> str:
    """Unescape escaped directives and keep the others as written."""
    return link.text[1:] if link.escaped else link.text
