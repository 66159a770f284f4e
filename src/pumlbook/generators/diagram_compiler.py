"""Replace PlantUML fences and directives in a document with images.

For every located block the compiler derives the content identity, asks the
:class:`RenderCache` for the artifact (rendering only on a miss) and emits
an image reference, either a ``data:`` URI carrying the base64 SVG or a
relative link to the artifact file.
"""

from __future__ import annotations

import base64
import logging
import os
from pathlib import Path

from ..core.config import DEFAULT_MAX_DEPTH
from ..core.identity import content_identity
from ..core.includes import IncludeResolver
from ..core.models import SVG, Block, IncludeLink, OutputMode, RenderTarget
from ..core.rewriter import rewrite
from ..core.scanner import DEFAULT_PATTERNS, PatternSet, find_blocks, find_includes, find_name
from .render_cache import RenderCache

logger = logging.getLogger(__name__)

_MIME_TYPES = {SVG: "image/svg+xml"}


def _escape_alt(text: str) -> str:
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def _inside_any(link: IncludeLink, fences: list[Block]) -> bool:
    """True if *link* overlaps any fence span."""
    return any(link.start < fence.end and fence.start < link.end for fence in fences)


class DiagramCompiler:
    """Rewrite Markdown so that every diagram becomes an image reference.

    Parameters
    ----------
    cache
        Artifact cache wrapping the render gateway.
    output_mode
        ``INLINE`` embeds the SVG as base64; ``LINK`` points at the file.
    max_depth
        Depth ceiling for nested ``{{#plantuml ...}}`` expansion.
    output_type
        Artifact format requested from the gateway.
    """

    def __init__(
        self,
        cache: RenderCache,
        *,
        output_mode: OutputMode = OutputMode.INLINE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        output_type: str = SVG,
        patterns: PatternSet = DEFAULT_PATTERNS,
    ) -> None:
        self.cache = cache
        self.output_mode = output_mode
        self.max_depth = max_depth
        self.output_type = output_type
        self.patterns = patterns

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, text: str, base_dir: Path, *, source: str = "<unknown>") -> str:
        """Replace fences and directives in one document, in a single pass.

        Directives inside a fence belong to that fence: they are rendered
        as part of its content or kept verbatim with it, never expanded on
        their own.  *base_dir* is the directory of the document: directives
        resolve against it and linked images are made relative to it.
        """
        blocks = find_blocks(text, self.patterns)
        fences = list(blocks)
        if blocks.dangling is not None:
            logger.debug("Ignoring unterminated plantuml fence at offset %d in %s", blocks.dangling, source)

        links = [link for link in find_includes(text) if not _inside_any(link, fences)]
        spans: list[Block | IncludeLink] = sorted([*fences, *links], key=lambda span: span.start)

        resolver = IncludeResolver(self.max_depth, source=source)
        return rewrite(text, spans, lambda span: self._render_span(span, base_dir, resolver))

    def target_for(self, content: str) -> RenderTarget:
        return RenderTarget(
            identity=content_identity(content),
            content=content,
            name=find_name(content),
            output_type=self.output_type,
        )

    def render_markup(self, content: str, base_dir: Path) -> str:
        """Render *content* (cached) and return its Markdown image."""
        target = self.target_for(content)
        alt = _escape_alt(target.name or "")

        if self.output_mode is OutputMode.LINK:
            artifact = self.cache.ensure_rendered(target)
            return f"![{alt}]({self._link(artifact, base_dir)})"

        payload = base64.b64encode(self.cache.read(target)).decode("ascii")
        mime = _MIME_TYPES.get(target.output_type, f"image/{target.output_type}")
        return f"![{alt}](data:{mime};base64,{payload})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _render_span(self, span: Block | IncludeLink, base_dir: Path, resolver: IncludeResolver) -> str:
        if isinstance(span, Block):
            return self.render_markup(span.content, base_dir)
        return self._render_directive(span, base_dir, resolver)

    def _render_directive(self, link: IncludeLink, base_dir: Path, resolver: IncludeResolver) -> str:
        if link.escaped:
            return link.text[1:]
        content = resolver.load(link, base_dir)
        return self.render_markup(content, base_dir)

    @staticmethod
    def _link(artifact: Path, base_dir: Path) -> str:
        return Path(os.path.relpath(artifact, base_dir)).as_posix()
