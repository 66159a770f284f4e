"""mdBook integration: walk the book and rewrite every chapter.

mdBook runs a preprocessor twice: ``mdbook-plantuml supports <renderer>``
to ask whether it applies, then without arguments, piping a JSON array
``[context, book]`` to stdin and expecting the modified book on stdout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from .core.config import PlantumlConfig
from .generators.diagram_compiler import DiagramCompiler
from .generators.plantuml_renderer import RenderGateway, make_gateway
from .generators.render_cache import RenderCache

logger = logging.getLogger(__name__)

PREPROCESSOR_NAME = "plantuml"
BUILT_FOR_MDBOOK = "0.4.40"


# ---------------------------------------------------------------------------
# Book traversal
# ---------------------------------------------------------------------------

def iter_chapters(book: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield every chapter dict of *book*, depth-first, in reading order.

    Separators and part titles are skipped.  Both the ``sections`` key
    (mdBook 0.4) and ``items`` (0.5) are understood.
    """
    items = book.get("sections")
    if items is None:
        items = book.get("items", [])
    yield from _walk(items)


def _walk(items: list[Any]) -> Iterator[dict[str, Any]]:
    for item in items:
        if not isinstance(item, dict) or "Chapter" not in item:
            continue
        chapter = item["Chapter"]
        yield chapter
        yield from _walk(chapter.get("sub_items") or [])


def _minor_version(version: str) -> tuple[str, ...]:
    return tuple(version.split(".")[:2])


# ---------------------------------------------------------------------------
# Preprocessor
# ---------------------------------------------------------------------------

class Preprocessor:
    """Pre-render PlantUML diagrams in an mdBook.

    Usage::

        book = Preprocessor().run(context, book)

    Parameters
    ----------
    gateway
        Renderer to use instead of the one selected by ``book.toml``.
    """

    name = PREPROCESSOR_NAME

    def __init__(self, gateway: Optional[RenderGateway] = None) -> None:
        self._gateway = gateway

    def supports(self, renderer: str) -> bool:
        """Diagrams become plain Markdown images, so every renderer works."""
        return True

    def run(self, context: dict[str, Any], book: dict[str, Any]) -> dict[str, Any]:
        """Rewrite every chapter of *book* in place and return it.

        Raises ``OSError`` if the artifact directory cannot be created;
        per-diagram failures are logged and leave the markup unchanged.
        """
        self._check_version(context.get("mdbook_version"))

        config = PlantumlConfig.from_context(context, self.name)
        root = Path(context.get("root") or ".")
        src_dir = root / context.get("config", {}).get("book", {}).get("src", "src")

        artifact_dir = config.artifact_dir(root, src_dir)
        artifact_dir.mkdir(parents=True, exist_ok=True)

        gateway = self._gateway or make_gateway(config)
        compiler = DiagramCompiler(
            RenderCache(artifact_dir, gateway),
            output_mode=config.output_mode,
            max_depth=config.max_depth,
            output_type=config.format,
        )

        count = 0
        for chapter in iter_chapters(book):
            path = chapter.get("path")
            base_dir = (src_dir / path).parent if path else src_dir
            source = path or chapter.get("name") or "<draft>"
            chapter["content"] = compiler.process(chapter.get("content") or "", base_dir, source=source)
            count += 1

        logger.info("Processed %d chapter(s) with %s", count, gateway.name)
        return book

    def handle(self, raw: str) -> str:
        """Run the stdin/stdout protocol: JSON ``[context, book]`` in, book out."""
        payload = json.loads(raw)
        if not isinstance(payload, list) or len(payload) != 2:
            raise ValueError("expected a JSON array [context, book]")
        context, book = payload
        return json.dumps(self.run(context, book))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_version(version: Optional[str]) -> None:
        if version and _minor_version(version) != _minor_version(BUILT_FOR_MDBOOK):
            logger.warning(
                "The %s preprocessor was built against mdBook %s, but is being called from %s",
                PREPROCESSOR_NAME,
                BUILT_FOR_MDBOOK,
                version,
            )
