"""Value types shared by the scanner, the compiler and the render cache.

All of them are frozen dataclasses: a scan produces fresh values that are
consumed by one rewrite pass and then discarded.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OutputMode(str, Enum):
    """How a rendered diagram is referenced from the Markdown output."""
    INLINE = "inline"
    LINK = "link"


class Backend(str, Enum):
    """Which PlantUML renderer to invoke on a cache miss."""
    CLI = "cli"
    SERVER = "server"


SVG = "svg"


# ---------------------------------------------------------------------------
# Located occurrences
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Block:
    """One fenced PlantUML block located in a text buffer.

    ``start`` and ``end`` cover the full markup including both fences;
    ``content`` is the text strictly between them.
    """

    start: int
    end: int
    content: str
    suppressed: bool = False

    @property
    def snippet(self) -> str:
        return self.content


@dataclass(frozen=True)
class IncludeLink:
    """One ``{{#plantuml path}}`` directive located in a text buffer."""

    start: int
    end: int
    path: str
    text: str
    escaped: bool = False

    @property
    def suppressed(self) -> bool:
        return False

    @property
    def snippet(self) -> str:
        return self.text


# ---------------------------------------------------------------------------
# Render request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderTarget:
    """Everything a gateway needs to render one diagram."""

    identity: uuid.UUID
    content: str
    name: Optional[str] = None
    output_type: str = SVG

    @property
    def filename(self) -> str:
        """Canonical artifact file name, e.g. ``<uuid>.svg``."""
        return f"{self.identity}.{self.output_type}"
