"""Locate PlantUML fences and ``{{#plantuml ...}}`` directives in Markdown.

Fences are found with a single left-to-right, leftmost-longest search over
a small fixed set of delimiter literals.  An opener is followed by the next
delimiter token of *any* kind, which closes the block.  An opener with no
token after it is dropped together with the rest of the buffer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from .models import Block, IncludeLink

# ---------------------------------------------------------------------------
# Delimiters
# ---------------------------------------------------------------------------

FENCE_OPENERS = ("```plantuml\n", "```plantuml\r\n")
FENCE_SUPPRESSED = ("```plantuml,ignore\n", "```plantuml,ignore\r\n")
FENCE_CLOSERS = ("```",)

NAME_MARKER = "@startuml "

_DIRECTIVE_RE = re.compile(
    r"\\\{\{#plantuml[^}]*\}\}"            # escaped, passed through
    r"|\{\{#plantuml\s+([^}]+?)\s*\}\}"   # {{#plantuml path}}
)


@dataclass(frozen=True)
class PatternSet:
    """Compiled, read-only delimiter matcher.

    Alternatives are ordered longest first, so the regex engine's
    leftmost-first choice is also the leftmost-longest one.
    """

    openers: frozenset[str]
    suppressed: frozenset[str]
    regex: re.Pattern[str]

    @classmethod
    def build(
        cls,
        openers: tuple[str, ...] = FENCE_OPENERS,
        suppressed: tuple[str, ...] = FENCE_SUPPRESSED,
        closers: tuple[str, ...] = FENCE_CLOSERS,
    ) -> "PatternSet":
        literals = sorted({*openers, *suppressed, *closers}, key=len, reverse=True)
        regex = re.compile("|".join(re.escape(lit) for lit in literals))
        return cls(frozenset(openers), frozenset(suppressed), regex)

    def is_opener(self, token: str) -> bool:
        return token in self.openers or token in self.suppressed


DEFAULT_PATTERNS = PatternSet.build()


# ---------------------------------------------------------------------------
# Fence scanning
# ---------------------------------------------------------------------------

class BlockIter:
    """Lazy iterator over the fenced blocks of one buffer.

    Not restartable: create a new one (via :func:`find_blocks`) per scan.
    After exhaustion, ``dangling`` holds the offset of an unterminated
    opener, if the buffer ended inside a block.
    """

    def __init__(self, text: str, patterns: PatternSet = DEFAULT_PATTERNS) -> None:
        self._text = text
        self._patterns = patterns
        self._matches = patterns.regex.finditer(text)
        self.dangling: Optional[int] = None

    def __iter__(self) -> "BlockIter":
        return self

    def __next__(self) -> Block:
        for opener in self._matches:
            if self._patterns.is_opener(opener.group()):
                break
        else:
            raise StopIteration

        closer = next(self._matches, None)
        if closer is None:
            self.dangling = opener.start()
            raise StopIteration

        return Block(
            start=opener.start(),
            end=closer.end(),
            content=self._text[opener.end():closer.start()],
            suppressed=opener.group() in self._patterns.suppressed,
        )


def find_blocks(text: str, patterns: PatternSet = DEFAULT_PATTERNS) -> BlockIter:
    """Return a fresh iterator over the PlantUML fences in *text*."""
    return BlockIter(text, patterns)


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------

def find_includes(text: str) -> Iterator[IncludeLink]:
    """Yield every ``{{#plantuml path}}`` directive in *text*, in order."""
    for m in _DIRECTIVE_RE.finditer(text):
        raw = m.group(0)
        if raw.startswith("\\"):
            yield IncludeLink(m.start(), m.end(), "", raw, escaped=True)
        else:
            yield IncludeLink(m.start(), m.end(), m.group(1), raw)


# ---------------------------------------------------------------------------
# Diagram header
# ---------------------------------------------------------------------------

def find_name(content: str) -> Optional[str]:
    """Return the diagram name from a ``@startuml <name>`` first line."""
    if not content.startswith(NAME_MARKER):
        return None
    first_line = content[len(NAME_MARKER):].split("\n", 1)[0].strip()
    return first_line or None
