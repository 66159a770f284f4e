"""Single-pass text substitution for located blocks and directives.

A cursor walks the original buffer: text before each span is copied
verbatim, then either the replacement is appended and the cursor jumps to
the span's end, or the cursor is left at the span's start so the original
markup is copied along with the next stretch of text.  Replacements of any
length never disturb the offsets of later spans.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol, TypeVar

from .errors import PlantumlError

logger = logging.getLogger(__name__)


class Span(Protocol):
    start: int
    end: int

    @property
    def suppressed(self) -> bool: ...

    @property
    def snippet(self) -> str: ...


S = TypeVar("S", bound=Span)


def report_failure(snippet: str, exc: BaseException) -> None:
    """Log a failed substitution together with its whole cause chain."""
    logger.error('Error updating "%s", %s', snippet, exc)
    cause = exc.__cause__ or exc.__context__
    while cause is not None:
        logger.warning("Caused by: %s", cause)
        cause = cause.__cause__ or cause.__context__


def rewrite(
    text: str,
    spans: Iterable[S],
    replace: Callable[[S], str],
    *,
    on_error: Callable[[str, BaseException], None] = report_failure,
) -> str:
    """Return *text* with every span replaced by ``replace(span)``.

    *spans* must be ordered and non-overlapping.  Suppressed spans and
    spans whose replacement raises :class:`PlantumlError` are kept
    byte-for-byte; the error is passed to *on_error* and the rewrite
    carries on with the next span.
    """
    parts: list[str] = []
    cursor = 0

    for span in spans:
        parts.append(text[cursor:span.start])

        if span.suppressed:
            cursor = span.start
            continue

        try:
            replacement = replace(span)
        except PlantumlError as exc:
            on_error(span.snippet, exc)
            cursor = span.start
            continue

        parts.append(replacement)
        cursor = span.end

    parts.append(text[cursor:])
    return "".join(parts)
