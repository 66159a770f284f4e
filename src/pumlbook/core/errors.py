"""Exceptions raised while rendering and resolving PlantUML diagrams.

Every error raised by the compiler derives from :class:`PlantumlError` so
callers can isolate failures per block without catching unrelated bugs.
"""

from __future__ import annotations


class PlantumlError(Exception):
    """Base class for all recoverable per-block failures."""


class RenderError(PlantumlError):
    """The external renderer failed or its artifact could not be stored."""


class ResolutionError(PlantumlError):
    """A ``{{#plantuml ...}}`` directive could not be resolved to a file."""


class PathError(PlantumlError):
    """A path or diagram name cannot be used as a stand-alone file name."""
