"""Preprocessor configuration.

Values come from the ``[preprocessor.plantuml]`` table of ``book.toml``,
which mdBook forwards inside the JSON context::

    [preprocessor.plantuml]
    command = "mdbook-plantuml"
    plantuml-cmd = "java -jar /opt/plantuml.jar"
    output-mode = "link"
    max-depth = 5

mdBook's own keys (``command``, ``before``, ``after``, ``renderers``) are
ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import SVG, Backend, OutputMode

DEFAULT_MAX_DEPTH = 10


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class PlantumlConfig(BaseModel):
    """Settings for one preprocessor run."""

    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    plantuml_cmd: str = "plantuml"
    backend: Backend = Backend.CLI
    server_url: str = "https://www.plantuml.com/plantuml"
    pipe: bool = True
    output_mode: OutputMode = OutputMode.INLINE
    cache_dir: str = ".plantuml_cache"
    image_dir: str = "plantuml_images"
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    format: str = SVG
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("format")
    @classmethod
    def _only_svg(cls, value: str) -> str:
        value = value.lower()
        if value != SVG:
            raise ValueError(f"unsupported output format {value!r}, only 'svg' is supported")
        return value

    @field_validator("server_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_context(cls, context: dict[str, Any], name: str = "plantuml") -> "PlantumlConfig":
        """Build the config from an mdBook preprocessor context."""
        table = (
            context.get("config", {})
            .get("preprocessor", {})
            .get(name, {})
        )
        return cls.model_validate(table or {})

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def artifact_dir(self, root: Path, src_dir: Path) -> Path:
        """Directory holding rendered artifacts for this output mode.

        Linked images must live under the book's ``src`` so mdBook copies
        them into the rendered site; inlined images only need a cache.
        """
        if self.output_mode is OutputMode.LINK:
            return src_dir / self.image_dir
        return root / self.cache_dir
