"""Shared fixtures: a fake PlantUML gateway that counts invocations."""

from __future__ import annotations

from pathlib import Path

import pytest

from pumlbook.core.errors import RenderError
from pumlbook.core.models import RenderTarget
from pumlbook.generators.plantuml_renderer import RenderGateway


class FakeGateway(RenderGateway):
    """Writes a tiny SVG naming the target identity; fails on marked content."""

    name = "fake"

    def __init__(self, fail_marker: str = "FAIL") -> None:
        self.fail_marker = fail_marker
        self.calls: list[RenderTarget] = []

    def render(self, target: RenderTarget, workdir: Path) -> Path:
        self.calls.append(target)
        if self.fail_marker in target.content:
            try:
                raise OSError("plantuml exited with status 1")
            except OSError as exc:
                raise RenderError("could not run plantuml") from exc
        output = workdir / target.filename
        output.write_text(f"<svg>{target.identity}</svg>", encoding="utf-8")
        return output


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def cache_dir(tmp_path):
    d = tmp_path / "cache"
    d.mkdir()
    return d
