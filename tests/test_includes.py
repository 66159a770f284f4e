"""Tests for recursive ``{{#plantuml path}}`` expansion."""

from __future__ import annotations

import logging

import pytest

from pumlbook.core.errors import PathError, ResolutionError
from pumlbook.core.includes import IncludeResolver
from pumlbook.core.models import IncludeLink
from pumlbook.core.scanner import find_includes


def _link(path: str) -> IncludeLink:
    (link,) = find_includes(f"{{{{#plantuml {path}}}}}")
    return link


class TestResolvePath:
    def test_resolves_against_base_dir(self, tmp_path):
        (tmp_path / "a.puml").write_text("@startuml\n@enduml\n")
        assert IncludeResolver().resolve_path(_link("a.puml"), tmp_path) == tmp_path / "a.puml"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ResolutionError):
            IncludeResolver().resolve_path(_link("missing.puml"), tmp_path)

    def test_directory_is_not_a_file(self, tmp_path):
        (tmp_path / "dir.puml").mkdir()
        with pytest.raises(ResolutionError):
            IncludeResolver().resolve_path(_link("dir.puml"), tmp_path)

    def test_path_without_file_name(self, tmp_path):
        with pytest.raises(PathError):
            IncludeResolver().resolve_path(_link(".."), tmp_path)


class TestExpand:
    def test_no_directives(self, tmp_path):
        assert IncludeResolver().expand("plain", tmp_path) == "plain"

    def test_nested_paths_are_relative_to_including_file(self, tmp_path):
        sub = tmp_path / "sub"
        sub.mkdir()
        (sub / "outer.puml").write_text("@startuml\n{{#plantuml ./inner.puml}}\n@enduml\n")
        (sub / "inner.puml").write_text("A -> B")
        # a sibling of the document with the same name must not be picked up
        (tmp_path / "inner.puml").write_text("WRONG")

        result = IncludeResolver().load(_link("sub/outer.puml"), tmp_path)
        assert result == "@startuml\nA -> B\n@enduml\n"

    def test_escaped_directive_is_unescaped(self, tmp_path):
        (tmp_path / "a.puml").write_text(r"note: \{{#plantuml b.puml}}")
        result = IncludeResolver().load(_link("a.puml"), tmp_path)
        assert result == "note: {{#plantuml b.puml}}"

    def test_missing_nested_file_kept_literal(self, tmp_path, caplog):
        (tmp_path / "a.puml").write_text("x {{#plantuml gone.puml}} y")
        with caplog.at_level(logging.ERROR):
            result = IncludeResolver().load(_link("a.puml"), tmp_path)
        assert result == "x {{#plantuml gone.puml}} y"
        assert any("gone.puml" in r.getMessage() for r in caplog.records)

    def test_load_missing_top_level_raises(self, tmp_path):
        with pytest.raises(ResolutionError):
            IncludeResolver().load(_link("nope.puml"), tmp_path)

    def test_self_include_stops_at_max_depth(self, tmp_path, caplog):
        (tmp_path / "loop.puml").write_text("X\n{{#plantuml loop.puml}}\n")
        resolver = IncludeResolver(max_depth=3, source="chapter_1.md")

        with caplog.at_level(logging.WARNING, logger="pumlbook.core.includes"):
            result = resolver.load(_link("loop.puml"), tmp_path)

        assert result == "X\nX\nX\n{{#plantuml loop.puml}}\n\n\n"
        warnings = [r.getMessage() for r in caplog.records]
        assert len(warnings) == 1
        assert "chapter_1.md" in warnings[0]
        assert "Maximum include depth 3" in warnings[0]

    def test_escaped_directive_is_unescaped_at_max_depth(self, tmp_path):
        (tmp_path / "a.puml").write_text("x \\{{#plantuml z}}\n{{#plantuml b.puml}}")
        (tmp_path / "b.puml").write_text("y \\{{#plantuml z}}")
        result = IncludeResolver(max_depth=2).load(_link("a.puml"), tmp_path)
        assert result == "x {{#plantuml z}}\ny {{#plantuml z}}"

    def test_mutual_cycle_is_bounded(self, tmp_path):
        (tmp_path / "a.puml").write_text("a{{#plantuml b.puml}}")
        (tmp_path / "b.puml").write_text("b{{#plantuml a.puml}}")
        result = IncludeResolver(max_depth=10).load(_link("a.puml"), tmp_path)
        assert result == "ab" * 5 + "{{#plantuml a.puml}}"
