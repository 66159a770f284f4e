"""Tests for content-addressed diagram identities."""

from __future__ import annotations

import uuid

from pumlbook.core.identity import content_identity
from pumlbook.core.scanner import find_blocks


DIAGRAM = "@startuml X\nfoo\n@enduml\n"


class TestContentIdentity:
    def test_returns_uuid(self):
        assert isinstance(content_identity(DIAGRAM), uuid.UUID)

    def test_deterministic(self):
        assert content_identity(DIAGRAM) == content_identity(DIAGRAM)

    def test_str_and_bytes_agree(self):
        assert content_identity(DIAGRAM) == content_identity(DIAGRAM.encode("utf-8"))

    def test_single_byte_change(self):
        assert content_identity(DIAGRAM) != content_identity(DIAGRAM.replace("foo", "fop"))

    def test_trailing_newline_matters(self):
        assert content_identity("A") != content_identity("A\n")

    def test_halves_differ(self):
        value = content_identity(DIAGRAM).int
        assert value >> 64 != value & ((1 << 64) - 1)

    def test_independent_of_position(self):
        fence = f"```plantuml\n{DIAGRAM}```"
        first = list(find_blocks(f"intro\n{fence}\n"))[0]
        second = list(find_blocks(f"other chapter\n\n\n{fence}"))[0]
        assert first.start != second.start
        assert content_identity(first.content) == content_identity(second.content)

    def test_unicode_content(self):
        assert content_identity("@startuml Ünïcode\n@enduml") == content_identity("@startuml Ünïcode\n@enduml")
