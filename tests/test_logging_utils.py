from __future__ import annotations

from feedmatch.logging_utils import LogBlockBuilder, _as_text, render_fields_block


class TestAsText:
    def test_none_and_blank(self):
        assert _as_text(None) == "-"
        assert _as_text("   ") == "-"

    def test_float_is_rounded(self):
        assert _as_text(0.8456) == "0.85"

    def test_sequences_are_joined(self):
        assert _as_text(["tmdb", "fanart"]) == "tmdb, fanart"
        assert _as_text([]) == "-"


class TestLogBlockBuilder:
    def test_title_is_underlined(self):
        block = LogBlockBuilder("Poster Fetched", pad_top=False).render()
        assert block.splitlines() == ["Poster Fetched", "--------------"]

    def test_pad_top_adds_blank_line(self):
        assert LogBlockBuilder("Poster Fetched").render().startswith("\nPoster Fetched")

    def test_fields_are_aligned(self):
        builder = LogBlockBuilder("Poster Fetched", pad_top=False)
        builder.add_fields({"Release": 42, "Confidence": 0.95})

        lines = builder.render().splitlines()

        assert lines[2] == "    Release   : 42"
        assert lines[3] == "    Confidence: 0.95"

    def test_long_values_wrap(self):
        builder = LogBlockBuilder("Poster Fetched", wrap_width=50, pad_top=False)
        builder.add_fields([("Title", "word " * 20)])

        lines = builder.render().splitlines()

        assert len(lines) > 3
        assert all(len(line) <= 50 for line in lines)

    def test_empty_fields_are_ignored(self):
        builder = LogBlockBuilder("Poster Fetched", pad_top=False)
        builder.add_fields(None)
        builder.add_fields({})
        assert len(builder.render().splitlines()) == 2

    def test_section_with_entries(self):
        builder = LogBlockBuilder("Poster Not Found", pad_top=False)
        builder.add_fields({"Release": 5})
        builder.add_section("Attempts", ["igdb: miss", ""])

        lines = builder.render().splitlines()

        assert lines[-3:] == ["", "Attempts:", "    - igdb: miss"]

    def test_empty_section(self):
        builder = LogBlockBuilder("Poster Not Found", pad_top=False)
        builder.add_section("Attempts", [])
        assert builder.render().splitlines()[-1] == "    (none)"


def test_render_fields_block():
    block = render_fields_block("Poster Reused From Cache", {"File": "tmdb-603-w500.jpg"}, pad_top=False)
    assert block.splitlines()[-1] == "    File    : tmdb-603-w500.jpg"
