"""Tests for markup escaping and title normalisation."""

from __future__ import annotations

from app.utils import escape_markup, normalize_title


def test_escape_markup_replaces_reserved_characters() -> None:
    assert escape_markup('<b>"Tom & Jerry"</b>') == (
        "&lt;b&gt;&quot;Tom &amp; Jerry&quot;&lt;/b&gt;"
    )


def test_escape_markup_escapes_existing_entities_again() -> None:
    assert escape_markup("&lt;") == "&amp;lt;"
    assert escape_markup("&amp;") == "&amp;amp;"


def test_escape_markup_output_has_no_raw_markup() -> None:
    samples = ["<script>", 'a"b', "&&&", "&quot;<>", "plain", "", "🎬 & <🍜>"]
    for sample in samples:
        escaped = escape_markup(sample)
        assert "<" not in escaped
        assert ">" not in escaped
        assert '"' not in escaped
        # Every ampersand starts one of the produced entities.
        for index, char in enumerate(escaped):
            if char == "&":
                assert escaped[index:].startswith(("&amp;", "&lt;", "&gt;", "&quot;"))


def test_escape_markup_handles_none() -> None:
    assert escape_markup(None) == ""


def test_normalize_title_folds_case_and_trims() -> None:
    assert normalize_title("  Foo ") == "foo"
    assert normalize_title("STRASSE") == normalize_title("strasse")
