"""Tests for REPL command helpers."""

from redom.commands._utils import truncate_string


def test_short_text_untouched():
    assert truncate_string("<p>x</p>", 100) == "<p>x</p>"


def test_zero_means_no_limit():
    assert truncate_string("x" * 10_000, 0) == "x" * 10_000


def test_long_text_marked():
    truncated = truncate_string("abcdefghij", 4)

    assert truncated.startswith("abcd\n")
    assert "10 chars total" in truncated
