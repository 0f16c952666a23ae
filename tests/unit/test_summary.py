"""Unit tests for knowledge_hub.services.summary."""

from __future__ import annotations

import pytest

from knowledge_hub.services.summary import DEFAULT_SUMMARY_BUDGET, summarize

_SAMPLES = [
    "",
    "   ",
    "Short body.",
    "Line one\n\n\tLine two   with   gaps",
    "word " * 80,
    "x" * 500,
    "Exactly at the budget " + "y" * (DEFAULT_SUMMARY_BUDGET - 22),
]


class TestSummarize:
    def test_collapses_whitespace_and_trims(self) -> None:
        assert summarize("  Open the\n\n console\tand   reset  ") == "Open the console and reset"

    def test_short_text_returned_unchanged(self) -> None:
        assert summarize("Reset a password.") == "Reset a password."

    def test_empty_and_none_give_empty_string(self) -> None:
        assert summarize("") == ""
        assert summarize(None) == ""
        assert summarize(" \n\t ") == ""

    def test_long_text_truncated_with_ellipsis(self) -> None:
        result = summarize("a" * 300)
        assert result == "a" * 140 + "..."

    def test_text_at_budget_not_truncated(self) -> None:
        text = "b" * DEFAULT_SUMMARY_BUDGET
        assert summarize(text) == text

    def test_custom_budget(self) -> None:
        assert summarize("abcdefgh", budget=3) == "abc..."

    def test_non_positive_budget_rejected(self) -> None:
        with pytest.raises(ValueError):
            summarize("text", budget=0)

    @pytest.mark.parametrize("content", _SAMPLES)
    def test_length_bounded(self, content: str) -> None:
        assert len(summarize(content)) <= DEFAULT_SUMMARY_BUDGET + 3

    @pytest.mark.parametrize("content", _SAMPLES)
    def test_idempotent(self, content: str) -> None:
        once = summarize(content)
        assert summarize(once) == once
