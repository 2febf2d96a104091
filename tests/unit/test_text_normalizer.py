"""Unit tests for normalize_document_text."""

from __future__ import annotations

import pytest

from src.utils.text_normalizer import normalize_document_text


class TestNormalizeDocumentText:
    @pytest.mark.parametrize("raw", ["", None, 42, b"bytes"])
    def test_non_text_input_returns_empty(self, raw) -> None:
        assert normalize_document_text(raw) == ""

    def test_collapses_whitespace_to_single_spaces(self) -> None:
        raw = "First  line\twith   gaps\n\n\n\nsecond line"
        assert normalize_document_text(raw) == "First line with gaps second line"

    def test_strips_page_counters(self) -> None:
        raw = "Intro text here\nPage 3 of 12\nmore body text"
        assert normalize_document_text(raw) == "Intro text here more body text"

    def test_page_counter_is_case_insensitive(self) -> None:
        assert normalize_document_text("alpha\npage 1 of 2\nbeta") == "alpha beta"

    def test_page_counter_inside_a_line_is_kept(self) -> None:
        assert normalize_document_text("Page 3 of 10 42") == "Page 3 of 10 42"

    def test_page_counter_split_across_lines(self) -> None:
        assert normalize_document_text("body text\nPage 1\nof 2") == "body text Page 1 of 2"
        assert normalize_document_text("Page 1\nof 2") == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Page 3 of 10 42",
            "  Page 2 of 5  \nBODY TEXT\n17",
            "Page 1\nof 2",
            "lower text\n\n\n\n---\nPAGE 4 OF 4\n\f99",
        ],
    )
    def test_idempotent_on_page_debris(self, raw: str) -> None:
        once = normalize_document_text(raw)
        assert normalize_document_text(once) == once

    def test_drops_lines_with_only_digits(self) -> None:
        raw = "body text\n42\nmore text"
        assert normalize_document_text(raw) == "body text more text"

    def test_drops_uppercase_header_lines(self) -> None:
        raw = "ANNUAL REPORT\nThe company grew this year.\nCHAPTER TWO\nRevenue rose."
        assert normalize_document_text(raw) == "The company grew this year. Revenue rose."

    def test_drops_separator_lines(self) -> None:
        raw = "above\n-----\nbelow\n=====\nend"
        assert normalize_document_text(raw) == "above below end"

    def test_form_feed_and_carriage_return_become_line_breaks(self) -> None:
        raw = "page one text\f42\r\npage two text"
        assert normalize_document_text(raw) == "page one text page two text"

    def test_mixed_case_lines_are_kept(self) -> None:
        raw = "Mixed Case Heading\nbody"
        assert normalize_document_text(raw) == "Mixed Case Heading body"

    def test_only_debris_normalizes_to_empty(self) -> None:
        assert normalize_document_text("HEADER\n12\n----\n\f") == ""

    def test_idempotent(self) -> None:
        raw = "TITLE\nSome text,  with\tspacing.\nPage 1 of 3\n7\nEnd of the document."
        once = normalize_document_text(raw)
        assert normalize_document_text(once) == once
