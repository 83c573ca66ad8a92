"""
Tests for OCR transcript normalisation.
"""

import pytest

from models.id_text_normalizer import NormalizedText, normalize_ocr_text, transcript_from_payload


class TestNormalizeOcrText:

    def test_lines_are_trimmed_and_blank_lines_dropped(self):
        text = normalize_ocr_text("  Surname/Nom \n\n   \nDOE\n")

        assert text.lines == ["Surname/Nom", "DOE"]

    def test_full_text_joins_lines_with_single_spaces(self):
        text = normalize_ocr_text("Date of Birth\n 15/03/1990 \nACCRA")

        assert text.full_text == "Date of Birth 15/03/1990 ACCRA"
        assert text.lower_text == "date of birth 15/03/1990 accra"

    def test_order_is_preserved(self):
        text = normalize_ocr_text("c\nb\na")

        assert text.lines == ["c", "b", "a"]

    @pytest.mark.parametrize("raw", [None, 123, {}, ["line"], b"bytes"])
    def test_non_string_input_gives_empty_result(self, raw):
        assert normalize_ocr_text(raw) == NormalizedText([], "", "")


class TestTranscriptFromPayload:

    def test_reads_nested_text(self):
        assert transcript_from_payload({"text": {"text": "hello"}}) == "hello"

    @pytest.mark.parametrize("payload", [
        None,
        123,
        "text",
        {},
        {"text": {}},
        {"text": "flat"},
        {"text": {"text": 42}},
    ])
    def test_other_shapes_give_none(self, payload):
        assert transcript_from_payload(payload) is None
