"""JSON-in-text extraction and verification payload validation."""

import pytest

from wastereport.services.extraction import (
    ExtractionError,
    ResultValidationError,
    extract_json_from_text,
    is_no_waste,
    parse_json_object,
    validate_verification_payload,
)


class TestExtractJsonFromText:
    def test_returns_span_between_first_and_last_brace(self):
        text = 'Sure! Here is the result: {"wasteType":"plastic","quantity":"2kg","confidence":87} Thanks'
        assert extract_json_from_text(text) == '{"wasteType":"plastic","quantity":"2kg","confidence":87}'

    def test_handles_markdown_fence(self):
        text = '```json\n{"wasteType":"glass","quantity":"1kg","confidence":70}\n```'
        assert parse_json_object(text)["wasteType"] == "glass"

    @pytest.mark.parametrize("text", ["no json here", "only an opening {", "only a closing }", ""])
    def test_missing_brace_is_an_error(self, text):
        with pytest.raises(ExtractionError):
            extract_json_from_text(text)

    def test_reversed_braces_are_an_error(self):
        with pytest.raises(ExtractionError):
            extract_json_from_text('} nothing useful {')

    def test_two_objects_do_not_parse(self):
        """The span covers both objects, which is not valid JSON."""
        text = '{"wasteType":"a"} and {"wasteType":"b"}'
        with pytest.raises(ExtractionError):
            parse_json_object(text)


class TestParseJsonObject:
    def test_rejects_nan(self):
        with pytest.raises(ExtractionError):
            parse_json_object('{"wasteType":"paper","quantity":"1kg","confidence":NaN}')

    def test_rejects_malformed_json(self):
        with pytest.raises(ExtractionError):
            parse_json_object("{wasteType: plastic}")

    def test_sentinel_is_detected(self):
        payload = parse_json_object('{"wasteType":"none","quantity":"0","confidence":100}')
        assert is_no_waste(payload)


class TestValidateVerificationPayload:
    def test_rejects_overflowing_confidence(self):
        payload = parse_json_object('{"wasteType":"plastic","quantity":"2kg","confidence":1e400}')

        with pytest.raises(ResultValidationError):
            validate_verification_payload(payload)

    def test_builds_result(self):
        result = validate_verification_payload({"wasteType": "plastic", "quantity": "2kg", "confidence": 87})
        assert result.waste_type == "plastic"
        assert result.quantity == "2kg"
        assert result.confidence == 87

    def test_accepts_float_confidence(self):
        result = validate_verification_payload({"wasteType": "metal", "quantity": "3kg", "confidence": 55.5})
        assert result.confidence == 55.5

    @pytest.mark.parametrize(
        "payload",
        [
            {"wasteType": "glass", "confidence": 90},
            {"quantity": "1kg", "confidence": 90},
            {"wasteType": "", "quantity": "1kg", "confidence": 90},
            {"wasteType": "glass", "quantity": "", "confidence": 90},
            {"wasteType": "glass", "quantity": "1kg"},
            {"wasteType": "glass", "quantity": "1kg", "confidence": "90"},
            {"wasteType": "glass", "quantity": "1kg", "confidence": True},
            {"wasteType": "glass", "quantity": 2, "confidence": 90},
        ],
    )
    def test_rejects_missing_or_mistyped_fields(self, payload):
        with pytest.raises(ResultValidationError):
            validate_verification_payload(payload)

    def test_metadata_uses_camel_case(self):
        result = validate_verification_payload({"wasteType": "plastic", "quantity": "2kg", "confidence": 87})
        assert result.to_metadata() == '{"wasteType":"plastic","quantity":"2kg","confidence":87}'
