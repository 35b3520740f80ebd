import json
import math
from numbers import Number
from typing import Any, Dict

from wastereport.models import NO_WASTE_SENTINEL, VerificationResult


class ExtractionError(ValueError):
    """No JSON object could be recovered from the model's answer"""


class ResultValidationError(ValueError):
    """The recovered object lacks required fields or has wrong field types"""


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def extract_json_from_text(text: str) -> str:
    """
    Return the span from the first '{' to the last '}' of a model answer

    Models often wrap the requested JSON in prose or markdown fences. Nested or
    reordered brace pairs are not untangled; the span simply has to parse.
    """
    start_index = text.find("{")
    end_index = text.rfind("}")

    if start_index == -1 or end_index == -1 or end_index < start_index:
        raise ExtractionError("No valid JSON object found in response")

    return text[start_index:end_index + 1]


def parse_json_object(text: str) -> Dict[str, Any]:
    """Extract and parse the JSON object embedded in a model answer"""
    json_str = extract_json_from_text(text)
    try:
        payload = json.loads(json_str, parse_constant=_reject_constant)
    except ValueError as e:
        raise ExtractionError(f"Failed to parse JSON response: {str(e)}")

    if not isinstance(payload, dict):
        raise ExtractionError("Response is not a JSON object")
    return payload


def is_no_waste(payload: Dict[str, Any]) -> bool:
    return payload.get("wasteType") == NO_WASTE_SENTINEL


def validate_verification_payload(payload: Dict[str, Any]) -> VerificationResult:
    """
    Build a VerificationResult from a parsed answer

    wasteType and quantity must be non-empty strings and confidence a finite
    number.
    """
    waste_type = payload.get("wasteType")
    quantity = payload.get("quantity")
    confidence = payload.get("confidence")

    if not isinstance(waste_type, str) or not waste_type:
        raise ResultValidationError("Invalid response format: wasteType is missing")
    if not isinstance(quantity, str) or not quantity:
        raise ResultValidationError("Invalid response format: quantity is missing")
    # bool is a Number subclass but not a confidence score
    if isinstance(confidence, bool) or not isinstance(confidence, Number):
        raise ResultValidationError("Invalid response format: confidence must be a number")
    # Overflowing literals such as 1e400 parse to inf
    if not math.isfinite(confidence):
        raise ResultValidationError("Invalid response format: confidence must be finite")

    return VerificationResult(waste_type=waste_type, quantity=quantity, confidence=confidence)
