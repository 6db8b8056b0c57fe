"""Versioned payload returned by the image-classification service.

Reports store the classifier's answer as JSON. Payloads are tagged with a
schema ``version``; untagged payloads in the classifier's native shape
(``wasteType``, ``quantity``, ``confidence``) are upgraded to version 1.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from wastewise.errors import ValidationError

INFERENCE_SCHEMA_VERSION = 1


class InferenceResult(BaseModel):
    version: Literal[1] = INFERENCE_SCHEMA_VERSION
    waste_type_guess: str | None = None
    quantity_estimate: str | None = None
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    raw: dict[str, Any] = Field(default_factory=dict)


def _normalize_confidence(value: Any) -> float | None:
    """Accept a 0-1 ratio or a 0-100 percentage."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Inference confidence must be numeric, got {value!r}") from None
    if confidence > 1.0:
        confidence /= 100.0
    return confidence


def parse_inference_result(payload: Any) -> InferenceResult | None:
    """Validate a classifier payload into an ``InferenceResult``.

    Raises:
        ValidationError: If the payload is not an object, has an unsupported
            version, or carries out-of-range fields.
    """
    if payload is None:
        return None
    if isinstance(payload, InferenceResult):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError("Inference result must be a JSON object")

    try:
        if "version" in payload:
            return InferenceResult.model_validate(payload)
        quantity = payload.get("quantity")
        return InferenceResult(
            waste_type_guess=payload.get("wasteType"),
            quantity_estimate=str(quantity) if quantity is not None else None,
            confidence=_normalize_confidence(payload.get("confidence")),
            raw=dict(payload),
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid inference result: {exc.errors()[0]['msg']}") from exc
