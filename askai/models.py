"""
Model selection: validate --model / --custom-model and pick the name sent to the API.
"""

from __future__ import annotations

from typing import Optional

from .config import ALLOWED_MODELS, CUSTOM_MODEL
from .errors import ValidationError

VALID_MODELS = ALLOWED_MODELS + (CUSTOM_MODEL,)


def select_model(model: str, custom_model: Optional[str] = None) -> str:
    """Return the effective model name, or raise ValidationError."""
    if model not in VALID_MODELS:
        raise ValidationError(f"Invalid model '{model}'. Valid values are: {', '.join(VALID_MODELS)}")

    has_custom = bool(custom_model and custom_model.strip())
    if model == CUSTOM_MODEL:
        if not has_custom:
            raise ValidationError("--custom-model must be specified when --model is 'custom'.")
        return custom_model.strip()

    if has_custom:
        raise ValidationError("--custom-model can only be specified when --model is 'custom'.")
    return model
