"""
Tab Grouper - Input and Output Validation

Guards at both ends of the pipeline: the incoming tab batch and the
mapping recovered from the model.
"""

import logging
from typing import Any

import pydantic

from .errors import InputError, ValidationError
from .models import Tab

logger = logging.getLogger(__name__)


def validate_tabs(body: Any) -> list[Tab]:
    """
    Turn a raw request body into a non-empty tab batch.

    Raises:
        InputError: If the tab list is missing or empty, or an entry
            is not a JSON object
    """
    tabs = body.get("tabs") if isinstance(body, dict) else None
    if not isinstance(tabs, list) or not tabs:
        raise InputError()

    batch = []
    for index, raw_tab in enumerate(tabs):
        try:
            batch.append(Tab.model_validate(raw_tab))
        except pydantic.ValidationError as e:
            logger.warning(f"Rejecting tab entry {index}: {e.error_count()} validation errors")
            raise InputError("Invalid tab entry", index=index) from e
    return batch


def validate_groups(value: Any) -> dict:
    """Accept only a JSON object; ids and key types are not checked."""
    if not isinstance(value, dict):
        raise ValidationError(value)
    return value
