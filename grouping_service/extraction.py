"""
Tab Grouper - Response Extraction and JSON Recovery

Normalizes the different completion response shapes into text, then
recovers a JSON value from that text even when the model wrapped it in
a markdown fence or surrounding prose.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from .errors import ExtractionError, ParseError

logger = logging.getLogger(__name__)

FENCE = "```"


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` as a key on mappings, as an attribute otherwise."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _first(items: Any) -> Any:
    if isinstance(items, Sequence) and not isinstance(items, str) and items:
        return items[0]
    return None


def _nonempty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _top_level_keys(response: Any) -> list[str]:
    if isinstance(response, Mapping):
        return sorted(str(key) for key in response)
    if hasattr(response, "__dict__"):
        return sorted(key for key in vars(response) if not key.startswith("_"))
    return []


def extract_text(response: Any) -> str:
    """
    Pull the model's text out of a completion response.

    Tried in order: a direct ``text`` field, the nested
    ``candidates[0].content.parts[0].text`` path, then the response
    itself when it is a plain string.

    Raises:
        ExtractionError: If the response has none of these shapes
    """
    if not isinstance(response, str):
        text = _nonempty_str(_field(response, "text"))
        if text is not None:
            logger.debug("Extracted text from direct text field")
            return text

        candidate = _first(_field(response, "candidates"))
        part = _first(_field(_field(candidate, "content"), "parts"))
        text = _nonempty_str(_field(part, "text"))
        if text is not None:
            logger.debug("Extracted text from candidates[0].content.parts[0]")
            return text

    if isinstance(response, str):
        return response

    keys = _top_level_keys(response)
    logger.error(f"Unexpected response structure, keys: {keys}")
    raise ExtractionError(keys)


def _strip_json_tag(body: str) -> str:
    body = body.lstrip()
    if body.startswith("json"):
        body = body[len("json"):]
    return body.strip()


def find_fenced_object(text: str) -> Optional[str]:
    """
    Return the first ```-fenced block whose body is a ``{...}`` span.

    Consecutive fence markers are paired in order, so a closing marker may
    also open the next candidate block.
    """
    markers = []
    position = text.find(FENCE)
    while position != -1:
        markers.append(position)
        position = text.find(FENCE, position + len(FENCE))

    for start, end in zip(markers, markers[1:]):
        body = _strip_json_tag(text[start + len(FENCE):end])
        if body.startswith("{") and body.endswith("}"):
            return body
    return None


def find_brace_span(text: str) -> Optional[str]:
    """Return the span from the first ``{`` to the last ``}``, if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


def _strict_loads(text: str) -> Any:
    """json.loads without the NaN and Infinity extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def recover_json(text: str) -> Any:
    """
    Parse the model's text as JSON, digging it out of prose if needed.

    A strict parse of the whole text is tried first. Failing that, a fenced
    block is preferred over the bare brace span; whichever is found is the
    only candidate parsed.

    Raises:
        ParseError: If no candidate exists or the candidate is not valid JSON
    """
    try:
        value = _strict_loads(text)
        logger.info("Direct JSON parse successful")
        return value
    except ValueError:
        logger.info("Direct parse failed, trying to extract JSON")

    candidate = find_fenced_object(text)
    if candidate is None:
        candidate = find_brace_span(text)
    if candidate is None:
        logger.error("No JSON found in response")
        raise ParseError(ParseError.NO_JSON, text)

    try:
        value = _strict_loads(candidate)
    except ValueError as e:
        logger.error(f"Failed to parse extracted JSON: {e}")
        raise ParseError(ParseError.INVALID_JSON, text) from e

    logger.info("Extracted JSON parse successful")
    return value
