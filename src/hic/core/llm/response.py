"""Strict parsing and schema validation of insight generator output.

The generator is an untrusted boundary. Its reply must be exactly one JSON
object, either bare or as the only content of a fenced code block; JSON is
never scraped out of surrounding prose. The decoded object is then validated
against the pydantic model registered for the analysis type.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

_FENCED = re.compile(r"\A```(?:json)?[ \t]*\n(.*)\n```\Z", re.DOTALL)


class ResponseFormatError(ValueError):
    """Raised when generator output is not a schema-valid JSON object."""


def extract_json_object(content: str) -> dict[str, Any]:
    """Decode ``content`` as a single JSON object.

    Accepts a bare object or one fenced block (```json ... ```) with nothing
    around it.

    Raises:
        ResponseFormatError: On empty output, extra prose, invalid JSON, or a
            JSON value that is not an object.
    """
    text = (content or "").strip()
    if not text:
        raise ResponseFormatError("empty response")

    fenced = _FENCED.match(text)
    if fenced:
        text = fenced.group(1).strip()

    if not text.startswith("{"):
        raise ResponseFormatError("response is not a JSON object")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResponseFormatError(f"invalid JSON: {exc.msg} at position {exc.pos}") from exc

    if not isinstance(data, dict):
        raise ResponseFormatError("response is not a JSON object")
    return data


def validate_payload(data: dict[str, Any], schema: type[BaseModel]) -> dict[str, Any]:
    """Validate ``data`` against ``schema`` and return the normalized document.

    Raises:
        ResponseFormatError: If validation fails.
    """
    try:
        model = schema.model_validate(data)
    except ValidationError as exc:
        logger.debug("Generator output failed %s validation: %s", schema.__name__, exc)
        raise ResponseFormatError(
            f"{exc.error_count()} validation error(s) against {schema.__name__}"
        ) from exc
    return model.model_dump(mode="json", exclude_none=True)


def parse_response(content: str, schema: type[BaseModel]) -> dict[str, Any]:
    """Extract and validate in one step."""
    return validate_payload(extract_json_object(content), schema)
