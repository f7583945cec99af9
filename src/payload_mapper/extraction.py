"""Parsing of raw extraction responses."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field

from payload_mapper.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


class ExtractedResponse(BaseModel):
    """Main document and side channel split out of one extractor answer."""

    template_data: Any = None
    workflow_only_data: dict[str, Any] = Field(default_factory=dict)


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text).strip()


def parse_extraction_response(text: str, has_workflow_fields: bool = False) -> ExtractedResponse:
    """Parse the extractor's JSON answer.

    With ``has_workflow_fields`` the answer is expected to be a
    ``{"templateData": ..., "workflowOnlyData": ...}`` wrapper. An answer that
    does not look like the wrapper is treated as the template itself.

    Raises:
        ResponseParseError: If the answer is not JSON at all.
    """
    cleaned = strip_code_fences(text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Extraction response is not valid JSON: {e}") from e

    if not has_workflow_fields:
        return ExtractedResponse(template_data=parsed)

    if isinstance(parsed, dict) and parsed.get("templateData") and "workflowOnlyData" in parsed:
        template = _maybe_json(parsed["templateData"])
        workflow = _maybe_json(parsed["workflowOnlyData"])
        if not isinstance(workflow, dict):
            logger.warning("workflowOnlyData is not an object; ignoring it")
            workflow = {}
        return ExtractedResponse(template_data=template, workflow_only_data=workflow)

    logger.info("Extraction response has no templateData wrapper; using it as the template")
    return ExtractedResponse(template_data=parsed)


def _maybe_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(strip_code_fences(value))
    except json.JSONDecodeError:
        return value
