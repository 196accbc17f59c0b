import json
import logging
import re
from typing import Any

from .errors import MalformedPlanError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json / ``` fence and outer whitespace."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_plan_document(raw_text: str) -> Any:
    """Parse model output as JSON.

    Only syntax is checked here; missing plan fields are caught when the
    document is assembled into a plan.
    """
    try:
        return json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse plan JSON (%s): %r", e, raw_text)
        raise MalformedPlanError(raw_text) from e
