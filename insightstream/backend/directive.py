"""
Pull the fenced ```json directive out of a completed assistant message.
"""

import json
import logging
import re
from typing import Optional

from insightstream.core.errors import Outcome
from insightstream.core.models import StructuredDirective

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*(\{[\s\S]*?\})\s*```")


def parse_directive(text: str) -> Outcome:
    """Parse the first fenced json block. Query is read from ``query`` or ``sql``."""
    if not text:
        return Outcome.failure("empty message")

    match = _FENCED_JSON.search(text)
    if not match:
        return Outcome.failure("no fenced json block")

    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        return Outcome.failure(f"invalid json in directive: {e}")

    if not isinstance(data, dict):
        return Outcome.failure("directive is not an object")

    query = data.get("query") or data.get("sql")
    if not isinstance(query, str) or not query.strip():
        return Outcome.failure("directive has no query")

    explanation = data.get("explanation")
    if not isinstance(explanation, str):
        explanation = None

    return Outcome.success(StructuredDirective(query=query.strip(), explanation=explanation))


def extract_directive(text: str) -> Optional[StructuredDirective]:
    """Best-effort extraction; a bad block just means no directive."""
    outcome = parse_directive(text)
    if not outcome.ok:
        logger.debug(f"No directive: {outcome.error}")
        return None
    return outcome.value
