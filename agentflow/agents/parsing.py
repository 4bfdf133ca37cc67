"""Lenient parsing of structured model output."""

import copy
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from langchain_core.messages import AnyMessage, HumanMessage

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """Default used because the raw text could not be parsed."""

    value: T
    raw: str
    reason: str


ParseResult = Parsed[T] | Fallback[T]


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = raw.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_json_or_default(raw: str, default: T) -> ParseResult[T]:
    """Parse ``raw`` as JSON of the same kind as ``default``.

    Never raises. Returns ``Parsed`` with the decoded value, or ``Fallback``
    carrying a copy of ``default`` when the text is not valid JSON or decodes
    to a different container type (for example a list where an object was
    expected).
    """
    text = strip_code_fences(raw or "")
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Falling back to default after unparsable model output: {e}")
        return Fallback(value=copy.deepcopy(default), raw=raw, reason=str(e))

    if isinstance(default, dict) and not isinstance(value, dict):
        reason = f"expected a JSON object, got {type(value).__name__}"
        logger.warning(f"Falling back to default: {reason}")
        return Fallback(value=copy.deepcopy(default), raw=raw, reason=reason)

    return Parsed(value=value)


def latest_user_text(messages: list[AnyMessage]) -> str:
    """Return the text of the most recent human message, or ``""``."""
    for message in reversed(messages):
        if isinstance(message, HumanMessage):
            content = message.content
            if isinstance(content, str):
                return content
            return "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
    return ""
