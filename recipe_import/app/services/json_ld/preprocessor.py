"""Clean up pasted JSON-LD text before parsing."""

import json
import logging
import re
from typing import Any, Optional, Tuple

from recipe_import.app.schemas.errors import JsonParseError

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*\n([\s\S]*?)\n```$")
_ESCAPE_MARKERS = ("\\n", '\\"', "\\t", "\\\\")


def _looks_escaped(text: str) -> bool:
    return any(marker in text for marker in _ESCAPE_MARKERS)


def preprocess_json_input(text: str) -> str:
    """Strip a BOM, markdown code fences, backticks and wrapping quotes."""
    processed = text.lstrip("\ufeff").strip()

    fence = _CODE_FENCE_RE.match(processed)
    if fence:
        processed = fence.group(1).strip()

    if len(processed) >= 2 and processed.startswith("`") and processed.endswith("`"):
        processed = processed[1:-1].strip()

    # Console output often arrives as one quoted, escaped string.
    if len(processed) >= 2 and processed[0] == processed[-1] and processed[0] in "\"'":
        inner = processed[1:-1]
        if _looks_escaped(inner):
            processed = inner

    return processed


def unescape_json_text(text: str) -> Optional[str]:
    """Undo one level of JSON string escaping, or None if that is not possible."""
    if not _looks_escaped(text):
        return None
    try:
        return json.loads(f'"{text}"')
    except json.JSONDecodeError:
        return None


def detect_input_format(text: str) -> Tuple[bool, Optional[str]]:
    """Return (is_escaped, hint) describing how the text was pasted."""
    trimmed = text.strip()
    if re.match(r"^```(?:json)?\s*\n[\s\S]*\n```$", trimmed):
        return True, "Detected markdown code block. The parser will extract the JSON automatically."
    if "\\n" in trimmed:
        return True, (
            "It looks like you pasted escaped JSON from console output. "
            "The parser will try to unescape it automatically."
        )
    if len(trimmed) >= 2 and trimmed.startswith("`") and trimmed.endswith("`"):
        return True, "Detected backticks around JSON. The parser will remove them automatically."
    return False, None


def load_json(text: str) -> Tuple[Any, Optional[JsonParseError]]:
    """Parse preprocessed text, retrying once on unescaped console output.

    Returns (data, None) on success and (None, JsonParseError) on failure.
    """
    try:
        return json.loads(text), None
    except json.JSONDecodeError as exc:
        first_error = exc
    except RecursionError:
        # The decoder recurses once per nesting level.
        logger.debug("JSON-LD parse failed: nesting too deep")
        return None, JsonParseError(message="JSON is nested too deeply")

    unescaped = unescape_json_text(text)
    if unescaped is not None:
        try:
            data = json.loads(unescaped)
            logger.debug("Parsed JSON-LD after unescaping console output")
            return data, None
        except (json.JSONDecodeError, RecursionError):
            pass

    logger.debug(
        "JSON-LD parse failed at line %d column %d: %s",
        first_error.lineno,
        first_error.colno,
        first_error.msg,
    )
    return None, JsonParseError(
        message=first_error.msg,
        details=str(first_error),
        line=first_error.lineno,
        column=first_error.colno,
    )


def get_byte_size(text: str) -> int:
    return len(text.encode("utf-8"))


def is_within_size_limit(text: str, max_size_bytes: int) -> bool:
    return get_byte_size(text) <= max_size_bytes
