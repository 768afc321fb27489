import json
import math
import re
from typing import Any, Optional, Tuple

from loguru import logger

# Fields that always come back as non-negative integers, wherever they appear.
NUMERIC_FIELDS = ("calories", "protein", "carbs", "fat")

_CODE_FENCE = re.compile(r"```(?:json)?")
_TRAILING_COMMA = re.compile(r",\s*$")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text).strip()


def find_json_start(text: str) -> Optional[int]:
    """Index of the first '{' or '[' (an object wins a tie), or None."""
    brace = text.find("{")
    bracket = text.find("[")
    if brace == -1 and bracket == -1:
        return None
    if brace != -1 and (bracket == -1 or brace < bracket):
        return brace
    return bracket


def close_open_structures(fragment: str) -> str:
    """
    Make a truncated JSON fragment syntactically closed.

    Scans once, tracking open braces/brackets and whether we are inside a
    string literal (backslash escapes included), then closes a dangling
    string, drops one trailing comma and closes every open delimiter in
    reverse order.

    Args:
        fragment: Text starting at the first '{' or '['.

    Returns:
        The repaired text. It may still not be valid JSON (e.g. a value cut
        right after a colon); the caller decides what to do with that.
    """
    stack = []
    in_string = False
    escaped = False

    for ch in fragment:
        if escaped:
            escaped = False
            continue
        if ch == "\\" and in_string:
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]") and stack:
            stack.pop()

    repaired = fragment
    if in_string:
        repaired += '"'
    repaired = _TRAILING_COMMA.sub("", repaired)
    while stack:
        repaired += _CLOSERS[stack.pop()]
    return repaired


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coerce_non_negative_int(value: Any) -> int:
    """
    450 -> 450, 12.7 -> 13, "450kcal" -> 450, "120 g" -> 120, "abc" -> 0, None -> 0.
    Negative numbers clamp to 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        # exact, no float round-trip for integers too large for a float
        return max(0, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(0, _round_half_up(value))
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return 0
        number = float(match.group(0))
        if not math.isfinite(number):
            return 0
        return _round_half_up(number)
    return 0


def ensure_numbers(value: Any) -> Any:
    """Recursively coerce every calories/protein/carbs/fat field to a non-negative int, in place."""
    if isinstance(value, list):
        return [ensure_numbers(item) for item in value]
    if isinstance(value, dict):
        for key, item in value.items():
            if key in NUMERIC_FIELDS:
                value[key] = coerce_non_negative_int(item)
            else:
                value[key] = ensure_numbers(item)
    return value


def repair_json(text: str) -> Tuple[Any, Optional[str]]:
    """
    Extract one JSON value from model output, repairing truncation if needed.

    Tries, in order: a direct parse ("direct"), closing whatever the model
    left open ("repaired"), and cutting everything after the last closing
    delimiter ("truncated").

    Args:
        text: Raw model output, possibly wrapped in ```json fences, with
              prose around it, or cut off mid-value.

    Returns:
        (value, tier) where tier names the strategy that worked, or
        (None, None) when nothing usable was found.
    """
    cleaned = strip_code_fences(text or "")
    start = find_json_start(cleaned)
    if start is None:
        return None, None

    fragment = cleaned[start:]

    try:
        return ensure_numbers(json.loads(fragment)), "direct"
    except ValueError:
        pass

    try:
        return ensure_numbers(json.loads(close_open_structures(fragment))), "repaired"
    except ValueError as repair_error:
        logger.debug(f"Structural JSON repair failed: {repair_error}")

    boundary = max(fragment.rfind("}"), fragment.rfind("]"))
    if boundary > 0:
        try:
            return ensure_numbers(json.loads(fragment[: boundary + 1])), "truncated"
        except ValueError:
            pass

    return None, None


def parse_safe_json(text: str) -> Any:
    """Parsed value from model output, or None. Never raises."""
    try:
        value, tier = repair_json(text)
    except Exception as e:
        # json can still blow up on pathological input (e.g. RecursionError)
        logger.warning(f"parse_safe_json critical failure: {e}")
        return None

    if tier == "repaired":
        logger.debug("Model output was cut off mid-structure; closed open delimiters")
    elif tier == "truncated":
        logger.debug("Model output was malformed; kept everything up to the last closing delimiter")
    return value
