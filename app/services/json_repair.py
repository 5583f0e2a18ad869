"""
Best-effort JSON recovery for LLM text output.

Models are asked for "ONLY JSON" but regularly wrap it in prose or Markdown
fences, leave trailing commas, split strings across lines, or stop mid-object
when they hit the token limit. Recovery runs in three passes:

  1. Extract the first greedy {...} span and parse it directly
  2. Apply regex repairs one at a time, re-parsing after each
  3. Truncate the span at the first parser error and close whatever
     strings, arrays and objects are still open

Usage:
    plan = extract_json(text, require_key="weeks")
    activities = extract_json_array(text)
"""
import json
import re
from typing import Any, List, Optional

from app.utils.logger import logger
from app.utils.metrics import inc


class LLMResponseParseError(Exception):
    """Raised when no valid JSON value can be recovered from a model response."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


_OPENING_FENCE_RE = re.compile(r"^```(?:json|JSON)?[ \t]*\n?")
_OBJECT_SPAN_RE = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_SPAN_RE = re.compile(r"\[.*\]", re.DOTALL)

# Applied in order; parsing is retried after each step so a value that only
# needed the first repair is never touched by the later, more invasive ones.
REPAIRS = [
    ("trailing_commas", re.compile(r",(\s*[}\]])"), r"\1"),
    ("duplicate_commas", re.compile(r",(?:\s*,)+"), ","),
    ("leading_array_commas", re.compile(r"\[\s*,"), "["),
    ("broken_strings", re.compile(r'"([^"\n]*)\n\s*([^"]*)"'), r'"\1 \2"'),
    ("missing_object_commas", re.compile(r"\}\s*\{"), "},{"),
    ("missing_array_commas", re.compile(r"\]\s*\["), "],["),
]

_DANGLING_KEY_RE = re.compile(r'([{,])\s*"(?:[^"\\]|\\.)*"\s*:?\s*$')
_TRAILING_SEPARATORS_RE = re.compile(r"[,\s]+$")


def strip_code_fences(text: str) -> str:
    """Remove a Markdown fence (```json ... ```) wrapping the whole response"""
    text = text.strip()
    if text.startswith("```"):
        text = _OPENING_FENCE_RE.sub("", text, count=1)
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def find_json_span(text: str, array: bool = False) -> Optional[str]:
    """Greedy match from the first opening brace to the last closing one"""
    match = (_ARRAY_SPAN_RE if array else _OBJECT_SPAN_RE).search(text)
    return match.group(0) if match else None


def close_truncated(fragment: str) -> str:
    """
    Close everything still open at the end of a truncated JSON fragment.

    Tracks string state so braces inside string values are not counted,
    terminates an unterminated string, drops a dangling object key and
    trailing commas, then appends closers in nesting order.
    """
    stack = []
    in_string = False
    escaped = False
    for ch in fragment:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]" and stack:
            stack.pop()

    text = fragment
    if in_string:
        if escaped:
            text = text[:-1]
        text += '"'

    text = _TRAILING_SEPARATORS_RE.sub("", text)
    if stack and stack[-1] == "{":
        match = _DANGLING_KEY_RE.search(text)
        if match:
            text = text[:match.start()] + ("{" if match.group(1) == "{" else "")
            text = _TRAILING_SEPARATORS_RE.sub("", text)

    closers = "".join("]" if opener == "[" else "}" for opener in reversed(stack))
    return text + closers


def recover_json(span: str) -> Any:
    """
    Parse a JSON span, repairing and truncating as needed.

    Raises LLMResponseParseError when every pass fails.
    """
    try:
        value = json.loads(span)
        inc("json_recovery.direct")
        return value
    except json.JSONDecodeError as first_error:
        parse_error = first_error

    logger.warning(f"[json_repair] Direct parse failed: {parse_error}")

    repaired = span
    repaired_error = parse_error
    for name, pattern, replacement in REPAIRS:
        repaired = pattern.sub(replacement, repaired)
        try:
            value = json.loads(repaired)
            logger.info(f"[json_repair] Recovered after repair step '{name}'")
            inc("json_recovery.repaired")
            return value
        except json.JSONDecodeError as e:
            repaired_error = e

    # Truncate the untouched span at the first parse error and close open structures
    logger.info(f"[json_repair] Truncating at position {parse_error.pos} ({len(span)} chars total)")
    try:
        value = json.loads(close_truncated(span[:parse_error.pos]))
        inc("json_recovery.truncated")
        return value
    except json.JSONDecodeError:
        pass

    # Same truncation on the repaired text
    try:
        value = json.loads(close_truncated(repaired[:repaired_error.pos]))
        inc("json_recovery.truncated")
        return value
    except json.JSONDecodeError:
        pass

    inc("json_recovery.failed")
    raise LLMResponseParseError(
        f"Failed to parse LLM response even after all cleanup attempts: {parse_error}",
        raw_text=span,
    )


def extract_json(text: str, require_key: Optional[str] = None) -> dict:
    """
    Recover the JSON object embedded in a model response.

    Args:
        text: Raw model output
        require_key: Top-level key the object must contain (e.g. "weeks")

    Raises:
        LLMResponseParseError: no object found, unrecoverable, or missing key
    """
    if not text or not isinstance(text, str):
        raise LLMResponseParseError("Empty response from LLM")

    span = find_json_span(strip_code_fences(text))
    if span is None:
        logger.error(f"[json_repair] No JSON found in LLM response: {text[:200]!r}")
        raise LLMResponseParseError("No JSON found in LLM response", raw_text=text)

    value = recover_json(span)
    if not isinstance(value, dict):
        raise LLMResponseParseError("LLM response JSON is not an object", raw_text=text)

    if require_key and value.get(require_key) is None:
        raise LLMResponseParseError(
            f"Invalid LLM response structure (missing {require_key})", raw_text=text
        )
    return value


def extract_json_array(text: str) -> List[Any]:
    """Recover a top-level JSON array from a model response"""
    if not text or not isinstance(text, str):
        raise LLMResponseParseError("Empty response from LLM")

    cleaned = strip_code_fences(text)
    span = find_json_span(cleaned, array=True)
    if span is None:
        raise LLMResponseParseError("No JSON array found in LLM response", raw_text=text)

    value = recover_json(span)
    if not isinstance(value, list):
        raise LLMResponseParseError("LLM response JSON is not an array", raw_text=text)
    return value
