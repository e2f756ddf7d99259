from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSERS = {"{": "}", "[": "]"}


class StructuredOutputError(ValueError):
    def __init__(self, message: str, *, raw: str = ""):
        super().__init__(message)
        self.code = "malformed_output"
        self.raw = raw


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").replace("```", "").strip()


def _first_structure(text: str) -> str:
    starts = [index for index in (text.find("{"), text.find("[")) if index >= 0]
    return text[min(starts):] if starts else text


def balance_brackets(text: str) -> str:
    """Append the closers needed for every brace/bracket left open outside strings."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]") and stack and stack[-1] == char:
            stack.pop()

    repaired = text
    if in_string:
        repaired += '"'
    repaired = repaired.rstrip().rstrip(",")
    return repaired + "".join(reversed(stack))


def repair_json(text: str) -> Any:
    """Parse completion output, repairing fences, trailing commas and unclosed structures."""
    if not text or not text.strip():
        raise StructuredOutputError("Structured output is empty.", raw=text or "")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    candidate = _TRAILING_COMMA_RE.sub(r"\1", balance_brackets(_first_structure(cleaned)))
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise StructuredOutputError(f"Unable to repair structured output: {exc.msg}", raw=text) from exc


def try_repair_json(text: str) -> Any | None:
    try:
        return repair_json(text)
    except StructuredOutputError:
        return None
