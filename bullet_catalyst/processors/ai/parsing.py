"""Tolerant JSON extraction for provider replies.

Providers asked for strict JSON still wrap it in code fences or commentary,
or answer with single-quoted Python-ish dicts. ``parse_provider_json`` tries,
in order:

1. the fenced block (or the whole reply) as JSON;
2. the brace-balanced object around the ``results`` key;
3. a lenient repair of quotes, bare keys and trailing commas.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Optional

_fence_re = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?([\s\S]*?)\s*```")
_quoted_key_re = re.compile(r'"results"\s*:')
_loose_key_re = re.compile(r"""'?results'?\s*:""")
_literal_map = {"True": "true", "False": "false", "None": "null"}


def strip_code_fences(text: str) -> str:
    m = _fence_re.search(text or "")
    if m:
        return m.group(1).strip()
    return (text or "").strip()


def _has_results(obj: Any) -> bool:
    return isinstance(obj, dict) and isinstance(obj.get("results"), list)


def _try_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    try:
        obj = json.loads(text)
    except (TypeError, ValueError):
        return None
    return obj if _has_results(obj) else None


def _skip_string(text: str, start: int) -> int:
    """Index just past the double-quoted string opening at ``start``."""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return len(text)


def _enclosing_brace(text: str, pos: int) -> int:
    """Walk back from ``pos`` to the ``{`` that opens the object containing it."""
    depth = 0
    for i in range(pos - 1, -1, -1):
        ch = text[i]
        if ch == "}":
            depth += 1
        elif ch == "{":
            if depth == 0:
                return i
            depth -= 1
    return -1


def _balanced_object(text: str, start: int) -> Optional[str]:
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == '"':
            i = _skip_string(text, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
        i += 1
    return None


def iter_results_objects(text: str) -> Iterator[str]:
    """Balanced ``{...}`` substrings around each ``results`` key, quoted keys first.

    Matches that sit in prose rather than inside an object are skipped.
    """
    text = text or ""
    seen: set[int] = set()
    for pattern in (_quoted_key_re, _loose_key_re):
        for m in pattern.finditer(text):
            start = _enclosing_brace(text, m.start())
            if start == -1 or start in seen:
                continue
            seen.add(start)
            chunk = _balanced_object(text, start)
            if chunk is not None:
                yield chunk


def find_results_object(text: str) -> Optional[str]:
    """Return the object around the ``results`` key.

    The first candidate that parses as JSON wins; otherwise the first
    balanced candidate is returned for repair.
    """
    first: Optional[str] = None
    for chunk in iter_results_objects(text):
        if _try_json(chunk) is not None:
            return chunk
        if first is None:
            first = chunk
    return first


def _next_significant(text: str, i: int) -> str:
    while i < len(text) and text[i].isspace():
        i += 1
    return text[i] if i < len(text) else ""


def repair_json(text: str) -> str:
    """Rewrite JSON-ish text into strict JSON.

    Single-quoted strings become double-quoted, bare identifier keys get
    quoted, Python literals are mapped, and trailing commas are dropped.
    """
    out: List[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = _skip_string(text, i)
            out.append(text[i:end])
            i = end
        elif ch == "'":
            buf: List[str] = []
            i += 1
            while i < n:
                c = text[i]
                if c == "\\" and i + 1 < n:
                    nxt = text[i + 1]
                    buf.append("'" if nxt == "'" else c + nxt)
                    i += 2
                    continue
                # an apostrophe only closes the string before structural punctuation
                if c == "'" and _next_significant(text, i + 1) in {",", ":", "}", "]", ""}:
                    i += 1
                    break
                buf.append('\\"' if c == '"' else c)
                i += 1
            out.append('"' + "".join(buf) + '"')
        elif ch.isalpha() or ch == "_":
            j = i
            while j < n and (text[j].isalnum() or text[j] in "_-"):
                j += 1
            word = text[i:j]
            if _next_significant(text, j) == ":":
                out.append(f'"{word}"')
            else:
                out.append(_literal_map.get(word, word))
            i = j
        elif ch == "," and _next_significant(text, i + 1) in {"}", "]"}:
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _candidates(text: str) -> Iterator[Optional[Dict[str, Any]]]:
    body = strip_code_fences(text)
    # tier 1: fenced block or the whole reply
    yield _try_json(body)
    # tier 2: object embedded in prose
    chunk = find_results_object(body)
    if chunk is None and body != text:
        chunk = find_results_object(text)
    yield _try_json(chunk)
    # tier 3: lenient repair
    if chunk:
        yield _try_json(repair_json(chunk))
    yield _try_json(repair_json(body))


def parse_provider_json(text: str | None) -> Optional[Dict[str, Any]]:
    """Extract a JSON object holding a ``results`` list from a provider reply.

    Returns None when no tier recovers such an object.
    """
    if not text or not str(text).strip():
        return None
    for obj in _candidates(str(text)):
        if obj is not None:
            return obj
    return None
