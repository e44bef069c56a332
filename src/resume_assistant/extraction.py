"""Ordered reply-field extraction rules.

Agent providers name the reply field differently, and some wrap the answer
in a JSON-encoded string. Both the proxy and the widget describe what they
look for as a tuple of :class:`ExtractionRule` and take the first match.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

Path = Tuple[str, ...]

# Nested paths tried inside a JSON-encoded reply string.
ANSWER_PATHS: Tuple[Path, ...] = (("result", "answer"), ("answer",), ("message",))


def as_text(value: Any) -> Optional[str]:
    """Return ``value`` as display text, or None when it is empty/absent."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (dict, list)) and not value:
        return None
    return json.dumps(value, ensure_ascii=False)


def looks_like_json(text: str) -> bool:
    s = text.lstrip()
    return s.startswith("{") or s.startswith("[")


def _walk(obj: Any, path: Path) -> Any:
    for key in path:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


@dataclass(frozen=True)
class ExtractionRule:
    """Read ``field`` from a payload, optionally unwrapping nested JSON.

    With ``nested`` set, a value that looks like a JSON document is decoded
    and each nested path is tried in order. If decoding fails or no path
    matches, the raw field text is returned.
    """
    field: str
    nested: Tuple[Path, ...] = ()

    def apply(self, payload: Mapping[str, Any]) -> Optional[str]:
        text = as_text(payload.get(self.field))
        if text is None or not self.nested or not looks_like_json(text):
            return text
        try:
            decoded = json.loads(text)
        except ValueError:
            return text
        for path in self.nested:
            found = as_text(_walk(decoded, path))
            if found is not None:
                return found
        return text


def rules_for(fields: Iterable[str], nested: Sequence[Path] = ()) -> Tuple[ExtractionRule, ...]:
    return tuple(ExtractionRule(f, tuple(nested)) for f in fields)


def first_match(payload: Any, rules: Iterable[ExtractionRule]) -> Optional[str]:
    """Evaluate ``rules`` in priority order and return the first hit."""
    if not isinstance(payload, Mapping):
        return None
    for rule in rules:
        value = rule.apply(payload)
        if value is not None:
            return value
    return None


# The proxy passes reply strings through untouched; the widget unwraps them.
DISPLAY_RULES: Tuple[ExtractionRule, ...] = rules_for(("response", "message"), ANSWER_PATHS)
