from __future__ import annotations

import json

from resume_assistant.extraction import (
    ANSWER_PATHS,
    ExtractionRule,
    as_text,
    first_match,
    rules_for,
)


def test_first_match_respects_rule_order():
    rules = rules_for(("response", "message", "data"))
    payload = {"data": "d", "message": "m"}
    assert first_match(payload, rules) == "m"
    assert first_match(payload, tuple(reversed(rules))) == "d"


def test_first_match_on_non_mapping_is_none():
    assert first_match("text", rules_for(("message",))) is None
    assert first_match(None, rules_for(("message",))) is None


def test_as_text_treats_empty_values_as_absent():
    assert as_text(None) is None
    assert as_text("") is None
    assert as_text({}) is None
    assert as_text([]) is None
    assert as_text(0) == "0"
    assert as_text({"a": 1}) == '{"a": 1}'


def test_nested_rule_walks_paths_in_order():
    rule = ExtractionRule("response", ANSWER_PATHS)
    both = json.dumps({"result": {"answer": "deep"}, "message": "shallow"})
    assert rule.apply({"response": both}) == "deep"
    assert rule.apply({"response": json.dumps({"result": {}, "message": "shallow"})}) == "shallow"


def test_nested_rule_keeps_raw_text_when_not_json():
    rule = ExtractionRule("response", ANSWER_PATHS)
    assert rule.apply({"response": "just words"}) == "just words"
    assert rule.apply({"response": "{broken"}) == "{broken"
    assert rule.apply({"response": "[1, 2]"}) == "[1, 2]"


def test_plain_rule_does_not_unwrap():
    raw = json.dumps({"result": {"answer": "7 years"}})
    assert ExtractionRule("response").apply({"response": raw}) == raw
