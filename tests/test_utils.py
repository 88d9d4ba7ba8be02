"""Tests for text sanitization and model JSON parsing."""

import json

import pytest

from debate_engine.utils import count_words, parse_model_json, sanitize_message, strip_code_fences


def test_sanitize_collapses_whitespace_and_strips_fences() -> None:
    raw = "```json\n  Ship   the\n\nMVP\tfirst  ```"

    assert sanitize_message(raw, 80) == "Ship the MVP first"


def test_sanitize_truncates_to_word_cap() -> None:
    raw = " ".join(f"w{i}" for i in range(100))

    message = sanitize_message(raw, 80)

    assert count_words(message) == 80
    assert message.endswith("w79")


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "plain text",
        "```\nfenced\n```",
        "a  b\n\nc " * 40,
        "``` json ```",
    ],
)
def test_sanitize_is_idempotent(raw: str) -> None:
    once = sanitize_message(raw, 80)

    assert sanitize_message(once, 80) == once


def test_strip_code_fences_keeps_content() -> None:
    assert strip_code_fences('```json\n{"continue":true}\n```').strip() == '{"continue":true}'


def test_parse_model_json_accepts_fenced_json() -> None:
    assert parse_model_json('```json\n["UX Lead"]\n```') == ["UX Lead"]


def test_parse_model_json_rejects_prose() -> None:
    with pytest.raises(json.JSONDecodeError):
        parse_model_json("Sure! Here you go: continue")
