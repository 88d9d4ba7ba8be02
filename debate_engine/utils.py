"""Utility functions for the debate engine."""

import json
import re
from typing import Any

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?")
WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers, keeping the fenced content."""
    return CODE_FENCE_PATTERN.sub("", text)


def count_words(text: str) -> int:
    return len(text.split())


def truncate_words(text: str, max_words: int) -> str:
    """Collapse whitespace and keep at most ``max_words`` words."""
    return " ".join(text.split()[:max_words])


def sanitize_message(text: str, max_words: int) -> str:
    """Normalize model output into a finalized turn message.

    Strips code fences, collapses whitespace runs to single spaces, trims and
    truncates to ``max_words`` words. Applying it twice gives the same result
    as applying it once.
    """
    without_fences = strip_code_fences(text)
    collapsed = WHITESPACE_PATTERN.sub(" ", without_fences).strip()
    return truncate_words(collapsed, max_words)


def parse_model_json(text: str) -> Any:
    """Strictly parse JSON emitted by a model, after removing code fences.

    Raises:
        json.JSONDecodeError: when the cleaned text is not valid JSON
        RecursionError: when the JSON nests deeper than the decoder allows
    """
    return json.loads(strip_code_fences(text).strip())
