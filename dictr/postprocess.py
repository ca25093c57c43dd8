"""
Text post-processing for dictr.

Replacement rules come from the ``replacements`` table of the config file,
e.g. ``{"slash ": "/", "new line": "\\n"}``. The special key
``lowercase_after`` toggles lowercasing of the word that follows a
replacement, so "Slash Commit." dictated to a terminal becomes "/commit".
"""

import logging
import re
from typing import Any, Mapping

logger = logging.getLogger(__name__)

LOWERCASE_AFTER_KEY = "lowercase_after"

# Characters after which a replacement is not treated as a prefix
_SENTENCE_PUNCTUATION = ".,;:!?"
# Punctuation dropped after a lowercased word
_TRAILING_PUNCTUATION = ".,!?"


def _rules(replacements: Mapping[str, Any]) -> dict:
    return {
        key: value
        for key, value in replacements.items()
        if key != LOWERCASE_AFTER_KEY and key and isinstance(value, str)
    }


def _is_prefix(value: str) -> bool:
    return bool(value) and not value[-1].isspace() and value[-1] not in _SENTENCE_PUNCTUATION


def _word_end(text: str) -> int:
    for i, char in enumerate(text):
        if not char.isalnum():
            return i
    return len(text)


def _lowercase_after(text: str, prefix: str) -> str:
    out = []
    remaining = text

    while True:
        pos = remaining.find(prefix)
        if pos < 0:
            break

        end = pos + len(prefix)
        out.append(remaining[:end])
        remaining = remaining[end:].lstrip()

        word_end = _word_end(remaining)
        out.append(remaining[:word_end].lower())
        remaining = remaining[word_end:].lstrip(_TRAILING_PUNCTUATION)

        if remaining:
            remaining = remaining.lstrip(" ")
            out.append(" ")

    out.append(remaining)
    return "".join(out)


def apply_replacements(text: str, replacements: Mapping[str, Any]) -> str:
    """
    Apply the configured replacement rules to transcribed text.

    Every rule key is matched case-insensitively and replaced by its value.
    When ``lowercase_after`` is enabled (the default) and a value ends in a
    word character, the whitespace after it is removed, the next word is
    lowercased and punctuation directly after that word is dropped.

    Example:
        >>> apply_replacements("Slash Commit, done", {"slash ": "/"})
        '/commit done'
    """
    rules = _rules(replacements)
    if not rules:
        return text

    result = text
    for source, target in rules.items():
        result = re.sub(re.escape(source), lambda _match: target, result, flags=re.IGNORECASE)

    if replacements.get(LOWERCASE_AFTER_KEY, True):
        for target in rules.values():
            if _is_prefix(target):
                result = _lowercase_after(result, target)

    if result != text:
        logger.debug(f"Replacements applied: {text!r} -> {result!r}")
    return result
