"""
Plain-text length of a markdown body, shown next to each case in the admin listing.
"""

import re

# Applied in order; fenced blocks go first so their contents never reach the inline rules
_STRIP_RULES = [
    (re.compile(r'```[\s\S]*?```'), ''),
    (re.compile(r'^[ \t]*(?:#{1,6}[ \t]+)+', re.MULTILINE), ''),
    (re.compile(r'\*\*(.*?)\*\*'), r'\1'),
    (re.compile(r'\*(.*?)\*'), r'\1'),
    (re.compile(r'\[([^\]]*)\]\([^)]*\)'), r'\1'),
    (re.compile(r'`([^`]*)`'), r'\1'),
    (re.compile(r'\s+'), ' '),
]


def _strip_once(text: str) -> str:
    for pattern, replacement in _STRIP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def strip_markdown(text: str) -> str:
    """
    Remove markdown syntax and collapse whitespace to single spaces.

    Unwrapping inline code or joining lines can expose new syntax (a ``#``
    at the start of the text, say), so the rules repeat until nothing changes.
    """
    stripped = _strip_once(text)
    while stripped != text:
        text, stripped = stripped, _strip_once(stripped)
    return stripped


def word_count(text: str) -> int:
    """Character count of the stripped text."""
    return len(strip_markdown(text))
