# WORKFLOW: Scheme-name canonicalization and display cleaning.
# Used by: Row extraction, dedup engine, persistence reconciler, search index
# Functions:
# 1. canonicalize() - Raw scheme name -> comparison key ("hdfc equity fund")
# 2. clean_display() - Raw scheme name -> stored display name without plan boilerplate
#
# Key flow: raw name -> lowercase -> drop punctuation -> single spaces -> key
# Display flow: raw name -> edge trim -> remove plan noise (longest first) -> edge trim

"""
Scheme-name canonicalization and display cleaning.
"""

import re
from typing import List, Pattern, Tuple

_NON_KEY_CHARS = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

# Plan-type boilerplate: (pattern, removed anywhere in the name?)
# Anything not marked "anywhere" is only removed as a trailing suffix.
NOISE_PATTERNS: List[Tuple[str, bool]] = [
    ("- Reg - Growth (Re-launched", False),
    ("- Reg - Growth", True),
    ("- Reg - Gth", True),
    ("- Reg - G P", True),
    ("- Regular", False),
    ("- Growth", False),
    ("-Regular", False),
    ("-Growth", False),
    ("- Reg ", True),
    ("- Reg", False),
    ("-Reg", False),
    ("Regular", False),
    ("Growth", False),
]


def _compile_noise(patterns: List[Tuple[str, bool]]) -> List[Pattern]:
    compiled = []
    for text, anywhere in sorted(patterns, key=lambda item: len(item[0]), reverse=True):
        body = re.escape(text)
        if anywhere:
            compiled.append(re.compile(body))
            continue
        # A bare word only counts as a suffix when it is a whole word
        boundary = r"(?<![^\W_])" if text[0].isalnum() else ""
        compiled.append(re.compile(boundary + body + r"\s*$"))
    return compiled


_NOISE_REGEXES = _compile_noise(NOISE_PATTERNS)


def canonicalize(raw: str) -> str:
    """
    Reduce a scheme name to its comparison key.

    Lowercases, removes everything that is not alphanumeric or whitespace,
    collapses whitespace runs and trims. Idempotent.
    """
    key = _NON_KEY_CHARS.sub("", raw.lower())
    return _WHITESPACE.sub(" ", key).strip()


def _trim_edges(name: str) -> str:
    start, end = 0, len(name)
    while start < end and not name[start].isalnum():
        start += 1
    while end > start and not name[end - 1].isalnum():
        end -= 1
    return _WHITESPACE.sub(" ", name[start:end]).strip()


def _clean_once(name: str) -> str:
    name = _trim_edges(name)
    for regex in _NOISE_REGEXES:
        name = regex.sub("", name)
    return _trim_edges(name)


def clean_display(raw: str) -> str:
    """
    Clean a raw scheme name for storage and display.

    "ABC Fund - Reg - Growth" -> "ABC Fund", "XYZ Fund-Reg" -> "XYZ Fund".
    The noise removal is repeated until the name stops changing, so the
    result is a fixed point and re-cleaning it is a no-op. A name made only
    of boilerplate keeps its edge-trimmed form rather than becoming empty.
    """
    trimmed = _trim_edges(raw)
    name = trimmed
    while True:
        cleaned = _clean_once(name)
        if cleaned == name:
            break
        name = cleaned
    return name or trimmed
