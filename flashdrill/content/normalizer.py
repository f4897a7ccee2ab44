"""
Legacy lesson text normalization.

Older lesson text used ';' between question and answer. Such lines are
rewritten to the '=' form once, when the stored text is loaded.
"""
from __future__ import annotations

HEADER_PREFIX = "==="


def normalize_line(line: str) -> str:
    """Rewrite the first ';' of a legacy card line to ' = '."""
    stripped = line.strip()

    if not stripped or stripped.startswith(HEADER_PREFIX):
        return line
    if "=" in stripped or ";" not in stripped:
        return line

    return line.replace(";", " = ", 1)


def normalize_legacy_separators(text: str) -> str:
    """
    Normalize every legacy line of a lesson text.

    Idempotent: lines that already contain '=' are left untouched, so
    normalizing normalized text returns it unchanged.
    """
    return "\n".join(normalize_line(line) for line in text.split("\n"))
