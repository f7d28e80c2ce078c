"""
External link normalization.

Shared by internship form submission and seeding so both store the same
link text for the same input.
"""

from __future__ import annotations


def normalize_link(link: str | None) -> str:
    """Normalize an application link for safe external use.

    Rules, in order:
        - empty or blank -> "#"
        - already http:// or https:// -> unchanged (trimmed)
        - contains "." and no whitespace -> prefixed with https://
        - anything else -> unchanged (trimmed), e.g. anchors or relative paths

    Example:
        >>> normalize_link("example.com")
        'https://example.com'
    """
    if not link or not link.strip():
        return "#"

    trimmed = link.strip()

    if trimmed.startswith("http://") or trimmed.startswith("https://"):
        return trimmed

    if "." in trimmed and not any(ch.isspace() for ch in trimmed):
        return f"https://{trimmed}"

    return trimmed
