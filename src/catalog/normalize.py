"""Text normalization used for identity and highlight comparison."""


def normalize_text(text: str | None) -> str:
    """Lower-case text and collapse every run of whitespace to one space.

    Leading and trailing whitespace is dropped. The function is idempotent
    and None is treated as the empty string.

    Example:
        >>> normalize_text("  Fear is   the\\nMind-Killer ")
        'fear is the mind-killer'
    """
    if not text:
        return ""
    return " ".join(text.lower().split())
