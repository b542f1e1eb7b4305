import re

_WHITESPACE_RUN = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Trim text and collapse every internal whitespace run to one space.

    Used to normalize usernames before they are checked and stored.

    Args:
        text: Raw text to normalize.

    Returns:
        str: Normalized text.

    Examples:
        >>> collapse_whitespace("  a  b  ")
        'a b'
        >>> collapse_whitespace("Ana\\t Maria")
        'Ana Maria'
    """
    return _WHITESPACE_RUN.sub(" ", text).strip()
