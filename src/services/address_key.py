"""Address comparison keys for duplicate matching."""

from typing import Optional

# Tokens this short are street abbreviations and noise ("st", "at", "#")
MIN_TOKEN_LENGTH = 3


def exact_key(address: Optional[str]) -> str:
    """
    Normalized key for exact address comparison.

    Trimmed and case-folded; blank or missing addresses give an empty key.
    """
    if not address:
        return ""
    return address.strip().casefold()


def addresses_match(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive equality of two addresses. Blank addresses never match."""
    left_key = exact_key(left)
    return bool(left_key) and left_key == exact_key(right)


def tokens(address: Optional[str]) -> list[str]:
    """Lower-cased whitespace tokens longer than two characters, in order."""
    if not address:
        return []
    return [token for token in address.lower().split() if len(token) >= MIN_TOKEN_LENGTH]


def contains_all_tokens(address: Optional[str], address_tokens: list[str]) -> bool:
    """Whether the address contains every token as a case-insensitive substring."""
    if not address or not address_tokens:
        return False
    haystack = address.lower()
    return all(token in haystack for token in address_tokens)
