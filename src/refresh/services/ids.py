"""Short ID derivation for new works.

IDs are a pure function of the artist and the ordered item URLs, so a
resubmission of identical content lands on the same ID and can be detected
instead of silently duplicated.
"""

import hashlib
from collections.abc import Callable, Sequence

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
SHORT_ID_LENGTH = 10

IdAllocator = Callable[[str, Sequence[str]], str]


def _base62(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    if number == 0:
        return BASE62_ALPHABET[0]
    digits = []
    while number:
        number, remainder = divmod(number, 62)
        digits.append(BASE62_ALPHABET[remainder])
    return "".join(reversed(digits))


def determine_short_id(artist_id: str, urls: Sequence[str]) -> str:
    """Derive the ID of a new work.

    Args:
        artist_id: ID of the submitting artist
        urls: Item URLs in submitted order

    Returns:
        A 10 character base62 string
    """
    # Unit separator cannot appear in a URL or an alphanumeric artist ID.
    composite = "\x1f".join([artist_id, *urls])
    digest = hashlib.sha256(composite.encode("utf-8")).digest()
    return _base62(digest).rjust(SHORT_ID_LENGTH, BASE62_ALPHABET[0])[:SHORT_ID_LENGTH]
