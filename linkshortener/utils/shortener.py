"""Shortcode generation and validation utility

This module provides the helpers for issuing random short codes and for
validating creator-chosen aliases against the same format rules.

Functions:
    generate_shortcode(length=6, alphabet=ALPHABET):
        Generate a random URL-safe short code.

    is_reserved(candidate):
        True if the candidate is on the reserved deny-list (case-insensitive).

    validate_alias(candidate):
        Raise AliasBadFormatError or AliasReservedError for unusable aliases.

Example:
    >>> from linkshortener.utils import generate_shortcode, validate_alias
    >>> len(generate_shortcode(length=6))
    6
    >>> validate_alias('my-launch')
    'my-launch'
    >>> validate_alias('Admin')
    Traceback (most recent call last):
        ...
    linkshortener.exceptions.AliasReservedError: Alias 'Admin' is reserved.

NOTE:
    Generated codes carry no uniqueness guarantee by themselves. Uniqueness
    is enforced when the link store inserts the record.
"""

import re
import secrets
import string

from linkshortener.constants import ShortCode
from linkshortener.exceptions import AliasBadFormatError, AliasReservedError


# Base62 alphabet: 26 lowercase + 26 uppercase + 10 digits
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

URL_SAFE_CHARS = frozenset(ALPHABET + '-_')
SHORTCODE_RE = re.compile(ShortCode.PATTERN)


def is_reserved(candidate: str) -> bool:
    return candidate.lower() in ShortCode.RESERVED


def generate_shortcode(length: int = ShortCode.DEFAULT_LENGTH, alphabet: str = ALPHABET) -> str:
    """Generate a random URL-safe short code.

    Draws characters from a cryptographically secure source. Codes that
    collide with the reserved deny-list are discarded and drawn again.

    Args:
        length (int, optional):
            Length of the resulting code. Defaults to 6.

        alphabet (str, optional):
            Characters to draw from. Defaults to Base62 [a-zA-Z0-9].
            Only letters, digits, '-' and '_' are allowed.

    Returns:
        str: A short code matching ^[A-Za-z0-9_-]{3,32}$.

    Raises:
        TypeError: If length isn't an integer.
        ValueError: If length is out of [3, 32] or the alphabet isn't URL-safe.
    """
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if not ShortCode.MIN_LENGTH <= length <= ShortCode.MAX_LENGTH:
        raise ValueError(
            f'Length must be between {ShortCode.MIN_LENGTH} and {ShortCode.MAX_LENGTH} (given value: {length}).'
        )
    if not alphabet or not set(alphabet) <= URL_SAFE_CHARS:
        raise ValueError(f'Alphabet must only contain URL-safe characters (given value: {alphabet!r}).')

    while True:
        shortcode = ''.join(secrets.choice(alphabet) for _ in range(length))
        if not is_reserved(shortcode):
            return shortcode


def validate_alias(candidate: str) -> str:
    """Validate a creator-chosen alias.

    Must run before anything is written to the link store.

    Args:
        candidate (str):
            The alias requested by the creator.

    Returns:
        str: The alias, unchanged.

    Raises:
        AliasBadFormatError:
            If the alias doesn't match ^[A-Za-z0-9_-]{3,32}$.
        AliasReservedError:
            If the alias matches a reserved code (case-insensitive).
    """
    if not isinstance(candidate, str) or not SHORTCODE_RE.fullmatch(candidate):
        raise AliasBadFormatError(
            f'Alias {candidate!r} must be 3-32 characters of letters, digits, underscores or hyphens.'
        )
    if is_reserved(candidate):
        raise AliasReservedError(f'Alias {candidate!r} is reserved.')
    return candidate
