"""Cache key derivation from request URIs.

A cache key is a cosmetic, human-readable *slug* followed by the SHA-256 hex
digest of the full URI::

    /hello world?x=1  ->  hello-world-x-1.<64 hex chars>

Only the digest identifies the entry; two URIs that sanitise to the same slug
still get distinct keys. When the slug is empty (``/``, ``/?``, a URI made
only of symbols) the key is the bare digest.
"""

from __future__ import annotations

import hashlib
import re

from pagecache.exceptions import ConfigError

HASH_ALGORITHM = "sha256"

MAX_SLUG_LENGTH = 100
"""Slugs are cut to this many characters so that ``<slug>.<digest>.<ext>``
plus the temp-file token stays under the usual 255-byte filename limit."""

# Lower-case Latin letters with diacritics, grouped by their ASCII fold.
_ACCENT_GROUPS = {
    "a": "àáâãäåāăąǎǻ",
    "ae": "æǽ",
    "c": "çćĉċč",
    "d": "ðďđ",
    "e": "èéêëēĕėęě",
    "f": "ƒ",
    "g": "ĝğġģ",
    "h": "ĥħ",
    "i": "ìíîïĩīĭįıǐ",
    "ij": "ĳ",
    "j": "ĵ",
    "k": "ķ",
    "l": "ĺļľŀł",
    "n": "ñńņňŉ",
    "o": "òóôõöøōŏőơǒǿ",
    "oe": "œ",
    "r": "ŕŗř",
    "s": "ßśŝşšſ",
    "t": "ţťŧ",
    "u": "ùúûüũūŭůűųưǔǖǘǚǜ",
    "w": "ŵ",
    "y": "ýÿŷ",
    "z": "źżž",
}

_ACCENT_TABLE = str.maketrans(
    {char: ascii_ for ascii_, chars in _ACCENT_GROUPS.items() for char in chars}
)

# Literal backslash escapes first, so "\r\n" is not split into "\r" + "\n".
_SEPARATORS = ("\\r\\n", "\\n", " ", "&", "+", ",")

_INVALID_CHARS = re.compile(r"[^a-z0-9\-]")
_DASH_RUNS = re.compile(r"-+")


def assert_sha256_available() -> None:
    """Raise :class:`ConfigError` if the interpreter lacks SHA-256."""
    if HASH_ALGORITHM not in hashlib.algorithms_available:
        raise ConfigError("SHA256 is not available")


def replace_accents(s: str) -> str:
    """Fold accented lower-case Latin letters to ASCII (``"é"`` -> ``"e"``)."""
    return s.translate(_ACCENT_TABLE)


def sanitize(s: str) -> str:
    """Turn an arbitrary string into a slug of ``[a-z0-9-]`` characters.

    The result never starts or ends with ``-`` and never contains ``--``,
    so ``sanitize(sanitize(s)) == sanitize(s)``.
    """
    res = replace_accents(s.strip().lower())
    for sep in _SEPARATORS:
        res = res.replace(sep, "-")
    res = _INVALID_CHARS.sub("-", res)
    res = _DASH_RUNS.sub("-", res)
    return res.strip("-")


def hash_uri(uri: str) -> str:
    """Return the hex SHA-256 digest of *uri* (UTF-8 encoded)."""
    return hashlib.new(HASH_ALGORITHM, uri.encode("utf-8")).hexdigest()


def derive_key(uri: str) -> str:
    """Return the cache key for *uri*: ``<slug>.<digest>`` or just ``<digest>``."""
    digest = hash_uri(uri)
    slug = sanitize(uri)[:MAX_SLUG_LENGTH].rstrip("-")
    if slug:
        return f"{slug}.{digest}"
    return digest
