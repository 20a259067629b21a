"""Guest account name derivation.

Names sent to the issuer are lowercase alphanumeric and at least
``MIN_NAME_LENGTH`` characters long. A user-supplied base is normalized
(case-folded, everything outside ``[a-z0-9]`` dropped) and padded with
random characters when it is too short. Without a base the whole name is
random.
"""

from __future__ import annotations

import random
import re
import string

NAME_ALPHABET = string.ascii_lowercase + string.digits
MIN_NAME_LENGTH = 10
MAX_RANDOM_NAME_LENGTH = 20
_NAME_STRIP_RE = re.compile(r'[^a-z0-9]+')


def normalize_name_base(raw: str) -> str:
    """Case-fold *raw* and drop every character outside ``[a-z0-9]``."""
    return _NAME_STRIP_RE.sub('', raw.lower())


class NameDeriver:
    """Produce issuer-safe names, either fully random or from a base."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()

    def derive(self, base: str | None = None) -> str:
        if base is None:
            length = self._rng.randint(MIN_NAME_LENGTH, MAX_RANDOM_NAME_LENGTH)
            return self._random_chars(length)

        normalized = normalize_name_base(base)
        if len(normalized) >= MIN_NAME_LENGTH:
            return normalized
        return normalized + self._random_chars(MIN_NAME_LENGTH - len(normalized))

    def _random_chars(self, count: int) -> str:
        return ''.join(self._rng.choice(NAME_ALPHABET) for _ in range(count))
