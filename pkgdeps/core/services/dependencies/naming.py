"""
Name generation for dependency installs.

Names are a fixed prefix plus a short lowercase-alphanumeric token.
The generator is injectable and seedable so callers can reproduce a
sequence of names (and therefore collisions) exactly.
"""

from __future__ import annotations

import random
import string

DEPENDENCY_INSTALL_PREFIX = "dep-pkgi-"
TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_LENGTH = 6


class NameGenerator:
    """Produces ``dep-pkgi-xxxxxx`` names from a private random source."""

    def __init__(
        self,
        seed: int | None = None,
        rng: random.Random | None = None,
        prefix: str = DEPENDENCY_INSTALL_PREFIX,
        length: int = TOKEN_LENGTH,
    ):
        self._rng = rng if rng is not None else random.Random(seed)
        self._prefix = prefix
        self._length = length

    def token(self) -> str:
        """A random token from ``[a-z0-9]``."""
        return "".join(self._rng.choice(TOKEN_ALPHABET) for _ in range(self._length))

    def install_name(self) -> str:
        return self._prefix + self.token()
