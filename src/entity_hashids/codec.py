"""Hashid encoding and decoding of primary keys.

This module turns non-negative integer primary keys into short, non-sequential,
reversible strings using the hashids library. The encoding is obfuscation only:
it keeps sequential ids out of URLs but offers no confidentiality.
"""

import logging
import threading
from functools import lru_cache
from typing import Optional

from hashids import Hashids

from entity_hashids.config import HashidConfig

# Configure logging
logger = logging.getLogger(__name__)


class InvalidEncodingError(ValueError):
    """Raised when a string is not a valid hashid under the active configuration."""

    pass


class HashidCodec:
    """Encodes and decodes integer ids with a fixed hashid configuration.

    The underlying Hashids object shuffles its alphabet with the salt when it is
    built, so it is constructed once on first use and reused afterwards. The
    construction step is guarded by a lock; after that the codec is read-only
    and safe to share between threads.
    """

    def __init__(self, config: Optional[HashidConfig] = None):
        """Initialize codec.

        Args:
            config: Hashid configuration (defaults when omitted)
        """
        self.config = config or HashidConfig()
        self._hashids: Optional[Hashids] = None
        self._lock = threading.Lock()

    @property
    def hashids(self) -> Hashids:
        """Lazily built Hashids transform for this configuration."""
        if self._hashids is None:
            with self._lock:
                if self._hashids is None:
                    self._hashids = Hashids(
                        salt=self.config.salt,
                        min_length=self.config.min_length,
                        alphabet=self.config.alphabet,
                    )
                    logger.debug(f"Hashid transform built for {self.config!r}")
        return self._hashids

    def encode(self, id: int) -> str:
        """Encode a primary key into a hashid.

        Args:
            id: Non-negative integer to encode

        Returns:
            Hashid of at least ``min_length`` characters drawn from the alphabet

        Raises:
            ValueError: If id is not a non-negative integer
        """
        if isinstance(id, bool) or not isinstance(id, int):
            raise ValueError(f"Cannot encode {id!r}: expected an integer")
        if id < 0:
            raise ValueError(f"Cannot encode {id}: negative ids are not supported")
        return self.hashids.encode(id)

    def decode(self, value: str) -> int:
        """Decode a hashid back into its primary key.

        Any input is accepted; anything that is not a single integer encoded
        under this configuration raises InvalidEncodingError.

        Args:
            value: Hashid, possibly user supplied

        Returns:
            The decoded integer

        Raises:
            InvalidEncodingError: If the value does not decode to exactly one integer
        """
        if not isinstance(value, str) or not value:
            raise InvalidEncodingError("Hashid must be a non-empty string")

        # hashids returns an empty tuple for malformed input and for strings
        # produced under a different salt, alphabet or minimum length
        numbers = self.hashids.decode(value)
        if len(numbers) != 1:
            logger.debug(f"Rejected hashid: {value!r}")
            raise InvalidEncodingError(f"Invalid hashid: {value!r}")

        return numbers[0]

    def try_decode(self, value: str) -> Optional[int]:
        """Decode a hashid, returning None instead of raising when it is invalid."""
        try:
            return self.decode(value)
        except InvalidEncodingError:
            return None


@lru_cache(maxsize=None)
def codec_for(config: HashidConfig) -> HashidCodec:
    """Return the shared codec for a configuration.

    Every caller asking for an equal configuration gets the same codec, so the
    Hashids transform is only built once per configuration.
    """
    return HashidCodec(config)
