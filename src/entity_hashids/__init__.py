"""Reversible public identifiers for stored entities."""

from entity_hashids.codec import HashidCodec, InvalidEncodingError, codec_for
from entity_hashids.config import Config, ConfigError, HashidConfig
from entity_hashids.lookup import HashidLookup, PartialAssignmentError
from entity_hashids.mixins import HashidMixin
from entity_hashids.storage import NotFoundError, Query, Record, Storage, StorageError

__all__ = [
    "Config",
    "ConfigError",
    "HashidCodec",
    "HashidConfig",
    "HashidLookup",
    "HashidMixin",
    "InvalidEncodingError",
    "NotFoundError",
    "PartialAssignmentError",
    "Query",
    "Record",
    "Storage",
    "StorageError",
    "codec_for",
]
