"""Configuration management for the hashid lookup service.

This module handles loading configuration from environment variables and config files,
with sensible defaults for optional values.
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from typing import TypedDict

# Configure logging
logger = logging.getLogger(__name__)

# Same default alphabet as the hashids library
DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890"
DEFAULT_FIELD = "hashid"
MIN_ALPHABET_LENGTH = 16


class _ConfigValues(TypedDict):
    storage_path: str
    listen_port: int
    salt: str
    min_length: int
    alphabet: str
    field: str


class ConfigError(Exception):
    """Raised when configuration is invalid or missing required values."""

    pass


@dataclass(frozen=True)
class HashidConfig:
    """Settings governing how primary keys are encoded.

    Instances are immutable and hashable so they can key the codec cache.
    Encoding and decoding a value must happen under the same configuration.

    Attributes:
        salt: Salt used to shuffle the alphabet
        min_length: Minimum length of generated hashids
        alphabet: Characters hashids are drawn from
        field: Route key column used when URLs resolve entities
    """

    salt: str = ""
    min_length: int = 0
    alphabet: str = DEFAULT_ALPHABET
    field: str = DEFAULT_FIELD

    def __post_init__(self):
        if not isinstance(self.salt, str):
            raise ConfigError("Invalid hashid salt: must be a string")
        if (
            isinstance(self.min_length, bool)
            or not isinstance(self.min_length, int)
            or self.min_length < 0
        ):
            raise ConfigError(
                "Invalid hashid min_length: must be a non-negative integer"
            )
        self._validate_alphabet(self.alphabet)
        if not self.field or not self.field.isidentifier():
            raise ConfigError(
                f"Invalid hashid field {self.field!r}: must be a valid identifier"
            )

    @staticmethod
    def _validate_alphabet(alphabet: str) -> None:
        """Validate hashid alphabet.

        Args:
            alphabet: Alphabet to validate

        Raises:
            ConfigError: If the alphabet is unusable
        """
        if not isinstance(alphabet, str):
            raise ConfigError("Invalid hashid alphabet: must be a string")
        if " " in alphabet:
            logger.error("Hashid alphabet contains spaces")
            raise ConfigError("Hashid alphabet cannot contain spaces")
        if len(set(alphabet)) != len(alphabet):
            logger.error("Hashid alphabet contains duplicate characters")
            raise ConfigError("Hashid alphabet must contain unique characters")
        if len(alphabet) < MIN_ALPHABET_LENGTH:
            logger.error(f"Hashid alphabet too short: {len(alphabet)} characters")
            raise ConfigError(
                "Hashid alphabet must contain at least "
                f"{MIN_ALPHABET_LENGTH} characters"
            )

    def __repr__(self) -> str:
        # Never show the salt
        return (
            f"HashidConfig(min_length={self.min_length}, "
            f"alphabet={self.alphabet!r}, field={self.field!r})"
        )


class Config:
    """Configuration for the hashid lookup service.

    Configuration is loaded with the following priority:
    1. Environment variables (highest priority)
    2. Configuration file (TOML format)
    3. Default values (lowest priority)

    Required configuration:
    - storage_path: Directory where the records database lives

    Optional configuration:
    - listen_port: Port for HTTP server (default: 8080)
    - hashid: Salt, minimum length, alphabet and route key column for hashids
    """

    def __init__(
        self,
        storage_path: str,
        listen_port: int = 8080,
        hashid: Optional[HashidConfig] = None,
    ):
        """Initialize configuration with validated values.

        Args:
            storage_path: Directory where the records database lives
            listen_port: Port for HTTP server
            hashid: Hashid encoding settings (defaults when omitted)
        """
        self.storage_path = storage_path
        self.listen_port = listen_port
        self.hashid = hashid or HashidConfig()

    @classmethod
    def from_env_and_file(cls, config_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables and optional config file.

        Environment variables take precedence over config file values.

        Environment variables:
        - STORAGE_PATH: Directory for the records database (required)
        - LISTEN_PORT: HTTP server port (optional, default: 8080)
        - HASHID_SALT: Salt for hashid encoding (optional, default: "")
        - HASHID_LENGTH: Minimum hashid length (optional, default: 0)
        - HASHID_ALPHABET: Hashid alphabet (optional, default: a-zA-Z0-9)
        - HASHID_FIELD: Route key column (optional, default: "hashid")

        Args:
            config_file: Path to TOML config file (optional)

        Returns:
            Config instance with loaded values

        Raises:
            ConfigError: If required configuration is missing or invalid
        """
        config_values = cls._defaults()

        # Load from config file if provided
        if config_file:
            file_config = cls._load_from_file(config_file)
            config_values.update(file_config)

        # Override with environment variables
        if "STORAGE_PATH" in os.environ:
            config_values["storage_path"] = os.environ["STORAGE_PATH"]

        # Check if STORAGE_PATH is still empty (not provided via env or file)
        if not config_values["storage_path"]:
            raise ConfigError("STORAGE_PATH is required")
        if "LISTEN_PORT" in os.environ:
            try:
                config_values["listen_port"] = int(os.environ["LISTEN_PORT"])
            except ValueError:
                raise ConfigError("Invalid LISTEN_PORT: must be an integer")
        if "HASHID_SALT" in os.environ:
            config_values["salt"] = os.environ["HASHID_SALT"]
        if "HASHID_LENGTH" in os.environ:
            try:
                config_values["min_length"] = int(os.environ["HASHID_LENGTH"])
            except ValueError:
                raise ConfigError("Invalid HASHID_LENGTH: must be an integer")
        if "HASHID_ALPHABET" in os.environ:
            config_values["alphabet"] = os.environ["HASHID_ALPHABET"]
        if "HASHID_FIELD" in os.environ:
            config_values["field"] = os.environ["HASHID_FIELD"]

        # Validate listen port
        listen_port = config_values["listen_port"]
        if not isinstance(listen_port, int) or not (1 <= listen_port <= 65535):
            logger.error(f"Invalid listen_port: {config_values['listen_port']}")
            raise ConfigError("Invalid listen_port: must be between 1 and 65535")

        hashid = HashidConfig(
            salt=config_values["salt"],
            min_length=config_values["min_length"],
            alphabet=config_values["alphabet"],
            field=config_values["field"],
        )

        logger.info(
            f"Configuration loaded: storage_path={config_values['storage_path']}, "
            f"listen_port={config_values['listen_port']}, "
            f"hashid_min_length={hashid.min_length}, hashid_field={hashid.field}"
        )

        return cls(
            storage_path=config_values["storage_path"],
            listen_port=config_values["listen_port"],
            hashid=hashid,
        )

    @staticmethod
    def _defaults() -> _ConfigValues:
        # storage_path is required, no default
        return {
            "storage_path": "",
            "listen_port": 8080,
            "salt": "",
            "min_length": 0,
            "alphabet": DEFAULT_ALPHABET,
            "field": DEFAULT_FIELD,
        }

    @classmethod
    def _load_from_file(cls, config_file: str) -> _ConfigValues:
        """Load configuration from TOML file.

        Hashid settings live in a ``[hashid]`` table:

            storage_path = "/var/lib/records"

            [hashid]
            salt = "..."
            min_length = 8

        Args:
            config_file: Path to TOML config file

        Returns:
            Dictionary of configuration values

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {config_file}")
        except Exception as e:
            raise ConfigError(f"Failed to parse config file: {e}")

        config = cls._defaults()
        if "storage_path" in data:
            config["storage_path"] = data["storage_path"]
        if "listen_port" in data:
            config["listen_port"] = data["listen_port"]

        hashid_table: Any = data.get("hashid", {})
        if not isinstance(hashid_table, dict):
            raise ConfigError("Invalid [hashid] section: must be a table")
        for key in ("salt", "min_length", "alphabet", "field"):
            if key in hashid_table:
                config[key] = hashid_table[key]  # type: ignore[literal-required]

        return config

    def validate_storage_path(self) -> None:
        """Validate that storage path exists and is writable.

        Raises:
            ConfigError: If storage path is invalid or not writable
        """
        path = Path(self.storage_path)

        # Create directory if it doesn't exist
        try:
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Storage path validated: {self.storage_path}")
        except Exception as e:
            logger.error(f"Cannot create storage directory: {e}")
            raise ConfigError(f"Cannot create storage directory: {e}")

        # Check if writable
        if not os.access(path, os.W_OK):
            logger.error(f"Storage path is not writable: {self.storage_path}")
            raise ConfigError(f"Storage path is not writable: {self.storage_path}")

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (
            f"Config(storage_path={self.storage_path!r}, "
            f"listen_port={self.listen_port}, "
            f"hashid={self.hashid!r})"
        )
