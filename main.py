#!/usr/bin/env python3
"""Main entry point for the hashid lookup service.

This module initializes all components and starts the HTTP server.
"""

import logging
import sys
from pathlib import Path

from entity_hashids.app import run_server
from entity_hashids.codec import codec_for
from entity_hashids.config import Config, ConfigError
from entity_hashids.lookup import HashidLookup
from entity_hashids.storage import COLUMNS, Storage, StorageError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def build_lookup(config: Config) -> HashidLookup:
    """Build storage, codec and lookup adapter from configuration.

    Args:
        config: Validated configuration

    Returns:
        Lookup adapter bound to the records database

    Raises:
        ConfigError: If the route key column is not a records column
        StorageError: If the database cannot be initialized
    """
    if config.hashid.field not in COLUMNS:
        raise ConfigError(
            f"Invalid HASHID_FIELD {config.hashid.field!r}: "
            f"must be one of {', '.join(COLUMNS)}"
        )

    database_path = Path(config.storage_path) / "records.db"
    storage = Storage(str(database_path))

    codec = codec_for(config.hashid)
    logger.info(f"Hashid codec configured: {config.hashid!r}")

    return HashidLookup(storage, codec)


def main():
    """Main entry point for the application."""
    logger.info("Starting hashid lookup service...")

    try:
        # Load configuration from environment variables and config file
        logger.info("Loading configuration...")
        config_file = "config.toml" if Path("config.toml").exists() else None
        config = Config.from_env_and_file(config_file)
        logger.info(f"Configuration loaded: {config}")

        # Validate storage path exists and is writable
        logger.info("Validating storage path...")
        config.validate_storage_path()

        logger.info("Initializing lookup adapter...")
        lookup = build_lookup(config)
        logger.info("Service is ready to accept requests")

        run_server(config, lookup)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please check your configuration and try again")
        sys.exit(1)
    except StorageError as e:
        logger.error(f"Storage initialization error: {e}")
        logger.error("Please check your storage path and database permissions")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unexpected error during startup: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
