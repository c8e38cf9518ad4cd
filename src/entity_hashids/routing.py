"""URL converter resolving entities from their route key.

Register it on a Flask app and use it in routes:

    register_hashid_converter(app, lookup)

    @app.route("/records/<hashid:record>")
    def show(record):
        ...

The view receives the entity itself. Unknown route keys answer 404 before the
view runs.
"""

import logging

from flask import Flask, abort
from werkzeug.routing import BaseConverter

from entity_hashids.lookup import HashidLookup

# Configure logging
logger = logging.getLogger(__name__)


def register_hashid_converter(
    app: Flask, lookup: HashidLookup, name: str = "hashid"
) -> type[BaseConverter]:
    """Register a URL converter bound to a lookup adapter.

    Args:
        app: Flask application
        lookup: Adapter used to resolve route keys
        name: Converter name used in route rules

    Returns:
        The registered converter class
    """

    class HashidConverter(BaseConverter):
        def to_python(self, value):
            entity = lookup.resolve_route_key(value)
            if entity is None:
                logger.debug(f"No entity for route key: {value!r}")
                abort(404)
            return entity

        def to_url(self, value):
            if isinstance(value, str):
                return super().to_url(value)
            return super().to_url(str(value.get_route_key(lookup.route_key_name())))

    app.url_map.converters[name] = HashidConverter
    logger.debug(f"Registered URL converter {name!r} on {lookup.route_key_name()!r}")
    return HashidConverter
