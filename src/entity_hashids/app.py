"""Flask HTTP server for the hashid lookup service.

This module implements the HTTP server with routes for creating records and
looking them up by hashid. Numeric primary keys never appear in responses.
"""

import logging
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request, url_for

from entity_hashids.config import Config
from entity_hashids.lookup import HashidLookup, PartialAssignmentError
from entity_hashids.routing import register_hashid_converter
from entity_hashids.storage import NotFoundError, Record, StorageError

# Configure logging
logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200
MAX_PAYLOAD_SIZE = 64 * 1024  # 64KB


def _record_json(record: Record) -> dict:
    return {
        "hashid": record.hashid,
        "name": record.name,
        "payload": record.payload,
        "created_at": record.created_at,
        "url": url_for("show_record", record=record, _external=True),
    }


def create_app(lookup: HashidLookup) -> Flask:
    """Create and configure Flask application.

    Args:
        lookup: Lookup adapter for record operations

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    register_hashid_converter(app, lookup)

    @app.route("/", methods=["GET"])
    def health_check():
        """Health check endpoint.

        GET / - Health check

        Returns:
            200: OK
        """
        return Response("OK\n", status=200, mimetype="text/plain")

    @app.route("/records", methods=["POST"])
    def create_record():
        """Handle record creation requests.

        POST /records - Create a record from a JSON body
        ``{"name": ..., "payload": ..., "hashid": ...}`` (hashid optional)

        Returns:
            201: Record JSON
            400: Bad request (invalid body)
            500: Internal server error
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return Response(
                "Bad Request: Body must be a JSON object\n",
                status=400,
                mimetype="text/plain",
            )

        name = data.get("name")
        payload = data.get("payload", "")
        hashid = data.get("hashid")

        if not isinstance(name, str) or not name.strip():
            return Response(
                "Bad Request: name is required\n", status=400, mimetype="text/plain"
            )
        if len(name) > MAX_NAME_LENGTH:
            return Response(
                f"Bad Request: name exceeds {MAX_NAME_LENGTH} characters\n",
                status=400,
                mimetype="text/plain",
            )
        if (
            not isinstance(payload, str)
            or len(payload.encode("utf-8")) > MAX_PAYLOAD_SIZE
        ):
            return Response(
                "Bad Request: payload must be a string of at most "
                f"{MAX_PAYLOAD_SIZE} bytes\n",
                status=400,
                mimetype="text/plain",
            )
        if hashid is not None and (not isinstance(hashid, str) or not hashid):
            return Response(
                "Bad Request: hashid must be a non-empty string\n",
                status=400,
                mimetype="text/plain",
            )

        record = Record(
            name=name.strip(),
            payload=payload,
            created_at=datetime.now(timezone.utc).isoformat(),
            hashid=hashid,
        )

        try:
            lookup.create(record)
        except PartialAssignmentError as e:
            logger.error(f"Record {record.id} saved without hashid: {e}")
            return Response(
                "Internal Server Error: Failed to assign record identifier\n",
                status=500,
                mimetype="text/plain",
            )
        except StorageError as e:
            logger.error(f"Storage error creating record: {e}")
            return Response(
                "Internal Server Error: Failed to save record\n",
                status=500,
                mimetype="text/plain",
            )

        logger.info(f"Record created: {record.hashid}")
        return jsonify(_record_json(record)), 201

    @app.route("/records/<hashid:record>", methods=["GET"])
    def show_record(record: Record):
        """Return a record resolved by its route key.

        GET /records/<hashid> - Matches the stored route key column

        Returns:
            200: Record JSON
            404: Not found
        """
        return jsonify(_record_json(record))

    @app.route("/lookup/<value>", methods=["GET"])
    def lookup_record(value: str):
        """Return a record resolved by decoding its hashid.

        GET /lookup/<hashid> - Decodes the hashid and fetches by primary key

        Returns:
            200: Record JSON
            404: Not found (unknown or invalid hashid)
            500: Internal server error
        """
        try:
            record = lookup.find_by_hashid_or_fail(value)
        except NotFoundError:
            logger.info(f"Record not found for hashid: {value!r}")
            return Response(
                "Not Found: Record does not exist\n", status=404, mimetype="text/plain"
            )
        except StorageError as e:
            logger.error(f"Storage error looking up {value!r}: {e}")
            return Response(
                "Internal Server Error: Failed to retrieve record\n",
                status=500,
                mimetype="text/plain",
            )
        return jsonify(_record_json(record))

    return app


def run_server(config: Config, lookup: HashidLookup) -> None:
    """Run the Flask HTTP server.

    Args:
        config: Configuration instance
        lookup: Lookup adapter for record operations
    """
    app = create_app(lookup)

    logger.info(f"Starting HTTP server on all interfaces, port {config.listen_port}")
    app.run(host="0.0.0.0", port=config.listen_port, debug=False)  # nosec B104
