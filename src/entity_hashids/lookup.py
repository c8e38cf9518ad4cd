"""Hashid assignment and lookup for stored entities.

This module ties entities to their hashids: it assigns a hashid exactly once,
right after an entity is first saved, and resolves entities from hashids found
in URLs and API requests.

Two lookup styles are offered. ``find_by_hashid`` and ``find_by_hashid_or_fail``
decode the hashid and fetch by primary key. ``where_hashid`` and
``scope_hashid`` match the stored hashid column literally, which skips decoding
and is a plain index lookup.
"""

import logging
from typing import Any, Optional

from entity_hashids.codec import HashidCodec, InvalidEncodingError
from entity_hashids.storage import NotFoundError, Query, Storage, StorageError

# Configure logging
logger = logging.getLogger(__name__)


class PartialAssignmentError(StorageError):
    """Raised when an entity was saved but storing its hashid failed.

    The entity keeps its primary key but has no hashid in storage. Saving it
    again through the adapter completes the assignment.
    """

    pass


class HashidLookup:
    """Assigns hashids to entities and looks entities up by hashid.

    Entities are any objects with an integer ``id`` and a hashid attribute
    (see ``HashidMixin``), stored in a repository offering ``save``, ``get``,
    ``load`` and ``query`` like ``Storage`` does.
    """

    def __init__(
        self, storage: Storage, codec: HashidCodec, hashid_field: str = "hashid"
    ):
        """Initialize lookup adapter with dependencies.

        Args:
            storage: Repository persisting the entities
            codec: Codec encoding primary keys
            hashid_field: Entity attribute and column holding the hashid
        """
        self.storage = storage
        self.codec = codec
        self.hashid_field = hashid_field

    def route_key_name(self) -> str:
        """Column matched when a URL resolves an entity by its route key."""
        return self.codec.config.field

    def encode_hashid(self, id: int) -> str:
        """Encode a primary key with this adapter's codec."""
        return self.codec.encode(id)

    def decode_hashid(self, value: str) -> Optional[int]:
        """Decode a hashid, returning None if it is invalid."""
        return self.codec.try_decode(value)

    def create(self, entity: Any) -> Any:
        """Save a new entity and assign its hashid.

        Args:
            entity: Entity without a primary key

        Returns:
            The saved entity, with primary key and hashid set

        Raises:
            ValueError: If the entity already has a primary key
            StorageError: If the first save fails
            PartialAssignmentError: If the hashid could not be stored
        """
        if entity.id is not None:
            raise ValueError(f"Entity already has primary key {entity.id}")
        return self.save(entity)

    def save(self, entity: Any) -> Any:
        """Save an entity, assigning its hashid if it has none yet.

        The hashid is assigned iff the hashid attribute is empty once the save
        has succeeded. A caller-supplied hashid is kept as is, and a hashid
        already in storage is never replaced.

        Args:
            entity: Entity to save

        Returns:
            The saved entity

        Raises:
            StorageError: If the save fails
            PartialAssignmentError: If the hashid could not be stored
        """
        if entity.id is not None:
            self._keep_stored_hashid(entity)

        self.storage.save(entity)

        if not getattr(entity, self.hashid_field, None):
            self._assign_hashid(entity)

        return entity

    def _keep_stored_hashid(self, entity: Any) -> None:
        stored = self.storage.get(entity.id)
        if stored is None:
            return
        stored_hashid = getattr(stored, self.hashid_field, None)
        if stored_hashid and getattr(entity, self.hashid_field, None) != stored_hashid:
            logger.warning(
                f"Ignoring attempt to change hashid of entity {entity.id}"
            )
            setattr(entity, self.hashid_field, stored_hashid)

    def _assign_hashid(self, entity: Any) -> None:
        hashid = self.codec.encode(entity.id)
        setattr(entity, self.hashid_field, hashid)
        try:
            self.storage.save(entity)
        except StorageError as e:
            setattr(entity, self.hashid_field, None)
            logger.error(f"Failed to store hashid for entity {entity.id}: {e}")
            raise PartialAssignmentError(
                f"Entity {entity.id} was saved but its hashid was not: {e}"
            ) from e
        logger.info(f"Hashid assigned to entity {entity.id}")

    def resolve_route_key(self, value: str) -> Optional[Any]:
        """Find the entity whose route key column equals value.

        Args:
            value: Route key taken from a URL

        Returns:
            Matching entity, or None
        """
        return self.storage.query().where(self.route_key_name(), value).first()

    def find_by_hashid(self, value: str) -> Optional[Any]:
        """Find an entity by decoding its hashid.

        Invalid hashids are treated like unknown ones.

        Args:
            value: Hashid, possibly user supplied

        Returns:
            Matching entity, or None
        """
        id = self.codec.try_decode(value)
        if id is None:
            logger.debug(f"Lookup with invalid hashid: {value!r}")
            return None
        return self.storage.get(id)

    def find_by_hashid_or_fail(self, value: str) -> Any:
        """Find an entity by decoding its hashid, failing if there is none.

        Args:
            value: Hashid, possibly user supplied

        Returns:
            Matching entity

        Raises:
            NotFoundError: If the hashid is invalid or no entity has that id
        """
        try:
            id = self.codec.decode(value)
        except InvalidEncodingError as e:
            raise NotFoundError(f"No entity for hashid {value!r}") from e
        try:
            return self.storage.load(id)
        except NotFoundError as e:
            raise NotFoundError(f"No entity for hashid {value!r}") from e

    def where_hashid(self, value: str, column: Optional[str] = None) -> Query:
        """Query entities whose stored hashid equals value.

        The value is matched literally and never decoded.

        Args:
            value: Hashid to match
            column: Column holding the hashid (defaults to the hashid attribute)

        Returns:
            Query that can be narrowed further or executed
        """
        return self.scope_hashid(self.storage.query(), value, column)

    def scope_hashid(
        self, query: Query, value: str, column: Optional[str] = None
    ) -> Query:
        """Narrow an existing query to entities whose stored hashid equals value.

        Args:
            query: Query being built by the caller
            value: Hashid to match
            column: Column holding the hashid (defaults to the hashid attribute)

        Returns:
            The narrowed query
        """
        return query.where(column or self.hashid_field, value)
