"""Hashid support for entity classes."""

from typing import Any, ClassVar, Optional


class HashidMixin:
    """Mixin for persisted entities carrying a public hashid.

    The entity class provides an integer ``id`` and an attribute named by
    ``hashid_field`` that stays empty until the lookup adapter assigns it.
    """

    hashid_field: ClassVar[str] = "hashid"

    @property
    def has_hashid(self) -> bool:
        """True once the entity has been assigned a hashid."""
        return bool(getattr(self, self.hashid_field, None))

    def get_route_key(self, key_name: Optional[str] = None) -> Any:
        """Value identifying this entity in public URLs.

        Args:
            key_name: Attribute used for routing (defaults to the hashid attribute)
        """
        return getattr(self, key_name or self.hashid_field, None)
