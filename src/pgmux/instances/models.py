"""Instance metadata record."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

STATUS_ACTIVE = "active"


@dataclass(frozen=True)
class Instance:
    """A registered target PostgreSQL server.

    Only the name is used to resolve connection parameters; the rest is
    descriptive metadata owned by the instance store. ``id`` and the
    timestamps are assigned by the store on creation.

    Attributes:
        name: Unique instance name
        database_name: Database the instance is registered for
        description: Free-text description
        creator_username: Who registered the instance
        status: Lifecycle status; only ``active`` instances are loaded at startup
    """
    name: str
    database_name: str = ""
    description: str = ""
    creator_username: str = ""
    status: str = STATUS_ACTIVE
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Instance":
        return cls(
            id=record["id"],
            name=record["name"],
            database_name=record["database_name"],
            description=record["description"],
            creator_username=record["creator_username"],
            status=record["status"],
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )

    def with_identity(self, id: int, created_at: datetime, updated_at: datetime) -> "Instance":
        """Return a copy carrying the store-assigned id and timestamps."""
        return replace(self, id=id, created_at=created_at, updated_at=updated_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "database_name": self.database_name,
            "description": self.description,
            "creator_username": self.creator_username,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
