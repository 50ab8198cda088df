"""Instance metadata stores.

``PostgresInstanceStorage`` keeps instances in the ``instance_registry``
table of the metadata database; ``InMemoryInstanceStorage`` keeps them in a
dict for tests and embedding. Instance names are unique regardless of case.
"""

import itertools
from datetime import datetime, timezone
from typing import Dict, List

import asyncpg

from ..core.exceptions import ErrorCodes, InstanceAlreadyExistsError, NotFoundError
from ..database.errors import DRIVER_ERRORS, wrap_driver_error
from ..logging import get_logger
from .models import STATUS_ACTIVE, Instance

CREATE_INSTANCE_REGISTRY_TABLE = """
CREATE TABLE IF NOT EXISTS instance_registry (
  id SERIAL PRIMARY KEY,
  name TEXT NOT NULL UNIQUE,
  database_name TEXT NOT NULL DEFAULT '',
  description TEXT NOT NULL DEFAULT '',
  creator_username TEXT NOT NULL DEFAULT '',
  status TEXT NOT NULL DEFAULT 'active',
  created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
  updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS instance_registry_name_upper_idx
  ON instance_registry (upper(name))
"""

INSERT_INSTANCE = """
INSERT INTO instance_registry
  (name, database_name, description, creator_username, status)
VALUES ($1, $2, $3, $4, $5)
RETURNING id, created_at, updated_at
"""

SELECT_INSTANCE_BY_NAME = """
SELECT
  id, name, database_name, description, creator_username,
  status, created_at, updated_at
FROM instance_registry
WHERE upper(name) = upper($1)
"""

SELECT_ACTIVE_INSTANCES = """
SELECT
  id, name, database_name, description, creator_username,
  status, created_at, updated_at
FROM instance_registry
WHERE status = 'active'
ORDER BY name
"""


def _instance_not_found(name: str) -> NotFoundError:
    return NotFoundError(
        f"instance {name} not found",
        code=ErrorCodes.NOT_FOUND,
        context={"instance": name},
    )


def _instance_exists(name: str) -> InstanceAlreadyExistsError:
    return InstanceAlreadyExistsError(
        f"instance {name} already exists",
        code=ErrorCodes.INSTANCE_ALREADY_EXISTS,
        context={"instance": name},
    )


class PostgresInstanceStorage:
    """Instance store backed by the metadata database.

    Args:
        pool: asyncpg pool of the metadata database
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.logger = get_logger("instances.storage")
        self._pool = pool

    async def ensure_schema(self) -> None:
        """Create the ``instance_registry`` table if it does not exist."""
        try:
            await self._pool.execute(CREATE_INSTANCE_REGISTRY_TABLE)
        except DRIVER_ERRORS as e:
            raise wrap_driver_error(e, "failed to create instance_registry table") from e
        self.logger.debug("Instance registry schema ensured")

    async def list_instances(self) -> List[Instance]:
        try:
            rows = await self._pool.fetch(SELECT_ACTIVE_INSTANCES)
        except DRIVER_ERRORS as e:
            raise wrap_driver_error(e, "failed to list instances") from e
        return [Instance.from_record(row) for row in rows]

    async def get_instance_by_name(self, name: str) -> Instance:
        try:
            row = await self._pool.fetchrow(SELECT_INSTANCE_BY_NAME, name)
        except DRIVER_ERRORS as e:
            raise wrap_driver_error(e, "failed to get instance", instance=name) from e
        if row is None:
            raise _instance_not_found(name)
        return Instance.from_record(row)

    async def create_instance(self, instance: Instance) -> Instance:
        """Insert the instance and return it with its id and timestamps.

        Raises:
            InstanceAlreadyExistsError: If the name is taken
        """
        try:
            row = await self._pool.fetchrow(
                INSERT_INSTANCE,
                instance.name,
                instance.database_name,
                instance.description,
                instance.creator_username,
                instance.status,
            )
        except asyncpg.UniqueViolationError as e:
            raise _instance_exists(instance.name) from e
        except DRIVER_ERRORS as e:
            raise wrap_driver_error(e, "failed to create instance", instance=instance.name) from e

        self.logger.info("Instance stored", instance=instance.name, id=row["id"])
        return instance.with_identity(row["id"], row["created_at"], row["updated_at"])


class InMemoryInstanceStorage:
    """Dict-backed instance store.

    Names are matched case-insensitively, like the table's unique index.
    """

    def __init__(self) -> None:
        self._instances: Dict[str, Instance] = {}
        self._ids = itertools.count(1)

    async def list_instances(self) -> List[Instance]:
        return sorted(
            (i for i in self._instances.values() if i.status == STATUS_ACTIVE),
            key=lambda i: i.name,
        )

    async def get_instance_by_name(self, name: str) -> Instance:
        try:
            return self._instances[name.upper()]
        except KeyError:
            raise _instance_not_found(name) from None

    async def create_instance(self, instance: Instance) -> Instance:
        if instance.name.upper() in self._instances:
            raise _instance_exists(instance.name)

        now = datetime.now(timezone.utc)
        stored = instance.with_identity(next(self._ids), now, now)
        self._instances[instance.name.upper()] = stored
        return stored

    def __len__(self) -> int:
        return len(self._instances)
