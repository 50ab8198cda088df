"""Instance metadata and registration.

Classes:
    Instance: Registered instance record
    PostgresInstanceStorage: Instance store on the metadata database
    InMemoryInstanceStorage: Dict-backed instance store
    InstanceManager: Store-then-connect registration workflow
"""

from .models import STATUS_ACTIVE, Instance
from .storage import InMemoryInstanceStorage, PostgresInstanceStorage
from .manager import InstanceManager

__all__ = [
    "Instance",
    "STATUS_ACTIVE",
    "InMemoryInstanceStorage",
    "PostgresInstanceStorage",
    "InstanceManager",
]
