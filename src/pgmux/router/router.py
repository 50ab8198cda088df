"""Query router.

``QueryRouter.route_query`` turns an abstract request (instance, action,
parameter bag) into a call on the instance's live client and wraps the
outcome in a ``QueryResponse`` envelope. It never raises for a failed
request: the error travels in the envelope, and the original exception is
kept on it for callers that want to re-raise.

Example:
    >>> router = QueryRouter(registry)
    >>> response = await router.route_query(
    ...     QueryRequest("analytics", "tables_info", {"limit": 10}), instance
    ... )
    >>> response.success
    True
    >>> response.to_dict()["data"][0]["table_name"]
    'orders'
"""

from dataclasses import dataclass, field, is_dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from ..core.exceptions import (
    ClientNotFoundError,
    ErrorCodes,
    PgMuxException,
    create_error_from_exception,
)
from ..core.protocols import ClientRegistry, DiagnosticsClient
from ..instances.models import Instance
from ..logging import get_logger
from .actions import Action, decode_parameters


@dataclass(frozen=True)
class QueryRequest:
    """A routed diagnostic request.

    Attributes:
        instance_name: Target instance
        action: Action identifier (see ``Action``)
        parameters: Free-form parameter bag
    """
    instance_name: str
    action: Union[Action, str]
    parameters: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QueryRequest":
        return cls(
            instance_name=payload.get("instance_name", ""),
            action=payload.get("action", ""),
            parameters=payload.get("parameters") or {},
        )


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _serialize(v) for k, v in vars(value).items()}
    return value


@dataclass
class QueryResponse:
    """Uniform result envelope; exactly one of ``data`` and ``error`` is set.

    Attributes:
        instance: Instance the request was routed to
        action: Requested action identifier
        success: Whether the action succeeded
        data: Action result on success
        error: Error message on failure
        error_code: Error code on failure
        exception: The failure itself, for callers that re-raise
    """
    instance: str
    action: str
    success: bool = False
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    exception: Optional[PgMuxException] = field(default=None, repr=False, compare=False)

    @classmethod
    def failure(cls, instance: str, action: str, error: PgMuxException) -> "QueryResponse":
        return cls(
            instance=instance,
            action=action,
            success=False,
            error=error.message,
            error_code=error.code,
            exception=error,
        )

    def raise_for_error(self) -> None:
        """Re-raise the carried exception of a failed response."""
        if self.exception is not None:
            raise self.exception

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "instance": self.instance,
            "action": self.action,
            "success": self.success,
        }
        if self.success:
            result["data"] = _serialize(self.data)
        else:
            result["error"] = self.error
            result["error_code"] = self.error_code
        return result


Handler = Callable[[DiagnosticsClient, Any], Awaitable[Any]]


async def _version(client: DiagnosticsClient, params: Any) -> Any:
    return client.version()


_HANDLERS: Dict[Action, Handler] = {
    Action.DATABASES_OVERVIEW: lambda client, p: client.get_database_overview(p.db_name),
    Action.CACHE_HIT_RATE: lambda client, p: (
        client.get_cache_hit_rate_db(p.db_name)
        if p.db_name
        else client.get_cache_hit_rate_global()
    ),
    Action.CHECKPOINTS_STATS: lambda client, p: client.get_checkpoints_stats(),
    Action.WAL_ACTIVITY: lambda client, p: client.get_wal_activity(),
    Action.TABLES_INFO: lambda client, p: client.get_tables_info(p.limit),
    Action.LOCKING_INFO: lambda client, p: client.get_locking_info(p.db_name),
    Action.CHANGED_SETTINGS: lambda client, p: client.get_changed_settings(),
    Action.VERSION: _version,
    Action.INDEX_STATS: lambda client, p: client.get_index_stats(p.limit),
    Action.ACTIVE_QUERIES: lambda client, p: client.get_active_queries(p.db_name, p.min_duration),
    Action.CONNECTION_STATS: lambda client, p: client.get_connection_stats(),
    Action.SLOW_QUERIES: lambda client, p: client.get_slow_queries(p.limit),
    Action.DATABASE_SIZES: lambda client, p: client.get_database_sizes(),
}


class QueryRouter:
    """Dispatch requests to the clients of a registry.

    Args:
        registry: Source of live instance clients
    """

    def __init__(self, registry: ClientRegistry) -> None:
        self.logger = get_logger("router")
        self._registry = registry

    async def route_query(
        self,
        request: QueryRequest,
        instance: Optional[Union[Instance, str]] = None,
    ) -> QueryResponse:
        """Run a request against an instance.

        Args:
            request: Request to route
            instance: Target instance; defaults to ``request.instance_name``

        Returns:
            Response envelope; failures are reported in it, never raised
        """
        if instance is None:
            instance = request.instance_name
        name = instance if isinstance(instance, str) else instance.name
        action_name = str(request.action)

        client = self._registry.get_instance_client(instance)
        if client is None:
            error = ClientNotFoundError(
                f"client not found for instance: {name}",
                code=ErrorCodes.CLIENT_NOT_FOUND,
                context={"instance": name, "action": action_name},
            )
            self.logger.warning(
                "Query routing failed",
                instance=name,
                action=action_name,
                error=error.message,
                error_code=error.code,
            )
            return QueryResponse.failure(name, action_name, error)

        try:
            action = Action.parse(request.action)
            params = decode_parameters(action, request.parameters)
            data = await _HANDLERS[action](client, params)
        except Exception as e:
            error = create_error_from_exception(e)
            self.logger.warning(
                "Query routing failed",
                instance=name,
                action=action_name,
                error=error.message,
                error_code=error.code,
            )
            return QueryResponse.failure(name, action_name, error)

        self.logger.debug("Query routed", instance=name, action=action_name)
        return QueryResponse(instance=name, action=action_name, success=True, data=data)
