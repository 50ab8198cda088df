"""pgmux query routing.

Classes:
    Action: Closed set of diagnostic actions
    QueryRequest / QueryResponse: Request and response envelope
    QueryRouter: Dispatches requests to live instance clients
"""

from .actions import (
    Action,
    ActionParams,
    ActiveQueriesParams,
    CacheHitRateParams,
    DatabaseParams,
    LimitParams,
    NoParams,
    decode_parameters,
)
from .router import QueryRequest, QueryResponse, QueryRouter

__all__ = [
    "Action",
    "ActionParams",
    "ActiveQueriesParams",
    "CacheHitRateParams",
    "DatabaseParams",
    "LimitParams",
    "NoParams",
    "decode_parameters",
    "QueryRequest",
    "QueryResponse",
    "QueryRouter",
]
