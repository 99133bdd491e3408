"""Exceptions raised by the usage finder."""

from typing import Any, Dict, List, Optional


class UsageFinderError(Exception):
    """Base class for all usage finder errors."""


class SchemaFetchError(UsageFinderError):
    """Introspection failed or returned a shape that cannot be classified."""


class FieldDiscoveryError(UsageFinderError):
    """Field introspection of a single type failed."""


class QueryExecutionError(UsageFinderError):
    """A GraphQL document could not be executed.

    Covers network and HTTP failures as well as responses that carry an
    ``errors`` array and no data. ``errors`` holds the GraphQL error list
    when the backend returned one.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.status_code = status_code
