# loader.py
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Protocol

import requests
from graphql import GraphQLSchema, build_client_schema, get_introspection_query

from classifier import classify
from config import HYGRAPH_ENDPOINT, HYGRAPH_TOKEN, REQUEST_RETRIES, REQUEST_TIMEOUT
from errors import QueryExecutionError, SchemaFetchError, UsageFinderError
from models import HygraphSchema

logger = logging.getLogger(__name__)

# Standard introspection document, as produced by graphql-core
INTROSPECTION_QUERY = get_introspection_query(descriptions=False)

CONNECTION_QUERY = """
query ValidateConnection {
  __schema {
    queryType {
      name
    }
    types {
      name
      kind
    }
  }
}
"""

# Status codes worth another attempt
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GraphQLTransport(Protocol):
    """Anything that can send a GraphQL document and return the JSON body."""

    def execute(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        ...


class HygraphClient:
    """Minimal blocking GraphQL client for the Hygraph content API."""

    def __init__(
        self,
        endpoint: str,
        token: str = "",
        timeout: int = REQUEST_TIMEOUT,
        retries: int = REQUEST_RETRIES,
        delay: float = 2,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout
        self.retries = max(1, retries)
        self.delay = delay
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def execute(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        POST a GraphQL document and return the parsed JSON body.

        The body is returned as-is, so a response carrying both ``data`` and
        ``errors`` reaches the caller intact. Network failures, HTTP errors
        and non-JSON bodies raise QueryExecutionError.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        attempts = 0
        while True:
            attempts += 1
            try:
                response = self.session.post(
                    self.endpoint,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            # unreachable host, dropped connection or slow backend
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempts >= self.retries:
                    raise QueryExecutionError(
                        f"Request to {self.endpoint} failed after {attempts} attempts: {e}"
                    ) from e
                logger.warning("Request failed (%s), retrying in %ss", e, self.delay)
                time.sleep(self.delay)
                continue
            except requests.RequestException as e:
                raise QueryExecutionError(f"Request to {self.endpoint} failed: {e}") from e

            if response.status_code in RETRYABLE_STATUS and attempts < self.retries:
                logger.warning(
                    "HTTP %s from %s, retrying in %ss",
                    response.status_code,
                    self.endpoint,
                    self.delay,
                )
                time.sleep(self.delay)
                continue

            return _parse_body(response)


def _parse_body(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code >= 400:
        errors = body.get("errors") if isinstance(body, dict) else None
        detail = _format_errors(errors) if errors else response.reason
        raise QueryExecutionError(
            f"HTTP {response.status_code}: {detail}",
            errors=errors,
            status_code=response.status_code,
        )
    if not isinstance(body, dict):
        raise QueryExecutionError(
            "Response is not a JSON object", status_code=response.status_code
        )
    return body


def _format_errors(errors: Iterable[Any]) -> str:
    messages = []
    for err in errors:
        if isinstance(err, dict):
            messages.append(str(err.get("message", err)))
        else:
            messages.append(str(err))
    return "; ".join(messages)


def execute_query(transport: GraphQLTransport, query: str) -> Dict[str, Any]:
    """
    Send a document through any transport.

    Exceptions other than the usage finder's own are re-raised as
    QueryExecutionError, so callers recover from a failing custom transport
    the same way they recover from a failing HygraphClient.
    """
    try:
        return transport.execute(query)
    except UsageFinderError:
        raise
    except Exception as e:
        raise QueryExecutionError(f"Transport error: {e}") from e


def response_errors(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the GraphQL ``errors`` array of a response body, if any."""
    errors = payload.get("errors") if isinstance(payload, dict) else None
    return list(errors) if errors else []


def unwrap_response(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract ``data`` from a GraphQL response body.

    Raises QueryExecutionError when the body has no usable data. Errors that
    come alongside data are left for the caller to inspect with
    response_errors().
    """
    if not isinstance(payload, dict):
        raise QueryExecutionError("Response is not a JSON object")
    data = payload.get("data")
    errors = response_errors(payload)
    if data is None:
        if errors:
            raise QueryExecutionError(_format_errors(errors), errors=errors)
        raise QueryExecutionError("Response contains no data")
    return data


def create_client(endpoint: Optional[str] = None, token: Optional[str] = None) -> HygraphClient:
    """Build a client from explicit values or the .env configuration."""
    endpoint = endpoint or HYGRAPH_ENDPOINT
    token = token if token is not None else HYGRAPH_TOKEN
    if not endpoint:
        raise ValueError(
            "❌ Missing Hygraph endpoint: pass --endpoint or set HYGRAPH_ENDPOINT"
        )
    return HygraphClient(endpoint, token)


def fetch_schema(transport: GraphQLTransport) -> Dict[str, Any]:
    """Run full introspection and return the raw ``{"__schema": ...}`` object."""
    try:
        data = unwrap_response(execute_query(transport, INTROSPECTION_QUERY))
    except QueryExecutionError as e:
        raise SchemaFetchError(f"Schema introspection failed: {e}") from e

    if not isinstance(data.get("__schema"), dict):
        raise SchemaFetchError("Introspection response has no __schema")
    return data


def load_schema(
    transport: GraphQLTransport,
    force_models: Iterable[str] = (),
    force_components: Iterable[str] = (),
) -> HygraphSchema:
    """Fetch and classify the live schema."""
    raw = fetch_schema(transport)
    return classify(raw, force_models=force_models, force_components=force_components)


def load_client_schema(raw: Dict[str, Any]) -> GraphQLSchema:
    """Build a graphql-core schema from raw introspection for query validation."""
    try:
        return build_client_schema(raw.get("data", raw))
    except (TypeError, KeyError) as e:
        raise SchemaFetchError(f"Cannot build client schema: {e}") from e


def validate_connection(transport: GraphQLTransport) -> Dict[str, Any]:
    """
    Check that the endpoint answers introspection with the given token.

    Returns:
        {"valid": bool, "error": Optional[str], "models_count": int}
    """
    try:
        data = unwrap_response(execute_query(transport, CONNECTION_QUERY))
    except QueryExecutionError as e:
        message = str(e)
        if e.status_code == 401 or "401" in message or "Unauthorized" in message:
            error = "Invalid token or unauthorized access"
        elif e.status_code == 404 or "404" in message or "Not Found" in message:
            error = "Invalid endpoint URL"
        elif e.status_code is None and "failed after" in message:
            error = "Network error - check endpoint URL"
        else:
            error = message
        return {"valid": False, "error": error, "models_count": 0}

    types = (data.get("__schema") or {}).get("types") or []
    user_types = [
        t
        for t in types
        if t.get("kind") == "OBJECT"
        and not t.get("name", "").startswith("__")
        and t.get("name") not in ("Query", "Mutation", "Subscription")
        and not t.get("name", "").endswith(("Connection", "Edge", "Aggregate", "PageInfo"))
    ]
    return {"valid": True, "error": None, "models_count": len(user_types)}
