"""HTTP transport to the flight booking backend."""

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from ..core.config import Settings
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkUnavailableError,
    NotFoundError,
    ProblemDetailsException,
    ServerError,
    ValidationFailedError,
)
from ..core.observability import metrics_collector
from .credentials import CredentialStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_MESSAGES = {
    400: "The submitted data is invalid.",
    401: "Your session has expired. Please log in again.",
    403: "You do not have permission to access this resource.",
    404: "The requested data could not be found.",
    409: "This data already exists.",
}


def create_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create the shared HTTP client for backend calls."""
    return httpx.AsyncClient(
        base_url=settings.backend_base_url,
        timeout=settings.backend_timeout_seconds,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        transport=transport,
    )


def _payload_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for field in ("message", "detail", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    elif isinstance(payload, str) and payload.strip():
        return payload.strip()
    return None


def _field_errors(payload: Any) -> dict[str, str]:
    """Field messages from the backend's VALIDATION_ERROR body ({"status": ..., field: message})."""
    if not isinstance(payload, dict):
        return {}
    if isinstance(payload.get("errors"), dict):
        return {str(k): str(v) for k, v in payload["errors"].items()}
    if payload.get("status") == "VALIDATION_ERROR":
        return {str(k): str(v) for k, v in payload.items() if k != "status" and isinstance(v, str)}
    return {}


def map_error_response(status_code: int, payload: Any, resource: str = "resource") -> ProblemDetailsException:
    """Translate a failed backend response into the error taxonomy."""
    message = _payload_message(payload)

    if status_code == 400 or status_code == 422:
        errors = _field_errors(payload)
        if not message and errors:
            message = next(iter(errors.values()))
        return ValidationFailedError(detail=message or FALLBACK_MESSAGES[400], errors=errors)
    if status_code == 401:
        return AuthenticationError(detail=message or FALLBACK_MESSAGES[401])
    if status_code == 403:
        return AuthorizationError(detail=message or FALLBACK_MESSAGES[403])
    if status_code == 404:
        return NotFoundError(resource_type=resource, detail=message or FALLBACK_MESSAGES[404])
    if status_code == 409:
        return ConflictError(detail=message or FALLBACK_MESSAGES[409])
    if status_code >= 500:
        # Backend internals are not shown to travellers
        return ServerError(upstream_status=status_code)
    return ServerError(detail=message or f"Unexpected response status {status_code}", upstream_status=status_code)


class BackendClient:
    """
    Thin request/response wrapper over the backend REST API.

    Attaches the session's bearer token, maps failures to typed errors and
    validates response bodies against the expected schema. A 401 clears the
    stored credential before the error is raised.
    """

    def __init__(self, http: httpx.AsyncClient, credentials: Optional[CredentialStore] = None):
        self.http = http
        self.credentials = credentials

    def _headers(self, token: Optional[str]) -> dict[str, str]:
        if token is None and self.credentials is not None:
            token = self.credentials.token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
        resource: str = "resource",
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            NetworkUnavailableError: If the request never reached the backend
            ProblemDetailsException: Subclass matching the failed response status
        """
        try:
            response = await self.http.request(
                method, path, json=json, params=params, headers=self._headers(token)
            )
        except httpx.TransportError as e:
            logger.warning(
                "Backend unreachable",
                extra={"method": method, "path": path, "error": str(e)}
            )
            metrics_collector.record_backend_error(NetworkUnavailableError.category.value)
            raise NetworkUnavailableError() from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                metrics_collector.record_backend_error(ServerError.category.value)
                raise ServerError(detail="The booking server sent an unreadable response",
                                  upstream_status=response.status_code) from e

        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        error = map_error_response(response.status_code, payload, resource=resource)
        metrics_collector.record_backend_error(error.category.value)
        logger.warning(
            "Backend request failed",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "category": error.category.value,
            }
        )

        if isinstance(error, AuthenticationError) and self.credentials is not None:
            await self.credentials.clear()

        raise error

    @staticmethod
    def parse(schema: Any, payload: Any) -> Any:
        """Validate a response body; shape mismatches become ServerError."""
        try:
            return TypeAdapter(schema).validate_python(payload)
        except ValidationError as e:
            logger.error(
                "Backend response has unexpected shape",
                extra={"schema": getattr(schema, "__name__", str(schema)), "errors": e.errors(include_url=False)}
            )
            metrics_collector.record_backend_error(ServerError.category.value)
            raise ServerError(detail="The booking server sent an unexpected response") from e

    async def get(self, path: str, schema: Any, **kwargs) -> Any:
        return self.parse(schema, await self.request("GET", path, **kwargs))

    async def post(self, path: str, schema: Any, **kwargs) -> Any:
        return self.parse(schema, await self.request("POST", path, **kwargs))

    async def put(self, path: str, schema: Any, **kwargs) -> Any:
        return self.parse(schema, await self.request("PUT", path, **kwargs))

    async def delete(self, path: str, **kwargs) -> None:
        await self.request("DELETE", path, **kwargs)
