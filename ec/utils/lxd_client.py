"""Client for the LXD management API on its local unix socket."""

from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import structlog

from ..exceptions import LxdError

logger = structlog.get_logger(__name__)

API_VERSION = "1.0"


class LxdClient:
    """Thin request/response wrapper around the LXD REST API.
    
    Only the calls needed for lifecycle control are implemented: instance
    lookup, status, and the start/stop state changes. State changes are
    asynchronous in LXD; ``start`` and ``stop`` block on the operation's
    ``/wait`` endpoint so callers see them as plain synchronous calls.
    """
    
    def __init__(
        self,
        socket_path: Path,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ) -> None:
        """Initialize LXD client.
        
        Args:
            socket_path: Path to the LXD unix socket
            timeout: Timeout in seconds for requests other than operation waits
            transport: Transport override (used by tests)
        """
        self.socket_path = socket_path
        self.timeout = timeout
        self._client = httpx.Client(
            transport=transport or httpx.HTTPTransport(uds=str(socket_path)),
            base_url="http://lxd",
            timeout=timeout,
        )
    
    def __enter__(self) -> "LxdClient":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
    
    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()
    
    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """Send a request and unwrap the LXD response envelope.
        
        Args:
            method: HTTP method
            path: Absolute API path, e.g. ``/1.0/instances/foo``
        
        Returns:
            The decoded response envelope
        
        Raises:
            LxdError: On transport failures, error responses or malformed bodies
        """
        logger.debug("LXD request", method=method, path=path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise LxdError(f"Failed to reach LXD at {self.socket_path}: {e}")
        
        try:
            body = response.json()
        except ValueError:
            raise LxdError(
                f"LXD returned a non-JSON response for {method} {path} (HTTP {response.status_code})",
                status_code=response.status_code
            )
        
        if not isinstance(body, dict):
            raise LxdError(f"LXD returned an unexpected body for {method} {path}",
                           status_code=response.status_code)
        
        if response.is_error or body.get("type") == "error":
            message = body.get("error") or response.reason_phrase
            raise LxdError(
                f"LXD {method} {path} failed: {message}",
                status_code=body.get("error_code") or response.status_code
            )
        
        logger.debug("LXD response", method=method, path=path, status_code=response.status_code,
                     type=body.get("type"))
        return body
    
    def get_instance(self, name: str) -> Optional[Dict[str, Any]]:
        """Fetch an instance's metadata.
        
        Args:
            name: Instance name
        
        Returns:
            Instance metadata, or None if the instance does not exist
        """
        try:
            body = self._request("GET", f"/{API_VERSION}/instances/{name}")
        except LxdError as e:
            if e.status_code == 404:
                return None
            raise
        
        metadata = body.get("metadata")
        if not isinstance(metadata, dict):
            raise LxdError(f"LXD response for instance {name} has no metadata")
        return metadata
    
    def get_status(self, name: str) -> str:
        """Get an instance's status, lower-cased (``running``, ``stopped``, ...).
        
        Raises:
            LxdError: If the instance does not exist or the response is malformed
        """
        body = self._request("GET", f"/{API_VERSION}/instances/{name}")
        try:
            status = body["metadata"]["status"]
        except (KeyError, TypeError):
            raise LxdError(f"LXD response for instance {name} has no status")
        if not isinstance(status, str):
            raise LxdError(f"LXD response for instance {name} has a malformed status")
        return status.lower()
    
    def change_state(self, name: str, action: str) -> None:
        """Request a state change and block until LXD reports it complete.
        
        Args:
            name: Instance name
            action: ``start`` or ``stop``
        
        Raises:
            LxdError: If the request or the operation fails
        """
        body = self._request(
            "PUT",
            f"/{API_VERSION}/instances/{name}/state",
            json={"action": action},
        )
        operation = body.get("operation")
        if not operation:
            raise LxdError(f"LXD did not return an operation for {action} of {name}")
        
        logger.debug("Waiting for operation", container=name, action=action, operation=operation)
        self.wait_operation(operation)
    
    def wait_operation(self, operation: str) -> Dict[str, Any]:
        """Block until an operation finishes.
        
        No client-side timeout applies; the wait lasts as long as LXD takes.
        
        Raises:
            LxdError: If the operation ends in failure
        """
        body = self._request("GET", f"{operation}/wait", timeout=None)
        metadata = body.get("metadata") or {}
        if metadata.get("err") or metadata.get("status") == "Failure":
            raise LxdError(f"LXD operation {operation} failed: {metadata.get('err') or 'unknown error'}",
                           status_code=metadata.get("status_code"))
        return metadata
    
    def start(self, name: str) -> None:
        """Start an instance and wait for it to come up."""
        self.change_state(name, "start")
    
    def stop(self, name: str) -> None:
        """Stop an instance and wait for it to shut down."""
        self.change_state(name, "stop")
