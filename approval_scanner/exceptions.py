"""
Approval Scanner Exceptions - Custom exception hierarchy.

Only connectivity failures are fatal. Everything below that tier is
contained at block, transaction or token scope by the caller.
"""

from datetime import datetime
from typing import Any, Optional


class ApprovalScannerError(Exception):
    """Base exception for all approval scanner errors."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class ConfigurationError(ApprovalScannerError):
    """Invalid or missing configuration value."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, original_error, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data


class InvalidAddressError(ApprovalScannerError):
    """Value is not a valid 20-byte address."""

    def __init__(
        self,
        value: Any,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message or f"Invalid address: {value!r}")
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["value"] = repr(self.value)
        return data


class ChainClientError(ApprovalScannerError):
    """Error talking to the chain RPC endpoint."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        rpc_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, original_error, context)
        self.method = method
        self.rpc_url = rpc_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "method": self.method,
            "rpc_url": self.rpc_url,
        })
        return data

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.method:
            parts.append(f"[method={self.method}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class ChainConnectionError(ChainClientError):
    """Endpoint unreachable, timed out or returned something that is not JSON-RPC."""
    pass


class RPCError(ChainClientError):
    """HTTP error status or JSON-RPC error object returned by the node."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        rpc_url: Optional[str] = None,
        code: Optional[int] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, method, rpc_url, original_error, context)
        self.code = code
        self.status_code = status_code

    @property
    def is_server_error(self) -> bool:
        """True for 5xx HTTP responses, which are worth retrying."""
        return self.status_code is not None and self.status_code >= 500

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "code": self.code,
            "status_code": self.status_code,
        })
        return data


class RateLimitError(RPCError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        rpc_url: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            method=method,
            rpc_url=rpc_url,
            status_code=429,
            original_error=original_error,
            context=context,
        )
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data


class ContractCallError(ChainClientError):
    """Read-only contract call reverted or returned unusable data."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        function_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "eth_call", None, original_error, context)
        self.address = address
        self.function_name = function_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "address": self.address,
            "function_name": self.function_name,
        })
        return data
