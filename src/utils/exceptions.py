"""
Custom Exception Classes for the Polymarket trading tools

Every tool call is an error boundary: exceptions from this hierarchy are
converted into the error envelope with their `error_code`, anything else is
reported with its message only.

Exception Hierarchy:
├── TradingToolsError (Base)
│   ├── ConfigurationError
│   ├── ValidationError
│   ├── NotFoundError
│   ├── UninitializedSessionError
│   └── UpstreamError
│       ├── AuthenticationError
│       └── TransactionError
"""

from typing import Optional, Dict, Any


class TradingToolsError(Exception):
    """
    Base exception for all trading tools errors.
    Enables catching all of them with: except TradingToolsError
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        """
        Args:
            message: Human-readable error message
            error_code: Error code for classification (e.g., 'MARKET_NOT_FOUND')
            details: Additional context dict
            original_error: Original exception that caused this (for error chaining)
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        error_str = f"{self.__class__.__name__}: {self.message}"
        if self.error_code:
            error_str += f" (Code: {self.error_code})"
        if self.details:
            error_str += f" | Details: {self.details}"
        return error_str


class ConfigurationError(TradingToolsError):
    """
    Raised when configuration is invalid or incomplete.
    Examples: malformed private key, unreadable Secrets Manager secret
    """
    pass


# ============================================================================
# REQUEST ERRORS
# ============================================================================

class ValidationError(TradingToolsError):
    """
    Raised when tool input is malformed or violates mutual exclusivity.
    Examples: both tokenID and marketSlug given, price outside (0, 1)
    """

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class NotFoundError(TradingToolsError):
    """Raised when a market slug or order id does not exist"""

    def __init__(self, message: str, error_code: str = "NOT_FOUND", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class UninitializedSessionError(TradingToolsError):
    """
    Raised when a trading or portfolio tool is called without a ready session.
    The session is only built at startup; a restart is the only way out.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="SESSION_UNINITIALIZED", **kwargs)


# ============================================================================
# COLLABORATOR ERRORS
# ============================================================================

class UpstreamError(TradingToolsError):
    """
    Raised on any failure from Gamma, Data API, Polygon RPC or the CLOB.
    Carries the HTTP status code when the collaborator supplied one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
        **kwargs
    ):
        self.status_code = status_code
        self.response_data = response_data
        kwargs.setdefault("error_code", str(status_code) if status_code is not None else "UPSTREAM_ERROR")
        super().__init__(message, **kwargs)


class AuthenticationError(UpstreamError):
    """
    Raised when CLOB credential derivation fails.
    Examples: signature rejected, issuance endpoint unavailable
    """
    pass


class TransactionError(UpstreamError):
    """
    Raised when an approval transaction reverts, fails to confirm,
    or the RPC rejects it. Aborts the rest of reconciliation.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None, **kwargs):
        self.tx_hash = tx_hash
        kwargs.setdefault("error_code", "TRANSACTION_FAILED")
        super().__init__(message, **kwargs)
