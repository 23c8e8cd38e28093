"""
Exception hierarchy for the Odoo POS sync.

    PosSyncError (base)
    ├── AuthenticationFailure   credentials rejected (authenticate returned a falsy uid)
    ├── RpcFault                structured XML-RPC fault, never retried
    ├── TransportError          network/timeout failures after retries were exhausted
    ├── MalformedResponse       HTTP body is not a usable methodResponse
    ├── NotFound                unknown connection id
    └── PersistenceError        a store write failed
"""

from typing import Any, Dict, Optional


class PosSyncError(Exception):
    """
    Base exception for all sync errors.

    Attributes:
        message: Human-readable error message
        context: Additional context (connection id, service, attempts...)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class AuthenticationFailure(PosSyncError):
    """Odoo rejected the credentials, or no usable credential was available."""
    pass


class RpcFault(PosSyncError):
    """The remote end answered with an XML-RPC <fault>."""

    def __init__(self, fault_code: Any, fault_string: str, context: Optional[Dict[str, Any]] = None):
        self.fault_code = fault_code
        self.fault_string = fault_string
        super().__init__(f"Odoo fault {fault_code}: {fault_string}", context)


class TransportError(PosSyncError):
    """The call could not complete after exhausting retries."""

    def __init__(self, message: str, attempts: int, context: Optional[Dict[str, Any]] = None):
        self.attempts = attempts
        super().__init__(message, context)


class MalformedResponse(PosSyncError):
    """Response body could not be parsed as an XML-RPC methodResponse."""
    pass


class NotFound(PosSyncError):
    """A referenced record does not exist."""
    pass


class PersistenceError(PosSyncError):
    """Writing to the database failed."""
    pass
