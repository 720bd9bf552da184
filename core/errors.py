# ============================================================================
# CLAUDE CONTEXT - ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Foundation - Structured error types
# PURPOSE: Errors carrying an HTTP-equivalent status, stable code and details
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: DialecticError and subclasses
# DEPENDENCIES: none
# ============================================================================
"""
Dialectic Errors

Every failure raised by the planner, resolver and transitioner is a
DialecticError. Callers branch on ``status`` and ``code``; the API layer
serialises ``to_dict()`` as the response body.

Taxonomy:
    DialecticValidationError     400  missing/invalid request field
    DialecticIdentityError       401  caller could not be identified
    DialecticForbiddenError      403  caller does not own the target
    DialecticNotFoundError       404  referenced row does not exist
    SourceDocumentNotFoundError  404  a required input could not be resolved
    DialecticConfigurationError  500  recipe/prompt/overlay misconfiguration
    DialecticStoreError          500  query or insert failure
"""

from typing import Any, Dict, Optional


class DialecticError(Exception):
    """Base error with an HTTP-equivalent status."""

    status: int = 500

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
    ):
        self.message = message
        if status is not None:
            self.status = status
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"message": self.message, "status": self.status}
        if self.code:
            result["code"] = self.code
        if self.details is not None:
            result["details"] = self.details
        return result


class DialecticValidationError(DialecticError):
    status = 400


class DialecticIdentityError(DialecticError):
    status = 401


class DialecticForbiddenError(DialecticError):
    status = 403


class DialecticNotFoundError(DialecticError):
    status = 404


class DialecticConfigurationError(DialecticError):
    """Recipe, prompt or overlay configuration is incomplete."""
    status = 500


class DialecticStoreError(DialecticError):
    """
    A store operation failed.

    The original driver error text is kept in ``details``.
    """
    status = 500

    @classmethod
    def wrap(cls, operation: str, error: Exception) -> "DialecticStoreError":
        return cls(f"{operation} failed: {error}", details=str(error))


class SourceDocumentNotFoundError(DialecticError):
    """A required input rule matched no unused document."""
    status = 404

    def __init__(self, rule_type: str, document_key: Optional[str] = None):
        self.rule_type = rule_type
        self.document_key = document_key
        super().__init__(
            f"A required input of type '{rule_type}' was not found for the current job.",
            code="SOURCE_DOCUMENT_NOT_FOUND",
            details={"type": rule_type, "document_key": document_key},
        )


__all__ = [
    "DialecticError",
    "DialecticValidationError",
    "DialecticIdentityError",
    "DialecticForbiddenError",
    "DialecticNotFoundError",
    "DialecticConfigurationError",
    "DialecticStoreError",
    "SourceDocumentNotFoundError",
]
