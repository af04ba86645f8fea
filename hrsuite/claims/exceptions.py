"""
Claims approval exceptions.

Defines the exception hierarchy shared by the engine, the service and the
repositories. Routes map each kind to an HTTP status.
"""

from typing import Optional, Dict, Any


class ClaimApprovalError(Exception):
    """Base error for the claims approval engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(ClaimApprovalError):
    """Referenced step, claim, rule or workflow does not exist."""


class InvalidTransitionError(ClaimApprovalError):
    """Action on a non-current or terminal step, or a forbidden skip."""


class ConflictError(InvalidTransitionError):
    """Lost a concurrent update, or the claim already has a workflow."""


class ValidationError(ClaimApprovalError, ValueError):
    """Rule or claim data is missing required fields or has bad values."""
