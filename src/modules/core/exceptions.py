"""Error taxonomy shared by every module.

Module-level ``exceptions.py`` files subclass these kinds; the API layer
translates a kind into an HTTP status without knowing the concrete class.
"""

from __future__ import annotations


class DomainValidationError(Exception):
    """Bad input shape or business precondition; rejected before any mutation."""


class NotFoundError(Exception):
    """A referenced order, product, coupon or cart line does not exist."""


class AuthorizationError(Exception):
    """The caller may not access the requested resource."""


class ConcurrencyConflict(Exception):
    """An atomic per-entity update kept losing to concurrent writers."""


class ReconciliationRequired(Exception):
    """A commit may have been partially applied and needs repair."""


class RenderingError(Exception):
    """Document layout failed; never expected with valid input."""
