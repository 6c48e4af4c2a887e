"""Error taxonomy shared by every bounded context.

Each module raises subclasses of these four kinds so the API layer can
translate them without knowing module internals:

- ``ValidationError``: caller input violates a precondition.  Raised
  before any mutation.
- ``ConflictError``: a guarded write found a stale precondition.  The
  caller re-fetches and retries; the engine never retries on its own.
- ``NotFoundError``: a referenced order or trip does not exist.
- ``SideEffectError``: a best-effort external call failed.  Reported as a
  warning next to a successful primary transition, never escalated.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every domain error."""

    code = "domain_error"


class ValidationError(DomainError):
    code = "validation_error"


class ConflictError(DomainError):
    code = "conflict"


class NotFoundError(DomainError):
    code = "not_found"


class SideEffectError(DomainError):
    code = "side_effect_failed"
