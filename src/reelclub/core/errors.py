"""Engine exceptions.

Only storage faults are raised. Validation outcomes are returned as typed
results (see ``reelclub.models.outcomes``).
"""

from __future__ import annotations


class PersistenceFailure(Exception):
    """A storage operation failed. Callers translate this to a transport error."""

    def __init__(self, operation: str, scope_id: str | None = None) -> None:
        self.operation = operation
        self.scope_id = scope_id
        scope = scope_id if scope_id is not None else "global"
        super().__init__(f"{operation} failed for scope {scope}")
