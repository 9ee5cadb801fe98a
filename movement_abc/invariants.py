"""
Runtime invariant checks for ABC outputs.

Violations fail closed: `require_invariant` raises InvariantViolation
immediately and carries the offending values for the log.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InvariantViolation(RuntimeError):
    """Raised when an output invariant fails."""

    def __init__(self, invariant_id: str, message: str, data: Optional[Dict[str, Any]] = None):
        self.invariant_id = invariant_id
        self.data = data or {}
        super().__init__(f"[InvariantViolation:{invariant_id}] {message} | data={self.data}")


def require_invariant(condition: bool, invariant_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
    if not condition:
        raise InvariantViolation(invariant_id, message, data=data)
