"""
Unit of work policy — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# Replace Mode — Write Shape Of full_replace()
# ═══════════════════════════════════════════════════════════════════════════════


class ReplaceMode(Enum):
    """
    How full_replace() writes a non-empty change set.

    CHANGED_FIELDS: update_fields() with exactly the changed (and forced) fields.
    FULL_ROW: replace_row() with every field of the new snapshot.
    """

    CHANGED_FIELDS = auto()
    FULL_ROW = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Unit of work policy configuration.

    Fluent builder pattern — chain methods to configure.

    Example:
        policy = (
            Policy()
            .with_explicit_identity()
            .with_replace_mode(ReplaceMode.FULL_ROW)
            .with_timeout(seconds=5)
        )

    Note: Immutable — each method returns new Policy.
    """

    # Off by default: the store generates identities, create() rejects preset ones.
    explicit_identity: bool = False
    replace_mode: ReplaceMode = ReplaceMode.CHANGED_FIELDS
    # Bound on the gateway call; elapsing counts as cancellation.
    timeout: timedelta | None = None

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout.total_seconds() if self.timeout is not None else None

    def with_explicit_identity(self, allowed: bool = True) -> Policy:
        """
        Allow create() with a caller-supplied identity.

        Example:
            .with_explicit_identity()       # ids chosen by the caller
            .with_explicit_identity(False)  # ids generated by the store
        """
        return Policy(
            explicit_identity=allowed,
            replace_mode=self.replace_mode,
            timeout=self.timeout,
        )

    def with_replace_mode(self, mode: ReplaceMode) -> Policy:
        """
        Set the write shape of full_replace().

        Example:
            .with_replace_mode(ReplaceMode.FULL_ROW)
        """
        return Policy(
            explicit_identity=self.explicit_identity,
            replace_mode=mode,
            timeout=self.timeout,
        )

    def with_timeout(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Bound the gateway call of every operation.

        A call still pending when the timeout elapses is cancelled and the
        operation raises CancelledError. No value, or zero, means no bound.

        Example:
            .with_timeout(seconds=5)
            .with_timeout(delta=timedelta(milliseconds=250))
        """
        if delta is not None:
            timeout_val: timedelta | None = delta
        else:
            timeout_val = timedelta(seconds=seconds) if seconds else None

        if timeout_val is not None and timeout_val.total_seconds() <= 0:
            timeout_val = None

        return Policy(
            explicit_identity=self.explicit_identity,
            replace_mode=self.replace_mode,
            timeout=timeout_val,
        )


__all__ = (
    "ReplaceMode",
    "Policy",
)
