"""
Error types for configuration validation, graph resolution and provisioning.
"""

from typing import List, Optional, Sequence


class SiteForgeError(Exception):
    """Base exception for all SiteForge errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(SiteForgeError):
    """
    Raised when a configuration fails validation.

    Carries every violation found, not just the first one.
    """

    def __init__(self, violations: Sequence, message: Optional[str] = None):
        self.violations = list(violations)
        if message is None:
            lines = [f"{v.field}: {v.reason}" for v in self.violations]
            message = "Invalid configuration:\n  " + "\n  ".join(lines)
        super().__init__(message)


class DuplicateIdError(SiteForgeError):
    """Raised when a resource id is declared twice in the same graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Resource '{node_id}' is already declared")


class UnknownReferenceError(SiteForgeError):
    """Raised when a resource depends on an id that is not in the graph."""

    def __init__(self, missing_id: str, referencing_id: str):
        self.missing_id = missing_id
        self.referencing_id = referencing_id
        super().__init__(
            f"Resource '{referencing_id}' depends on unknown resource '{missing_id}'"
        )


class CycleError(SiteForgeError):
    """Raised when the dependency relation contains a cycle."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Dependency cycle: {path}")


class BackendError(SiteForgeError):
    """
    Raised when the provisioning backend fails to apply an intent.

    The failure is opaque; it is surfaced as-is and never retried.
    """

    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        super().__init__(f"Backend failed to apply '{node_id}': {message}")
