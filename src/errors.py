"""Error taxonomy for infrastructure lifecycle operations.

Every public lifecycle operation either succeeds or raises exactly one
InfraError subclass. The ``stage`` attribute names where the flow stopped
so that callers can retry the (idempotent) entry point blindly.
"""


class InfraError(Exception):
    """Base exception for lifecycle errors."""

    stage = "unknown"

    def __init__(self, code: str, message: str, stage: str = None):
        self.code = code
        self.message = message
        if stage:
            self.stage = stage
        super().__init__(f"{code}: {message}")


class InvalidSpecError(InfraError):
    """Cluster spec violates a structural invariant."""

    stage = "validation"

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("E101", "; ".join(self.errors))


class SecretNotFoundError(InfraError):
    """Secret reference not present in secrets.yaml."""

    stage = "secrets"

    def __init__(self, ref: str):
        super().__init__("E202", f"Secret not found: {ref}")


class DiscoveryError(InfraError):
    """Provider lookup for an adopted network failed."""

    stage = "discovery"

    def __init__(self, message: str):
        super().__init__("E301", message)


class NotFoundStateError(InfraError):
    """Expected engine output absent where absence is not tolerated."""

    stage = "state"

    def __init__(self, names):
        self.names = tuple(names)
        super().__init__("E302", f"No state output found for: {', '.join(self.names)}")


class ConvergenceFailure(InfraError):
    """The convergence engine itself failed."""

    stage = "apply"

    def __init__(self, message: str, stage: str = None):
        super().__init__("E401", message, stage)


class PurgeFailure(InfraError):
    """Listing or batch-deleting bucket objects failed."""

    stage = "purge"

    def __init__(self, message: str, deleted: int = 0):
        self.deleted = deleted
        super().__init__("E501", message)


class ProviderError(Exception):
    """A read-only provider query failed."""


class StorageError(Exception):
    """An object storage call failed."""
