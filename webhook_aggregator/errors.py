"""Error taxonomy for the aggregation service."""


class AggregatorError(Exception):
    """Base class for aggregation service errors."""
    pass


class AdmissionValidationError(AggregatorError):
    """Raised when an inbound event cannot be admitted (e.g. missing key)."""
    pass


class StoreUnavailableError(AggregatorError):
    """Raised when the backing key-value store cannot complete an operation."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"store operation '{operation}' failed: {detail}")
        self.operation = operation
        self.detail = detail
