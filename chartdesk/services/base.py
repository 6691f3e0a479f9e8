"""
Service Errors

Exception hierarchy shared by the data and report services.
"""


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class ExternalAPIError(ServiceError):
    """External API call failed."""
    pass


class DataSourceError(ExternalAPIError):
    """
    A single exchange adapter could not satisfy a request.

    Recovered by the aggregator falling through to the next source;
    never surfaced to API callers directly.
    """

    @property
    def source(self) -> str:
        return self.service_name


class TransportError(DataSourceError):
    """Network failure, timeout, non-2xx status or undecodable body."""
    pass


class SourceDataError(DataSourceError):
    """Well-formed response carrying an error envelope or no usable data."""
    pass


class AllSourcesExhausted(ServiceError):
    """Every configured data source failed for one logical request."""

    def __init__(self, operation: str, attempts: list[tuple[str, str]]):
        self.operation = operation
        self.attempts = attempts
        tried = ", ".join(source for source, _ in attempts) or "none"
        super().__init__(
            "MarketDataAggregator",
            f"{operation} failed, tried sources: {tried}",
            details={"attempts": [{"source": s, "error": e} for s, e in attempts]},
        )

    @property
    def sources(self) -> list[str]:
        return [source for source, _ in self.attempts]


class LLMUnavailableError(ServiceError):
    """No language model provider could produce a report."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("LLMClient", message, details)
