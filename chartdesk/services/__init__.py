"""
ChartDesk Services

Service layer containing all business logic.
Each service has a defined contract in its package docstring.
"""

from chartdesk.services.base import (
    ServiceError,
    ExternalAPIError,
    DataSourceError,
    TransportError,
    SourceDataError,
    AllSourcesExhausted,
    LLMUnavailableError,
)

__all__ = [
    "ServiceError",
    "ExternalAPIError",
    "DataSourceError",
    "TransportError",
    "SourceDataError",
    "AllSourcesExhausted",
    "LLMUnavailableError",
]
