"""HTTP middleware for the collector service."""
from .correlation import CorrelationMiddleware, get_correlation_id
from .cors import CorsMiddleware
from .error_handler import ErrorHandlerMiddleware
from .metrics import MetricsMiddleware
from .validation import ValidationMiddleware

__all__ = [
    "CorrelationMiddleware",
    "CorsMiddleware",
    "ErrorHandlerMiddleware",
    "MetricsMiddleware",
    "ValidationMiddleware",
    "get_correlation_id",
]
