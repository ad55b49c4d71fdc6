"""ASGI middleware for the GlucoPredict API."""

from glucopredict.middleware.correlation import (
    CORRELATION_ID_HEADER,
    CorrelationIdMiddleware,
)

__all__ = ["CORRELATION_ID_HEADER", "CorrelationIdMiddleware"]
