"""Request id propagation.

Every response carries X-Request-ID (echoed from the client when sent, a
new UUID4 otherwise); structlog picks the id up through
tenure.core.logging.add_correlation_id.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"


def setup_correlation_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        generator=lambda: str(uuid.uuid4()),
        validator=None,
        transformer=lambda value: value,
    )


def get_correlation_id() -> str | None:
    """Request id of the current request, None outside a request."""
    return correlation_id.get(None)


__all__ = ["REQUEST_ID_HEADER", "setup_correlation_middleware", "get_correlation_id"]
