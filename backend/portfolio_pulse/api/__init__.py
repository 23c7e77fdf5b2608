"""HTTP API for PortfolioPulse."""

from .routes import create_api_router, error_response
from .static import mount_spa

__all__ = ["create_api_router", "error_response", "mount_spa"]
