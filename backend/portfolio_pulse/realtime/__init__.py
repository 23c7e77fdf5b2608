"""Live snapshot delivery.

Public API:
    Hub                  - Subscriber set with lock-free fan-out
    create_stream_router - FastAPI router factory for the /ws endpoint
"""

from .hub import Hub, Subscriber
from .stream import create_stream_router

__all__ = ["Hub", "Subscriber", "create_stream_router"]
