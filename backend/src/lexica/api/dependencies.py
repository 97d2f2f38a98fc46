"""FastAPI dependencies for request handling.

Collaborators are built once in the application lifespan and stored on
``app.state``; these dependencies hand them to route functions.
"""

from fastapi import Request
from starlette.requests import HTTPConnection

from lexica.api.events import WordUpdateBroadcaster
from lexica.services.generation_queue import GenerationQueueService


def get_queue_service(request: Request) -> GenerationQueueService:
    """Get the generation queue service from app state."""
    return request.app.state.queue_service


def get_broadcaster(connection: HTTPConnection) -> WordUpdateBroadcaster:
    """Get the word update broadcaster from app state.

    Takes an HTTPConnection so the websocket endpoint can depend on it too.
    """
    return connection.app.state.broadcaster
