from collections.abc import Callable, Generator
import logging

from anyio import from_thread
from fastapi import Request
from sqlalchemy.orm import Session

from schedease.db.session import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_disconnect_check(request: Request) -> Callable[[], bool]:
    """Polls the client connection from a sync route running in the threadpool."""

    def client_disconnected() -> bool:
        try:
            disconnected = from_thread.run(request.is_disconnected)
        except RuntimeError:  # pragma: no cover - only reachable outside a worker thread
            logger.debug("Disconnect check unavailable outside the request threadpool", exc_info=True)
            return False
        if disconnected:
            logger.info("Client disconnected from %s %s", request.method, request.url.path)
        return disconnected

    return client_disconnected
