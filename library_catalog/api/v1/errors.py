from contextlib import contextmanager
from collections.abc import Iterator

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from library_catalog.core.exceptions import CatalogError, InternalError
from library_catalog.core.logging import get_logger

logger = get_logger("api.errors")


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service-layer errors into HTTP responses."""
    try:
        yield
    except CatalogError as exc:
        if exc.status_code >= 500:
            logger.error(f"Service failure: {exc.message}")
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        logger.error("Unexpected store failure", exc_info=True)
        error = InternalError()
        raise HTTPException(status_code=error.status_code, detail=error.message) from exc
