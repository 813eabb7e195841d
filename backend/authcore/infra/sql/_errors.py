"""Wrap driver failures into :class:`StoreError` at the adapter boundary."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from authcore.services._shared.errors import StoreError

log = logging.getLogger(__name__)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Re-raise any :class:`~sqlalchemy.exc.SQLAlchemyError` as :class:`StoreError`.

    :param operation: Short label such as ``"token_store.upsert"``; it ends up
        in the log record and on the raised error.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        log.error("store.failure", extra={"action": operation}, exc_info=exc)
        raise StoreError(operation) from exc
