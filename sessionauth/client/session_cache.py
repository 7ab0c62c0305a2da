"""Fetch-and-cache holder for the current session, for UI polling."""

import logging
from enum import Enum
from typing import Callable, Optional

from sessionauth.auth.schemas import SessionPayload

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class SessionCache:
    """
    Last fetched session plus the state of the fetch.

    Starts in ``loading`` until the first ``refresh()``. A failed fetch
    keeps the exception in ``error`` and drops ``data``. ``ready`` with
    ``data=None`` means signed out.
    """

    def __init__(self, fetch: Callable[[], Optional[SessionPayload]]):
        self._fetch = fetch
        self.data: Optional[SessionPayload] = None
        self.error: Optional[Exception] = None
        self.status = SessionStatus.LOADING

    @property
    def is_loading(self) -> bool:
        return self.status == SessionStatus.LOADING

    def refresh(self) -> Optional[SessionPayload]:
        """Re-run the fetch and return the new data (None on error or signed out)."""
        self.status = SessionStatus.LOADING
        self.error = None

        try:
            data = self._fetch()
        except Exception as e:
            logger.warning(f"Session refresh failed: {e}")
            self.data = None
            self.error = e
            self.status = SessionStatus.ERROR
            return None

        self.data = data
        self.status = SessionStatus.READY
        return data
