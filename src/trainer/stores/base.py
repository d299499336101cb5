"""
Store base.

Every backend proxy store follows the same shape: one call at a time, a
loading flag, and an error message. On success the cached resource is
replaced wholesale; on failure the message is recorded and the previous
resource stays in place. No retries, no queuing.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from trainer.api import APIError, TrainerAPIClient

logger = logging.getLogger(__name__)


class BaseStore:
    """Shared loading/error bookkeeping for backend proxy stores."""

    def __init__(self, api: TrainerAPIClient | None = None):
        self._api = api
        self._owns_api = False
        self.is_loading: bool = False
        self.error_message: str | None = None

    @property
    def api(self) -> TrainerAPIClient:
        # Built on first use so stores can be created before settings load
        if self._api is None:
            self._api = TrainerAPIClient()
            self._owns_api = True
        return self._api

    async def aclose(self) -> None:
        """Close the client this store built. An injected client belongs to the caller."""
        if self._owns_api and self._api is not None:
            await self._api.aclose()
            self._api = None
            self._owns_api = False

    @contextmanager
    def _operation(self, description: str, track_loading: bool = True) -> Iterator[None]:
        """
        Wrap one backend call.

        Assignments inside the block only happen if the awaited call returned,
        so a failure leaves the cached resource untouched. APIError is recorded
        in error_message and suppressed; anything else propagates.
        """
        if track_loading:
            self.is_loading = True
        self.error_message = None
        try:
            yield
        except APIError as e:
            logger.warning(f"{type(self).__name__}: {description} failed: {e}")
            self.error_message = str(e)
        finally:
            if track_loading:
                self.is_loading = False
