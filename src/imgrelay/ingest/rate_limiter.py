"""Per-client daily upload quota."""

import logging

from imgrelay.core.clock import Clock
from imgrelay.core.exceptions import StoreFailedError
from imgrelay.db.base import MetadataStore

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimiter:
    """Admits at most ``max_per_day`` uploads per client per calendar day.

    The day is the clock's calendar date, so counts reset when the date
    changes. Rejected attempts are not recorded.
    """

    def __init__(self, store: MetadataStore, clock: Clock, max_per_day: int):
        self.store = store
        self.clock = clock
        self.max_per_day = max_per_day

    async def admit(self, client_id: str | None) -> bool:
        """Record one upload for ``client_id`` if it is under quota.

        Returns:
            True if admitted, False if the quota is exhausted
        """
        client_id = client_id or UNKNOWN_CLIENT
        day = self.clock.today()
        try:
            admitted = await self.store.record_upload_if_allowed(client_id, day, self.max_per_day)
        except Exception as e:
            logger.error(
                "Failed to record upload attempt",
                extra={"client_id": client_id, "day": day, "error": str(e)},
                exc_info=True,
            )
            raise StoreFailedError() from e

        if not admitted:
            logger.info(
                "Upload quota exhausted",
                extra={"client_id": client_id, "day": day, "limit": self.max_per_day},
            )
        return admitted
