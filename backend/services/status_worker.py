import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config import settings
from services import order_status_service

logger = logging.getLogger("smm-panel")


class OrderStatusWorker:
    def __init__(self, interval_seconds: int = settings.order_status_poll_seconds) -> None:
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._last_run_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task or not self.enabled:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> Dict[str, int]:
        self._last_run_at = datetime.now(timezone.utc)
        try:
            results = await order_status_service.check_all_open_orders()
        except Exception as exc:
            self._last_error = str(exc)
            raise
        self._last_error = None
        return results

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as exc:
                logger.exception("Order status cycle failed: %s", exc)
            await asyncio.sleep(self.interval_seconds)

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self._last_run_at,
            "last_error": self._last_error,
        }


order_status_worker = OrderStatusWorker()
