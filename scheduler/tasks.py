"""
Scheduled tasks for the quote browser.
Periodic snapshot flushes for the quote cache and the user accounts.
Job functions are looked up by job id, so method names match the
job ids in scheduler_config.jobs.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from utils import scheduler_logger


class ScheduledTasks:
    """定时任务集合"""

    def __init__(self, manager):
        self.manager = manager

    async def _run_flush(self, task_name: str, flush) -> Dict[str, Any]:
        start = time.time()
        saved = await flush()
        elapsed = time.time() - start

        if saved:
            scheduler_logger.info(f"[Scheduler] {task_name} completed in {elapsed:.3f}s")
        else:
            scheduler_logger.warning(f"[Scheduler] {task_name} did not write its snapshot")

        return {
            'task': task_name,
            'success': saved,
            'duration': round(elapsed, 3),
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

    async def save_quote_cache(self, job_config=None, **parameters) -> Dict[str, Any]:
        """保存名言缓存快照"""
        return await self._run_flush('save_quote_cache', self.manager.persist_quotes)

    async def save_users(self, job_config=None, **parameters) -> Dict[str, Any]:
        """保存用户快照"""
        return await self._run_flush('save_users', self.manager.persist_users)
