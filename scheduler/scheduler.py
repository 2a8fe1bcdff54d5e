"""
Task scheduler for the quote browser.
Uses APScheduler to run the configured periodic jobs on the event loop.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED

from utils import scheduler_logger
from utils.config_manager import UnifiedConfigManager

from .tasks import ScheduledTasks
from .job_config import JobConfig, JobConfigManager


class TaskScheduler:
    """任务调度器"""

    def __init__(self, config: UnifiedConfigManager, tasks: ScheduledTasks,
                 enabled: Optional[bool] = None):
        self.config = config
        self.tasks = tasks
        scheduler_config = config.get_scheduler_config()
        self.enabled = scheduler_config.enabled if enabled is None else enabled
        self.scheduler = AsyncIOScheduler(timezone=scheduler_config.timezone)
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.job_config_manager = JobConfigManager(config)
        self.job_configs: Dict[str, JobConfig] = {}

    async def initialize(self):
        """加载任务并启动调度器"""
        if not self.enabled:
            scheduler_logger.info("[Scheduler] Scheduler disabled, skipping initialization")
            return

        scheduler_logger.info("[Scheduler] Initializing task scheduler...")
        self.job_configs = self.job_config_manager.load_job_configs()

        self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)

        for job_id, job_config in self.job_configs.items():
            task_func = getattr(self.tasks, job_id, None)
            if task_func is None:
                scheduler_logger.error(f"[Scheduler] Task function not found: {job_id}")
                continue
            self._add_job(job_config, self._create_parameterized_task(task_func, job_config))

        self.scheduler.start()
        scheduler_logger.info(f"[Scheduler] Task scheduler started with {len(self.jobs)} jobs")

    def _create_parameterized_task(self, func, job_config: JobConfig):
        """把配置参数绑定到任务函数上"""
        async def parameterized_task():
            try:
                return await func(job_config=job_config, **job_config.parameters)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                scheduler_logger.error(f"[Scheduler] Task {job_config.job_id} execution failed: {e}")
                # 交给 APScheduler 的错误监听器
                raise

        return parameterized_task

    def _add_job(self, job_config: JobConfig, func) -> None:
        job = self.scheduler.add_job(
            func,
            trigger=job_config.trigger,
            id=job_config.job_id,
            replace_existing=True,
            max_instances=job_config.max_instances,
            misfire_grace_time=job_config.misfire_grace_time,
            coalesce=job_config.coalesce
        )
        self.jobs[job_config.job_id] = {
            'job': job,
            'description': job_config.description,
            'config': job_config,
        }
        scheduler_logger.info(f"[Scheduler] Added job: {job_config.job_id} - {job_config.description}")

    def _job_error_listener(self, event):
        job_id = getattr(event, 'job_id', 'unknown')
        exception = getattr(event, 'exception', 'Unknown error')
        scheduled_time = getattr(event, 'scheduled_run_time', None)
        scheduler_logger.error(f"[Scheduler] Job {job_id} failed at {scheduled_time}: {exception}")

    def _job_missed_listener(self, event):
        job_id = getattr(event, 'job_id', 'unknown')
        scheduled_time = getattr(event, 'scheduled_run_time', None)
        scheduler_logger.warning(f"[Scheduler] Job {job_id} missed at {scheduled_time}")

    async def run_job_now(self, job_id: str) -> bool:
        """立即触发指定任务"""
        if job_id not in self.jobs:
            scheduler_logger.warning(f"[Scheduler] Job {job_id} not found")
            return False

        self.scheduler.modify_job(job_id, next_run_time=datetime.now(timezone.utc))
        scheduler_logger.info(f"[Scheduler] Job {job_id} scheduled for immediate execution")
        return True

    def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        job_info = self.jobs.get(job_id)
        if job_info is None:
            return None

        job = job_info['job']
        job_config: JobConfig = job_info['config']
        next_run_time = getattr(job, 'next_run_time', None)

        return {
            'id': job_id,
            'description': job_info['description'],
            'next_run_time': next_run_time.isoformat() if next_run_time else None,
            'trigger': str(job_config.trigger),
            'max_instances': job_config.max_instances,
            'misfire_grace_time': job_config.misfire_grace_time,
            'coalesce': job_config.coalesce,
            'parameters': job_config.parameters,
        }

    def get_all_jobs_status(self) -> Dict[str, Any]:
        return {
            'enabled': self.enabled,
            'scheduler_running': self.scheduler.running,
            'total_jobs': len(self.jobs),
            'jobs': {job_id: self.get_job_status(job_id) for job_id in self.jobs},
        }

    async def shutdown(self):
        """关闭调度器"""
        if not self.scheduler.running:
            return

        scheduler_logger.info("[Scheduler] Shutting down task scheduler...")
        loop = asyncio.get_running_loop()
        # shutdown(wait=True) 会阻塞，放入执行器
        await loop.run_in_executor(None, self.scheduler.shutdown, True)
        self.jobs.clear()
        scheduler_logger.info("[Scheduler] Task scheduler shutdown completed")
