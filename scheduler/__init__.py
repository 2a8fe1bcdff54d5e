"""
Scheduler module for the quote browser.
Periodic snapshot persistence driven by APScheduler.
"""

from .job_config import JobConfig, JobConfigManager
from .tasks import ScheduledTasks
from .scheduler import TaskScheduler

__all__ = ['JobConfig', 'JobConfigManager', 'ScheduledTasks', 'TaskScheduler']
