"""
Scheduler job configuration.
Parses the scheduler_config.jobs section of the configuration into
APScheduler triggers and per-job settings.
"""

from __future__ import annotations

from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from utils import scheduler_logger
from utils.config_manager import UnifiedConfigManager, SchedulerConfig


INTERVAL_FIELDS = ('weeks', 'days', 'hours', 'minutes', 'seconds')
CRON_FIELDS = ('year', 'month', 'week', 'day', 'day_of_week', 'hour', 'minute', 'second')
COMMON_TRIGGER_FIELDS = ('start_date', 'end_date', 'timezone', 'jitter')


@dataclass
class JobConfig:
    """任务配置数据类"""
    job_id: str
    enabled: bool
    description: str
    trigger: Any  # CronTrigger or IntervalTrigger
    max_instances: int
    misfire_grace_time: int
    coalesce: bool
    parameters: Dict[str, Any] = field(default_factory=dict)


class JobConfigManager:
    """任务配置管理器"""

    def __init__(self, config_manager: UnifiedConfigManager):
        self.config_manager = config_manager
        self.job_configs: Dict[str, JobConfig] = {}

    def load_job_configs(self) -> Dict[str, JobConfig]:
        """从配置加载已启用的任务"""
        scheduler_config = self.config_manager.get_scheduler_config()
        self.job_configs = {}

        for job_id, job_data in scheduler_config.jobs.items():
            if not isinstance(job_data, dict):
                scheduler_logger.error(f"[JobConfigManager] Job {job_id} config must be an object")
                continue
            if not job_data.get('enabled', True):
                scheduler_logger.info(f"[JobConfigManager] Skipped disabled job: {job_id}")
                continue

            job_config = self._parse_job_config(job_id, job_data, scheduler_config)
            if job_config is not None:
                self.job_configs[job_id] = job_config
                scheduler_logger.info(f"[JobConfigManager] Loaded config for job: {job_id}")

        scheduler_logger.info(f"[JobConfigManager] Loaded {len(self.job_configs)} job configurations")
        return self.job_configs

    def _parse_job_config(self, job_id: str, job_data: Dict[str, Any],
                          scheduler_config: SchedulerConfig) -> Optional[JobConfig]:
        trigger = self._parse_trigger(job_data.get('trigger') or {}, scheduler_config.timezone)
        if trigger is None:
            scheduler_logger.error(f"[JobConfigManager] Invalid trigger for job {job_id}")
            return None

        return JobConfig(
            job_id=job_id,
            enabled=True,
            description=job_data.get('description', ''),
            trigger=trigger,
            # 任务自身配置优先，否则使用全局默认值
            max_instances=job_data.get('max_instances', scheduler_config.max_instances),
            misfire_grace_time=job_data.get('misfire_grace_time', scheduler_config.misfire_grace_time),
            coalesce=job_data.get('coalesce', scheduler_config.coalesce),
            parameters=job_data.get('parameters') or {},
        )

    def _parse_trigger(self, trigger_config: Dict[str, Any], default_timezone: str = "UTC") -> Optional[Any]:
        """解析触发器配置，支持 interval 与 cron"""
        trigger_type = str(trigger_config.get('type', '')).lower()

        if trigger_type == 'interval':
            fields = INTERVAL_FIELDS
        elif trigger_type == 'cron':
            fields = CRON_FIELDS
        else:
            scheduler_logger.error(f"[JobConfigManager] Unsupported trigger type: {trigger_type!r}")
            return None

        kwargs = {key: trigger_config[key] for key in fields + COMMON_TRIGGER_FIELDS if key in trigger_config}
        # day_of_month 是 cron day 的别名
        if trigger_type == 'cron' and 'day_of_month' in trigger_config:
            kwargs['day'] = trigger_config['day_of_month']
        kwargs.setdefault('timezone', default_timezone)

        if trigger_type == 'interval' and not any(key in kwargs for key in INTERVAL_FIELDS):
            scheduler_logger.error("[JobConfigManager] Interval trigger needs at least one time field")
            return None

        try:
            if trigger_type == 'interval':
                return IntervalTrigger(**kwargs)
            return CronTrigger(**kwargs)
        except (TypeError, ValueError) as e:
            scheduler_logger.error(f"[JobConfigManager] Error building {trigger_type} trigger: {e}")
            return None

    def get_job_config(self, job_id: str) -> Optional[JobConfig]:
        return self.job_configs.get(job_id)

    def get_all_job_configs(self) -> Dict[str, JobConfig]:
        return self.job_configs.copy()

    def is_job_enabled(self, job_id: str) -> bool:
        return job_id in self.job_configs

    def get_job_parameters(self, job_id: str) -> Dict[str, Any]:
        job_config = self.get_job_config(job_id)
        return job_config.parameters if job_config else {}
