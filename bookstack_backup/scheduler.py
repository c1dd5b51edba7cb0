# File: bookstack_backup/scheduler.py
"""bookstack_backup.scheduler: по одному cron-заданию на экземпляр BookStack.

Задания независимы: долгий или упавший обход одного экземпляра не задерживает
другие. Повторный запуск того же экземпляра, пока предыдущий ещё идёт,
пропускается (per-instance lock).
"""

from __future__ import annotations

import asyncio
import enum
from typing import Callable, List, Optional, Sequence, Tuple

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from bookstack_backup.config import InstanceConfig
from bookstack_backup.exceptions import BackupError, SchedulerSetupError
from bookstack_backup.logger import for_instance, logger
from bookstack_backup.orchestrator import CrawlOrchestrator, CrawlReport

__all__ = ["SchedulerState", "InstanceScheduler"]


class SchedulerState(enum.Enum):
    UNSTARTED = "unstarted"
    RUNNING = "running"
    STOPPED = "stopped"


class InstanceScheduler:
    """Регистрирует cron-задания всех экземпляров и запускает их в event loop."""

    def __init__(
        self,
        instances: Sequence[InstanceConfig],
        *,
        orchestrator_factory: Callable[[InstanceConfig], CrawlOrchestrator] = CrawlOrchestrator,
    ) -> None:
        """Бросает SchedulerSetupError, если расписание хотя бы одного экземпляра некорректно."""
        self.instances: List[InstanceConfig] = list(instances)
        self._factory = orchestrator_factory
        self._triggers: List[CronTrigger] = [self._build_trigger(inst) for inst in self.instances]
        self._locks: List[asyncio.Lock] = [asyncio.Lock() for _ in self.instances]
        self._scheduler: Optional[AsyncIOScheduler] = None
        self.state = SchedulerState.UNSTARTED

    @staticmethod
    def _build_trigger(instance: InstanceConfig) -> CronTrigger:
        try:
            return CronTrigger.from_crontab(instance.schedule)
        except ValueError as exc:
            raise SchedulerSetupError(
                f"scheduling {instance.name}: invalid schedule {instance.schedule!r}: {exc}"
            ) from exc

    @property
    def jobs(self) -> List[Job]:
        return self._scheduler.get_jobs() if self._scheduler else []

    def start(self) -> AsyncIOScheduler:
        """Стартует фоновый диспетчер; вызывать из работающего event loop."""
        if self.state is not SchedulerState.UNSTARTED:
            raise RuntimeError(f"scheduler is {self.state.value}")
        scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        for index, (instance, trigger) in enumerate(zip(self.instances, self._triggers)):
            scheduler.add_job(
                self.run_instance,
                trigger=trigger,
                args=[index],
                id=f"{index}:{instance.name}",
                name=instance.name,
                # overlap is handled by the run-lock, which logs the skip
                max_instances=2,
                coalesce=True,
            )
        scheduler.start()
        self._scheduler = scheduler
        self.state = SchedulerState.RUNNING
        for job in scheduler.get_jobs():
            for_instance(job.name).info("Scheduled, next run at %s", job.next_run_time)
        return scheduler

    def shutdown(self) -> None:
        if self.state is not SchedulerState.RUNNING:
            self.state = SchedulerState.STOPPED
            return
        assert self._scheduler is not None
        self._scheduler.shutdown(wait=False)
        self.state = SchedulerState.STOPPED
        logger.info("Scheduler stopped")

    async def run_instance(self, index: int) -> Optional[CrawlReport]:
        """Один запуск обхода экземпляра; None, если запуск пропущен или завершился ошибкой."""
        instance = self.instances[index]
        lock = self._locks[index]
        log = for_instance(instance.name)
        if lock.locked():
            log.warning("Previous run still active, skipping this trigger")
            return None
        async with lock:
            try:
                return await self._factory(instance).crawl()
            except BackupError as exc:
                log.error("Crawl error: %s", exc)
            except Exception:  # noqa: BLE001 - one instance must not take down the others
                log.exception("Crawl failed unexpectedly")
        return None

    async def run_now(
        self, names: Optional[Sequence[str]] = None
    ) -> List[Tuple[InstanceConfig, Optional[CrawlReport]]]:
        """
        Немедленный обход всех (или перечисленных) экземпляров параллельно.

        Возвращает пары (экземпляр, отчёт) в порядке конфига; имена могут повторяться.
        """
        indices = [
            i for i, inst in enumerate(self.instances) if names is None or inst.name in names
        ]
        results = await asyncio.gather(*(self.run_instance(i) for i in indices))
        return [(self.instances[i], report) for i, report in zip(indices, results)]
