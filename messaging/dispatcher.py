# ============================================================================
# JOB INSERT DISPATCHER
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Post-insert worker dispatch
# PURPOSE: Run listeners for committed jobs; invoke the worker over HTTP
# CREATED: 18 OCT 2026
# ============================================================================
"""
Job Insert Dispatcher

The planner publishes every committed job row to a JobInsertDispatcher.
Each listener runs as a background task: publish() returns as soon as the
tasks are scheduled, so planning never waits on the worker. Listeners
cannot un-create the job; a listener failure is logged and the other
listeners still run. drain() waits for in-flight listeners at shutdown.

WorkerInvoker is the listener that hands jobs to the generation worker.
It reads the top-level ``is_test_job`` flag of the row:

    is_test_job = true   -> one "skipping" trigger log, no HTTP call
    is_test_job = false  -> "preparing" log, POST to the worker, "after_post" log

Usage:
    dispatcher = JobInsertDispatcher()
    dispatcher.subscribe(WorkerInvoker(WorkerConfig.from_env(), trigger_logs))
    await dispatcher.publish(job)
    ...
    await dispatcher.drain(timeout=30)
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import httpx

from core.logging import get_logger, log_context, ComponentType
from core.models import GenerationJob, TriggerLog, TriggerLogMessage
from repositories import TriggerLogRepository
from .config import WorkerConfig

logger = get_logger(__name__, component=ComponentType.MESSAGING)

JobListener = Callable[[GenerationJob], Awaitable[None]]


def _listener_name(listener: JobListener) -> str:
    return getattr(listener, "__name__", type(listener).__name__)


class JobInsertDispatcher:
    """Post-commit hook for generation job inserts."""

    def __init__(self):
        self._listeners: List[JobListener] = []
        self._active_tasks: Set[asyncio.Task] = set()

    def subscribe(self, listener: JobListener) -> None:
        self._listeners.append(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def pending_count(self) -> int:
        """Listener tasks scheduled but not yet finished."""
        return len(self._active_tasks)

    async def publish(self, job: GenerationJob) -> None:
        """
        Schedule every listener for a committed job.

        Fire-and-forget: returns without awaiting the listeners. Their
        errors are logged, never raised.
        """
        for listener in self._listeners:
            task = asyncio.create_task(
                self._run_listener(listener, job),
                name=f"job-insert-{_listener_name(listener)}-{job.id}",
            )
            self._active_tasks.add(task)
            task.add_done_callback(self._active_tasks.discard)

    async def _run_listener(self, listener: JobListener, job: GenerationJob) -> None:
        try:
            await listener(job)
        except Exception as e:
            logger.error(
                f"Job insert listener {_listener_name(listener)} failed for job {job.id}: {e}",
                exc_info=True,
            )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for in-flight listeners; cancel whatever is left after timeout.
        """
        if not self._active_tasks:
            return

        logger.info(f"Waiting for {len(self._active_tasks)} job insert listeners...")
        tasks = list(self._active_tasks)
        try:
            await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Drain timeout - cancelling {len(self._active_tasks)} job insert listeners")
            for task in list(self._active_tasks):
                task.cancel()


class WorkerInvoker:
    """
    Listener that invokes the generation worker for a newly inserted job.

    Every decision is recorded as a TriggerLog row.
    """

    def __init__(
        self,
        config: WorkerConfig,
        trigger_logs: TriggerLogRepository,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        """
        Args:
            config: Worker endpoint configuration
            trigger_logs: Repository the decisions are recorded in
            client_factory: Builds the httpx client (tests pass a mock transport)
        """
        self.config = config
        self.trigger_logs = trigger_logs
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(
            self.config.request_timeout_seconds,
            connect=self.config.connect_timeout_seconds,
        )
        return httpx.AsyncClient(timeout=timeout)

    async def _record(self, job: GenerationJob, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        await self.trigger_logs.record(TriggerLog.for_job(job.id, message, data))

    async def __call__(self, job: GenerationJob) -> None:
        with log_context(job_id=job.id, session_id=job.session_id, stage_slug=job.stage_slug):
            if job.is_test_job:
                await self._record(job, TriggerLogMessage.SKIPPED_TEST_JOB, {"is_test_job": True})
                logger.info(f"Skipping worker invocation for test job {job.id}")
                return

            await self._record(
                job,
                TriggerLogMessage.PREPARING,
                {"url": self.config.worker_url, "job_type": job.job_type.value},
            )

            headers = {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {job.payload.user_jwt}",
            }
            body = {"job": job.model_dump(mode="json", exclude={"is_terminal"})}

            try:
                async with self._client_factory() as client:
                    response = await client.post(self.config.worker_url, json=body, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"Worker invocation failed for job {job.id}: {e}")
                await self._record(job, TriggerLogMessage.FAILED, {"error": str(e)})
                return

            await self._record(job, TriggerLogMessage.AFTER_POST, {"status_code": response.status_code})
            if response.is_success:
                logger.info(f"Worker accepted job {job.id} ({response.status_code})")
            else:
                logger.warning(f"Worker returned {response.status_code} for job {job.id}")


__all__ = ["JobInsertDispatcher", "JobListener", "WorkerInvoker"]
