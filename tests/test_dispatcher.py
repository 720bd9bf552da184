# ============================================================================
# JOB INSERT DISPATCHER TESTS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Tests - Post-insert worker dispatch
# PURPOSE: Verify test-job isolation and worker invocation trigger logs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dispatcher Tests

WorkerInvoker is exercised against an httpx.MockTransport so the HTTP
call (or its absence) is observable without a network.

Run with:
    pytest tests/test_dispatcher.py -v
"""

import asyncio
import json
import time
import pytest
from unittest.mock import AsyncMock, MagicMock

import httpx

from core.config import PlannerDefaults
from core.models import (
    AiProvider,
    AuthenticatedUser,
    DialecticPlanJobPayload,
    DialecticSession,
    GenerateContributionsRequest,
    GenerationJob,
    RecipeInstance,
    StageRecipe,
    TriggerLogMessage,
)
from messaging import JobInsertDispatcher, WorkerConfig, WorkerInvoker
from services.job_planner import JobPlanner


# ============================================================================
# HELPERS
# ============================================================================

WORKER_URL = "https://worker.example.test/invoke"


def _make_job(is_test_job=False):
    payload = DialecticPlanJobPayload(
        model_id="model-a",
        model_slug="claude-3-opus",
        projectId="proj-1",
        sessionId="sess-1",
        stageSlug="thesis",
        iterationNumber=1,
        walletId="wallet-1",
        user_jwt="user-jwt",
    )
    return GenerationJob.new_plan(payload, user_id="user-1", is_test_job=is_test_job)


class _RecordingWorker:
    """MockTransport handler that records requests and answers with a status."""

    def __init__(self, status_code=202, error=None):
        self.status_code = status_code
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error("worker unreachable", request=request)
        return httpx.Response(self.status_code, json={"accepted": True})


def _build_invoker(worker):
    trigger_logs = AsyncMock()
    invoker = WorkerInvoker(
        WorkerConfig(worker_url=WORKER_URL),
        trigger_logs,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(worker)),
    )
    return invoker, trigger_logs


def _messages(trigger_logs):
    return [call.args[0].log_message for call in trigger_logs.record.await_args_list]


# ============================================================================
# TEST JOB ISOLATION
# ============================================================================

class TestTestJobIsolation:
    def test_test_job_skips_worker(self):
        worker = _RecordingWorker()
        invoker, trigger_logs = _build_invoker(worker)

        asyncio.run(invoker(_make_job(is_test_job=True)))

        assert worker.requests == []
        assert _messages(trigger_logs) == [TriggerLogMessage.SKIPPED_TEST_JOB]

    def test_skip_log_names_the_job(self):
        worker = _RecordingWorker()
        invoker, trigger_logs = _build_invoker(worker)
        job = _make_job(is_test_job=True)

        asyncio.run(invoker(job))

        log = trigger_logs.record.await_args.args[0]
        assert log.job_id == job.id
        assert log.log_message == "invoke_worker: skipping HTTP worker invocation for test job"


# ============================================================================
# WORKER INVOCATION
# ============================================================================

class TestWorkerInvocation:
    def test_posts_job_with_bearer_token(self):
        worker = _RecordingWorker()
        invoker, trigger_logs = _build_invoker(worker)
        job = _make_job()

        asyncio.run(invoker(job))

        assert len(worker.requests) == 1
        request = worker.requests[0]
        assert str(request.url) == WORKER_URL
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer user-jwt"
        body = json.loads(request.content)
        assert body["job"]["id"] == job.id
        assert body["job"]["is_test_job"] is False
        assert body["job"]["payload"]["job_type"] == "PLAN"

    def test_logs_preparing_then_after_post(self):
        worker = _RecordingWorker(status_code=202)
        invoker, trigger_logs = _build_invoker(worker)

        asyncio.run(invoker(_make_job()))

        assert _messages(trigger_logs) == [TriggerLogMessage.PREPARING, TriggerLogMessage.AFTER_POST]
        after_post = trigger_logs.record.await_args.args[0]
        assert after_post.data == {"status_code": 202}

    def test_worker_error_status_still_logged(self):
        worker = _RecordingWorker(status_code=500)
        invoker, trigger_logs = _build_invoker(worker)

        asyncio.run(invoker(_make_job()))

        assert trigger_logs.record.await_args.args[0].data == {"status_code": 500}

    def test_connection_failure_recorded(self):
        worker = _RecordingWorker(error=httpx.ConnectError)
        invoker, trigger_logs = _build_invoker(worker)

        asyncio.run(invoker(_make_job()))

        assert _messages(trigger_logs) == [TriggerLogMessage.PREPARING, TriggerLogMessage.FAILED]
        assert "worker unreachable" in trigger_logs.record.await_args.args[0].data["error"]


# ============================================================================
# DISPATCHER
# ============================================================================

async def _publish_and_drain(dispatcher, job):
    await dispatcher.publish(job)
    await dispatcher.drain()


class TestJobInsertDispatcher:
    def test_publishes_to_every_listener(self):
        dispatcher = JobInsertDispatcher()
        first, second = AsyncMock(), AsyncMock()
        dispatcher.subscribe(first)
        dispatcher.subscribe(second)
        job = _make_job()

        asyncio.run(_publish_and_drain(dispatcher, job))

        first.assert_awaited_once_with(job)
        second.assert_awaited_once_with(job)
        assert dispatcher.listener_count == 2
        assert dispatcher.pending_count == 0

    def test_publish_returns_before_listeners_finish(self):
        dispatcher = JobInsertDispatcher()
        release = None
        finished = []

        async def slow_listener(job):
            await release.wait()
            finished.append(job.id)

        dispatcher.subscribe(slow_listener)
        job = _make_job()

        async def scenario():
            nonlocal release
            release = asyncio.Event()
            await dispatcher.publish(job)
            pending_after_publish = dispatcher.pending_count
            finished_after_publish = list(finished)
            release.set()
            await dispatcher.drain()
            return pending_after_publish, finished_after_publish

        pending, finished_early = asyncio.run(scenario())

        assert pending == 1
        assert finished_early == []
        assert finished == [job.id]

    def test_listener_failure_does_not_propagate(self):
        dispatcher = JobInsertDispatcher()
        failing = AsyncMock(side_effect=RuntimeError("listener broke"))
        after = AsyncMock()
        dispatcher.subscribe(failing)
        dispatcher.subscribe(after)

        asyncio.run(_publish_and_drain(dispatcher, _make_job()))

        after.assert_awaited_once()
        assert dispatcher.pending_count == 0

    def test_trigger_log_failure_does_not_propagate(self):
        worker = _RecordingWorker()
        invoker, trigger_logs = _build_invoker(worker)
        trigger_logs.record.side_effect = RuntimeError("log table missing")
        dispatcher = JobInsertDispatcher()
        dispatcher.subscribe(invoker)

        asyncio.run(_publish_and_drain(dispatcher, _make_job(is_test_job=True)))

        assert worker.requests == []

    def test_drain_timeout_cancels_stuck_listeners(self):
        dispatcher = JobInsertDispatcher()
        cancelled = []

        async def stuck_listener(job):
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.append(job.id)
                raise

        dispatcher.subscribe(stuck_listener)
        job = _make_job()

        async def scenario():
            await dispatcher.publish(job)
            await dispatcher.drain(timeout=0.05)
            await asyncio.sleep(0)

        asyncio.run(scenario())

        assert cancelled == [job.id]
        assert dispatcher.pending_count == 0

    def test_no_listeners(self):
        asyncio.run(_publish_and_drain(JobInsertDispatcher(), _make_job()))


# ============================================================================
# PLANNING DOES NOT WAIT ON THE WORKER
# ============================================================================

class _SlowWorker:
    """Async MockTransport handler that answers after a delay."""

    def __init__(self, delay):
        self.delay = delay
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.delay)
        self.requests.append(request)
        return httpx.Response(202, json={"accepted": True})


def _build_planner_with_worker(worker):
    dispatcher = JobInsertDispatcher()
    invoker = WorkerInvoker(
        WorkerConfig(worker_url=WORKER_URL),
        AsyncMock(),
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(worker)),
    )
    dispatcher.subscribe(invoker)

    planner = JobPlanner(MagicMock(), dispatcher, PlannerDefaults(max_retries=3))
    planner.session_repo = AsyncMock()
    planner.provider_repo = AsyncMock()
    planner.recipe_repo = AsyncMock()
    planner.job_repo = AsyncMock()

    planner.session_repo.get.return_value = DialecticSession(
        id="sess-1", project_id="proj-1", selected_model_ids=["model-a", "model-b"],
    )
    planner.provider_repo.get_many.return_value = {
        m: AiProvider(id=m, name=m, api_identifier=f"{m}-slug") for m in ("model-a", "model-b")
    }
    planner.recipe_repo.get_stage_recipe.return_value = StageRecipe(
        stage_id="stage-thesis",
        stage_slug="thesis",
        instance=RecipeInstance(id="inst-1", stage_id="stage-thesis", template_id="tmpl-1"),
        steps=[],
    )
    planner.job_repo.create.side_effect = lambda job: job
    return planner, dispatcher


class TestPlanningDoesNotWaitOnWorker:
    def test_slow_worker_does_not_delay_planning(self):
        worker = _SlowWorker(delay=1.0)
        planner, dispatcher = _build_planner_with_worker(worker)
        request = GenerateContributionsRequest(
            sessionId="sess-1", projectId="proj-1", stageSlug="thesis", iterationNumber=1, walletId="wallet-1",
        )

        async def scenario():
            started = time.monotonic()
            result = await planner.generate_contributions(request, AuthenticatedUser(id="user-1"), "jwt")
            elapsed = time.monotonic() - started
            posts_before_drain = len(worker.requests)
            await dispatcher.drain()
            return result, elapsed, posts_before_drain

        result, elapsed, posts_before_drain = asyncio.run(scenario())

        assert len(result.job_ids) == 2
        assert elapsed < 0.5
        assert posts_before_drain == 0
        assert len(worker.requests) == 2


class TestWorkerConfig:
    def test_url_required_when_enabled(self, monkeypatch):
        monkeypatch.delenv("DIALECTIC_WORKER_URL", raising=False)
        monkeypatch.setenv("DIALECTIC_WORKER_ENABLED", "true")
        with pytest.raises(ValueError):
            WorkerConfig.from_env()

    def test_disabled_without_url(self, monkeypatch):
        monkeypatch.delenv("DIALECTIC_WORKER_URL", raising=False)
        monkeypatch.setenv("DIALECTIC_WORKER_ENABLED", "false")
        assert WorkerConfig.from_env().enabled is False

    def test_timeouts_from_env(self, monkeypatch):
        monkeypatch.setenv("DIALECTIC_WORKER_URL", WORKER_URL)
        monkeypatch.setenv("DIALECTIC_WORKER_TIMEOUT_SECONDS", "5")
        config = WorkerConfig.from_env()
        assert config.request_timeout_seconds == 5.0
        assert config.worker_url == WORKER_URL

    def test_shutdown_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("DIALECTIC_WORKER_URL", WORKER_URL)
        monkeypatch.setenv("DIALECTIC_WORKER_SHUTDOWN_TIMEOUT_SECONDS", "12")
        assert WorkerConfig.from_env().shutdown_timeout_seconds == 12.0
