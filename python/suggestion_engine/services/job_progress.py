"""
Job Progress Monitor

Observes "find more suggestions" jobs. Progress is read from the server's
event stream when a stream slot is free and the stream can be opened;
otherwise (or when the stream is lost for good) the status endpoint is
polled. Both channels feed the same MonitorHandle, which enforces the
callback guarantees:

- nothing is delivered after stop() returns
- phases never go backwards and `current` never decreases within a phase
- exactly one terminal callback (on_complete or on_error)
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import (
    AppException,
    JobFailedError,
    JobNotFoundError,
    JobTimeoutError,
    TransportError,
)
from suggestion_engine.core.logging import get_logger, log_error
from suggestion_engine.infrastructure.sse import SSEEvent
from suggestion_engine.models.domain.job import FindMoreJob, JobPhase, JobProgress, TrackedJob
from suggestion_engine.repositories.job_progress_repo import JobProgressRepository

logger = get_logger(__name__)

ProgressCallback = Callable[[JobProgress], Any]
ErrorCallback = Callable[[AppException], Any]


class MonitorState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


@dataclass
class JobCallbacks:
    on_progress: Optional[ProgressCallback] = None
    on_complete: Optional[ProgressCallback] = None
    on_error: Optional[ErrorCallback] = None


class MonitorHandle:
    """
    One monitored job.

    Channels report through progress()/complete()/fail(); the handle decides
    what reaches the caller's callbacks.
    """

    def __init__(
        self,
        progress_key: str,
        callbacks: JobCallbacks,
        tracked: TrackedJob,
        on_update: Callable[[TrackedJob], None],
    ):
        self.progress_key = progress_key
        self.callbacks = callbacks
        self.state = MonitorState.IDLE
        self.last_progress: Optional[JobProgress] = None
        self.error: Optional[AppException] = None
        self._tracked = tracked
        self._on_update = on_update
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    @property
    def job_id(self) -> str:
        return self._tracked.job_id

    @property
    def closed(self) -> bool:
        """True once stopped or terminal; no callback fires after this."""
        return self._closed

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def stop(self) -> None:
        """Stop monitoring. Idempotent, safe after natural termination."""
        if not self._closed:
            self._closed = True
            self.state = MonitorState.STOPPED
            logger.debug(f"[JobMonitor] Stopped {self.progress_key}")
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self) -> Optional[JobProgress]:
        """Wait for the monitor to finish; returns the last known progress."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.last_progress

    # ============================================================
    # Channel-facing API
    # ============================================================

    def set_state(self, state: MonitorState) -> None:
        if not self._closed:
            self.state = state

    def progress(self, progress: JobProgress) -> bool:
        """
        Deliver a non-terminal payload, or route a terminal one.

        Returns:
            True if the job reached a terminal phase
        """
        if self._closed:
            return True
        if progress.phase == JobPhase.COMPLETED:
            return self.complete(progress)
        if progress.phase == JobPhase.FAILED:
            return self.fail(JobFailedError(progress.error or progress.message or "Job failed", self.progress_key), progress)

        if self.last_progress is not None and progress.is_behind(self.last_progress):
            logger.debug(
                f"[JobMonitor] Dropping out-of-order event for {self.progress_key}: "
                f"{progress.phase.value} {progress.current}"
            )
            return False

        if self.last_progress is None or self.last_progress.phase != progress.phase:
            logger.info(f"[JobMonitor] {self.progress_key} -> {progress.phase.value}")
        self.last_progress = progress
        self._update(progress=progress)
        self._invoke(self.callbacks.on_progress, progress)
        return self._closed

    def complete(self, progress: JobProgress) -> bool:
        if self._closed:
            return True
        self._closed = True
        self.state = MonitorState.COMPLETED

        if progress.phase != JobPhase.COMPLETED:
            progress = progress.model_copy(update={"phase": JobPhase.COMPLETED})
        if not progress.current:
            progress = progress.model_copy(update={"current": progress.total})
        self.last_progress = progress

        self._update(progress=progress, finished=True)
        logger.info(f"[JobMonitor] {self.progress_key} completed: {progress.suggestions_created} suggestions created")
        self._invoke(self.callbacks.on_complete, progress)
        return True

    def fail(self, error: AppException, progress: Optional[JobProgress] = None) -> bool:
        """Terminal failure; last known progress is preserved."""
        if self._closed:
            return True
        self._closed = True
        self.state = MonitorState.FAILED
        self.error = error

        self._update(error=error.message, finished=True)
        logger.warning(f"[JobMonitor] {self.progress_key} failed: {error.code} - {error.message}")
        self._invoke(self.callbacks.on_error, error)
        return True

    # ============================================================
    # Internals
    # ============================================================

    def _update(self, **changes) -> None:
        self._tracked = self._tracked.model_copy(update=changes)
        self._on_update(self._tracked)

    def _invoke(self, callback: Optional[Callable], payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            log_error(logger, e, context=f"job callback {self.progress_key}")


class StreamingChannel:
    """Reads the server-sent progress stream."""

    mode = "stream"

    def __init__(self, repo: JobProgressRepository, reconnect_attempts: int, reconnect_delay: float):
        self.repo = repo
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay

    async def watch(self, handle: MonitorHandle) -> bool:
        """
        Follow the stream until a terminal event.

        Returns:
            True if the job finished (or the handle closed), False if the
            caller should fall back to polling
        """
        connected_once = False
        reconnects = 0

        while not handle.closed:
            handle.set_state(MonitorState.CONNECTING if not connected_once else MonitorState.RECONNECTING)
            try:
                async with self.repo.events(handle.progress_key) as events:
                    connected_once = True
                    handle.set_state(MonitorState.STREAMING)
                    async for event in events:
                        if self.dispatch(handle, event):
                            return True
                logger.info(f"[JobMonitor] Stream for {handle.progress_key} ended before the job finished")
            except AppException as e:
                if not connected_once:
                    logger.info(f"[JobMonitor] Streaming unavailable for {handle.progress_key}: {e.message}")
                    return False
                logger.warning(f"[JobMonitor] Stream for {handle.progress_key} dropped: {e.message}")

            if handle.closed:
                return True
            reconnects += 1
            if reconnects > self.reconnect_attempts:
                return False
            await asyncio.sleep(self.reconnect_delay)
        return True

    def dispatch(self, handle: MonitorHandle, event: SSEEvent) -> bool:
        """Route one stream event. Returns True on a terminal event."""
        if event.event == "error":
            data = event.data
            message = data.get("error") or data.get("message") or "Job failed"
            return handle.fail(JobFailedError(str(message), handle.progress_key))

        if event.event not in ("progress", "complete"):
            logger.debug(f"[JobMonitor] Ignoring '{event.event}' event for {handle.progress_key}")
            return False

        try:
            progress = JobProgress.model_validate(event.data)
        except PydanticValidationError as e:
            logger.warning(f"[JobMonitor] Malformed '{event.event}' payload for {handle.progress_key}: {e}")
            return False

        if event.event == "complete":
            return handle.complete(progress)
        return handle.progress(progress)


class PollingChannel:
    """Polls the status endpoint at a fixed interval."""

    mode = "poll"

    def __init__(self, repo: JobProgressRepository, interval: float, max_errors: int):
        self.repo = repo
        self.interval = interval
        self.max_errors = max_errors

    async def watch(self, handle: MonitorHandle) -> bool:
        errors = 0
        handle.set_state(MonitorState.POLLING)

        while not handle.closed:
            try:
                progress = await self.repo.status(handle.progress_key)
            except JobNotFoundError as e:
                handle.fail(e)
                return True
            except TransportError as e:
                errors += 1
                logger.warning(f"[JobMonitor] Poll {errors}/{self.max_errors} for {handle.progress_key} failed: {e.message}")
                if errors >= self.max_errors:
                    handle.fail(e)
                    return True
            else:
                errors = 0
                if handle.progress(progress):
                    return True

            await asyncio.sleep(self.interval)
        return True


class JobProgressMonitor:
    """
    Tracks any number of jobs, streaming where possible.

    Usage:
        handle = monitor.start(progress_key, JobCallbacks(on_complete=...))
        ...
        handle.stop()
    """

    def __init__(
        self,
        repo: JobProgressRepository,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        max_stream_connections: Optional[int] = None,
        reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
        poll_max_errors: Optional[int] = None,
    ):
        self.repo = repo
        self.timeout = timeout if timeout is not None else settings.job_timeout
        self.max_stream_connections = (
            max_stream_connections if max_stream_connections is not None else settings.max_stream_connections
        )
        self.streaming = StreamingChannel(
            repo,
            reconnect_attempts if reconnect_attempts is not None else settings.stream_reconnect_attempts,
            reconnect_delay if reconnect_delay is not None else settings.stream_reconnect_delay,
        )
        self.polling = PollingChannel(
            repo,
            poll_interval if poll_interval is not None else settings.job_poll_interval,
            poll_max_errors if poll_max_errors is not None else settings.poll_max_errors,
        )
        self.active_streams = 0
        self.jobs: Dict[str, TrackedJob] = {}
        self._handles: Dict[str, MonitorHandle] = {}

    # ============================================================
    # Start / stop
    # ============================================================

    def start(
        self,
        progress_key: str,
        callbacks: Optional[JobCallbacks] = None,
        timeout: Optional[float] = None,
        job_id: Optional[str] = None,
        person_id: Optional[str] = None,
        person_name: Optional[str] = None,
    ) -> MonitorHandle:
        """
        Begin monitoring a job. Must be called from a running event loop.

        Args:
            progress_key: Key returned when the job was queued
            callbacks: on_progress / on_complete / on_error
            timeout: Ceiling in seconds (defaults to settings.job_timeout)
            job_id: Key for the `jobs` map (defaults to progress_key)

        Returns:
            MonitorHandle whose stop() ends monitoring
        """
        job_id = job_id or progress_key
        previous = self._handles.get(job_id)
        if previous is not None:
            previous.stop()

        tracked = TrackedJob(
            job_id=job_id,
            progress_key=progress_key,
            person_id=person_id,
            person_name=person_name,
        )
        self.jobs[job_id] = tracked
        handle = MonitorHandle(progress_key, callbacks or JobCallbacks(), tracked, self._record)
        self._handles[job_id] = handle

        handle._task = asyncio.get_running_loop().create_task(
            self._run(handle, timeout if timeout is not None else self.timeout)
        )
        return handle

    def track_job(
        self,
        job: FindMoreJob,
        callbacks: Optional[JobCallbacks] = None,
        person_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> MonitorHandle:
        """Start monitoring a job returned by find-more or a bulk accept."""
        return self.start(
            job.progress_key,
            callbacks,
            timeout=timeout,
            job_id=job.job_id,
            person_id=job.person_id,
            person_name=person_name,
        )

    def destroy(self) -> None:
        """Stop every handle and forget all jobs."""
        for handle in list(self._handles.values()):
            handle.stop()
        self._handles.clear()
        self.jobs.clear()

    async def aclose(self) -> None:
        handles = list(self._handles.values())
        self.destroy()
        for handle in handles:
            await handle.wait()

    # ============================================================
    # Job map
    # ============================================================

    def get_job(self, job_id: str) -> Optional[TrackedJob]:
        return self.jobs.get(job_id)

    @property
    def running_jobs(self) -> List[TrackedJob]:
        return [job for job in self.jobs.values() if job.is_running]

    @property
    def has_running_jobs(self) -> bool:
        return any(job.is_running for job in self.jobs.values())

    def _record(self, tracked: TrackedJob) -> None:
        if tracked.job_id in self.jobs:
            self.jobs[tracked.job_id] = tracked

    # ============================================================
    # Observation
    # ============================================================

    async def _run(self, handle: MonitorHandle, timeout: float) -> None:
        try:
            await asyncio.wait_for(self._observe(handle), timeout)
        except asyncio.TimeoutError:
            handle.fail(JobTimeoutError(handle.progress_key, timeout))
        except AppException as e:
            handle.fail(e)
        finally:
            if self._handles.get(handle.job_id) is handle:
                del self._handles[handle.job_id]

    async def _observe(self, handle: MonitorHandle) -> None:
        if self.active_streams < self.max_stream_connections:
            self.active_streams += 1
            try:
                finished = await self.streaming.watch(handle)
            finally:
                self.active_streams -= 1
            if finished or handle.closed:
                return
            logger.info(f"[JobMonitor] Falling back to polling for {handle.progress_key}")
        else:
            logger.info(
                f"[JobMonitor] {self.active_streams} streams open, polling {handle.progress_key}"
            )

        await self.polling.watch(handle)
