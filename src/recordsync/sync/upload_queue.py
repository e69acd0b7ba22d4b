"""Background upload queue for record attachments.

This module provides:
- UploadTask: one file transfer with a validated state machine
- UploadQueue: single-consumer FIFO of transfers with bounded retries

Task states:
    QUEUED -> IN_FLIGHT -> COMPLETED
                        -> RETRYING -> IN_FLIGHT
                        -> ABANDONED

One consumer thread is started with start() and fed by enqueue() from any
thread. After a successful transfer the file location is patched into the
owning record and the record is reconciled after a short delay. Failed
transfers are retried after ``retry_delay * retry_count`` seconds; once the
retry budget is spent the task is dropped with an error log.
"""

from __future__ import annotations

import logging
import queue
import secrets
import string
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from recordsync.core.errors import RecordSyncError

if TYPE_CHECKING:
    from recordsync.server.storage import ObjectStorage
    from recordsync.sync.reconcile import Reconcilers

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 5.0  # seconds, multiplied by the retry count
DEFAULT_INTER_TASK_DELAY = 1.0  # seconds between two tasks
DEFAULT_RECONCILE_DELAY = 5.0  # seconds between upload and reconciliation

_BASE36 = string.digits + string.ascii_lowercase


class UploadStatus(IntEnum):
    """Status of an upload task."""

    QUEUED = auto()
    IN_FLIGHT = auto()
    RETRYING = auto()
    COMPLETED = auto()
    ABANDONED = auto()


# Valid state transitions
VALID_TRANSITIONS: dict[UploadStatus, set[UploadStatus]] = {
    UploadStatus.QUEUED: {UploadStatus.IN_FLIGHT},
    UploadStatus.IN_FLIGHT: {
        UploadStatus.COMPLETED,
        UploadStatus.RETRYING,
        UploadStatus.ABANDONED,
    },
    UploadStatus.RETRYING: {UploadStatus.IN_FLIGHT},
    UploadStatus.COMPLETED: set(),  # Terminal
    UploadStatus.ABANDONED: set(),  # Terminal
}


class InvalidTransitionError(RecordSyncError):
    """Raised when attempting invalid state transition."""


def new_task_id() -> str:
    """Generate a task id: ``<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{int(time.time() * 1000)}_{suffix}"


def read_bytes(path: Path | str) -> bytes | None:
    """Read a file, returning None if it does not exist."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None


@dataclass
class UploadTask:
    """A queued attachment transfer.

    Attributes:
        entity: Entity name of the owning record.
        record_id: Local id of the owning record.
        field: Column that receives the file location.
        source_path: Local file to transfer.
        file_name: Destination file name.
        mime_type: Content type.
        folder: Destination folder in object storage.
        max_retries: Retry budget after the first attempt.
        retry_count: Retries consumed so far.
        status: Current status.
        error: Last error message.
        task_id: Unique task identifier.
        created_at: Creation time (epoch seconds).
    """

    entity: str
    record_id: int
    field: str
    source_path: Path
    file_name: str
    mime_type: str = "application/octet-stream"
    folder: str = ""
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_count: int = 0
    status: UploadStatus = UploadStatus.QUEUED
    error: str | None = None
    task_id: str = field(default_factory=new_task_id)
    created_at: float = field(default_factory=time.time)

    def transition_to(self, new_status: UploadStatus) -> None:
        """Transition to a new status with validation."""
        if new_status not in VALID_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot transition from {self.status.name} to {new_status.name}"
            )
        self.status = new_status

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self.status]


@dataclass
class PendingTask:
    """Summary of a task that has not finished."""

    task_id: str
    file_name: str
    retry_count: int
    status: str


@dataclass
class QueueStatus:
    """Snapshot of the queue for observability."""

    running: bool
    depth: int
    in_flight: bool
    pending: list[PendingTask]
    completed: int
    abandoned: int


class Cancellable(Protocol):
    def cancel(self) -> None: ...


# (delay seconds, callback) -> handle
Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run a callback once after a delay on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class QueueState(Enum):
    """State of the upload queue."""

    STOPPED = auto()
    RUNNING = auto()
    STOPPING = auto()


class UploadQueue:
    """Single-consumer queue of attachment transfers.

    Usage:
        uploads = UploadQueue(storage, reconcilers)
        uploads.start()  # once, at process start

        uploads.enqueue(UploadTask(...))  # from any thread

        uploads.stop()
    """

    def __init__(
        self,
        storage: ObjectStorage,
        reconcilers: Reconcilers,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        inter_task_delay: float = DEFAULT_INTER_TASK_DELAY,
        reconcile_delay: float = DEFAULT_RECONCILE_DELAY,
        scheduler: Scheduler = thread_timer,
        sleep: Callable[[float], None] = time.sleep,
        reader: Callable[[Path], bytes | None] = read_bytes,
    ) -> None:
        """Initialize the queue.

        Args:
            storage: Object storage receiving the files.
            reconcilers: Gives access to record stores and reconciliation.
            max_retries: Default retry budget for new tasks.
            retry_delay: Base retry delay in seconds.
            inter_task_delay: Pause after every processed task.
            reconcile_delay: Delay before reconciling an updated record.
            scheduler: Runs a callback after a delay (default: threading.Timer).
            sleep: Sleep function used between tasks.
            reader: Reads a source file, None if missing.
        """
        self._storage = storage
        self._reconcilers = reconcilers
        self.max_retries = max_retries
        self._retry_delay = retry_delay
        self._inter_task_delay = inter_task_delay
        self._reconcile_delay = reconcile_delay
        self._schedule = scheduler
        self._sleep = sleep
        self._read = reader

        self._state = QueueState.STOPPED
        self._closed = False
        self._queue: queue.Queue[UploadTask | None] = queue.Queue()
        self._thread: threading.Thread | None = None

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._tasks: dict[str, UploadTask] = {}  # non-terminal tasks
        self._timers: set[Cancellable] = set()
        self._pending_reconciles = 0
        self._current: UploadTask | None = None

        # Statistics
        self._completed_count = 0
        self._abandoned_count = 0

    @property
    def state(self) -> QueueState:
        """Get current queue state."""
        return self._state

    @property
    def completed_count(self) -> int:
        return self._completed_count

    @property
    def abandoned_count(self) -> int:
        return self._abandoned_count

    # === Lifecycle ===

    def start(self) -> None:
        """Start the consumer thread (no-op if already running)."""
        with self._lock:
            if self._state != QueueState.STOPPED or self._closed:
                return
            self._state = QueueState.RUNNING
            self._thread = threading.Thread(
                target=self._worker_loop,
                name="upload-queue",
                daemon=True,
            )
            self._thread.start()
        logger.info("Upload queue started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the consumer and cancel pending delayed work.

        Tasks still queued or waiting for a retry are dropped.

        Args:
            timeout: Maximum seconds to wait for the consumer to exit.
        """
        with self._lock:
            self._closed = True
            if self._state != QueueState.RUNNING:
                return
            self._state = QueueState.STOPPING
            timers = list(self._timers)
            self._timers.clear()
            dropped = len(self._tasks)

        for timer in timers:
            timer.cancel()

        # Poison pill
        self._queue.put(None)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        with self._lock:
            self._state = QueueState.STOPPED
            self._idle.notify_all()
        if dropped:
            logger.warning("Upload queue stopped with %d unfinished tasks", dropped)
        logger.info("Upload queue stopped")

    # === Producers ===

    def enqueue(self, task: UploadTask) -> str:
        """Append a task to the tail of the queue.

        Args:
            task: Task to transfer.

        Returns:
            The task id.

        Raises:
            RuntimeError: If the queue has been stopped.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Upload queue is stopped")
            self._tasks[task.task_id] = task
        self._queue.put(task)
        logger.info(
            "Queued upload %s: %s for %s #%s",
            task.task_id,
            task.file_name,
            task.entity,
            task.record_id,
        )
        return task.task_id

    # === Observability ===

    def status(self) -> QueueStatus:
        """Snapshot of queue depth, in-flight flag and pending tasks."""
        with self._lock:
            current = self._current
            pending = [
                PendingTask(t.task_id, t.file_name, t.retry_count, t.status.name.lower())
                for t in sorted(self._tasks.values(), key=lambda t: t.created_at)
                if t is not current
            ]
            return QueueStatus(
                running=self._state == QueueState.RUNNING,
                depth=len(pending),
                in_flight=current is not None,
                pending=pending,
                completed=self._completed_count,
                abandoned=self._abandoned_count,
            )

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no task or delayed reconciliation is outstanding.

        Args:
            timeout: Maximum seconds to wait (None = wait forever).

        Returns:
            True if the queue became idle, False on timeout.
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: (not self._tasks and self._pending_reconciles == 0)
                or self._state == QueueState.STOPPED and self._closed,
                timeout=timeout,
            )

    # === Consumer ===

    def _worker_loop(self) -> None:
        """Drain the queue head-first, one task at a time."""
        while True:
            task = self._queue.get()
            if task is None:
                break
            if self._state != QueueState.RUNNING:
                continue
            try:
                self._process_task(task)
            except Exception:
                # Keep the single consumer alive whatever a task does
                logger.exception("Unexpected error processing upload %s", task.task_id)
                self._finish(task, UploadStatus.ABANDONED, force=True)
            self._sleep(self._inter_task_delay)

    def _process_task(self, task: UploadTask) -> None:
        with self._lock:
            task.transition_to(UploadStatus.IN_FLIGHT)
            self._current = task
        logger.info(
            "Processing upload %s: %s (attempt %d/%d)",
            task.task_id,
            task.file_name,
            task.retry_count + 1,
            task.max_retries + 1,
        )

        try:
            data = self._read(task.source_path)
            if data is None:
                raise FileNotFoundError(f"File not found: {task.source_path}")
            location = self._storage.transfer(data, task.file_name, task.mime_type, task.folder)
        except Exception as e:
            task.error = str(e)
            with self._lock:
                self._current = None
            self._handle_failure(task)
            return

        logger.info("Uploaded %s to %s", task.file_name, location)
        self._apply_location(task, location)
        self._finish(task, UploadStatus.COMPLETED)

    def _handle_failure(self, task: UploadTask) -> None:
        if not task.can_retry:
            logger.error(
                "Upload %s (%s) abandoned after %d attempts: %s",
                task.task_id,
                task.file_name,
                task.retry_count + 1,
                task.error,
            )
            self._finish(task, UploadStatus.ABANDONED)
            return

        with self._lock:
            task.retry_count += 1
            task.transition_to(UploadStatus.RETRYING)
        delay = self._retry_delay * task.retry_count
        logger.warning(
            "Upload %s failed: %s. Retrying in %.0fs (retry %d/%d)",
            task.task_id,
            task.error,
            delay,
            task.retry_count,
            task.max_retries,
        )
        self._later(delay, lambda: self._requeue(task))

    def _requeue(self, task: UploadTask) -> None:
        with self._lock:
            if self._closed:
                return
        self._queue.put(task)

    def _apply_location(self, task: UploadTask, location: str) -> None:
        """Patch the record and schedule its reconciliation."""
        try:
            service = self._reconcilers.for_entity(task.entity)
            service.store.patch_field(task.record_id, task.field, location)
        except Exception:
            # The file is stored; the record keeps its previous value
            logger.exception(
                "Failed to store location of %s in %s #%s.%s",
                task.file_name,
                task.entity,
                task.record_id,
                task.field,
            )
            return

        logger.info("Updated %s #%s.%s = %s", task.entity, task.record_id, task.field, location)
        with self._lock:
            self._pending_reconciles += 1
        self._later(
            self._reconcile_delay,
            lambda: self._reconcile(task.entity, task.record_id),
            on_cancel=self._reconcile_done,
        )

    def _reconcile(self, entity: str, record_id: int) -> None:
        try:
            result = self._reconcilers.reconcile_by_id(entity, record_id)
            if result.success:
                logger.info("Synced %s #%s after upload", entity, record_id)
            else:
                logger.error(
                    "Failed to sync %s #%s after upload: %s", entity, record_id, result.error
                )
        except Exception:
            logger.exception("Failed to sync %s #%s after upload", entity, record_id)
        finally:
            self._reconcile_done()

    def _reconcile_done(self) -> None:
        with self._lock:
            self._pending_reconciles -= 1
            self._idle.notify_all()

    def _finish(self, task: UploadTask, status: UploadStatus, force: bool = False) -> None:
        with self._lock:
            if force:
                task.status = status
            elif task.status != status:
                task.transition_to(status)
            self._tasks.pop(task.task_id, None)
            if self._current is task:
                self._current = None
            if status == UploadStatus.COMPLETED:
                self._completed_count += 1
            else:
                self._abandoned_count += 1
            self._idle.notify_all()

    def _later(
        self,
        delay: float,
        callback: Callable[[], None],
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        """Schedule a callback, tracking its handle so stop() can cancel it."""
        holder: list[Cancellable] = []

        def run() -> None:
            with self._lock:
                if holder:
                    self._timers.discard(holder[0])
            callback()

        with self._lock:
            closed = self._closed
        if closed:
            # on_cancel may take the lock itself
            if on_cancel is not None:
                on_cancel()
            return
        handle = self._schedule(delay, run)
        with self._lock:
            holder.append(handle)
            if not self._closed:
                self._timers.add(handle)
                return
        # stop() ran while scheduling
        handle.cancel()
        if on_cancel is not None:
            on_cancel()
