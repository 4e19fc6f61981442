"""Background worker loop that consumes, executes and settles tasks."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Event, Lock, Thread

from kombu import Connection, Consumer, Producer
from kombu.message import Message

from packages.storefront_shared.logging import fields, get_logger, log_context
from resources.substrates.rabbitmq import BrokerConnectionManager, BrokerError
from resources.substrates.rabbitmq.connection import (
    DEFAULT_EXCHANGE,
    publish_persistent,
    release_quietly,
    transport_errors,
)
from resources.substrates.rabbitmq.substrate import BrokerConnectionError
from services.action.task_queue.codec import (
    ATTEMPT_HEADER,
    DEAD_LETTER_REASON_HEADER,
    attempt_from_headers,
    decode_task,
)
from services.action.task_queue.config import TaskQueueSettings
from services.action.task_queue.domain import (
    DeliveryOutcome,
    MalformedTaskError,
    Task,
    TaskContext,
    TaskTimeoutError,
    WorkerRunSummary,
    WorkerState,
)
from services.action.task_queue.handlers import HandlerRegistry, TaskHandler
from services.action.task_queue.retry import attempts_exhausted, backoff_delay

_LOGGER = get_logger(__name__)


class TaskWorker:
    """Consume one work queue with bounded prefetch on a dedicated thread.

    Each delivery is acknowledged exactly once on success. Failures are
    republished with an incremented ``x-attempt`` header after an exponential
    backoff and the original is acknowledged; exhausted and malformed tasks
    go to ``<queue><dead_letter_suffix>``. When a republish cannot be made the
    delivery is rejected with requeue so the broker redelivers it.
    """

    def __init__(
        self,
        *,
        broker: BrokerConnectionManager,
        registry: HandlerRegistry,
        settings: TaskQueueSettings,
    ) -> None:
        self._broker = broker
        self._registry = registry
        self._settings = settings
        self._lock = Lock()
        self._state = WorkerState.STOPPED
        self._stop_event = Event()
        self._thread: Thread | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._connection: Connection | None = None
        self._producer: Producer | None = None
        self._current_context: TaskContext | None = None
        self._counts = {outcome: 0 for outcome in DeliveryOutcome}
        self._processed = 0

    @property
    def state(self) -> WorkerState:
        with self._lock:
            return self._state

    def summary(self) -> WorkerRunSummary:
        """Return a snapshot of delivery counters."""
        with self._lock:
            return self._summary_unlocked()

    def start(self) -> None:
        """Start consuming in the background; returns immediately.

        Refused while a consumer thread from an earlier timed-out ``stop`` is
        still running.
        """
        with self._lock:
            if self._state != WorkerState.STOPPED:
                return
            if self._thread is not None and self._thread.is_alive():
                _LOGGER.warning(
                    "previous consumer thread still running; start refused"
                )
                return
            self._state = WorkerState.STARTING
            self._stop_event.clear()
            self._executor = _new_executor()
            self._thread = Thread(target=self._run_loop, name="task-worker", daemon=True)
            self._thread.start()

    def stop(self, grace_seconds: float | None = None) -> WorkerRunSummary:
        """Stop accepting deliveries and drain the in-flight one.

        Waits up to ``grace_seconds`` (default ``shutdown_grace_seconds``) for
        the current delivery to settle. An unsettled delivery is left
        unacknowledged and the broker redelivers it after the consumer
        connection closes.
        """
        grace = (
            self._settings.shutdown_grace_seconds
            if grace_seconds is None
            else grace_seconds
        )
        with self._lock:
            thread = self._thread
            if thread is None:
                return self._summary_unlocked()
            self._state = WorkerState.STOPPING
        self._stop_event.set()
        thread.join(grace)
        if thread.is_alive():
            _LOGGER.warning(
                "in-flight delivery not settled within %.1fs; closing consumer",
                grace,
            )
            context = self._current_context
            if context is not None:
                context.cancelled.set()
            release_quietly(self._connection)
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
            if not thread.is_alive():
                self._thread = None
            self._state = WorkerState.STOPPED
        summary = self.summary()
        _LOGGER.info("task worker stopped", extra=summary.model_dump())
        return summary

    def _run_loop(self) -> None:
        """Consume until stopped, re-establishing the consumer on failures."""
        while not self._stop_event.is_set():
            try:
                self._consume_until_stopped()
            except BrokerError as exc:
                self._set_state(WorkerState.STARTING)
                _LOGGER.warning(
                    "consumer connection lost; reconnecting in %.1fs: %s",
                    self._broker.settings.reconnect_interval_seconds,
                    str(exc),
                )
                self._stop_event.wait(self._broker.settings.reconnect_interval_seconds)
            except Exception:  # noqa: BLE001
                self._set_state(WorkerState.STARTING)
                _LOGGER.exception("task worker loop failed; restarting consumer")
                self._stop_event.wait(self._broker.settings.reconnect_interval_seconds)

    def _consume_until_stopped(self) -> None:
        """Run one consumer session on a fresh sibling connection."""
        if not self._wait_for_broker():
            return
        connection = self._broker.consumer_connection()
        self._connection = connection
        try:
            channel = connection.channel()
            work_queue = self._broker.declare_queue(
                self._settings.queue_name, channel=channel
            )
            self._broker.declare_queue(
                self._settings.dead_letter_queue, channel=channel
            )
            self._producer = Producer(channel, exchange=DEFAULT_EXCHANGE)
            consumer = Consumer(channel, queues=[work_queue], on_message=self._on_message)
            consumer.qos(prefetch_count=self._settings.prefetch_count)
            consumer.consume()
            self._set_state(WorkerState.CONSUMING)
            _LOGGER.info(
                "task worker consuming",
                extra={
                    fields.QUEUE: self._settings.queue_name,
                    "prefetch_count": self._settings.prefetch_count,
                },
            )
            while not self._stop_event.is_set():
                try:
                    connection.drain_events(timeout=self._settings.poll_interval_seconds)
                except TimeoutError:
                    connection.heartbeat_check()
            consumer.cancel()
        except transport_errors(connection) as exc:
            raise BrokerConnectionError(f"consumer session failed: {exc}") from exc
        finally:
            self._producer = None
            self._connection = None
            release_quietly(connection)

    def _wait_for_broker(self) -> bool:
        while not self._stop_event.is_set():
            if self._broker.wait_until_ready(self._settings.poll_interval_seconds):
                return True
        return False

    def _on_message(self, message: Message) -> None:
        """Settle one delivery; errors are logged and never escape the loop."""
        attempt = attempt_from_headers(message.headers)
        with log_context({fields.QUEUE: self._settings.queue_name, fields.ATTEMPT: attempt}):
            try:
                outcome = self._process(message, attempt)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("delivery handling failed; requeueing")
                outcome = self._requeue(message)
            self._record(outcome)
            _LOGGER.info("delivery settled", extra={fields.OUTCOME: outcome.value})

    def _process(self, message: Message, attempt: int) -> DeliveryOutcome:
        try:
            task = decode_task(message.body)
            handler = self._registry.resolve(task.kind)
        except MalformedTaskError as exc:
            return self._dead_letter(message, attempt, reason=str(exc))

        with log_context({fields.TASK_KIND: task.kind}):
            try:
                self._execute(handler, task, attempt)
            except MalformedTaskError as exc:
                return self._dead_letter(message, attempt, reason=str(exc))
            except Exception as exc:  # noqa: BLE001
                return self._retry_or_dead_letter(message, attempt, exc)
            message.ack()
            return DeliveryOutcome.ACKED

    def _execute(self, handler: TaskHandler, task: Task, attempt: int) -> None:
        """Run ``handler`` on the executor under the configured deadline."""
        timeout = self._settings.handler_timeout_seconds
        context = TaskContext(
            queue=self._settings.queue_name, attempt=attempt, deadline_seconds=timeout
        )
        self._current_context = context
        executor = self._executor or _new_executor()
        self._executor = executor
        future = executor.submit(handler, task, context)
        try:
            future.result(timeout=timeout)
        except TimeoutError as exc:
            if not future.done():
                context.cancelled.set()
                # The stuck thread keeps running; later tasks get a fresh one.
                executor.shutdown(wait=False)
                self._executor = _new_executor()
                raise TaskTimeoutError(
                    f"handler for '{task.kind}' exceeded {timeout:.1f}s"
                ) from exc
            raise
        finally:
            self._current_context = None

    def _retry_or_dead_letter(
        self, message: Message, attempt: int, exc: Exception
    ) -> DeliveryOutcome:
        failure = f"{type(exc).__name__}: {exc}"
        if attempts_exhausted(settings=self._settings, attempt=attempt):
            return self._dead_letter(
                message,
                attempt,
                reason=f"exhausted {attempt} attempts; last error {failure}",
            )

        delay = backoff_delay(settings=self._settings, attempt=attempt)
        _LOGGER.warning(
            "task failed; retrying in %.2fs: %s",
            delay,
            failure,
            exc_info=not isinstance(exc, TaskTimeoutError),
        )
        self._stop_event.wait(delay)

        headers = dict(message.headers or {})
        headers[ATTEMPT_HEADER] = attempt + 1
        if not self._republish(self._settings.queue_name, message, headers):
            return self._requeue(message)
        message.ack()
        return DeliveryOutcome.RETRIED

    def _dead_letter(self, message: Message, attempt: int, *, reason: str) -> DeliveryOutcome:
        _LOGGER.error(
            "task dead-lettered: %s",
            reason,
            extra={"dead_letter_queue": self._settings.dead_letter_queue},
        )
        headers = dict(message.headers or {})
        headers[ATTEMPT_HEADER] = attempt
        headers[DEAD_LETTER_REASON_HEADER] = reason
        if not self._republish(self._settings.dead_letter_queue, message, headers):
            return self._requeue(message)
        message.ack()
        return DeliveryOutcome.DEAD_LETTERED

    def _republish(
        self, queue: str, message: Message, headers: dict[str, object]
    ) -> bool:
        """Publish a persistent copy of ``message`` on the consumer channel."""
        producer = self._producer
        connection = self._connection
        if producer is None or connection is None:
            return False
        body = message.body
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            publish_persistent(producer, queue=queue, body=body, headers=headers)
        except transport_errors(connection) as exc:
            _LOGGER.warning("republish to '%s' failed: %s", queue, str(exc))
            return False
        return True

    def _requeue(self, message: Message) -> DeliveryOutcome:
        if not message.acknowledged:
            message.reject(requeue=True)
        return DeliveryOutcome.REQUEUED

    def _record(self, outcome: DeliveryOutcome) -> None:
        with self._lock:
            self._processed += 1
            self._counts[outcome] += 1

    def _set_state(self, state: WorkerState) -> None:
        with self._lock:
            if state != WorkerState.STOPPED and (
                self._state == WorkerState.STOPPING or self._stop_event.is_set()
            ):
                return
            self._state = state

    def _summary_unlocked(self) -> WorkerRunSummary:
        return WorkerRunSummary(
            processed=self._processed,
            succeeded=self._counts[DeliveryOutcome.ACKED],
            retried=self._counts[DeliveryOutcome.RETRIED],
            dead_lettered=self._counts[DeliveryOutcome.DEAD_LETTERED],
            requeued=self._counts[DeliveryOutcome.REQUEUED],
        )


def _new_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="task-handler")
