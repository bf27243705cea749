"""
HTTP Connection.
Runs requests against a REST API on a worker pool and hands the responses to
callbacks. Tasks can be cancelled until their callback starts; cancelling all
tasks also cuts off callbacks that are still running.
"""
import errno
import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

import requests

logger = logging.getLogger('worklist.connection')

TRANSPORT_ERROR = -2

RequestCallback = Callable[[Optional[requests.Response], Optional[requests.RequestException]], None]


class TaskCancelledError(requests.exceptions.RequestException):
    """A callback issued a request after its task had been cancelled."""



def transport_error_code(error: BaseException) -> int:
    """
    Get a numeric code for a transport failure.

    Walks the exception chain looking for an OS level errno (connection
    refused, timed out, name resolution ...).

    Args:
        error: Exception raised by requests/urllib3

    Returns:
        int: errno of the underlying failure, or TRANSPORT_ERROR
    """
    if isinstance(error, requests.exceptions.Timeout):
        return errno.ETIMEDOUT

    seen = set()
    pending = [error]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        code = getattr(current, 'errno', None)
        if isinstance(code, int) and code > 0:
            return code

        pending.extend(arg for arg in getattr(current, 'args', ()) if isinstance(arg, BaseException))
        pending.append(getattr(current, 'reason', None))
        pending.append(current.__cause__)
        pending.append(current.__context__)

    return TRANSPORT_ERROR


class TaskState(Enum):
    PENDING = 'pending'
    IN_FLIGHT = 'in_flight'
    DELIVERING = 'delivering'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


@dataclass
class RequestTask:
    """
    A queued request.

    Attributes:
        task_id: Identifier handed back to the caller
        request: Request to send
        callback: Receives (response, error) once the request finishes
        state: Lifecycle state
        generation: Value of the cancellation counter when the task was queued
        future: Executor future running the request
    """
    task_id: int
    request: requests.Request
    callback: Optional[RequestCallback] = None
    state: TaskState = TaskState.PENDING
    generation: int = 0
    future: Optional[Future] = field(default=None, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.state == TaskState.CANCELLED


class HTTPConnection:
    """
    Asynchronous request queue over a requests.Session.

    Usage:
        connection = HTTPConnection('https://example.org/')

        # Fire and forget
        task_id = connection.queue_request(
            requests.Request('GET', 'api/v1/worklists/'),
            lambda response, error: print(response.status_code)
        )
        connection.cancel_task(task_id)

        # Blocking
        response = connection.send_blocking(requests.Request('GET', 'api/v1/'))
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
        timeout: Optional[float] = None
    ):
        """
        Initialize connection.

        Args:
            base_url: Base URL relative request URLs are resolved against
            session: Optional requests session (a new one is created otherwise)
            max_workers: Number of concurrent requests
            timeout: Optional per request timeout in seconds
        """
        self.base_url = base_url.rstrip('/') + '/'
        self.session = session or requests.Session()
        self.timeout = timeout

        self._lock: threading.RLock = threading.RLock()
        self._tasks: Dict[int, RequestTask] = {}
        self._task_ids = itertools.count(1)
        self._generation = 0
        self._context = threading.local()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='HTTPConnection')

        logger.debug(f"Connection initialized for {self.base_url} ({max_workers} workers)")

    def queue_request(self, request: requests.Request, callback: Optional[RequestCallback] = None) -> int:
        """
        Queue a request and return immediately.

        Args:
            request: Request to send
            callback: Called with (response, error) from a worker thread

        Returns:
            int: Task identifier usable with cancel_task()
        """
        with self._lock:
            task = RequestTask(
                task_id=next(self._task_ids),
                request=request,
                callback=callback,
                generation=self._generation
            )
            self._tasks[task.task_id] = task
            task.future = self._executor.submit(self._run_task, task)

        logger.debug(f"Queued task {task.task_id}: {request.method} {request.url}")
        return task.task_id

    def send_request(self, request: requests.Request) -> Future:
        """
        Send a request on the worker pool.

        Returns:
            Future resolving to the requests.Response
        """
        return self._executor.submit(self._send, request)

    def send_blocking(self, request: requests.Request, stream: bool = False) -> requests.Response:
        """
        Send a request in the calling thread and wait for the response.

        Args:
            request: Request to send
            stream: Whether to defer downloading the body

        Returns:
            requests.Response: HTTP response

        Called from a callback whose task has since been cancelled with
        cancel_all_tasks(), the request is refused, or its response dropped if
        the cancellation happened while it was on the wire.

        Raises:
            requests.RequestException: On transport failure
            TaskCancelledError: If the calling callback's task was cancelled
        """
        self._check_current_task()
        response = self._send(request, stream=stream)
        try:
            self._check_current_task()
        except TaskCancelledError:
            response.close()
            raise
        return response

    def cancel_task(self, task_id: int) -> bool:
        """
        Cancel a queued task. Its callback will not fire once this returns,
        unless the callback had already started. A request that is already on
        the wire is not aborted; its response is dropped.

        Returns:
            bool: True if the task was cancelled
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None or task.state not in (TaskState.PENDING, TaskState.IN_FLIGHT):
                return False

            task.state = TaskState.CANCELLED
            del self._tasks[task_id]
            if task.future is not None:
                task.future.cancel()

        logger.debug(f"Cancelled task {task_id}")
        return True

    def cancel_all_tasks(self) -> int:
        """
        Cancel every outstanding task.

        Callbacks that are already running are cut off as well: from then on
        current_task_cancelled() is True for them and their follow-up requests
        raise TaskCancelledError.

        Returns:
            int: Number of cancelled tasks
        """
        with self._lock:
            self._generation += 1
            cancelled = sum(1 for task_id in list(self._tasks) if self.cancel_task(task_id))

        if cancelled:
            logger.info(f"Cancelled {cancelled} outstanding task(s)")
        return cancelled

    def current_task_cancelled(self) -> bool:
        """
        Whether the callback running in this thread belongs to a cancelled task.

        Always False outside of callbacks.
        """
        task = getattr(self._context, 'task', None)
        if task is None:
            return False
        with self._lock:
            return task.cancelled or task.generation != self._generation

    def pending_task_count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def close(self) -> None:
        """Cancel outstanding work and release the pool and session."""
        self.cancel_all_tasks()
        self._executor.shutdown(wait=True)
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _modify_request(self, request: requests.Request) -> None:
        """Hook applied to every outgoing request before it is prepared."""

    def _check_current_task(self) -> None:
        if self.current_task_cancelled():
            raise TaskCancelledError(f"Task {self._context.task.task_id} was cancelled")

    def _resolve_url(self, url: str) -> str:
        if url.startswith(('http://', 'https://')):
            return url
        return f"{self.base_url}{url.lstrip('/')}"

    def _send(self, request: requests.Request, stream: bool = False) -> requests.Response:
        outgoing = requests.Request(
            method=request.method,
            url=self._resolve_url(request.url),
            headers=dict(request.headers or {}),
            params=request.params,
            json=request.json,
            data=request.data
        )
        self._modify_request(outgoing)

        prepared = self.session.prepare_request(outgoing)
        logger.debug(f"{prepared.method} {prepared.url}")

        try:
            return self.session.send(prepared, stream=stream, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout after {self.timeout} seconds: {e}")
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise

    def _run_task(self, task: RequestTask) -> None:
        with self._lock:
            if task.cancelled:
                return
            task.state = TaskState.IN_FLIGHT

        try:
            response = None
            error = None
            try:
                response = self._send(task.request)
            except requests.exceptions.RequestException as e:
                error = e
            except Exception as e:
                logger.error(f"Task {task.task_id} could not be sent: {e}", exc_info=True)
                error = requests.exceptions.RequestException(e, request=task.request)

            with self._lock:
                if task.cancelled:
                    logger.debug(f"Discarding result of cancelled task {task.task_id}")
                    return
                task.state = TaskState.DELIVERING

            self._deliver(task, response, error)
        finally:
            with self._lock:
                self._tasks.pop(task.task_id, None)

    def _deliver(self, task: RequestTask, response, error) -> None:
        self._context.task = task
        try:
            if task.callback:
                task.callback(response, error)
        except Exception as e:
            logger.error(f"Callback for task {task.task_id} failed: {e}", exc_info=True)
        finally:
            self._context.task = None
            task.state = TaskState.COMPLETED
