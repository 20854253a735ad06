"""
Background execution of generation requests.

A request is serialized into a plain message, handed to a worker thread of
its own, and answered with one result message when the run completes.
Nothing is shared between the caller and the running job.

A new request supersedes the previous one and starts immediately: if the
old one is still queued it is cancelled, if it is already running its
result is discarded. Python threads cannot be killed, so a discarded run
finishes in the background; the attempts budget bounds its runtime.
"""

from __future__ import annotations

import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from .engine import GenerateRequest, run_generation

logger = logging.getLogger(__name__)

Message = dict[str, Any]


def handle_message(message: Mapping[str, Any]) -> Optional[Message]:
    """
    Handle one worker message.

    Accepts {"type": "generate", "payload": <GenerateRequest JSON>} and
    answers {"type": "result", "candidates": [...], ...}. Configuration
    and validation errors are answered with {"type": "error", "error": ...}.
    Messages of any other type are ignored (None).
    """
    if message.get("type") != "generate":
        return None

    try:
        request = GenerateRequest.model_validate(message.get("payload") or {})
        report = run_generation(request)
    except ValueError as e:
        logger.warning("Generation request rejected | error=%s", e)
        return {"type": "error", "error": str(e)}

    return {
        "type": "result",
        "candidates": [c.to_wire() for c in report.candidates],
        "message": report.message,
        "stats": report.stats(),
    }


class GenerationWorker:
    """
    Runs generation requests off the calling thread, latest request wins.

    Every request gets its own single-thread executor, so a new request
    starts at once instead of waiting behind the run it supersedes.

    Usage:
        with GenerationWorker() as worker:
            future = worker.submit(request)
            response = future.result()
    """

    def __init__(self, handler: Callable[[Mapping[str, Any]], Optional[Message]] = handle_message):
        self._handler = handler
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._job: Optional[Future] = None
        self._response: Optional[Future] = None
        self._retired: list[tuple[ThreadPoolExecutor, Future]] = []
        self.discarded = 0

    def submit(self, request: GenerateRequest) -> Future:
        """
        Start a request, superseding any request still in flight.

        Returns:
            Future resolving to the response message. It is cancelled if a
            later request supersedes this one before it completes.
        """
        message = {
            "type": "generate",
            "payload": request.model_dump(mode="json", by_alias=True),
        }
        response: Future = Future()

        with self._lock:
            self._supersede()
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="timetabler-generator")
            job = executor.submit(self._handler, message)
            self._executor, self._job, self._response = executor, job, response

        job.add_done_callback(functools.partial(self._deliver, response))
        return response

    def _supersede(self) -> None:
        if self._executor is None:
            return
        self._job.cancel()
        if self._response.cancel():
            self.discarded += 1
            logger.info("Discarded in-flight generation request | discarded=%s", self.discarded)

        # The old run keeps its own thread until its attempts budget is spent
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._retired = [(ex, job) for ex, job in self._retired if not job.done()]
        self._retired.append((self._executor, self._job))
        self._executor = self._job = self._response = None

    @staticmethod
    def _deliver(response: Future, job: Future) -> None:
        if job.cancelled():
            response.cancel()
            return
        if not response.set_running_or_notify_cancel():
            return
        error = job.exception()
        if error is not None:
            response.set_exception(error)
        else:
            response.set_result(job.result())

    @property
    def running(self) -> int:
        """Runs still holding a thread, discarded ones included."""
        with self._lock:
            jobs = [job for _, job in self._retired]
            if self._job is not None:
                jobs.append(self._job)
        return sum(1 for job in jobs if not job.done())

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executors = [ex for ex, _ in self._retired]
            if self._executor is not None:
                self._job.cancel()
                executors.append(self._executor)
            self._retired = []
        for executor in executors:
            executor.shutdown(wait=wait)

    def __enter__(self) -> "GenerationWorker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()
