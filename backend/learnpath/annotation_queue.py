from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from .annotation import AnnotationPipeline
from .errors import RateLimited, UpstreamError

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 60


@dataclass
class AnnotationJob:
	resource_id: str
	force: bool = False


class AnnotationQueue:
	"""Background workers that run the annotation pipeline.

	``enqueue`` returns at once. Rate limits and upstream failures are retried
	with exponential backoff; anything else is logged and counted as failed.
	"""

	def __init__(
		self,
		pipeline: AnnotationPipeline,
		*,
		workers: int = 1,
		max_retries: int = 3,
		retry_base_seconds: float = 2.0,
	) -> None:
		self.pipeline = pipeline
		self.workers = workers
		self.max_retries = max_retries
		self.retry_base_seconds = retry_base_seconds
		self._queue: Optional[asyncio.Queue[AnnotationJob]] = None
		self._tasks: List[asyncio.Task] = []
		self.in_flight = 0
		self.processed = 0
		self.failed = 0
		self.retried = 0

	@property
	def running(self) -> bool:
		return bool(self._tasks)

	async def start(self) -> None:
		if self.running:
			return
		self._queue = asyncio.Queue()
		self._tasks = [asyncio.create_task(self._worker(self._queue)) for _ in range(self.workers)]
		logger.info("Annotation queue started with %s worker(s)", self.workers)

	async def stop(self) -> None:
		pending = self._queue.qsize() if self._queue is not None else 0
		for task in self._tasks:
			task.cancel()
		await asyncio.gather(*self._tasks, return_exceptions=True)
		self._tasks = []
		if pending:
			logger.warning("Annotation queue stopped with %s job(s) still queued", pending)

	def enqueue(self, resource_id: str, force: bool = False) -> int:
		"""Queue a job and return the queue depth."""
		if self._queue is None or not self.running:
			raise RuntimeError("annotation queue is not running")
		self._queue.put_nowait(AnnotationJob(resource_id=resource_id, force=force))
		return self._queue.qsize()

	async def join(self) -> None:
		if self._queue is not None:
			await self._queue.join()

	def stats(self) -> Dict[str, Any]:
		return {
			"running": self.running,
			"workers": len(self._tasks),
			"depth": self._queue.qsize() if self._queue is not None else 0,
			"inFlight": self.in_flight,
			"processed": self.processed,
			"failed": self.failed,
			"retried": self.retried,
		}

	async def _worker(self, queue: asyncio.Queue) -> None:
		while True:
			job = await queue.get()
			self.in_flight += 1
			try:
				await self._run(job)
			finally:
				self.in_flight -= 1
				queue.task_done()

	def _before_retry(self, retry_state: RetryCallState) -> None:
		self.retried += 1
		resource_id = retry_state.args[0]
		delay = retry_state.next_action.sleep if retry_state.next_action else 0
		exc = retry_state.outcome.exception() if retry_state.outcome else None
		logger.warning("Retrying resource %s in %.1fs (%s)", resource_id, delay, exc.__class__.__name__)

	async def _run(self, job: AnnotationJob) -> None:
		retrying = AsyncRetrying(
			retry=retry_if_exception_type((RateLimited, UpstreamError)),
			wait=wait_exponential(multiplier=self.retry_base_seconds, max=MAX_BACKOFF_SECONDS),
			stop=stop_after_attempt(self.max_retries + 1),
			before_sleep=self._before_retry,
			reraise=True,
		)
		try:
			await retrying(self.pipeline.annotate, job.resource_id, job.force)
		except (RateLimited, UpstreamError) as exc:
			self.failed += 1
			logger.error("Giving up on resource %s after %s attempt(s): %s", job.resource_id, self.max_retries + 1, exc)
		except Exception:
			self.failed += 1
			logger.exception("Annotation failed for resource %s", job.resource_id)
		else:
			self.processed += 1
