import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_executor: ThreadPoolExecutor | None = None
_pending: set[Future] = set()


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _lock:
        if _executor is None:
            from app.config import get_settings

            workers = get_settings().PIPELINE_WORKERS
            _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="research-run")
            logger.info("Pipeline pool started with %d workers", workers)
        return _executor


def submit_research_run(research_id: str, query: str) -> Future:
    """Queue a pipeline run on the dedicated pool and return immediately.

    Runs never share threads with request handling, so a run stuck on the
    provider only holds one of its own workers.
    """
    from app.scheduler.tasks import run_research_task

    future = _get_executor().submit(run_research_task, research_id, query)
    with _lock:
        _pending.add(future)
    future.add_done_callback(_forget)
    return future


def _forget(future: Future):
    with _lock:
        _pending.discard(future)


def wait_for_runs(timeout: float | None = None) -> bool:
    """Block until every queued run has finished. False on timeout."""
    with _lock:
        pending = list(_pending)
    if not pending:
        return True
    _, not_done = wait(pending, timeout=timeout)
    return not not_done


def shutdown_runs(wait_for_running: bool = False):
    global _executor
    with _lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait_for_running)
        logger.info("Pipeline pool stopped")
