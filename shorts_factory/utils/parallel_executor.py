"""Parallel Executor - fail-fast parallelism for independent per-request tasks."""

import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional

from shorts_factory.core.config import Settings


class ParallelExecutor:
    """Runs a batch of tasks concurrently where one failure fails the batch."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.max_parallel_downloads = getattr(settings, "max_parallel_downloads", 0)

    def run_all_or_nothing(
        self,
        tasks: list[Callable[[], Any]],
        task_names: Optional[list[str]] = None,
        max_workers: Optional[int] = None,
    ) -> list[Any]:
        """
        Execute tasks in parallel and return their results in task order.

        The first task to raise cancels every task that has not started yet,
        waits for the running ones to finish, and re-raises that exception.

        Args:
            tasks: List of callable tasks to execute
            task_names: Optional list of task names for logging
            max_workers: Maximum number of parallel workers (defaults to one per task)

        Returns:
            List of task results, in the same order as ``tasks``
        """
        if not tasks:
            return []

        max_workers = max_workers or self.max_parallel_downloads or len(tasks)
        max_workers = min(max_workers, len(tasks))

        self.logger.debug(f"Parallel execution: {len(tasks)} tasks with max {max_workers} workers")
        start_time = time.time()

        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            future_to_index = {executor.submit(task): i for i, task in enumerate(tasks)}
            done, pending = wait(future_to_index, return_when=FIRST_EXCEPTION)

            failed = [future for future in done if future.exception() is not None]
            if failed:
                first = min(failed, key=lambda future: future_to_index[future])
                index = future_to_index[first]
                task_name = task_names[index] if task_names and index < len(task_names) else f"task_{index + 1}"
                for future in pending:
                    future.cancel()
                elapsed = time.time() - start_time
                self.logger.error(
                    f"❌ {task_name} failed after {elapsed:.2f}s, cancelled {len(pending)} pending tasks: "
                    f"{first.exception()}"
                )
                raise first.exception()

            results = [None] * len(tasks)
            for future, index in future_to_index.items():
                results[index] = future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        elapsed = time.time() - start_time
        self.logger.debug(f"✅ Batch complete: {len(tasks)}/{len(tasks)} successful in {elapsed:.2f}s")
        return results
