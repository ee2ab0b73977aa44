import threading
from collections.abc import Callable, Iterable

from app.config.settings import Settings
from app.logging.logger import Log
from app.queue.models import MAINTENANCE_JOB_KINDS, JobKind
from app.worker.worker import Worker

WorkerFactory = Callable[[list[str], threading.Event], Worker]


def slot_plan(settings: Settings) -> list[list[str]]:
    """One entry per worker slot, listing the job kinds that slot pulls."""
    plan: list[list[str]] = []
    groups: list[tuple[int, Iterable[JobKind]]] = [
        (settings.image_workers, [JobKind.IMAGE]),
        (settings.video_workers, [JobKind.VIDEO]),
        (settings.document_workers, [JobKind.DOCUMENT]),
        (settings.maintenance_workers, sorted(MAINTENANCE_JOB_KINDS, key=lambda k: k.value)),
    ]
    for count, kinds in groups:
        for _ in range(max(0, count)):
            plan.append([kind.value for kind in kinds])
    return plan


class WorkerPool:
    """Runs one thread per worker slot until stopped."""

    def __init__(self, plan: list[list[str]], worker_factory: WorkerFactory) -> None:
        if not plan:
            raise ValueError("WorkerPool needs at least one worker slot")
        self._stop_event = threading.Event()
        self._workers = [worker_factory(kinds, self._stop_event) for kinds in plan]
        self._threads: list[threading.Thread] = []

    @property
    def workers(self) -> list[Worker]:
        return list(self._workers)

    def start(self) -> None:
        for index, worker in enumerate(self._workers):
            thread = threading.Thread(
                target=worker.run,
                name=f"worker-{index}-{'+'.join(worker.kinds)}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        Log.info(f"Worker pool started with {len(self._threads)} slots")

    def stop(self, timeout: float | None = None) -> None:
        """Signal every slot to stop and wait for running jobs to finish."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
        Log.info("Worker pool stopped")

    def run(self) -> None:
        """Start all slots and block until interrupted."""
        self.start()
        try:
            while any(thread.is_alive() for thread in self._threads):
                self._stop_event.wait(1.0)
                if self._stop_event.is_set():
                    break
        except KeyboardInterrupt:
            Log.info("Worker pool shutting down gracefully")
        finally:
            self.stop()
