import itertools
import threading
import time
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

import config
from data_loader import OrderLoader
from sheet_api import SourceUnavailable

# records is None until the first successful cycle, and while the source is failing
PollSnapshot = namedtuple('PollSnapshot', ['generation', 'records', 'error', 'fetched_at'])
EMPTY_SNAPSHOT = PollSnapshot(0, None, None, None)


class SheetPoller:
    """Re-fetches the order sheet on a fixed cadence and publishes immutable snapshots.

    Firings are not serialized: a slow fetch may still be running when the next one
    starts. At most ``max_workers`` fetches are in flight; a tick that finds them all
    busy is skipped rather than queued. Every fetch carries a generation number and
    only a newer generation may replace the published snapshot, so a late response
    never overwrites fresher data. Nothing is published after stop().
    """

    def __init__(self, fetch, loader=None, interval=None, max_workers=2):
        self.fetch = fetch
        self.loader = loader or OrderLoader()
        self.interval = config.REFRESH_SECONDS if interval is None else interval
        self.max_workers = max_workers
        self.snapshot = EMPTY_SNAPSHOT

        self._generations = itertools.count(1)
        self._publish_lock = threading.Lock()
        self._stop = threading.Event()
        self._slots = threading.BoundedSemaphore(max_workers)
        self._thread = None
        self._executor = None

    def log(self, message):
        self.loader.log(message)

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self._thread is not None:
            return self
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='sheet-fetch')
        self._thread = threading.Thread(target=self._run, name='sheet-poller', daemon=True)
        self._thread.start()
        self.log(f"🔄 Poller started (every {self.interval:g}s)")
        return self

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self.log("⏹️ Poller stopped")

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def _run(self):
        while not self._stop.is_set():
            if self._slots.acquire(blocking=False):
                try:
                    future = self._executor.submit(self.refresh)
                except RuntimeError:
                    # Executor already shut down
                    self._slots.release()
                    break
                # Also runs for futures cancelled by shutdown
                future.add_done_callback(self._release_slot)
            else:
                self.log(f"⏳ Skipped tick: {self.max_workers} fetches still in flight")
            self._stop.wait(self.interval)

    def _release_slot(self, future):
        self._slots.release()

    def refresh(self):
        """One fetch-parse-publish cycle. Returns the snapshot it built."""
        generation = next(self._generations)
        try:
            text = self.fetch()
            records = self.loader.load_text(text)
            snapshot = PollSnapshot(generation, records, None, time.time())
        except SourceUnavailable as e:
            self.log(f"❌ [gen {generation}] {e}")
            snapshot = PollSnapshot(generation, None, str(e), time.time())
        except Exception as e:
            self.log(f"❌ [gen {generation}] Unexpected error while refreshing: {e}")
            snapshot = PollSnapshot(generation, None, f"Error inesperado: {e}", time.time())

        self._publish(snapshot)
        return snapshot

    def _publish(self, snapshot):
        with self._publish_lock:
            if self._stop.is_set():
                self.log(f"⚠️ [gen {snapshot.generation}] Poller stopped, response discarded")
                return False
            current = self.snapshot.generation
            if snapshot.generation <= current:
                self.log(f"⚠️ [gen {snapshot.generation}] Dropped stale response (published gen {current})")
                return False
            self.snapshot = snapshot
            return True
