"""
Display Session

Drives one live view of a satellite group:

- A refresh task fetches a new snapshot every REFRESH_INTERVAL. Ticks that
  arrive while a fetch is still in flight are dropped.
- An animation task renders frames only while a transition is active and
  stops itself when the engine goes idle.

Both tasks are ScheduledTask handles, cancelled by ``close()``. A fetch that
completes after the session was closed or restarted is discarded.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, List, Optional

from orbit_feed.client.feed_client import FeedClient
from orbit_feed.client.transition import DisplayPoint, TransitionEngine
from orbit_feed.config import config
from orbit_feed.fetcher import FeedError
from orbit_feed.logging_config import get_logger

logger = get_logger(__name__)

LIVE = "live"
DEGRADED = "degraded"


class ScheduledTask:
    """
    Calls ``callback`` every ``interval`` seconds on a daemon thread.

    The callback may return False to stop the task; ``cancel()`` stops it
    from outside. Either way no further call is made.
    """

    def __init__(self, interval: float, callback: Callable[[], Optional[bool]],
                 name: str = "scheduled-task", run_immediately: bool = False):
        self.interval = interval
        self.callback = callback
        self.run_immediately = run_immediately
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "ScheduledTask":
        self._thread.start()
        return self

    def cancel(self, wait: bool = False) -> None:
        self._cancelled.set()
        if wait and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._cancelled.is_set()

    def _run(self) -> None:
        if not self.run_immediately and self._cancelled.wait(self.interval):
            return

        while not self._cancelled.is_set():
            try:
                keep_going = self.callback()
            except Exception:
                logger.exception(f"Scheduled task {self._thread.name} failed")
                keep_going = True

            if keep_going is False or self._cancelled.wait(self.interval):
                return


class DisplaySession:
    """
    Live display of one satellite group.

    Args:
        client: Position feed client
        group: Satellite group to display
        engine: Transition engine (shared across group switches)
        on_frame: Render callback receiving the current points after each
            snapshot and animation frame
    """

    def __init__(self, client: Optional[FeedClient] = None, group: Optional[str] = None,
                 engine: Optional[TransitionEngine] = None,
                 on_frame: Optional[Callable[[List[DisplayPoint]], None]] = None,
                 refresh_interval: Optional[float] = None,
                 frame_interval: Optional[float] = None,
                 refresh_on_start: bool = True):
        self.client = client if client is not None else FeedClient()
        self.group = group or config.DEFAULT_GROUP
        self.engine = engine if engine is not None else TransitionEngine()
        self.on_frame = on_frame
        self.refresh_interval = config.REFRESH_INTERVAL if refresh_interval is None else refresh_interval
        self.frame_interval = config.FRAME_INTERVAL if frame_interval is None else frame_interval
        self.refresh_on_start = refresh_on_start

        self.status = LIVE
        self.total_orbits = 0
        self.last_computed_at: Optional[datetime] = None

        self.refresh_task: Optional[ScheduledTask] = None
        self.animation_task: Optional[ScheduledTask] = None

        self._lock = threading.RLock()
        self._active = False
        self._generation = 0
        self._in_flight = False
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None

    @property
    def is_active(self) -> bool:
        return self._active

    def points(self) -> List[DisplayPoint]:
        with self._lock:
            return self.engine.points()

    def start(self) -> "DisplaySession":
        with self._lock:
            if self._active:
                return self
            self._active = True
            self._generation += 1
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feed-refresh")
            self.refresh_task = ScheduledTask(
                self.refresh_interval, self._tick, name="feed-refresh-timer",
                run_immediately=self.refresh_on_start
            ).start()
        return self

    def close(self) -> None:
        """Tear down: cancel both tasks and drop any in-flight result"""
        with self._lock:
            self._active = False
            refresh_task, self.refresh_task = self.refresh_task, None
            animation_task, self.animation_task = self.animation_task, None
            executor, self._executor = self._executor, None
            self._pending = None

        if refresh_task is not None:
            refresh_task.cancel(wait=True)
        if animation_task is not None:
            animation_task.cancel(wait=True)
        if executor is not None:
            executor.shutdown(wait=False)

    def switch_group(self, group: str) -> None:
        """Restart the session on another group, keeping the rendered map"""
        self.close()
        self.group = group
        self.start()

    def _tick(self) -> None:
        with self._lock:
            if not self._active or self._executor is None:
                return
            if self._in_flight or (self._pending is not None and not self._pending.done()):
                return
            self._pending = self._executor.submit(self.refresh)

    def refresh(self) -> bool:
        """
        Fetch one snapshot and start the transition toward it.

        Returns:
            False when skipped (already in flight) or discarded (stale)
        """
        with self._lock:
            if self._in_flight:
                return False
            self._in_flight = True
            generation = self._generation
            group = self.group

        try:
            snapshot = self.client.fetch_snapshot(group)
        except FeedError as e:
            with self._lock:
                if self._is_current(generation):
                    logger.warning(f"Satellite feed degraded: {e}")
                    self.status = DEGRADED
            return False
        finally:
            with self._lock:
                self._in_flight = False

        with self._lock:
            if not self._is_current(generation):
                logger.debug("Discarding snapshot fetched by a closed session", group=group)
                return False

            self.engine.apply_snapshot(snapshot.satellites)
            self.total_orbits = snapshot.total_orbits
            self.last_computed_at = snapshot.computed_at
            self.status = LIVE
            self._render()
            self._ensure_animation()

        return True

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _ensure_animation(self) -> None:
        if not self.engine.is_animating:
            return
        if self.animation_task is not None and self.animation_task.is_running:
            return
        self.animation_task = ScheduledTask(
            self.frame_interval, self.animate_frame, name="feed-animation"
        ).start()

    def animate_frame(self) -> bool:
        """Render one frame; returns False once the transition completes"""
        with self._lock:
            if not self._active:
                return False
            animating = self.engine.step()
            self._render()
            if not animating:
                # Task exits after this frame
                self.animation_task = None
            return animating

    def _render(self) -> None:
        if self.on_frame is not None:
            self.on_frame(self.engine.points())
