"""Cooperative per-frame sampling loop.

One tick in flight at a time: read a frame, run both detectors, then commit
the observation to the session. Stop requests are honoured through an
explicit `CancellationToken` that is checked before a tick starts and again
before its results are committed, so a detector call that resolves after
`stop()` never touches the stats.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Any, Callable, Optional

from config import EngineConfig
from cv.capture import FrameBuffer
from monitor.observation import FrameObservation, normalize_faces, normalize_objects

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


async def _call(fn: Callable, *args) -> Any:
    """Await coroutine functions; run blocking callables in the default executor."""
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


class FrameSamplingLoop:
    def __init__(
        self,
        session,
        source,
        face_detector,
        object_detector,
        cfg: Optional[EngineConfig] = None,
        audio_meter=None,
        on_observation: Optional[Callable[[FrameObservation, list], None]] = None,
    ):
        self.session = session
        self.source = source
        self.face_detector = face_detector
        self.object_detector = object_detector
        self.audio_meter = audio_meter
        # Called with (observation, emitted_alerts) after each committed tick.
        self.on_observation = on_observation
        self.cfg = cfg or session.cfg
        self.token = CancellationToken()
        self.buffer = FrameBuffer(self.cfg.frame_width, self.cfg.frame_height)
        self.ticks = 0
        self.faults = 0
        self.consecutive_faults = 0
        self.discarded = 0
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        session.bind_sampler(self)

    def _active(self) -> bool:
        return not self.token.cancelled and self.session.running

    def start(self) -> asyncio.Task:
        if self.token.cancelled:
            raise RuntimeError("sampling loop was cancelled; create a new one")
        if not self.session.running:
            raise RuntimeError("session is not running")
        if self._task is not None and not self._task.done():
            return self._task
        self._loop = asyncio.get_running_loop()
        self._task = self._loop.create_task(self._run())
        return self._task

    def cancel(self) -> None:
        self.token.cancel()
        task = self._task
        if task is None or task.done():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            # A tick that stops the session itself just winds down.
            if task is not asyncio.current_task():
                task.cancel()
        elif self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(task.cancel)

    async def wait(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        logger.info("Sampling loop started")
        try:
            while self._active():
                delay = await self.tick()
                if not self._active():
                    break
                await asyncio.sleep(delay)
        finally:
            logger.info(
                "Sampling loop finished (ticks=%d, faults=%d, discarded=%d)",
                self.ticks, self.faults, self.discarded,
            )

    async def tick(self) -> float:
        """Run a single tick and return the delay before the next one."""
        if not self._active():
            return 0.0
        try:
            frame = await _call(self.source.read)
            if frame is None:
                raise RuntimeError("frame source returned no frame")
            ts = self.session.clock()
            work = self.buffer.fill(frame)
            faces = await _call(self.face_detector.detect, frame)
            if not self._active():
                self.discarded += 1
                return 0.0
            objects = await _call(self.object_detector.detect, work)
            audio_level = None
            if self.audio_meter is not None:
                audio_level = await _call(self.audio_meter.level)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return self._on_fault(exc)

        if not self._active():
            # Resolved after stop(): drop it.
            self.discarded += 1
            return 0.0

        self.consecutive_faults = 0
        obs = FrameObservation(
            timestamp=ts,
            faces=normalize_faces(faces or []),
            objects=normalize_objects(objects or []),
            audio_level=audio_level,
        )
        emitted = self.session.process_observation(obs)
        self.ticks += 1
        if self.on_observation is not None:
            try:
                self.on_observation(obs, emitted)
            except Exception as exc:
                logger.warning("Observation callback failed: %s", exc)
        return float(self.cfg.frame_interval_sec)

    def _on_fault(self, exc: Exception) -> float:
        self.faults += 1
        self.consecutive_faults += 1
        logger.warning("Tick skipped after detector/frame error (%d in a row): %s", self.consecutive_faults, exc)
        limit = int(self.cfg.max_consecutive_faults)
        if limit > 0 and self.consecutive_faults >= limit:
            self.session.fail(f"Detection stopped after {self.consecutive_faults} consecutive errors: {exc}")
            return 0.0
        return float(self.cfg.fault_backoff_sec)
