"""Progress streaming: one producer (the run), one consumer."""

import logging
import queue
import threading

from core.state import ProgressEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressStreamer:
    """Ordered event channel for a single consumer.

    Events are handed over once and not kept. After detach() the run keeps
    emitting but nothing is queued.
    """

    def __init__(self):
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._detached = False
        self._closed = False

    @property
    def detached(self):
        return self._detached

    def emit(self, name, data):
        with self._lock:
            if self._detached or self._closed:
                return
            self._queue.put(ProgressEvent(name, data))

    def close(self):
        """Mark the end of the run. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def detach(self):
        """Consumer went away: drop queued and future events."""
        with self._lock:
            self._detached = True
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
            if self._closed:
                self._queue.put(_CLOSED)
        logger.info("Progress consumer detached; run continues unobserved")

    def events(self, keepalive=None):
        """Yield events in order until the run closes.

        With keepalive set, yields None whenever that many seconds pass
        without an event, so a transport can send a heartbeat.
        """
        while True:
            try:
                item = self._queue.get(timeout=keepalive)
            except queue.Empty:
                yield None
                continue
            if item is _CLOSED:
                return
            yield item

    def __iter__(self):
        return self.events()


class PipelineStream:
    """A run executing on a worker thread, observed through its event stream."""

    def __init__(self, streamer, cancel_event, state):
        self.streamer = streamer
        self.state = state
        self._cancel_event = cancel_event
        self._thread = None
        self._result = None
        self._done = threading.Event()

    def start(self, run):
        """Execute run() on a daemon thread; the stream closes when it returns."""
        def work():
            try:
                self._result = run()
            finally:
                self._done.set()
                self.streamer.close()

        self._thread = threading.Thread(target=work, daemon=True)
        self._thread.start()
        return self

    def __iter__(self):
        return self.streamer.events()

    def events(self, keepalive=None):
        return self.streamer.events(keepalive)

    def cancel(self):
        self._cancel_event.set()

    def detach(self):
        self.streamer.detach()

    @property
    def finished(self):
        return self._done.is_set()

    @property
    def result(self):
        """Block until the run ends and return its PipelineResult."""
        self._thread.join()
        return self._result
