"""
PPG heart-rate session: capture -> window buffer -> channel arbitration
"""
import logging
import queue
import threading

from ppg_pipeline.config import FRAME_RATE_TOLERANCE, VO2_MAX_OFFSET_SECONDS, EngineConfig
from ppg_pipeline.pipeline import metrics
from ppg_pipeline.pipeline.arbiter import ChannelArbiter
from ppg_pipeline.pipeline.estimator import PeriodicityEstimator
from ppg_pipeline.pipeline.window_buffer import WindowBuffer, estimate_sampling_rate

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05


class HeartRateSession:
    """
    Turns a stream of PixelSamples into an append-only series of BpmSamples.

    submit() is called from the capture thread and only enqueues. A buffer
    thread owns the WindowBuffer and a compute thread runs the estimator on
    full windows in FIFO order. Windows waiting for the compute thread are
    bounded by max_pending_windows; the oldest is dropped when it is full.
    stop() and reset() start a new generation so results still in flight
    for the old one are discarded.
    """

    def __init__(self, config=None, estimator=None, on_sample=None):
        self.config = (config or EngineConfig()).validate()
        self.estimator = estimator or PeriodicityEstimator.from_config(self.config)
        self.arbiter = ChannelArbiter(self.estimator)
        self.buffer = WindowBuffer(self.estimator.window_length, self.config.overlap_length,
                                   self.config.min_confidence, self.config.require_lens_covered)
        self.on_sample = on_sample

        self.bpm_samples = []
        self.windows_dropped = 0
        self.start_timestamp = None
        self.first_covered_timestamp = None

        self.lock = threading.Lock()
        self.stop_flag = threading.Event()
        self.sample_queue = queue.Queue()
        self.window_queue = queue.Queue(maxsize=self.config.max_pending_windows)
        self.thread_buffer = None
        self.thread_compute = None

        self._generation = 0
        self._buffer_generation = 0
        self._last_confidence = None
        self._rate_warned = False
        self._pending = 0
        self._idle = threading.Condition()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()

    @property
    def last_confidence(self):
        with self.lock:
            return self._last_confidence

    @property
    def is_running(self):
        return self.thread_buffer is not None and not self.stop_flag.is_set()

    def start(self):
        if self.thread_buffer is not None:
            raise RuntimeError("session already started")
        self.thread_buffer = threading.Thread(target=self._buffer_worker, name="ppg-buffer", daemon=True)
        self.thread_compute = threading.Thread(target=self._compute_worker, name="ppg-compute", daemon=True)
        self.thread_buffer.start()
        self.thread_compute.start()
        logger.info("Heart rate session started (%r, window %d samples)",
                    self.estimator, self.buffer.window_length)

    def submit(self, sample):
        """Queue a sample from the capture thread. Returns False once stopped."""
        if self.stop_flag.is_set():
            return False
        with self.lock:
            generation = self._generation
        self._add_pending(1)
        self.sample_queue.put_nowait((sample, generation))
        return True

    def reset(self):
        with self.lock:
            self._generation += 1
            self.bpm_samples = []
            self._last_confidence = None
        logger.info("Heart rate session reset")

    def stop(self, timeout=5.0):
        if self.stop_flag.is_set():
            return
        with self.lock:
            self._generation += 1
        self.stop_flag.set()
        for t in (self.thread_buffer, self.thread_compute):
            if t is not None:
                t.join(timeout)
        with self._idle:
            self._pending = 0
            self._idle.notify_all()
        logger.info("Heart rate session stopped: %d estimates, %d windows dropped",
                    len(self.bpm_samples), self.windows_dropped)

    def wait_idle(self, timeout=None):
        """Block until every submitted sample and window has been processed."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def has_settled(self, timestamp):
        first = self.first_covered_timestamp
        return first is not None and timestamp - first >= self.config.settle_seconds

    def run_offline(self, samples):
        """Process a recorded sequence synchronously on the calling thread."""
        if self.thread_buffer is not None:
            raise RuntimeError("run_offline needs a session that was not started")
        produced = []
        for sample in samples:
            window = self._accept(sample, self._last_confidence)
            if window is None:
                continue
            bpm_sample = self.arbiter.arbitrate(window)
            if self._publish(bpm_sample, self._generation):
                produced.append(bpm_sample)
        return produced

    # --- summaries ---

    def resting_heart_rate(self):
        return metrics.resting_heart_rate(self.bpm_samples, self.config.min_confidence,
                                          self.start_timestamp)

    def peak_heart_rate(self):
        return metrics.peak_heart_rate(self.bpm_samples, self.config.min_confidence)

    def end_heart_rate(self):
        return metrics.end_heart_rate(self.bpm_samples, self.config.min_confidence)

    def vo2_max_window(self):
        if self.start_timestamp is None:
            return None
        return metrics.vo2_max_window(self.bpm_samples, self.start_timestamp,
                                      self.config.min_confidence, VO2_MAX_OFFSET_SECONDS)

    # --- internals ---

    def _add_pending(self, n):
        with self._idle:
            self._pending = max(0, self._pending + n)
            if self._pending == 0:
                self._idle.notify_all()

    def _accept(self, sample, last_confidence):
        if self.start_timestamp is None:
            self.start_timestamp = sample.presentation_timestamp
        if self.first_covered_timestamp is None and sample.is_covering_lens:
            self.first_covered_timestamp = sample.presentation_timestamp
        window = self.buffer.append(sample, last_confidence)
        if window is not None:
            self._check_frame_rate(window)
        return window

    def _check_frame_rate(self, window):
        if self._rate_warned:
            return
        measured = estimate_sampling_rate(window)
        expected = self.config.frame_rate
        if measured and abs(measured - expected) / expected > FRAME_RATE_TOLERANCE:
            self._rate_warned = True
            logger.warning("Measured frame rate %.1f fps differs from configured %d fps; "
                           "heart rate will be biased", measured, expected)

    def _buffer_worker(self):
        while not self.stop_flag.is_set():
            try:
                sample, generation = self.sample_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                with self.lock:
                    current = self._generation
                    last_confidence = self._last_confidence
                if generation != current:
                    continue
                if generation != self._buffer_generation:
                    self.buffer.clear()
                    self._buffer_generation = generation
                    self.start_timestamp = None
                    self.first_covered_timestamp = None
                    self._rate_warned = False
                window = self._accept(sample, last_confidence)
                if window is not None:
                    self._enqueue_window(window, generation)
            finally:
                self._add_pending(-1)

    def _enqueue_window(self, window, generation):
        self._add_pending(1)
        while True:
            try:
                self.window_queue.put_nowait((window, generation))
                return
            except queue.Full:
                pass
            try:
                dropped, _ = self.window_queue.get_nowait()
            except queue.Empty:
                continue
            self.windows_dropped += 1
            self._add_pending(-1)
            logger.warning("Estimation is falling behind; dropped window starting at %.2fs",
                           dropped[0].presentation_timestamp)

    def _compute_worker(self):
        while not self.stop_flag.is_set():
            try:
                window, generation = self.window_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                bpm_sample = self.arbiter.arbitrate(window)
                self._publish(bpm_sample, generation)
            except Exception:
                logger.exception("Heart rate estimation failed for window at %.2fs",
                                 window[0].presentation_timestamp)
            finally:
                self._add_pending(-1)

    def _publish(self, bpm_sample, generation):
        with self.lock:
            if generation != self._generation:
                logger.debug("Discarding estimate from a torn-down generation")
                return False
            self.bpm_samples.append(bpm_sample)
            self._last_confidence = bpm_sample.confidence
        if self.on_sample is not None:
            self.on_sample(bpm_sample)
        return True
