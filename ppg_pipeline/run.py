import argparse
import logging
import sys
import threading

import cv2

from ppg_pipeline.config import ESTIMATION_METHODS, FRAME_RATE, EngineConfig
from ppg_pipeline.errors import PPGError
from ppg_pipeline.pipeline.ppg_pipeline import HeartRateSession
from ppg_pipeline.preprocessing.lens_detection import LensDetector
from ppg_pipeline.utils.camera_io import CameraIO, capture_loop
from ppg_pipeline.utils.sample_io import read_pixel_samples, write_bpm_samples
from ppg_pipeline.utils.visualization import draw_bpm_overlay, draw_lens_status

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Camera PPG heart rate estimation")
    src = parser.add_mutually_exclusive_group()
    src.add_argument('--camera', type=int, default=0, help="camera index for live capture")
    src.add_argument('--video', help="video file to process")
    src.add_argument('--samples', help="CSV of recorded pixel samples to replay offline")
    parser.add_argument('--frame-rate', type=int, default=FRAME_RATE)
    parser.add_argument('--method', choices=ESTIMATION_METHODS, default='bandpass')
    parser.add_argument('--output', help="write the BPM series to this CSV")
    parser.add_argument('--no-preview', action='store_true', help="do not open a preview window")
    parser.add_argument('--debug', action='store_true')
    return parser.parse_args(argv)


def print_summary(session):
    resting = session.resting_heart_rate()
    peak = session.peak_heart_rate()
    print(f"estimates: {len(session.bpm_samples)}")
    if resting is None:
        print("resting heart rate: no reading")
    else:
        print(f"resting heart rate: {resting.bpm:.1f} bpm (confidence {resting.confidence:.2f})")
    if peak is not None:
        print(f"peak heart rate: {peak.bpm:.0f} bpm at {peak.timestamp:.1f}s")
    window = session.vo2_max_window()
    if window is not None:
        start, end = window
        print(f"vo2 max window: {start.bpm:.0f} -> {end.bpm:.0f} bpm")


def run_capture(session, args):
    camera = CameraIO(args.video if args.video else args.camera, frame_rate=args.frame_rate)
    if not camera.is_opened():
        logger.error("Could not open %s", args.video or f"camera {args.camera}")
        return 1
    if camera.frame_rate and round(camera.frame_rate) != args.frame_rate:
        logger.warning("Source reports %.1f fps but %d fps is configured", camera.frame_rate, args.frame_rate)

    stop_event = threading.Event()

    def show(frame, sample):
        last = session.bpm_samples[-1] if session.bpm_samples else None
        reading = last is not None and last.confidence >= session.config.min_confidence
        if reading and session.has_settled(sample.presentation_timestamp):
            draw_bpm_overlay(frame, last.bpm, last.confidence)
        else:
            draw_bpm_overlay(frame, None)
        draw_lens_status(frame, sample.is_covering_lens)
        cv2.imshow('PPG', frame)
        return (cv2.waitKey(1) & 0xFF) != ord('q')

    with session:
        try:
            capture_loop(camera, session, stop_event, LensDetector(),
                         on_frame=None if args.no_preview else show)
        except KeyboardInterrupt:
            stop_event.set()
        finally:
            camera.release()
            if not args.no_preview:
                cv2.destroyAllWindows()
        session.wait_idle(timeout=30)
    return 0


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - [%(levelname)s] - %(message)s',
        stream=sys.stdout
    )
    config = EngineConfig(frame_rate=args.frame_rate, method=args.method)
    try:
        session = HeartRateSession(config)
    except PPGError as e:
        logger.error("%s", e)
        return 2

    if args.samples:
        session.run_offline(read_pixel_samples(args.samples))
        status = 0
    else:
        status = run_capture(session, args)

    if args.output:
        write_bpm_samples(session.bpm_samples, args.output)
        logger.info("Wrote %d BPM samples to %s", len(session.bpm_samples), args.output)
    print_summary(session)
    return status


if __name__ == "__main__":
    sys.exit(main())
