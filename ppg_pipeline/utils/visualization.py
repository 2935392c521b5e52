"""
OpenCV overlays for the live heart rate preview
"""
import cv2


def draw_bpm_overlay(frame, bpm, confidence=None, pos=(10, 30), color=(0, 255, 0)):
    """Shows 'BPM: --' until there is a reading."""
    txt = f"BPM: {bpm:.0f}" if (bpm is not None and bpm > 0) else "BPM: --"
    cv2.putText(frame, txt, pos, cv2.FONT_HERSHEY_SIMPLEX, 0.9, color, 2)
    if confidence is not None:
        cv2.putText(frame, f"CONF: {confidence:.2f}", (pos[0], pos[1] + 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (200, 200, 200), 1)
    return frame


def draw_lens_status(frame, covering, pos=(10, 90)):
    txt = "Finger on lens" if covering else "Cover the lens with your finger"
    col = (0, 200, 0) if covering else (0, 120, 255)
    cv2.putText(frame, txt, pos, cv2.FONT_HERSHEY_SIMPLEX, 0.6, col, 1)
    return frame
