from __future__ import annotations

import argparse
import logging
import os
import platform
import sys

import cv2
import numpy as np

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from motionpop.app import MotionPopApp  # noqa: E402
from motionpop.config import GameSettings  # noqa: E402
from motionpop.pose import PoseWristSource  # noqa: E402
from motionpop.transport import SensorLink  # noqa: E402
from motionpop.types import TrackingSource  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Pop falling balls with your wrists.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument("--no-mirror", action="store_true", help="Disable horizontal mirroring (default is selfie mode)")
    ap.add_argument("--no-camera", action="store_true", help="Run without a camera (external sensors only)")
    ap.add_argument("--external", action="store_true", help="Start with external sensors as the tracking source")
    ap.add_argument("--no-auto-switch", action="store_true", help="Do not switch to external sensors on their first sample")
    ap.add_argument("--reset-history-on-switch", action="store_true", help="Drop smoothing history when the source changes")
    ap.add_argument("--sensor-host", default="localhost")
    ap.add_argument("--sensor-port", type=int, default=7000)
    ap.add_argument("--no-sensor-link", action="store_true", help="Do not connect to the external sensor app")
    ap.add_argument("--pose-model", default="models/pose_landmarker_lite.task")
    ap.add_argument("--debug", action="store_true", help="Show the debug overlay")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cap = None
    if not args.no_camera:
        if platform.system() == "Darwin":
            cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
        else:
            cap = cv2.VideoCapture(args.camera)
        if not cap.isOpened():
            raise RuntimeError(
                f"Could not open camera index {args.camera}. "
                "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or args.width
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or args.height
    else:
        width, height = args.width, args.height

    settings = GameSettings(
        width=width,
        height=height,
        debug_mode=args.debug,
        tracking_source=TrackingSource.EXTERNAL if (args.external or cap is None) else TrackingSource.LOCAL,
        auto_switch_to_external=not args.no_auto_switch,
        reset_history_on_switch=args.reset_history_on_switch,
        sensor_host=args.sensor_host,
        sensor_port=args.sensor_port,
        auto_connect=not args.no_sensor_link,
        pose_model_path=args.pose_model,
    )

    link = SensorLink(settings.sensor_url) if settings.auto_connect else None
    app = MotionPopApp(settings, link=link)
    if cap is not None:
        app.init_pose(lambda: PoseWristSource(tasks_model_path=settings.pose_model_path))
    else:
        app.arbiter.mark_local_unavailable()
    if link is not None:
        link.start()

    window_name = "motionpop"
    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)

    def on_mouse(event, x, y, flags, param) -> None:
        if event == cv2.EVENT_LBUTTONDOWN:
            app.on_click(x, y)

    cv2.setMouseCallback(window_name, on_mouse)

    try:
        while True:
            if cap is not None:
                ok, frame = cap.read()
                if not ok:
                    break
                if not args.no_mirror:
                    frame = cv2.flip(frame, 1)
            else:
                frame = np.zeros((height, width, 3), dtype=np.uint8)

            frame = app.tick(frame)
            cv2.imshow(window_name, frame)

            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break
            if key != 255:
                app.on_key(chr(key))
    finally:
        app.close()
        if cap is not None:
            cap.release()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
