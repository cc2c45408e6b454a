from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request

import certifi

logger = logging.getLogger(__name__)


POSE_LANDMARKER_TASK_URLS = {
    "lite": "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/latest/pose_landmarker_lite.task",
    "full": "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_full/float16/latest/pose_landmarker_full.task",
}


def _remove_partial(model_path: str) -> None:
    try:
        if os.path.exists(model_path):
            os.remove(model_path)
    except OSError:
        logger.debug("Could not remove partial download %s", model_path, exc_info=True)


def ensure_pose_landmarker_task(model_path: str, *, variant: str = "lite", timeout_s: int = 30) -> str:
    """
    Ensure a pose landmarker `.task` file exists at `model_path`.

    If missing, attempts to download it from the official MediaPipe model bucket,
    first with urllib and then with curl.
    """

    if os.path.exists(model_path):
        return model_path

    url = POSE_LANDMARKER_TASK_URLS.get(variant)
    if url is None:
        raise ValueError(f"Unknown pose landmarker variant '{variant}'. Available: {list(POSE_LANDMARKER_TASK_URLS)}")

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("Downloading pose landmarker model to %s", model_path)

    try:
        # python.org macOS builds can lack root certificates.
        ctx = ssl.create_default_context(cafile=certifi.where())
        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
        return model_path
    except Exception as e:
        logger.warning("urllib download failed (%s); trying curl", e)
        _remove_partial(model_path)
        first_error = e

    proc = None
    try:
        proc = subprocess.run(
            ["curl", "-L", "-o", model_path, url],
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        if proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
            return model_path
    except OSError:
        proc = None

    _remove_partial(model_path)

    curl_err = ""
    if proc is not None:
        curl_err = f"\n\ncurl stderr:\n{proc.stderr.strip()}\n"

    raise RuntimeError(
        "Missing MediaPipe pose landmarker model and auto-download failed.\n\n"
        f"Expected model at: {model_path}\n"
        f"URL: {url}\n\n"
        "Download it manually:\n"
        f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
        f'  curl -L -o "{model_path}" "{url}"\n'
        f"{curl_err}"
    ) from first_error
