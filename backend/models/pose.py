"""MediaPipe pose extraction for single camera frames.

Provides `extract_landmark_frame(image_bytes)` which returns the 33 body
landmarks of one frame in the format the measurement session consumes.
MediaPipe and OpenCV are optional; install them with `pip install .[pose]`.
"""
import numpy as np


def _load_pose_stack():
    try:
        import cv2
        import mediapipe as mp
    except ImportError as e:
        raise RuntimeError(
            "MediaPipe/OpenCV are not installed. Install pose deps with: pip install '.[pose]'"
        ) from e
    return cv2, mp


def _read_image_bytes_to_bgr(cv2, image_bytes: bytes):
    """Decode image bytes to an OpenCV BGR image (numpy.ndarray)."""
    arr = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Could not decode image bytes")
    return img


def extract_landmark_frame(image_bytes: bytes) -> dict:
    """Run MediaPipe pose on one frame and return its landmarks.

    Returns a dict:
    {
      'image_width': int,
      'image_height': int,
      'landmarks': [ { 'x': ..., 'y': ..., 'visibility': ... }, ... ]
    }
    The landmark list is empty when no body was detected.
    """
    cv2, mp = _load_pose_stack()
    img = _read_image_bytes_to_bgr(cv2, image_bytes)
    h, w = img.shape[:2]
    img_rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

    with mp.solutions.pose.Pose(static_image_mode=True, model_complexity=1) as pose:
        results = pose.process(img_rgb)

    if not results.pose_landmarks:
        return {"image_width": w, "image_height": h, "landmarks": []}

    landmarks = []
    for lm in results.pose_landmarks.landmark:
        vis = getattr(lm, "visibility", None)
        landmarks.append({
            "x": float(lm.x),
            "y": float(lm.y),
            "visibility": float(vis) if vis is not None else None,
        })

    return {"image_width": w, "image_height": h, "landmarks": landmarks}
