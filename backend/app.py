"""Size-lock backend — live body measurement and T-shirt size classification.

FastAPI application that turns a stream of MediaPipe body landmarks into a
locked shoulder/torso measurement and size label:
- Pinhole depth from eye spacing
- Per-frame shoulder width and torso height
- Stillness and repeated-label convergence per camera session
- Tolerance-bounded nearest-match size chart

Enhanced with:
- Structured logging
- Error handling
- Request tracking
- CORS support
- Environment configuration
"""

import os
import json
import math
import uuid
import time
import logging
from datetime import datetime
from typing import Dict, Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from models import pose as pose_model
from models.calibration import MeasurementSettings
from models.landmarks import parse_landmark_frame
from models.session import MeasurementSession
from models.sizing import SIZE_CHART, classify_size, predict_size_from_profile


# ============================================================================
# CONFIGURATION
# ============================================================================

from dotenv import load_dotenv

load_dotenv()

APP_NAME = os.getenv("APP_NAME", "SizeLock")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Calibration and convergence defaults, overridable with MEASURE_* variables
DEFAULT_SETTINGS = MeasurementSettings.from_env()


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

os.makedirs(LOG_DIR, exist_ok=True)

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(os.path.join(LOG_DIR, "sizelock.log")),
    ]
)

logger = logging.getLogger(__name__)


# ============================================================================
# MIDDLEWARE
# ============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing information."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        logger.debug(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.debug(f"Response: {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

        return response


# ============================================================================
# INITIALIZE FASTAPI APP
# ============================================================================

app = FastAPI(
    title=APP_NAME,
    description="Live shoulder/torso measurement with stillness-based size locking",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with consistent format."""
    logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "error": {
                "code": exc.status_code,
                "message": exc.detail,
                "path": str(request.url.path),
            }
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(f"Validation error on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=422,
        content={
            "status": "error",
            "error": {
                "code": 422,
                "message": "Validation error",
                "details": errors,
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error": {
                "code": 500,
                "message": "Internal server error" if not DEBUG else str(exc),
            }
        }
    )


# ============================================================================
# GLOBAL SESSION STORAGE
# ============================================================================

# One entry per camera session; sessions never share state
SESSIONS: Dict[str, Dict] = {}


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_session(session_id: str) -> MeasurementSession:
    """Get session or raise error."""
    if not session_id or session_id not in SESSIONS:
        raise HTTPException(
            status_code=404,
            detail="Unknown session_id. Start a session with /session/start first."
        )
    return SESSIONS[session_id]["session"]


async def read_json(request: Request, allow_empty: bool = False) -> Dict:
    """Read a JSON object body or raise 422."""
    body = await request.body()
    if not body and allow_empty:
        return {}
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=422, detail="Request body must be valid JSON.")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=422, detail="Request body must be a JSON object.")
    return payload


def require_number(payload: Dict, key: str, default: Optional[float] = None) -> float:
    """Fetch a numeric field from a payload or raise 422."""
    value = payload.get(key, default)
    if value is None:
        raise HTTPException(status_code=422, detail=f"Missing '{key}'.")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise HTTPException(status_code=422, detail=f"'{key}' must be a finite number.")
    return float(value)


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
def root():
    """Health check endpoint.

    Returns basic information about the API status and version.
    """
    return {
        "status": "ok",
        "message": f"{APP_NAME} backend is running",
        "version": APP_VERSION,
        "active_sessions": len(SESSIONS),
        "endpoints": {
            "docs": "/docs",
            "size_chart": "/size/chart",
            "size_estimate": "/size/estimate",
            "size_manual": "/size/manual",
            "session_start": "/session/start",
            "session_frame": "/session/{session_id}/frame",
            "session_frame_image": "/session/{session_id}/frame/image",
            "session_reset": "/session/{session_id}/reset",
        }
    }


# ============================================================================
# SIZE ENDPOINTS
# ============================================================================

@app.get("/size/chart")
def size_chart():
    """Return the size chart used for classification."""
    return {
        "status": "ok",
        "tolerance_cm": DEFAULT_SETTINGS.classification_tolerance_cm,
        "sizes": [size_range.to_dict() for size_range in SIZE_CHART],
    }


@app.post("/size/estimate")
async def size_estimate(request: Request):
    """Classify a shoulder width and torso height into a size.

    An 'Unknown' size is a valid answer when no chart band matches within
    tolerance.
    """
    payload = await read_json(request)
    shoulder = require_number(payload, "shoulder_width_cm")
    torso = require_number(payload, "torso_height_cm")
    tolerance = require_number(payload, "tolerance_cm", DEFAULT_SETTINGS.classification_tolerance_cm)
    if tolerance < 0:
        raise HTTPException(status_code=422, detail="'tolerance_cm' cannot be negative.")

    match = classify_size(shoulder, torso, tolerance)
    logger.info(f"Size estimate: shoulder={shoulder:.1f}cm torso={torso:.1f}cm -> {match.label}")
    return JSONResponse({
        "status": "ok",
        "size": match.label,
        "matched": match.matched,
        "distance": match.distance,
        "candidates": list(match.candidates),
    })


@app.post("/size/manual")
async def size_manual(request: Request):
    """Predict a size from height, weight and body type entered by the user."""
    payload = await read_json(request)
    height_cm = require_number(payload, "height_cm")
    weight_kg = require_number(payload, "weight_kg")
    chest = payload.get("chest_cm")
    chest_cm = require_number(payload, "chest_cm") if chest is not None else None

    try:
        size = predict_size_from_profile(height_cm, weight_kg, payload.get("body_type"), chest_cm)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return JSONResponse({"status": "ok", "size": size, "method": "manual"})


# ============================================================================
# SESSION ENDPOINTS
# ============================================================================

@app.post("/session/start")
async def session_start(request: Request):
    """Start a camera measurement session.

    The optional body {"settings": {...}} overrides calibration or
    convergence parameters for this session only.
    """
    payload = await read_json(request, allow_empty=True)
    overrides = payload.get("settings") or {}
    if not isinstance(overrides, dict):
        raise HTTPException(status_code=422, detail="'settings' must be an object.")

    try:
        settings = DEFAULT_SETTINGS.with_overrides(**overrides)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid settings: {e}")

    session_id = str(uuid.uuid4())
    SESSIONS[session_id] = {
        "session": MeasurementSession(settings),
        "created_at": datetime.utcnow().isoformat() + "Z",
    }
    logger.info(f"Session started: {session_id} (lock strategy: {settings.lock_strategy})")

    return JSONResponse({
        "status": "ok",
        "session_id": session_id,
        "settings": settings.to_dict(),
    })


@app.post("/session/{session_id}/frame")
async def session_frame(session_id: str, request: Request):
    """Submit one frame of landmarks for measurement.

    Body: {"landmarks": [...], "width": int, "height": int, "timestamp_ms": optional}
    Returns the frame outcome: provisional, rejected, locked or ignored.
    """
    session = get_session(session_id)
    payload = await read_json(request)

    try:
        landmarks = parse_landmark_frame(payload.get("landmarks"))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    width = require_number(payload, "width")
    height = require_number(payload, "height")
    if width <= 0 or height <= 0:
        raise HTTPException(status_code=422, detail="'width' and 'height' must be positive.")
    timestamp_ms = payload.get("timestamp_ms")
    if timestamp_ms is not None:
        timestamp_ms = require_number(payload, "timestamp_ms")

    outcome = session.submit(landmarks, width, height, timestamp_ms)
    return JSONResponse({"status": "ok", "session_id": session_id, **outcome.to_dict()})


@app.post("/session/{session_id}/frame/image")
async def session_frame_image(session_id: str, image: UploadFile = File(...)):
    """Run pose detection on an uploaded frame and submit its landmarks."""
    session = get_session(session_id)

    try:
        image_bytes = await image.read()
        detection = pose_model.extract_landmark_frame(image_bytes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Could not read image: {e}")
    except RuntimeError as e:
        logger.error(f"Pose detection unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    outcome = session.submit(
        detection.get("landmarks", []),
        detection.get("image_width", 0),
        detection.get("image_height", 0),
    )
    return JSONResponse({"status": "ok", "session_id": session_id, **outcome.to_dict()})


@app.post("/session/{session_id}/reset")
def session_reset(session_id: str):
    """Clear the session back to searching so the user can measure again."""
    session = get_session(session_id)
    state = session.reset()
    return {"status": "ok", "session_id": session_id, "state": state.to_dict()}


@app.get("/session/{session_id}")
def session_get(session_id: str):
    """Return the session's current state."""
    session = get_session(session_id)
    return {
        "status": "ok",
        "session_id": session_id,
        "created_at": SESSIONS[session_id]["created_at"],
        **session.snapshot(),
    }


@app.delete("/session/{session_id}")
def session_end(session_id: str):
    """End a session and discard its state."""
    get_session(session_id)
    del SESSIONS[session_id]
    logger.info(f"Session ended: {session_id}")
    return {"status": "ok", "session_id": session_id}


# ============================================================================
# APPLICATION STARTUP
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")
    logger.info(f"Debug mode: {DEBUG}")
    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info"
    )
