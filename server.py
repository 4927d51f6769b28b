#!/usr/bin/env python3
"""
CipherFeed — FastAPI Backend
Serves pattern previews, the post feed, and the PIN reveal gate.
"""

import logging
import sys
import os
import threading
import time
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse, Response
from pydantic import BaseModel

from core.encoding import EmotionKey, get_all_emotions, get_visual_encoding, emotion_label
from core.export_models import ExportSettings
from core.feed import DEFAULT_FEED_DIR, FeedError, clear_all_posts, create_post, get_post, load_posts
from core.pin import PinFormatError, PinMismatchError, reveal_emotion
from core.safety import MAX_DIMENSION, SafetyError
from core.video_io import ExportCancelledError, encode_png, export_animation
from patterns import render_to_array

app = FastAPI(title="CipherFeed")

# In-memory state for the current process (tests point these at temp dirs)
_state = {
    "feed_dir": DEFAULT_FEED_DIR,
    "export_dir": DEFAULT_FEED_DIR / "exports",
}

# Export progress (polled by the frontend during export)
_render_progress = {
    "active": False,
    "current_frame": 0,
    "total_frames": 0,
    "phase": "idle",  # "rendering", "idle"
}
_render_progress_lock = threading.Lock()
_export_cancel = threading.Event()

DEFAULT_PREVIEW_SIZE = 300

# Structured error recovery hints for user-facing errors
ERROR_RECOVERY = {
    "unknown_emotion": {"code": "UNKNOWN_EMOTION", "hint": "Pick one of the listed emotions.", "action": "refresh"},
    "invalid_input": {"code": "INVALID_INPUT", "hint": "Check the caption length and PIN format.", "action": None},
    "post_not_found": {"code": "POST_NOT_FOUND", "hint": "The post may have been cleared. Refresh the feed.", "action": "refresh"},
    "pin_format": {"code": "PIN_FORMAT", "hint": "Enter exactly 4 digits.", "action": "retry"},
    "pin_mismatch": {"code": "PIN_MISMATCH", "hint": "Check the PIN with the author.", "action": "retry"},
    "save_failed": {"code": "SAVE_FAILED", "hint": "Check disk space and permissions, then try again.", "action": "retry"},
    "export_busy": {"code": "EXPORT_BUSY", "hint": "Wait for the running export or cancel it.", "action": "cancel"},
    "render_failed": {"code": "RENDER_FAILED", "hint": "Try a smaller size or fewer frames.", "action": "retry"},
}


def _error_detail(key: str, message: str) -> dict:
    """Build structured error detail dict for the frontend."""
    recovery = ERROR_RECOVERY.get(key, {})
    return {
        "detail": message,
        "code": recovery.get("code", "UNKNOWN"),
        "hint": recovery.get("hint", ""),
        "action": recovery.get("action"),
    }


def _set_progress(**kwargs):
    """Thread-safe update of render progress dict."""
    with _render_progress_lock:
        _render_progress.update(kwargs)


def _get_progress():
    """Thread-safe snapshot of render progress dict."""
    with _render_progress_lock:
        return dict(_render_progress)


def _resolve_emotion(emotion: str) -> EmotionKey:
    try:
        return EmotionKey(emotion)
    except ValueError:
        raise HTTPException(status_code=404, detail=_error_detail(
            "unknown_emotion", f"Unknown emotion: {emotion[:50]}"))


def _load_post_or_404(post_id: str):
    try:
        return get_post(post_id, base=_state["feed_dir"])
    except KeyError:
        raise HTTPException(status_code=404, detail=_error_detail(
            "post_not_found", f"Post not found: {post_id[:80]}"))


def _public_post(post) -> dict:
    """Post as shown in the feed: the emotion and PIN digest stay server-side."""
    return {
        "id": post.id,
        "createdAt": post.created_at,
        "authorMode": post.author_mode,
        "caption": post.caption,
        "encoding": post.encoding.to_dict(),
        "hasPin": post.has_pin,
    }


def _png_response(encoding, frame_index: int, width: int, height: int) -> Response:
    try:
        frame = render_to_array(encoding, frame_index=frame_index, width=width, height=height)
        return Response(content=encode_png(frame), media_type="image/png")
    except Exception as e:
        logging.exception("Frame render failed")
        raise HTTPException(status_code=500, detail=_error_detail(
            "render_failed", f"Frame render failed: {str(e)[:100]}"))


class CreatePostRequest(BaseModel):
    emotion: str
    author_mode: str = "anonymous"
    caption: str | None = None
    pin: str | None = None


class RevealRequest(BaseModel):
    pin: str | None = None


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/emotions")
async def list_emotions():
    """Emotion choices for the post form, in display order."""
    return [{"key": e.value, "label": emotion_label(e)} for e in get_all_emotions()]


@app.get("/api/encodings/{emotion}")
async def get_encoding(emotion: str):
    return get_visual_encoding(_resolve_emotion(emotion)).to_dict()


@app.get("/api/preview/{emotion}.png")
def preview_emotion(
    emotion: str,
    frame_index: int = Query(0, ge=0),
    width: int = Query(DEFAULT_PREVIEW_SIZE, ge=1, le=MAX_DIMENSION),
    height: int = Query(DEFAULT_PREVIEW_SIZE, ge=1, le=MAX_DIMENSION),
):
    """Live preview of an emotion's pattern before posting."""
    encoding = get_visual_encoding(_resolve_emotion(emotion))
    return _png_response(encoding, frame_index, width, height)


@app.get("/api/posts")
async def list_posts():
    """Feed, newest first."""
    return [_public_post(p) for p in load_posts(base=_state["feed_dir"])]


@app.post("/api/posts", status_code=201)
async def new_post(req: CreatePostRequest):
    try:
        emotion = EmotionKey(req.emotion)
    except ValueError:
        raise HTTPException(status_code=400, detail=_error_detail(
            "unknown_emotion", f"Unknown emotion: {req.emotion[:50]}"))
    try:
        post = create_post(
            emotion,
            author_mode=req.author_mode,
            caption=req.caption,
            pin=req.pin or None,
            base=_state["feed_dir"],
        )
    except SafetyError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_input", str(e)))
    except FeedError as e:
        raise HTTPException(status_code=500, detail=_error_detail("save_failed", str(e)))
    return _public_post(post)


@app.delete("/api/posts")
async def clear_posts():
    if not clear_all_posts(base=_state["feed_dir"]):
        raise HTTPException(status_code=500, detail=_error_detail("save_failed", "Failed to clear posts"))
    return {"status": "cleared"}


@app.post("/api/posts/{post_id}/reveal")
async def reveal_post(post_id: str, req: RevealRequest):
    """Reveal the emotion behind a post, checking the PIN when it has one."""
    post = _load_post_or_404(post_id)
    try:
        emotion = reveal_emotion(post, req.pin)
    except PinFormatError as e:
        raise HTTPException(status_code=400, detail=_error_detail("pin_format", str(e)))
    except PinMismatchError as e:
        raise HTTPException(status_code=403, detail=_error_detail("pin_mismatch", str(e)))
    return {"emotion": emotion.value, "label": emotion_label(emotion)}


@app.get("/api/posts/{post_id}/frame.png")
def post_frame(
    post_id: str,
    frame_index: int = Query(0, ge=0),
    width: int = Query(600, ge=1, le=MAX_DIMENSION),
    height: int = Query(400, ge=1, le=MAX_DIMENSION),
):
    """One frame of a post's pattern, rendered from its stored encoding."""
    post = _load_post_or_404(post_id)
    return _png_response(post.encoding, frame_index, width, height)


@app.get("/api/export/progress")
async def export_progress():
    return _get_progress()


@app.post("/api/export/cancel")
async def cancel_export():
    """Request cancellation of a running export."""
    if not _get_progress()["active"]:
        return {"status": "no_export_running"}
    _export_cancel.set()
    return {"status": "cancel_requested"}


@app.post("/api/posts/{post_id}/export")
def export_post(post_id: str, settings: ExportSettings):
    """Render a post's pattern to PNG, GIF, or MP4 and return the file."""
    post = _load_post_or_404(post_id)

    with _render_progress_lock:
        if _render_progress["active"]:
            raise HTTPException(status_code=409, detail=_error_detail(
                "export_busy", "Another export is already running"))
        _render_progress.update(active=True, current_frame=0, total_frames=settings.frames,
                                phase="rendering")
        _export_cancel.clear()

    name = settings.filename or f"{post.id}_{int(time.time())}"
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)[:100]
    output = Path(_state["export_dir"]) / safe_name

    try:
        path = export_animation(
            post.encoding,
            settings,
            output,
            progress_callback=lambda done, total: _set_progress(current_frame=done, total_frames=total),
            cancel_event=_export_cancel,
        )
    except ExportCancelledError as e:
        detail = _error_detail("render_failed", str(e))
        detail["cancelled"] = True
        raise HTTPException(status_code=409, detail=detail)
    except Exception as e:
        logging.exception("Export failed")
        raise HTTPException(status_code=500, detail=_error_detail(
            "render_failed", f"Export failed: {str(e)[:200]}"))
    finally:
        _set_progress(active=False, phase="idle")
        _export_cancel.clear()

    media_types = {".png": "image/png", ".gif": "image/gif", ".mp4": "video/mp4"}
    return FileResponse(str(path), media_type=media_types[path.suffix], filename=path.name)


def start():
    import uvicorn
    print("CipherFeed — launching at http://127.0.0.1:7870")
    uvicorn.run(app, host="127.0.0.1", port=7870, log_level="warning")


if __name__ == "__main__":
    start()
