#!/usr/bin/env python3
"""
CipherFeed — Abstract Emotion Patterns
CLI entry point. Also importable as a library.

Usage:
    python cipherfeed.py emotions
    python cipherfeed.py encoding calm
    python cipherfeed.py frame trust -o trust.png --frame-index 120
    python cipherfeed.py animate joy -o joy.gif --frames 90
    python cipherfeed.py post --emotion fear --caption "late night" --pin 1234
    python cipherfeed.py feed
    python cipherfeed.py reveal post_1700000000000_ab12cd34e --pin 1234
    python cipherfeed.py clear --yes
    python cipherfeed.py ui
"""

import sys
import os
import json
import logging
import argparse
from datetime import datetime
from pathlib import Path

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.encoding import get_all_emotions, get_visual_encoding, emotion_label
from core.export_models import ExportSettings
from core.feed import create_post, load_posts, get_post, clear_all_posts
from core.pin import reveal_emotion
from core.safety import validate_dimensions
from core.video_io import export_animation, save_frame
from patterns import render_to_array

__version__ = "0.1.0"


def _format_date(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%b %d, %Y %I:%M %p")


def cmd_emotions(args):
    """List emotions in display order."""
    for emotion in get_all_emotions():
        enc = get_visual_encoding(emotion)
        print(f"  {emotion.value:8s} — {enc.shape.value:8s} symmetry {enc.symmetry_level}  "
              f"speed {enc.movement_speed}")


def cmd_encoding(args):
    """Print an emotion's encoding as stored with posts."""
    print(json.dumps(get_visual_encoding(args.emotion).to_dict(), indent=2))


def cmd_frame(args):
    """Render a single frame to PNG."""
    validate_dimensions(args.width, args.height)
    frame = render_to_array(get_visual_encoding(args.emotion), frame_index=args.frame_index,
                            width=args.width, height=args.height)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    save_frame(frame, str(output))
    print(f"Frame {args.frame_index}: {output}")


def cmd_animate(args):
    """Render an animation to GIF or MP4."""
    fmt = args.format or (Path(args.output).suffix.lstrip(".").lower() or "gif")
    settings = ExportSettings(
        format=fmt,
        width=args.width,
        height=args.height,
        frames=args.frames,
        fps=args.fps,
        start_frame=args.start_frame,
    )

    def progress(done, total):
        # Progress (every 10%)
        if total > 10 and done % (total // 10) == 0:
            print(f"  Rendering: {done / total * 100:.0f}% ({done}/{total} frames)")

    path = export_animation(get_visual_encoding(args.emotion), settings, args.output,
                            progress_callback=progress)
    print(f"Exported: {path}")


def cmd_post(args):
    """Create a post."""
    post = create_post(
        args.emotion,
        author_mode="named" if args.named else "anonymous",
        caption=args.caption,
        pin=args.pin,
    )
    print(f"Created post: {post.id}")
    if post.has_pin:
        print("  Meaning is PIN-protected.")


def cmd_feed(args):
    """List posts, newest first. Emotions stay hidden."""
    posts = load_posts()
    if not posts:
        print("No posts yet. Create your first post with 'cipherfeed post'.")
        return
    for post in posts:
        author = "Anonymous" if post.author_mode == "anonymous" else "User"
        lock = " [PIN]" if post.has_pin else ""
        print(f"  {post.id}  {author:9s}  {_format_date(post.created_at)}{lock}")
        if post.caption:
            print(f"    {post.caption}")


def cmd_reveal(args):
    """Reveal a post's emotion."""
    post = get_post(args.post_id)
    emotion = reveal_emotion(post, args.pin)
    print(emotion_label(emotion))


def cmd_clear(args):
    """Delete all posts."""
    if not args.yes:
        print("Refusing to clear posts without --yes. This cannot be undone.")
        return
    if not clear_all_posts():
        raise RuntimeError("Failed to clear posts")
    print("Cleared all posts.")


def cmd_ui(args):
    """Launch the HTTP backend."""
    from server import start
    start()


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    emotion_choices = [e.value for e in get_all_emotions()]

    parser = argparse.ArgumentParser(
        prog="cipherfeed",
        description="CipherFeed — speak without words through abstract visual patterns",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    # emotions
    sub.add_parser("emotions", help="List all emotions")

    # encoding
    p = sub.add_parser("encoding", help="Show an emotion's visual encoding")
    p.add_argument("emotion", choices=emotion_choices)

    # frame
    p = sub.add_parser("frame", help="Render one frame to PNG")
    p.add_argument("emotion", choices=emotion_choices)
    p.add_argument("-o", "--output", required=True, help="Output PNG path")
    p.add_argument("--frame-index", type=int, default=0, help="Frame index (>= 0)")
    p.add_argument("--width", type=int, default=300)
    p.add_argument("--height", type=int, default=300)

    # animate
    p = sub.add_parser("animate", help="Render an animation to GIF or MP4")
    p.add_argument("emotion", choices=emotion_choices)
    p.add_argument("-o", "--output", required=True, help="Output path (.gif or .mp4)")
    p.add_argument("--format", choices=["png", "gif", "mp4"], help="Defaults to the output extension")
    p.add_argument("--frames", type=int, default=90)
    p.add_argument("--fps", type=int, default=30)
    p.add_argument("--start-frame", type=int, default=0)
    p.add_argument("--width", type=int, default=300)
    p.add_argument("--height", type=int, default=300)

    # post
    p = sub.add_parser("post", help="Create a post")
    p.add_argument("--emotion", required=True, choices=emotion_choices)
    p.add_argument("--caption", help="Optional caption (max 80 chars)")
    p.add_argument("--pin", help="Optional 4-digit PIN protecting the meaning")
    p.add_argument("--named", action="store_true", help="Show as a named user instead of anonymous")

    # feed
    sub.add_parser("feed", help="List posts (newest first)")

    # reveal
    p = sub.add_parser("reveal", help="Reveal the emotion behind a post")
    p.add_argument("post_id")
    p.add_argument("--pin", help="PIN for protected posts")

    # clear
    p = sub.add_parser("clear", help="Delete all posts")
    p.add_argument("--yes", action="store_true", help="Confirm deletion")

    # ui
    sub.add_parser("ui", help="Launch the HTTP backend")

    args = parser.parse_args()

    commands = {
        "emotions": cmd_emotions,
        "encoding": cmd_encoding,
        "frame": cmd_frame,
        "animate": cmd_animate,
        "post": cmd_post,
        "feed": cmd_feed,
        "reveal": cmd_reveal,
        "clear": cmd_clear,
        "ui": cmd_ui,
    }

    if args.command in commands:
        try:
            commands[args.command](args)
        except KeyError as e:
            print(f"Error: {e.args[0]}", file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
