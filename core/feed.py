"""
CipherFeed — Post Store
Posts live in a single JSON file, newest first.

Each post embeds its resolved encoding verbatim, so a post keeps rendering the
same way even if the emotion table changes later.
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from core.encoding import EmotionKey, VisualEncoding, get_visual_encoding
from core.pin import hash_pin
from core.safety import validate_author_mode, validate_caption, validate_pin

logger = logging.getLogger(__name__)

DEFAULT_FEED_DIR = Path.home() / ".cipherfeed"
STORAGE_FILE = "posts_v1.json"


class FeedError(Exception):
    """Raised when the feed cannot be written."""
    pass


@dataclass
class Post:
    """A published pattern.

    id: "post_<epoch ms>_<9 chars>".
    created_at: Epoch milliseconds.
    author_mode: "anonymous" | "named".
    caption: Optional, at most 80 characters.
    encoding: Encoding resolved when the post was created.
    emotion: Emotion the encoding was resolved from (revealed through the PIN gate).
    pin_hash: SHA-256 hex digest of the PIN, if any.
    has_pin: Whether revealing the emotion needs a PIN.
    """
    id: str
    created_at: int
    author_mode: str
    encoding: VisualEncoding
    emotion: EmotionKey
    caption: str | None = None
    pin_hash: str | None = None
    has_pin: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "authorMode": self.author_mode,
            "caption": self.caption,
            "encoding": self.encoding.to_dict(),
            "emotion": self.emotion.value,
            "pinHash": self.pin_hash,
            "hasPin": self.has_pin,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Post":
        """Rebuild a post from stored data.

        Raises:
            ValueError: If a required field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("Post record must be an object")
        if not isinstance(data.get("id"), str):
            raise ValueError("Post id must be a string")
        created = data.get("createdAt")
        if isinstance(created, bool) or not isinstance(created, (int, float)):
            raise ValueError("createdAt must be a number")
        if not isinstance(data.get("authorMode"), str):
            raise ValueError("authorMode must be a string")
        if not isinstance(data.get("emotion"), str):
            raise ValueError("emotion must be a string")
        if not isinstance(data.get("hasPin"), bool):
            raise ValueError("hasPin must be a boolean")
        caption = data.get("caption")
        if caption is not None and not isinstance(caption, str):
            raise ValueError("caption must be a string")
        pin_hash = data.get("pinHash")
        if pin_hash is not None and not isinstance(pin_hash, str):
            raise ValueError("pinHash must be a string")

        return cls(
            id=data["id"],
            created_at=int(created),
            author_mode=data["authorMode"],
            encoding=VisualEncoding.from_dict(data.get("encoding")),
            emotion=EmotionKey(data["emotion"]),
            caption=caption,
            pin_hash=pin_hash,
            has_pin=data["hasPin"],
        )


def get_feed_path(base: Path | None = None) -> Path:
    """Path of the feed file."""
    base = Path(base) if base else DEFAULT_FEED_DIR
    return base / STORAGE_FILE


def load_posts(base: Path | None = None) -> list[Post]:
    """Load all posts, newest first.

    A missing or unreadable feed loads as empty. Records that fail validation
    are dropped; the rest still load.
    """
    path = get_feed_path(base)
    if not path.exists():
        return []
    try:
        parsed = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.error("Error loading posts from %s: %s", path, e)
        return []

    if not isinstance(parsed, list):
        logger.warning("Invalid posts data in %s, resetting", path)
        return []

    posts = []
    for record in parsed:
        try:
            posts.append(Post.from_dict(record))
        except ValueError as e:
            logger.warning("Skipping invalid post record: %s", e)
    return posts


def save_posts(posts: list[Post], base: Path | None = None) -> bool:
    """Write the whole feed. Returns False if the write failed."""
    path = get_feed_path(base)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps([p.to_dict() for p in posts], indent=2))
        tmp.replace(path)
        return True
    except OSError as e:
        logger.error("Error saving posts to %s: %s", path, e)
        return False


def add_post(post: Post, base: Path | None = None) -> bool:
    """Prepend a post to the feed."""
    posts = load_posts(base)
    posts.insert(0, post)
    return save_posts(posts, base)


def clear_all_posts(base: Path | None = None) -> bool:
    """Delete every post."""
    path = get_feed_path(base)
    try:
        path.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.error("Error clearing posts at %s: %s", path, e)
        return False


def get_post(post_id: str, base: Path | None = None) -> Post:
    """Find a post by id.

    Raises:
        KeyError: If no post has that id.
    """
    for post in load_posts(base):
        if post.id == post_id:
            return post
    raise KeyError(f"Post not found: {post_id}")


def _new_post_id(created_at: int) -> str:
    return f"post_{created_at}_{uuid.uuid4().hex[:9]}"


def create_post(
    emotion,
    author_mode: str = "anonymous",
    caption: str | None = None,
    pin: str | None = None,
    base: Path | None = None,
) -> Post:
    """Validate input, resolve the encoding and store a new post.

    Args:
        emotion: EmotionKey or its string value.
        author_mode: "anonymous" or "named".
        caption: Optional caption (max 80 chars, trimmed).
        pin: Optional 4-digit PIN. Stored only as a digest.

    Returns:
        The stored Post.

    Raises:
        SafetyError: If caption, PIN or author mode is invalid.
        ValueError: If the emotion is unknown.
        FeedError: If the feed could not be written.
    """
    emotion = EmotionKey(emotion)
    author_mode = validate_author_mode(author_mode)
    caption = validate_caption(caption)
    if pin:
        validate_pin(pin)

    created_at = int(time.time() * 1000)
    post = Post(
        id=_new_post_id(created_at),
        created_at=created_at,
        author_mode=author_mode,
        encoding=get_visual_encoding(emotion),
        emotion=emotion,
        caption=caption,
        pin_hash=hash_pin(pin) if pin else None,
        has_pin=bool(pin),
    )

    if not add_post(post, base):
        raise FeedError("Failed to save post")
    logger.info("Created post %s (pin=%s)", post.id, post.has_pin)
    return post
