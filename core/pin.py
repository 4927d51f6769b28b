"""
CipherFeed — PIN Reveal Gate
Hashes PINs for storage and decides whether a viewer may see a post's emotion.

Only the emotion label is gated. Patterns always render.
"""

import hashlib
import hmac

from core.encoding import EmotionKey
from core.safety import PIN_LENGTH, SafetyError, validate_pin


class RevealError(Exception):
    """Raised when a post's emotion may not be revealed."""
    pass


class PinFormatError(RevealError):
    """The candidate PIN is missing or not PIN_LENGTH digits."""
    pass


class PinMismatchError(RevealError):
    """The candidate PIN does not match the stored digest."""
    pass


def hash_pin(pin: str) -> str:
    """SHA-256 hex digest of the UTF-8 PIN."""
    return hashlib.sha256(pin.encode("utf-8")).hexdigest()


def verify_pin(pin: str, stored_hash: str) -> bool:
    """Compare a candidate PIN against a stored digest."""
    return hmac.compare_digest(hash_pin(pin), stored_hash)


def reveal_emotion(post, pin: str | None = None) -> EmotionKey:
    """Return the post's emotion if the viewer is allowed to see it.

    Raises:
        PinFormatError: PIN required but missing or malformed.
        PinMismatchError: PIN does not match.
    """
    if not post.has_pin:
        return post.emotion

    if not pin:
        raise PinFormatError(f"Please enter a {PIN_LENGTH}-digit PIN")
    try:
        validate_pin(pin)
    except SafetyError:
        raise PinFormatError(f"Please enter a {PIN_LENGTH}-digit PIN")

    # Flagged as protected but no digest stored: nothing to check against
    if not post.pin_hash:
        return post.emotion

    if not verify_pin(pin, post.pin_hash):
        raise PinMismatchError("Incorrect PIN")
    return post.emotion
