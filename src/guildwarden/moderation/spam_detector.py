"""
Lightweight spam and flood detection.

Two independent heuristics are OR'd together:

1. **URLs in a single message**: too many URL-shaped tokens, or the same URL
   token repeated too often.
2. **Repeated messages per author**: the author already posted the same body
   more often than allowed within their recent history.

The per-author history lives in an :class:`AuthorHistoryStore` owned by the
detector. Every read-modify-write of an author's history happens under the
store's lock, so concurrent messages from one author cannot race. The history
is bounded: once it grows past twice ``max_repeat_of_message`` it is reset to
the current message only, trading long-window detection for bounded memory.
History is kept in memory and is lost on restart.

The detector only classifies. Deleting, warning, muting, or banning is up to
:mod:`guildwarden.moderation.spam_enforcement`.
"""

from __future__ import annotations

import re
import threading
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from guildwarden.datatypes.guild_settings import SpamSettings
from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.util.logger import get_logger

logger = get_logger("spam_detector")

# A token looks like a URL when it contains a host with a dotted 2-4 letter
# TLD, i.e. ``[a-zA-Z0-9.-]+\.[A-Za-z]{2,4}`` somewhere inside it. Scheme,
# credentials, port and path are optional around the host, so they never
# decide a match. The fixed-width form below finds exactly the same tokens
# and keeps the search linear in the token length.
URL_PATTERN = re.compile(r"[a-zA-Z0-9.-]\.[A-Za-z]{2}")

# Characters left alone when normalizing a body for comparison
ENCODE_SAFE_CHARACTERS = "-_.!~*'()"


def encode_body(content: str) -> str:
    """Percent-encode a message body for storage and comparison."""
    return quote(content, safe=ENCODE_SAFE_CHARACTERS)


def extract_urls(content: str) -> List[str]:
    """Return the whitespace-separated tokens of ``content`` that look like URLs."""
    return [token for token in content.split() if URL_PATTERN.search(token)]


def check_urls(content: str, settings: SpamSettings) -> bool:
    """Apply the per-message URL heuristic.

    Returns:
        bool: True if the message holds more URL tokens than
        ``max_urls_in_message``, or repeats one URL token more than
        ``max_identical_urls_in_message`` times.
    """
    spam = False
    seen: Dict[str, int] = {}
    url_count = 0

    for token in extract_urls(content):
        url_count += 1
        seen[token] = seen.get(token, 0) + 1
        if seen[token] > settings.max_identical_urls_in_message:
            spam = True

    if url_count > settings.max_urls_in_message:
        spam = True

    return spam


class AuthorHistoryStore:
    """Bounded history of recent message bodies per author.

    All access goes through :meth:`observe`, which performs the whole
    compare-append-trim cycle for one message while holding the lock.
    """

    def __init__(self) -> None:
        self._histories: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def observe(self, author_id: str, encoded_body: str, max_repeat: int) -> int:
        """Record a message and report how often it was already seen.

        Args:
            author_id: The author of the message.
            encoded_body: The percent-encoded message body.
            max_repeat: ``max_repeat_of_message`` of the guild; the history
                is reset once it holds more than twice this many entries.

        Returns:
            int: Number of identical bodies in the author's history *before*
            this message was added. A first-time author always yields 0.
        """
        with self._lock:
            history = self._histories.get(author_id)
            if history is None:
                previous = 0
                history = [encoded_body]
            else:
                previous = history.count(encoded_body)
                history = history + [encoded_body]

            if len(history) > max_repeat * 2:
                history = [encoded_body]

            self._histories[author_id] = history
            return previous

    def get(self, author_id: str) -> Tuple[str, ...]:
        """Return a snapshot of an author's history (empty if unknown)."""
        with self._lock:
            return tuple(self._histories.get(author_id, ()))


class SpamDetector:
    """Classify messages as spam using URL and repeat heuristics."""

    def __init__(self, history_store: Optional[AuthorHistoryStore] = None) -> None:
        self.history = history_store or AuthorHistoryStore()

    def is_spam(self, message: InboundMessage, settings: SpamSettings) -> bool:
        """Return True if ``message`` looks like spam under ``settings``.

        The message is always recorded in its author's history, whatever the
        verdict.

        Raises:
            ValueError: If the message has no author or no content.
        """
        if message is None or not message.author_id:
            raise ValueError("cannot check a message without an author for spam")
        if message.content is None:
            raise ValueError(f"message from {message.author_id} has no content")

        spam = check_urls(message.content, settings)
        if spam:
            logger.debug("[SPAM DETECTOR] URL limits exceeded by %s", message.author_id)

        previous = self.history.observe(
            message.author_id,
            encode_body(message.content),
            settings.max_repeat_of_message,
        )
        if previous > settings.max_repeat_of_message:
            logger.debug(
                "[SPAM DETECTOR] %s repeated a message %d times (limit %d)",
                message.author_id,
                previous,
                settings.max_repeat_of_message,
            )
            spam = True

        return spam
