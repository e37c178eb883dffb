"""Append-only transcript with a derived target-word count."""

from __future__ import annotations

import logging

import matcher
from models import MatchConfig, Transcript

logger = logging.getLogger(__name__)


class TranscriptStore:
    """Holds the finalized transcript, the live interim fragment and the count.

    ``count`` is always what ``matcher.count`` returns for the whole final
    transcript under the current config. Appends recount the full transcript
    rather than adding the chunk's own count, so a target that spans the
    boundary between two chunks is found as well.
    """

    def __init__(self, config: MatchConfig | None = None) -> None:
        self._config = config or MatchConfig()
        self._final_text = ""
        self._interim_text = ""
        self._count = 0

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def final_text(self) -> str:
        return self._final_text

    @property
    def interim_text(self) -> str:
        return self._interim_text

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> Transcript:
        return Transcript(
            final_text=self._final_text,
            interim_text=self._interim_text,
            count=self._count,
        )

    def append_final(self, chunk: str) -> int:
        """Append a finalized chunk and return how much the count grew."""
        chunk = chunk.strip()
        if not chunk:
            return 0
        self._final_text = f"{self._final_text} {chunk}".strip()
        previous = self._count
        self._recount()
        return self._count - previous

    def set_interim(self, chunk: str) -> None:
        self._interim_text = chunk.strip()

    def update_config(self, config: MatchConfig) -> int:
        self._config = config
        self._recount()
        logger.debug("config updated to %s, count=%d", config, self._count)
        return self._count

    def reset(self) -> None:
        self._final_text = ""
        self._interim_text = ""
        self._count = 0

    def _recount(self) -> None:
        self._count = matcher.count(self._final_text, self._config.target_word, self._config)
