"""State-machine based recognition session orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import RESTART_FAILED, UNKNOWN_PROVIDER_ERROR, classify_provider_error, describe
from interfaces import Scheduler, SpeechSource, TimerHandle
from models import (
    DeviceProfile,
    MatchConfig,
    ProviderErrorEvent,
    RecognitionEvent,
    SessionState,
)
from transcript import TranscriptStore

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
InterimCallback = Callable[[str], None]
CountCallback = Callable[[int], None]
ErrorCallback = Callable[[str, str], None]

DEFAULT_LANGUAGE = "sr-RS"


def _start_timer(delay_s: float, fn: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay_s, fn)
    timer.daemon = True
    timer.start()
    return timer


class SessionController:
    """Drives one speech source and feeds its results into a transcript.

    Providers that cannot listen continuously end after every utterance; on
    such devices an ``on_end`` that the user did not ask for schedules a
    restart after ``restart_delay_s``. ``stop()`` always wins over a pending
    restart.
    """

    def __init__(
        self,
        speech_source: SpeechSource,
        transcript: Optional[TranscriptStore] = None,
        profile: Optional[DeviceProfile] = None,
        language: str = DEFAULT_LANGUAGE,
        restart_delay_s: float = 0.3,
        scheduler: Optional[Scheduler] = None,
        on_state_change: Optional[StateCallback] = None,
        on_interim: Optional[InterimCallback] = None,
        on_count: Optional[CountCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._source = speech_source
        self._transcript = transcript or TranscriptStore()
        self._profile = profile or DeviceProfile(supports_continuous=True, supports_interim=True)
        self._language = language
        self._restart_delay_s = restart_delay_s
        self._schedule = scheduler or _start_timer
        self._on_state_change = on_state_change
        self._on_interim = on_interim
        self._on_count = on_count
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._generation = 0
        self._stop_requested = False
        self._restart_timer: Optional[TimerHandle] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def transcript(self) -> TranscriptStore:
        return self._transcript

    @property
    def profile(self) -> DeviceProfile:
        return self._profile

    @property
    def language(self) -> str:
        return self._language

    # ------------------------------------------------------------------
    # User-facing operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._state in (SessionState.LISTENING, SessionState.RESTARTING):
                return
            self._cancel_restart()
            self._generation += 1
            self._stop_requested = False
            self._configure_source(self._generation)
            self._set_interim("")
            self._transition(SessionState.LISTENING)
            try:
                self._source.start()
            except Exception as exc:
                logger.warning("speech source failed to start: %s", exc)
                self._transition(SessionState.ERRORED)
                self._emit_error(UNKNOWN_PROVIDER_ERROR, describe(UNKNOWN_PROVIDER_ERROR, str(exc)))

    def stop(self) -> None:
        with self._lock:
            if self._state == SessionState.IDLE:
                return
            self._stop_requested = True
            self._cancel_restart()
            self._generation += 1
            self._safe_abort()
            self._set_interim("")
            self._transition(SessionState.IDLE)

    def reset(self) -> None:
        with self._lock:
            self._transcript.reset()
            self._emit_interim("")
            self._emit_count()

    def update_config(self, config: MatchConfig) -> None:
        with self._lock:
            self._transcript.update_config(config)
            self._emit_count()

    def set_language(self, language: str) -> None:
        with self._lock:
            self._language = language
            self._source.lang = language

    def shutdown(self) -> None:
        with self._lock:
            self.stop()
            self._source.on_result = None
            self._source.on_error = None
            self._source.on_end = None

    # ------------------------------------------------------------------
    # Speech source callbacks
    # ------------------------------------------------------------------

    def _configure_source(self, generation: int) -> None:
        source = self._source
        source.lang = self._language
        source.continuous = self._profile.supports_continuous
        source.interim_results = self._profile.supports_interim
        source.on_result = lambda event: self._handle_result(generation, event)
        source.on_error = lambda error: self._handle_error(generation, error)
        source.on_end = lambda: self._handle_end(generation)

    def _handle_result(self, generation: int, event: RecognitionEvent) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.LISTENING:
                return
            interim_parts: list[str] = []
            final_parts: list[str] = []
            for result in event.results[max(event.result_index, 0):]:
                text = result.best_transcript.strip()
                if not text:
                    continue
                if result.is_final:
                    final_parts.append(text)
                else:
                    interim_parts.append(text)

            self._set_interim(" ".join(interim_parts))
            if final_parts:
                delta = self._transcript.append_final(" ".join(final_parts))
                logger.debug("final chunk appended, delta=%d", delta)
                self._emit_count()

    def _handle_error(self, generation: int, error: ProviderErrorEvent) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.LISTENING:
                return
            code = classify_provider_error(error.kind)
            logger.warning("speech source error %s (%s): %s", error.kind, code, error.message)
            self._transition(SessionState.ERRORED)
            self._emit_error(code, describe(code, error.message))
            self._safe_abort()

    def _handle_end(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.LISTENING:
                return
            if self._profile.supports_continuous or self._stop_requested:
                self._set_interim("")
                self._transition(SessionState.IDLE)
                return
            self._transition(SessionState.RESTARTING)
            logger.info("recognition ended, restarting in %.2fs", self._restart_delay_s)
            self._restart_timer = self._schedule(
                self._restart_delay_s, lambda: self._restart(generation)
            )

    def _restart(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.RESTARTING:
                return
            self._restart_timer = None
            self._transition(SessionState.LISTENING)
            try:
                self._source.start()
            except Exception as exc:
                logger.error("restart failed", exc_info=True)
                self._set_interim("")
                self._transition(SessionState.IDLE)
                self._emit_error(RESTART_FAILED, describe(RESTART_FAILED, str(exc)))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _cancel_restart(self) -> None:
        timer = self._restart_timer
        self._restart_timer = None
        if timer is not None:
            timer.cancel()

    def _safe_abort(self) -> None:
        try:
            self._source.abort()
        except Exception as exc:
            logger.debug("abort ignored: %s", exc)

    def _set_interim(self, text: str) -> None:
        self._transcript.set_interim(text)
        self._emit_interim(self._transcript.interim_text)

    def _emit_interim(self, text: str) -> None:
        if self._on_interim:
            self._on_interim(text)

    def _emit_count(self) -> None:
        if self._on_count:
            self._on_count(self._transcript.count)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("session %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
