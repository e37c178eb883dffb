"""Speech source built on a microphone recorder and DashScope qwen3-asr-flash.

qwen3-asr-flash recognizes complete audio clips, so listening is split into
utterances of ``utterance_s`` seconds of captured audio. Each utterance is
converted to a base64 WAV and streamed through the model; streamed text is
reported as an interim result and the last text as a final one. With
``continuous`` off the source ends after a single utterance, which is what
the session controller's restart logic is for.
"""

from __future__ import annotations

import base64
import io
import logging
import os
import threading
import wave
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Callable, Optional

from errors import KIND_AUDIO_CAPTURE, KIND_NETWORK, KIND_NOT_ALLOWED, KIND_OTHER
from interfaces import Recorder
from models import (
    AudioFrame,
    ProviderErrorEvent,
    RecognitionAlternative,
    RecognitionEvent,
    RecognitionResult,
)
from recorder import SoundDeviceRecorder

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

# Languages qwen3-asr-flash accepts as an explicit hint; others are auto-detected.
_MODEL_LANGUAGES = frozenset({"ar", "de", "en", "es", "fr", "it", "ja", "ko", "pt", "ru", "zh"})


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def language_hint(tag: str) -> str:
    primary = (tag or "").split("-")[0].lower()
    return primary if primary in _MODEL_LANGUAGES else ""


@dataclass
class _Utterance:
    pcm: bytearray = field(default_factory=bytearray)
    sample_rate: int = 16000
    channels: int = 1
    duration_s: float = 0.0
    exhausted: bool = False


@dataclass
class _Session:
    continuous: bool
    interim_results: bool
    lang: str
    audio_queue: Queue
    api_key: str = ""
    stop_event: threading.Event = field(default_factory=threading.Event)
    abort_event: threading.Event = field(default_factory=threading.Event)
    results: list[RecognitionResult] = field(default_factory=list)
    recorder: Optional[Recorder] = None


class DashscopeSpeechSource:
    def __init__(
        self,
        api_key: str = "",
        recorder_factory: Callable[[], Recorder] = SoundDeviceRecorder,
        model: str = "qwen3-asr-flash",
        utterance_s: float = 4.0,
        request_timeout_s: float = 10.0,
        queue_maxsize: int = 200,
    ) -> None:
        self.lang = "sr-RS"
        self.continuous = True
        self.interim_results = True
        self.on_result: Optional[Callable[[RecognitionEvent], None]] = None
        self.on_error: Optional[Callable[[ProviderErrorEvent], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

        self._api_key = api_key
        self._recorder_factory = recorder_factory
        self._model = model
        self._utterance_s = utterance_s
        self._request_timeout_s = request_timeout_s
        self._queue_maxsize = queue_maxsize
        self._lock = threading.Lock()
        self._session: Optional[_Session] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._session is not None

    def set_api_key(self, api_key: str) -> None:
        """Use ``api_key`` from the next ``start()`` on."""
        with self._lock:
            self._api_key = api_key

    def start(self) -> None:
        previous = self._thread
        if previous is not None and previous.is_alive() and previous is not threading.current_thread():
            previous.join(timeout=0.5)
        with self._lock:
            if self._session is not None:
                raise RuntimeError("recognition has already started")
            session = _Session(
                continuous=self.continuous,
                interim_results=self.interim_results,
                lang=self.lang,
                audio_queue=Queue(maxsize=self._queue_maxsize),
                api_key=self._api_key,
            )
            self._session = session
            self._thread = threading.Thread(target=self._worker, args=(session,), daemon=True)
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.stop_event.set()

    def abort(self) -> None:
        with self._lock:
            session = self._session
            if session is None:
                return
            session.abort_event.set()
            self._session = None
            recorder = session.recorder
        if recorder is not None:
            try:
                recorder.stop()
            except Exception as exc:
                logger.debug("stopping recorder on abort failed: %s", exc)
        if self.on_end:
            self.on_end()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self, session: _Session) -> None:
        recorder = self._recorder_factory()
        with self._lock:
            session.recorder = recorder
        try:
            recorder.start(session.audio_queue)
        except Exception as exc:
            logger.warning("microphone unavailable: %s", exc)
            self._finish(session, ProviderErrorEvent(kind=KIND_AUDIO_CAPTURE, message=str(exc)))
            return

        error: Optional[ProviderErrorEvent] = None
        try:
            while not session.abort_event.is_set():
                utterance = self._collect_utterance(session, recorder)
                if session.abort_event.is_set():
                    break
                if utterance.pcm:
                    error = self._recognize(session, utterance)
                    if error is not None:
                        break
                if utterance.exhausted or not session.continuous:
                    break
        finally:
            recorder.stop()
        self._finish(session, error)

    def _collect_utterance(self, session: _Session, recorder: Recorder) -> _Utterance:
        """Drain frames until enough audio is buffered or capture ends."""
        utterance = _Utterance()
        stop_sent = False
        while not session.abort_event.is_set():
            if session.stop_event.is_set() and not stop_sent:
                recorder.stop()
                stop_sent = True
            try:
                frame: AudioFrame | None = session.audio_queue.get(timeout=0.1)
            except Empty:
                if stop_sent:
                    utterance.exhausted = True
                    return utterance
                continue
            if frame is None:
                utterance.exhausted = True
                return utterance
            utterance.pcm.extend(frame.pcm16_bytes)
            utterance.sample_rate = frame.sample_rate
            utterance.channels = frame.channels
            utterance.duration_s += frame.duration_s
            if utterance.duration_s >= self._utterance_s:
                return utterance
        return utterance

    def _recognize(self, session: _Session, utterance: _Utterance) -> Optional[ProviderErrorEvent]:
        """Stream one utterance through the model; return an error if it failed."""
        if dashscope is None:
            return ProviderErrorEvent(kind=KIND_OTHER, message="dashscope is not installed")
        api_key = session.api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            return ProviderErrorEvent(kind=KIND_NOT_ALLOWED, message="No API key configured")

        wav_b64 = _pcm_to_wav_base64(bytes(utterance.pcm), utterance.sample_rate, utterance.channels)
        asr_options: dict = {"enable_itn": False}
        hint = language_hint(session.lang)
        if hint:
            asr_options["language"] = hint

        index = len(session.results)
        latest_text = ""
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_b64}]},
                ],
                result_format="message",
                asr_options=asr_options,
                stream=True,
                timeout=self._request_timeout_s,
            )
            for chunk in response:
                if session.abort_event.is_set():
                    return None
                text = self._extract_text(chunk)
                if not text:
                    continue
                latest_text = text
                if session.interim_results:
                    self._publish(session, index, text, is_final=False)
        except Exception as exc:
            return self._to_error_event(exc)

        if latest_text:
            self._publish(session, index, latest_text, is_final=True)
        return None

    def _publish(self, session: _Session, index: int, text: str, is_final: bool) -> None:
        result = RecognitionResult(
            alternatives=(RecognitionAlternative(transcript=text),),
            is_final=is_final,
        )
        if index < len(session.results):
            session.results[index] = result
        else:
            session.results.append(result)
        if session is not self._session:
            return
        callback = self.on_result
        if callback:
            callback(RecognitionEvent(result_index=index, results=tuple(session.results)))

    def _finish(self, session: _Session, error: Optional[ProviderErrorEvent] = None) -> None:
        with self._lock:
            if session is not self._session:
                return
            self._session = None
        if error is not None and self.on_error:
            self.on_error(error)
        if self.on_end:
            self.on_end()

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if not isinstance(chunk, dict):
            return ""
        choices = chunk.get("output", {}).get("choices", [])
        if not choices:
            return ""
        content = choices[0].get("message", {}).get("content", [])
        if not content:
            return ""
        value = content[0]
        if isinstance(value, dict):
            return str(value.get("text", ""))
        return ""

    def _to_error_event(self, exc: Exception) -> ProviderErrorEvent:
        """Map an SDK/network exception to a provider error kind."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            kind = KIND_NOT_ALLOWED
        elif isinstance(exc, (ConnectionError, TimeoutError)) or any(
            word in low for word in ("timeout", "network", "connection")
        ):
            kind = KIND_NETWORK
        else:
            kind = KIND_OTHER
        return ProviderErrorEvent(kind=kind, message=message)
