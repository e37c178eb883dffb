"""Protocol interfaces used by SessionController and the app shell."""

from __future__ import annotations

from queue import Queue
from typing import Callable, Optional, Protocol

from models import AudioFrame, CopyResult, MatchConfig, ProviderErrorEvent, RecognitionEvent


class SpeechSource(Protocol):
    lang: str
    continuous: bool
    interim_results: bool
    on_result: Optional[Callable[[RecognitionEvent], None]]
    on_error: Optional[Callable[[ProviderErrorEvent], None]]
    on_end: Optional[Callable[[], None]]

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def abort(self) -> None: ...


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


class ClipboardService(Protocol):
    def copy_text(self, text: str) -> CopyResult: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_language(self) -> str: ...

    def set_language(self, language: str) -> None: ...

    def get_device_class(self) -> str: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def load_match_config(self) -> MatchConfig: ...

    def save_match_config(self, config: MatchConfig) -> None: ...
