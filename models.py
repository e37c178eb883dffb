"""Core data models for the counter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    RESTARTING = "RESTARTING"
    ERRORED = "ERRORED"


@dataclass(frozen=True)
class MatchConfig:
    target_word: str = "brate"
    whole_word: bool = True
    allow_stretch: bool = True


@dataclass(frozen=True)
class DeviceProfile:
    supports_continuous: bool
    supports_interim: bool


@dataclass(frozen=True)
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


@dataclass(frozen=True)
class RecognitionResult:
    alternatives: tuple[RecognitionAlternative, ...] = ()
    is_final: bool = False

    @property
    def best_transcript(self) -> str:
        if not self.alternatives:
            return ""
        return self.alternatives[0].transcript


@dataclass(frozen=True)
class RecognitionEvent:
    result_index: int = 0
    results: tuple[RecognitionResult, ...] = ()


@dataclass(frozen=True)
class ProviderErrorEvent:
    kind: str
    message: str = ""


@dataclass(frozen=True)
class Transcript:
    final_text: str = ""
    interim_text: str = ""
    count: int = 0


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0

    @property
    def duration_s(self) -> float:
        bytes_per_second = 2 * self.channels * self.sample_rate
        if bytes_per_second <= 0:
            return 0.0
        return len(self.pcm16_bytes) / bytes_per_second


@dataclass
class CopyResult:
    success: bool
    reason: str
