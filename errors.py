"""Shared error codes and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
NO_SPEECH_DETECTED = "NO_SPEECH_DETECTED"
AUDIO_CAPTURE_UNAVAILABLE = "AUDIO_CAPTURE_UNAVAILABLE"
NETWORK_ERROR = "NETWORK_ERROR"
UNKNOWN_PROVIDER_ERROR = "UNKNOWN_PROVIDER_ERROR"
RESTART_FAILED = "RESTART_FAILED"
SPEECH_UNSUPPORTED = "SPEECH_UNSUPPORTED"

# Error kinds as reported by a speech source's on_error slot.
KIND_NOT_ALLOWED = "not-allowed"
KIND_SERVICE_NOT_ALLOWED = "service-not-allowed"
KIND_NO_SPEECH = "no-speech"
KIND_AUDIO_CAPTURE = "audio-capture"
KIND_NETWORK = "network"
KIND_OTHER = "other"

PROVIDER_ERROR_KINDS = {
    KIND_NOT_ALLOWED: PERMISSION_DENIED,
    KIND_SERVICE_NOT_ALLOWED: PERMISSION_DENIED,
    KIND_NO_SPEECH: NO_SPEECH_DETECTED,
    KIND_AUDIO_CAPTURE: AUDIO_CAPTURE_UNAVAILABLE,
    KIND_NETWORK: NETWORK_ERROR,
}

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone or recognition access was denied.",
    NO_SPEECH_DETECTED: "No speech was detected.",
    AUDIO_CAPTURE_UNAVAILABLE: "No microphone is available.",
    NETWORK_ERROR: "Network failed, please retry.",
    UNKNOWN_PROVIDER_ERROR: "Speech recognition failed.",
    RESTART_FAILED: "Listening stopped and could not be resumed.",
    SPEECH_UNSUPPORTED: "Speech recognition is not available on this system.",
}


def classify_provider_error(kind: str) -> str:
    """Map a provider error kind to one of the error codes above."""
    return PROVIDER_ERROR_KINDS.get((kind or "").strip().lower(), UNKNOWN_PROVIDER_ERROR)


def describe(code: str, detail: str = "") -> str:
    message = ERROR_MESSAGES.get(code, ERROR_MESSAGES[UNKNOWN_PROVIDER_ERROR])
    if detail:
        return f"{message} ({detail})"
    return message
