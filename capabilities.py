"""Device classification and speech source resolution."""

from __future__ import annotations

import logging
import re
import sys
from typing import Optional

import recognizer
import recorder
from models import DeviceProfile

logger = logging.getLogger(__name__)

DEVICE_CLASSES = ("auto", "mobile", "desktop")

_MOBILE_PLATFORMS = frozenset({"android", "ios"})
_MOBILE_USER_AGENT = re.compile(r"Android|iPhone|iPad|iPod|Mobi", re.IGNORECASE)


def is_mobile_platform(platform: Optional[str] = None, user_agent: str = "") -> bool:
    platform = sys.platform if platform is None else platform
    if platform.lower() in _MOBILE_PLATFORMS:
        return True
    return bool(user_agent and _MOBILE_USER_AGENT.search(user_agent))


def resolve_device_profile(is_mobile: bool) -> DeviceProfile:
    """Mobile-class devices get single-utterance recognition without interim text."""
    if is_mobile:
        return DeviceProfile(supports_continuous=False, supports_interim=False)
    return DeviceProfile(supports_continuous=True, supports_interim=True)


def profile_for_device_class(device_class: str) -> DeviceProfile:
    device_class = (device_class or "auto").lower()
    if device_class == "mobile":
        return resolve_device_profile(True)
    if device_class == "desktop":
        return resolve_device_profile(False)
    return resolve_device_profile(is_mobile_platform())


def resolve_speech_source(api_key: str = "", **options: object) -> Optional[recognizer.DashscopeSpeechSource]:
    """Return a ready speech source, or ``None`` when no backend is usable."""
    if recognizer.dashscope is None:
        logger.warning("dashscope is not installed, speech recognition disabled")
        return None
    if recorder.sd is None:
        logger.warning("sounddevice is not installed, speech recognition disabled")
        return None
    return recognizer.DashscopeSpeechSource(api_key=api_key, **options)
