from __future__ import annotations

from types import SimpleNamespace

import pytest

import hotkey
from hotkey import GlobalHotkeyToggle


class FakeListener:
    def __init__(self, on_press, on_release) -> None:  # noqa: ANN001
        self.on_press = on_press
        self.on_release = on_release
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True


def _install_fake_keyboard(monkeypatch) -> list[FakeListener]:  # noqa: ANN001
    listeners: list[FakeListener] = []

    def _factory(on_press, on_release) -> FakeListener:  # noqa: ANN001
        listener = FakeListener(on_press, on_release)
        listeners.append(listener)
        return listener

    monkeypatch.setattr(hotkey, "keyboard", SimpleNamespace(Listener=_factory))
    return listeners


def test_toggle_fires_once_per_press(monkeypatch) -> None:  # noqa: ANN001
    listeners = _install_fake_keyboard(monkeypatch)
    toggles: list[int] = []

    toggle = GlobalHotkeyToggle(hotkey_name="Key.f8")
    toggle.start(on_toggle=lambda: toggles.append(1))
    listener = listeners[0]

    listener.on_press("Key.f8")
    listener.on_press("Key.f8")  # auto-repeat while held
    listener.on_release("Key.f8")
    listener.on_press("Key.f8")

    assert listener.started is True
    assert len(toggles) == 2


def test_other_keys_are_ignored(monkeypatch) -> None:  # noqa: ANN001
    listeners = _install_fake_keyboard(monkeypatch)
    toggles: list[int] = []

    GlobalHotkeyToggle(hotkey_name="Key.f8").start(on_toggle=lambda: toggles.append(1))
    listeners[0].on_press("Key.f9")
    listeners[0].on_press("'b'")

    assert toggles == []


def test_stop_stops_listener(monkeypatch) -> None:  # noqa: ANN001
    listeners = _install_fake_keyboard(monkeypatch)

    toggle = GlobalHotkeyToggle()
    toggle.start(on_toggle=lambda: None)
    toggle.stop()
    toggle.stop()

    assert listeners[0].stopped is True


def test_start_raises_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        GlobalHotkeyToggle().start(on_toggle=lambda: None)
