"""Application entrypoint."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from capabilities import DEVICE_CLASSES, profile_for_device_class, resolve_speech_source
from clipboard import ClipboardCopyService
from config import JsonConfigStore
from counter_window import CounterWindow
from errors import SPEECH_UNSUPPORTED, describe
from hotkey import GlobalHotkeyToggle
from interfaces import ClipboardService, ConfigStore
from logging_setup import setup_logging
from models import MatchConfig, SessionState
from session_controller import SessionController
from transcript import TranscriptStore

try:
    from PySide6.QtCore import QObject, Signal
    from PySide6.QtWidgets import QApplication, QInputDialog, QMessageBox
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


class UIBridge(QObject):
    interim_signal = Signal(str)
    count_signal = Signal(int)
    error_signal = Signal(str)
    state_signal = Signal(str, str)  # from_state, to_state
    toggle_signal = Signal()


class App:
    def __init__(self, device_class: Optional[str] = None) -> None:
        self.app = QApplication(sys.argv)
        self.config_store: ConfigStore = JsonConfigStore()
        self.clipboard: ClipboardService = ClipboardCopyService()
        self.ui = UIBridge()
        self.ui.interim_signal.connect(self._on_interim_ui)
        self.ui.count_signal.connect(self._on_count_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.toggle_signal.connect(self._toggle)

        match_config = self.config_store.load_match_config()
        language = self.config_store.get_language()
        profile = profile_for_device_class(device_class or self.config_store.get_device_class())
        logger.info("device profile: %s", profile)

        self.transcript = TranscriptStore(match_config)
        self.speech_source = resolve_speech_source(api_key=self.config_store.get_api_key())
        self.controller: Optional[SessionController] = None
        if self.speech_source is not None:
            self.controller = SessionController(
                speech_source=self.speech_source,
                transcript=self.transcript,
                profile=profile,
                language=language,
                on_state_change=self._on_state_change,
                on_interim=self._on_interim,
                on_count=self._on_count,
                on_error=self._on_error,
            )

        self.window = CounterWindow(
            config=match_config,
            language=language,
            on_start=self._start,
            on_stop=self._stop,
            on_reset=self._reset,
            on_copy=self._copy,
            on_config_change=self._on_config_change,
            on_language_change=self._on_language_change,
            on_api_key=self._set_api_key,
        )
        self.window.set_count(self.transcript.count)
        if self.controller is None:
            self.window.set_unsupported(describe(SPEECH_UNSUPPORTED))

        self.hotkey = GlobalHotkeyToggle(hotkey_name=self.config_store.get_hotkey())

    # ------------------------------------------------------------------
    # Window actions (UI thread)
    # ------------------------------------------------------------------

    def _start(self) -> None:
        if self.controller is not None:
            self.controller.start()

    def _stop(self) -> None:
        if self.controller is not None:
            self.controller.stop()

    def _toggle(self) -> None:
        if self.controller is None:
            return
        if self.controller.state in (SessionState.LISTENING, SessionState.RESTARTING):
            self.controller.stop()
        else:
            self.controller.start()

    def _reset(self) -> None:
        if self.controller is not None:
            self.controller.reset()
        else:
            self.transcript.reset()
            self._on_count_ui(0)

    def _copy(self) -> None:
        result = self.clipboard.copy_text(self.transcript.final_text)
        if not result.success:
            self.window.show_notice(f"Copy failed: {result.reason}")

    def _on_config_change(self, config: MatchConfig) -> None:
        self.config_store.save_match_config(config)
        if self.controller is not None:
            self.controller.update_config(config)
        else:
            self._on_count_ui(self.transcript.update_config(config))

    def _on_language_change(self, language: str) -> None:
        self.config_store.set_language(language)
        if self.controller is not None:
            self.controller.set_language(language)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(self.window, "API Key", "DashScope API Key")
        if not ok:
            return
        value = value.strip()
        self.config_store.set_api_key(value)
        if self.speech_source is not None:
            self.speech_source.set_api_key(value)
        QMessageBox.information(self.window, "Saved", "API key saved. It is used from the next Start.")

    # ------------------------------------------------------------------
    # Controller callbacks (may run on worker threads → emit signals)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_interim(self, text: str) -> None:
        self.ui.interim_signal.emit(text)

    def _on_count(self, count: int) -> None:
        self.ui.count_signal.emit(count)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(f"{code}: {message}")

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_interim_ui(self, text: str) -> None:
        self.window.set_interim(text)

    def _on_count_ui(self, count: int) -> None:
        self.window.set_count(count)
        self.window.set_final(self.transcript.final_text)

    def _on_error_ui(self, msg: str) -> None:
        self.window.show_notice(msg)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        self.window.set_state(SessionState(to_state))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.app.aboutToQuit.connect(self.quit)
        try:
            self.hotkey.start(on_toggle=self.ui.toggle_signal.emit)
        except Exception as exc:
            logger.warning("hotkey disabled: %s", exc)
            self.window.show_notice(f"Hotkey disabled: {exc}")
        self.window.show()
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        if self.controller is not None:
            self.controller.shutdown()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Count how often a word is said into the microphone.")
    parser.add_argument("--device-class", choices=DEVICE_CLASSES, default=None)
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--log-dir", type=Path, default=None)
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_dir, verbose=args.verbose)
    app = App(device_class=args.device_class)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
