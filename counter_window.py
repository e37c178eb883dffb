"""Main window showing the running count and live transcript."""

from __future__ import annotations

from typing import Callable, Optional

from config import SUPPORTED_LANGUAGES
from models import MatchConfig, SessionState

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import (
        QCheckBox,
        QComboBox,
        QGridLayout,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QCheckBox = QComboBox = QGridLayout = QHBoxLayout = object  # type: ignore
    QLabel = QLineEdit = QPushButton = QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

_STATE_LABELS = {
    SessionState.IDLE: "Idle",
    SessionState.LISTENING: "Listening…",
    SessionState.RESTARTING: "Restarting…",
    SessionState.ERRORED: "Error",
}

_PANE_STYLE = "padding: 12px; border: 1px solid #ddd; border-radius: 8px;"


class CounterWindow(QWidget):
    def __init__(
        self,
        config: MatchConfig,
        language: str,
        on_start: Callable[[], None],
        on_stop: Callable[[], None],
        on_reset: Callable[[], None],
        on_copy: Callable[[], None],
        on_config_change: Callable[[MatchConfig], None],
        on_language_change: Callable[[str], None],
        on_api_key: Callable[[], None],
    ) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("брате — Brate Counter")
        self.setMinimumWidth(640)
        self._on_config_change = on_config_change
        self._on_language_change = on_language_change
        self._language = language
        self._supported = True
        self._state = SessionState.IDLE

        self._target = QLineEdit(config.target_word)
        self._target.setPlaceholderText("brate")
        self._language_box = QComboBox()
        for tag, label in SUPPORTED_LANGUAGES.items():
            self._language_box.addItem(label, tag)
        self._language_box.setCurrentIndex(max(self._language_box.findData(language), 0))
        self._whole_word = QCheckBox("Whole word only")
        self._whole_word.setChecked(config.whole_word)
        self._allow_stretch = QCheckBox("Allow stretched “brateee”")
        self._allow_stretch.setChecked(config.allow_stretch)

        self._start_button = QPushButton("▶️ Start")
        self._stop_button = QPushButton("⏹ Stop")
        self._reset_button = QPushButton("♻️ Reset")
        self._copy_button = QPushButton("Copy transcript")
        self._api_key_button = QPushButton("DashScope API key…")
        self._start_button.clicked.connect(on_start)
        self._stop_button.clicked.connect(on_stop)
        self._reset_button.clicked.connect(on_reset)
        self._copy_button.clicked.connect(on_copy)
        self._api_key_button.clicked.connect(on_api_key)

        self._count_label = QLabel("0")
        self._count_label.setStyleSheet("font-size: 48px;")
        self._counting_label = QLabel("")
        self._status_label = QLabel("")
        self._notice_label = QLabel("")
        self._notice_label.setWordWrap(True)
        self._notice_label.setStyleSheet("color: #b00;")
        self._interim_label = QLabel("—")
        self._interim_label.setWordWrap(True)
        self._interim_label.setStyleSheet(_PANE_STYLE + "background: #fafafa;")
        self._final_label = QLabel("—")
        self._final_label.setWordWrap(True)
        self._final_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self._final_label.setStyleSheet(_PANE_STYLE)

        settings = QGridLayout()
        settings.addWidget(QLabel("Target word"), 0, 0)
        settings.addWidget(QLabel("Language"), 0, 1)
        settings.addWidget(self._target, 1, 0)
        settings.addWidget(self._language_box, 1, 1)
        settings.addWidget(self._whole_word, 2, 0)
        settings.addWidget(self._allow_stretch, 2, 1)

        buttons = QHBoxLayout()
        for button in (self._start_button, self._stop_button, self._reset_button, self._copy_button):
            buttons.addWidget(button)
        buttons.addStretch(1)
        buttons.addWidget(self._api_key_button)

        layout = QVBoxLayout()
        layout.addLayout(settings)
        layout.addLayout(buttons)
        layout.addWidget(QLabel("Count"))
        layout.addWidget(self._count_label)
        layout.addWidget(self._counting_label)
        layout.addWidget(self._status_label)
        layout.addWidget(self._notice_label)
        layout.addWidget(QLabel("Live (interim)"))
        layout.addWidget(self._interim_label)
        layout.addWidget(QLabel("Final transcript"))
        layout.addWidget(self._final_label)
        self.setLayout(layout)

        self._target.editingFinished.connect(self._emit_config)
        self._whole_word.toggled.connect(lambda _checked: self._emit_config())
        self._allow_stretch.toggled.connect(lambda _checked: self._emit_config())
        self._language_box.currentIndexChanged.connect(self._emit_language)

        self._update_counting_label()
        self.set_state(SessionState.IDLE)

    def current_config(self) -> MatchConfig:
        return MatchConfig(
            target_word=self._target.text(),
            whole_word=self._whole_word.isChecked(),
            allow_stretch=self._allow_stretch.isChecked(),
        )

    def set_count(self, count: int) -> None:
        self._count_label.setText(str(count))

    def set_interim(self, text: str) -> None:
        self._interim_label.setText(text or "—")

    def set_final(self, text: str) -> None:
        self._final_label.setText(text or "—")

    def set_state(self, state: SessionState) -> None:
        self._state = state
        active = state in (SessionState.LISTENING, SessionState.RESTARTING)
        self._start_button.setEnabled(self._supported and not active)
        self._stop_button.setEnabled(state != SessionState.IDLE)
        self._status_label.setText(f"Mic: {_STATE_LABELS[state]} • Lang: {self._language}")
        if state == SessionState.LISTENING:
            self._notice_label.setText("")

    def set_unsupported(self, message: str) -> None:
        self._supported = False
        self._start_button.setEnabled(False)
        self.show_notice(message)

    def show_notice(self, message: str) -> None:
        self._notice_label.setText(f"⚠️ {message}")

    def _emit_config(self) -> None:
        self._update_counting_label()
        self._on_config_change(self.current_config())

    def _emit_language(self, _index: int) -> None:
        language: Optional[str] = self._language_box.currentData()
        if not language:
            return
        self._language = language
        self.set_state(self._state)
        self._on_language_change(language)

    def _update_counting_label(self) -> None:
        self._counting_label.setText(f"Counting “{self._target.text() or '—'}”")
