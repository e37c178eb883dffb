from __future__ import annotations

from typing import Callable, Optional

from errors import (
    NETWORK_ERROR,
    PERMISSION_DENIED,
    RESTART_FAILED,
    UNKNOWN_PROVIDER_ERROR,
)
from models import (
    DeviceProfile,
    MatchConfig,
    ProviderErrorEvent,
    RecognitionAlternative,
    RecognitionEvent,
    RecognitionResult,
    SessionState,
)
from session_controller import SessionController
from transcript import TranscriptStore

DESKTOP = DeviceProfile(supports_continuous=True, supports_interim=True)
MOBILE = DeviceProfile(supports_continuous=False, supports_interim=False)


class FakeSpeechSource:
    def __init__(self) -> None:
        self.lang = ""
        self.continuous: Optional[bool] = None
        self.interim_results: Optional[bool] = None
        self.on_result: Optional[Callable[[RecognitionEvent], None]] = None
        self.on_error: Optional[Callable[[ProviderErrorEvent], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.start_calls = 0
        self.abort_calls = 0
        self.fail_start = False
        self.fail_abort = False

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("recognizer busy")

    def stop(self) -> None:
        pass

    def abort(self) -> None:
        self.abort_calls += 1
        if self.fail_abort:
            raise RuntimeError("already stopped")
        if self.on_end:
            self.on_end()

    def emit_result(self, event: RecognitionEvent) -> None:
        assert self.on_result is not None
        self.on_result(event)

    def emit_error(self, kind: str, message: str = "") -> None:
        assert self.on_error is not None
        self.on_error(ProviderErrorEvent(kind=kind, message=message))

    def emit_end(self) -> None:
        assert self.on_end is not None
        self.on_end()


class FakeTimer:
    def __init__(self, delay_s: float, fn: Callable[[], None]) -> None:
        self.delay_s = delay_s
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay_s: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_s, fn)
        self.timers.append(timer)
        return timer

    def fire_pending(self) -> None:
        for timer in list(self.timers):
            if not timer.cancelled:
                timer.fn()


def _result(text: str, is_final: bool) -> RecognitionResult:
    return RecognitionResult(alternatives=(RecognitionAlternative(transcript=text),), is_final=is_final)


def _event(*results: RecognitionResult, result_index: int = 0) -> RecognitionEvent:
    return RecognitionEvent(result_index=result_index, results=tuple(results))


class Harness:
    def __init__(self, profile: DeviceProfile = DESKTOP, config: Optional[MatchConfig] = None) -> None:
        self.source = FakeSpeechSource()
        self.scheduler = FakeScheduler()
        self.transitions: list[tuple[SessionState, SessionState]] = []
        self.interims: list[str] = []
        self.counts: list[int] = []
        self.errors: list[tuple[str, str]] = []
        self.controller = SessionController(
            speech_source=self.source,
            transcript=TranscriptStore(config or MatchConfig()),
            profile=profile,
            language="hr-HR",
            restart_delay_s=0.3,
            scheduler=self.scheduler,
            on_state_change=lambda f, t: self.transitions.append((f, t)),
            on_interim=self.interims.append,
            on_count=self.counts.append,
            on_error=lambda c, m: self.errors.append((c, m)),
        )


def test_start_configures_source_and_listens() -> None:
    h = Harness(profile=MOBILE)
    h.controller.transcript.set_interim("stale")

    h.controller.start()

    assert h.controller.state == SessionState.LISTENING
    assert h.source.start_calls == 1
    assert h.source.lang == "hr-HR"
    assert h.source.continuous is False
    assert h.source.interim_results is False
    assert h.controller.transcript.interim_text == ""
    assert h.transitions == [(SessionState.IDLE, SessionState.LISTENING)]


def test_start_is_idempotent_while_listening() -> None:
    h = Harness()
    h.controller.start()
    h.controller.start()

    assert h.source.start_calls == 1
    assert h.controller.state == SessionState.LISTENING


def test_results_split_into_interim_and_final() -> None:
    h = Harness()
    h.controller.start()

    h.source.emit_result(_event(_result("brate", True), _result("bra", False)))

    transcript = h.controller.transcript
    assert transcript.final_text == "brate"
    assert transcript.interim_text == "bra"
    assert transcript.count == 1
    assert h.counts == [1]
    assert h.interims[-1] == "bra"


def test_results_before_result_index_are_skipped() -> None:
    h = Harness()
    h.controller.start()
    h.source.emit_result(_event(_result("brate", True)))

    h.source.emit_result(
        _event(
            _result("brate", True),
            _result("brate brate", True),
            _result("još", False),
            _result("malo", False),
            result_index=1,
        )
    )

    transcript = h.controller.transcript
    assert transcript.final_text == "brate brate brate"
    assert transcript.count == 3
    assert transcript.interim_text == "još malo"


def test_interim_only_event_does_not_count() -> None:
    h = Harness()
    h.controller.start()

    h.source.emit_result(_event(_result("brate brate", False)))

    assert h.controller.transcript.count == 0
    assert h.counts == []
    assert h.controller.transcript.interim_text == "brate brate"


def test_mobile_end_schedules_restart_and_restarts() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()
    h.source.emit_result(_event(_result("brate", True)))

    h.source.emit_end()

    assert h.controller.state == SessionState.RESTARTING
    assert len(h.scheduler.timers) == 1
    assert h.scheduler.timers[0].delay_s == 0.3

    h.scheduler.fire_pending()

    assert h.controller.state == SessionState.LISTENING
    assert h.source.start_calls == 2
    assert h.controller.transcript.count == 1


def test_stop_during_restart_prevents_scheduled_start() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()
    h.source.emit_end()
    assert h.controller.state == SessionState.RESTARTING

    h.controller.stop()

    timer = h.scheduler.timers[0]
    assert timer.cancelled is True
    assert h.controller.state == SessionState.IDLE

    # Even a timer that fires after cancellation must not resurrect the session.
    timer.fn()
    assert h.controller.state == SessionState.IDLE
    assert h.source.start_calls == 1


def test_start_while_restarting_is_noop() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()
    h.source.emit_end()

    h.controller.start()

    assert h.controller.state == SessionState.RESTARTING
    assert h.source.start_calls == 1


def test_desktop_end_goes_idle_without_restart() -> None:
    h = Harness(profile=DESKTOP)
    h.controller.start()
    h.source.emit_result(_event(_result("bra", False)))

    h.source.emit_end()

    assert h.controller.state == SessionState.IDLE
    assert h.scheduler.timers == []
    assert h.controller.transcript.interim_text == ""


def test_stop_aborts_source_and_ignores_its_end() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()

    h.controller.stop()

    assert h.source.abort_calls == 1
    assert h.controller.state == SessionState.IDLE
    assert h.scheduler.timers == []


def test_stop_on_idle_is_noop() -> None:
    h = Harness()

    h.controller.stop()

    assert h.controller.state == SessionState.IDLE
    assert h.source.abort_calls == 0
    assert h.transitions == []


def test_abort_failure_is_swallowed() -> None:
    h = Harness()
    h.controller.start()
    h.source.fail_abort = True

    h.controller.stop()

    assert h.controller.state == SessionState.IDLE
    assert h.errors == []


def test_provider_error_moves_to_errored() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()

    h.source.emit_error("not-allowed", "mic blocked")

    assert h.controller.state == SessionState.ERRORED
    assert h.source.abort_calls == 1
    assert len(h.errors) == 1
    assert h.errors[0][0] == PERMISSION_DENIED
    assert "mic blocked" in h.errors[0][1]
    # The end that follows an error must not trigger the mobile restart.
    h.source.emit_end()
    assert h.controller.state == SessionState.ERRORED
    assert h.scheduler.timers == []


def test_provider_error_kinds_are_classified() -> None:
    h = Harness()
    h.controller.start()
    h.source.emit_error("network")
    h.controller.start()
    h.source.emit_error("language-not-supported")

    assert [code for code, _ in h.errors] == [NETWORK_ERROR, UNKNOWN_PROVIDER_ERROR]


def test_start_recovers_from_errored() -> None:
    h = Harness()
    h.controller.start()
    h.source.emit_error("no-speech")

    h.controller.start()

    assert h.controller.state == SessionState.LISTENING
    assert h.source.start_calls == 2


def test_stop_from_errored_returns_to_idle() -> None:
    h = Harness()
    h.controller.start()
    h.source.emit_error("audio-capture")

    h.controller.stop()

    assert h.controller.state == SessionState.IDLE


def test_start_failure_reports_error() -> None:
    h = Harness()
    h.source.fail_start = True

    h.controller.start()

    assert h.controller.state == SessionState.ERRORED
    assert h.errors[0][0] == UNKNOWN_PROVIDER_ERROR


def test_restart_failure_settles_idle_without_retry() -> None:
    h = Harness(profile=MOBILE)
    h.controller.start()
    h.source.emit_end()
    h.source.fail_start = True

    h.scheduler.fire_pending()

    assert h.controller.state == SessionState.IDLE
    assert h.errors[0][0] == RESTART_FAILED
    assert len(h.scheduler.timers) == 1
    assert h.source.start_calls == 2


def test_events_from_stopped_session_are_ignored() -> None:
    h = Harness()
    h.controller.start()
    stale_result = h.source.on_result
    h.controller.stop()
    h.controller.start()

    assert stale_result is not None
    stale_result(_event(_result("brate", True)))

    assert h.controller.transcript.count == 0
    assert h.controller.state == SessionState.LISTENING


def test_results_after_stop_are_ignored() -> None:
    h = Harness()
    h.controller.start()
    h.controller.stop()

    h.source.emit_result(_event(_result("brate", True)))

    assert h.controller.transcript.final_text == ""


def test_update_config_recounts_and_notifies() -> None:
    h = Harness(config=MatchConfig(target_word="brate", whole_word=True, allow_stretch=True))
    h.controller.start()
    h.source.emit_result(_event(_result("brate", True)))
    h.source.emit_result(_event(_result("brate brate", True)))
    h.source.emit_result(_event(_result("brateee", True)))
    assert h.counts == [1, 3, 4]

    h.controller.update_config(MatchConfig(target_word="brate", whole_word=True, allow_stretch=False))

    assert h.controller.transcript.count == 3
    assert h.counts[-1] == 3


def test_set_language_applies_immediately() -> None:
    h = Harness()
    h.controller.set_language("en-US")

    assert h.controller.language == "en-US"
    assert h.source.lang == "en-US"

    h.controller.start()
    assert h.source.lang == "en-US"


def test_reset_clears_transcript_but_keeps_listening() -> None:
    h = Harness()
    h.controller.start()
    h.source.emit_result(_event(_result("brate", True), _result("bra", False)))

    h.controller.reset()

    assert h.controller.transcript.final_text == ""
    assert h.controller.transcript.interim_text == ""
    assert h.counts[-1] == 0
    assert h.controller.state == SessionState.LISTENING


def test_shutdown_stops_and_detaches() -> None:
    h = Harness()
    h.controller.start()

    h.controller.shutdown()

    assert h.controller.state == SessionState.IDLE
    assert h.source.on_result is None
    assert h.source.on_error is None
    assert h.source.on_end is None
