import pytest

from panel_state import (
    PanelSession, SessionState, TerminationKind, classify_termination,
    SUCCESS_MARKER, CANCELLED_MARKER
)
from process_session import TerminationResult, SpawnError


@pytest.mark.parametrize("result, kind", [
    (TerminationResult(0, None), TerminationKind.COMPLETED),
    (TerminationResult(143, 15), TerminationKind.CANCELLED),
    (TerminationResult(None, 15), TerminationKind.CANCELLED),
    (TerminationResult(1, None), TerminationKind.FAILED),
    (TerminationResult(None, 9), TerminationKind.FAILED),
])
def test_classify_termination(result, kind):
    assert classify_termination(result)[0] is kind


def test_failure_message_carries_code_and_signal():
    _, message = classify_termination(TerminationResult(2, None))
    assert message == "Process terminated with exit code: 2 and signal code: None"


def test_successful_scan_scenario():
    state = PanelSession()
    state.begin("4242")
    assert state.loading
    assert not state.can_save

    state.append("host1 found")
    state.append("host2 found")
    kind = state.finish(TerminationResult(0, None))

    assert kind is TerminationKind.COMPLETED
    assert state.output == "\nhost1 found\nhost2 found\n\n" + SUCCESS_MARKER
    assert state.pid == ""
    assert not state.loading
    assert state.allow_save and state.can_save
    assert state.state is SessionState.COMPLETED


def test_cancelled_scenario_ends_with_cancel_marker():
    state = PanelSession()
    state.begin("99")
    state.append("partial")
    state.finish(TerminationResult(143, 15))

    assert state.output.endswith(CANCELLED_MARKER)
    assert "exit code" not in state.output
    assert state.state is SessionState.CANCELLED


def test_failed_run_still_enables_save():
    state = PanelSession()
    state.begin("7")
    state.finish(TerminationResult(1, None))
    assert state.state is SessionState.FAILED
    assert state.can_save


def test_spawn_failure_leaves_loading_without_enabling_save():
    state = PanelSession()
    state.begin("")
    state.fail_to_start(SpawnError("'nbtscan' command not found."))

    assert not state.loading
    assert "Error: 'nbtscan' command not found." in state.output
    assert not state.allow_save
    assert state.state is SessionState.IDLE


def test_output_accumulates_across_invocations():
    state = PanelSession()
    state.begin("1")
    state.append("a")
    state.finish(TerminationResult(0, None))
    state.begin("2")
    state.append("b")
    state.finish(TerminationResult(None, 15))

    assert state.output == "\na\n\n" + SUCCESS_MARKER + "\nb\n\n" + CANCELLED_MARKER


def test_new_invocation_disables_save_until_it_finishes():
    state = PanelSession()
    state.begin("1")
    state.finish(TerminationResult(0, None))
    state.mark_saved()
    state.begin("2")
    assert not state.allow_save
    assert not state.has_saved


def test_clear_resets_output_and_save_flags():
    state = PanelSession()
    state.begin("1")
    state.append("data")
    state.finish(TerminationResult(0, None))
    state.mark_saved()

    state.clear()
    assert state.output == ""
    assert not state.allow_save
    assert not state.has_saved
    assert state.state is SessionState.IDLE


def test_mark_saved():
    state = PanelSession()
    state.begin("1")
    state.finish(TerminationResult(0, None))
    state.mark_saved()
    assert state.has_saved
    assert not state.can_save


def test_save_never_allowed_while_loading():
    state = PanelSession()
    state.allow_save = True
    state.loading = True
    assert not state.can_save
