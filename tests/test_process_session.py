import sys
import subprocess

import pytest

import process_session
from process_session import (
    InvocationRequest, TerminationResult, SpawnError, SessionBusyError,
    build_command, cancel_process
)

PYTHON = sys.executable
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX signals")

SLEEPER = ["-c", "import time; time.sleep(30)"]


def python_request(script):
    return InvocationRequest(PYTHON, ["-u", "-c", script])


def run_to_completion(qtbot, session, request):
    events = []
    pid = session.start(request, lambda chunk: events.append(("data", chunk)), lambda result: events.append(("end", result)))
    qtbot.waitUntil(lambda: any(kind == "end" for kind, _ in events), timeout=10000)
    return pid, events


def test_request_requires_executable():
    with pytest.raises(ValueError):
        InvocationRequest("")


def test_request_arguments_are_immutable_strings():
    request = InvocationRequest("nbtscan", ["-t", 1000])
    assert request.arguments == ("-t", "1000")


def test_build_command_plain():
    request = InvocationRequest("nbtscan", ["192.168.1.0/24"])
    assert build_command(request) == ["nbtscan", "192.168.1.0/24"]


def test_build_command_elevated(monkeypatch):
    monkeypatch.setattr(process_session, "_running_as_root", lambda: False)
    request = InvocationRequest("rtgen", ["md5", "numeric"], privilege_elevation=True)
    assert build_command(request) == ["pkexec", "rtgen", "md5", "numeric"]
    assert build_command(request, elevation_command="sudo")[0] == "sudo"


def test_build_command_elevated_as_root_runs_directly(monkeypatch):
    monkeypatch.setattr(process_session, "_running_as_root", lambda: True)
    request = InvocationRequest("rtgen", ["md5"], privilege_elevation=True)
    assert build_command(request) == ["rtgen", "md5"]


@pytest.mark.parametrize("returncode, elevated, expected", [
    (0, False, TerminationResult(0, None)),
    (2, False, TerminationResult(2, None)),
    (-15, False, TerminationResult(None, 15)),
    (-9, True, TerminationResult(None, 9)),
    (143, True, TerminationResult(143, 15)),
    (143, False, TerminationResult(143, None)),
    (127, True, TerminationResult(127, None)),
])
def test_termination_from_returncode(returncode, elevated, expected):
    assert TerminationResult.from_returncode(returncode, elevated) == expected


def test_successful_run_delivers_output_then_termination(qtbot, session):
    pid, events = run_to_completion(qtbot, session, python_request("print('host1 found'); print('host2 found')"))

    assert pid.isdigit()
    assert events == [
        ("data", "host1 found"),
        ("data", "host2 found"),
        ("end", TerminationResult(0, None)),
    ]
    assert not session.is_running
    assert session.handle == ""


def test_termination_is_reported_exactly_once(qtbot, session):
    _, events = run_to_completion(qtbot, session, python_request("print('done')"))
    qtbot.wait(300)
    assert [kind for kind, _ in events].count("end") == 1


def test_stderr_is_merged_into_output(qtbot, session):
    _, events = run_to_completion(qtbot, session, python_request("import sys; sys.stderr.write('oops\\n')"))
    assert ("data", "oops") in events


def test_nonzero_exit_is_reported_as_data(qtbot, session):
    _, events = run_to_completion(qtbot, session, python_request("import sys; sys.exit(3)"))
    assert events[-1] == ("end", TerminationResult(3, None))


def test_start_returns_before_process_completes(qtbot, session):
    results = []
    pid = session.start(InvocationRequest(PYTHON, SLEEPER), lambda chunk: None, results.append)
    assert pid == session.handle
    assert session.is_running
    assert results == []
    session.cancel(pid)
    qtbot.waitUntil(lambda: bool(results), timeout=10000)


@posix_only
def test_cancel_reports_sigterm(qtbot, session):
    results = []
    pid = session.start(InvocationRequest(PYTHON, SLEEPER), lambda chunk: None, results.append)
    session.cancel(pid)
    assert results == []

    qtbot.waitUntil(lambda: bool(results), timeout=10000)
    assert results == [TerminationResult(None, 15)]


def test_second_start_while_running_is_rejected(qtbot, session):
    results = []
    pid = session.start(InvocationRequest(PYTHON, SLEEPER), lambda chunk: None, results.append)
    with pytest.raises(SessionBusyError):
        session.start(python_request("print('x')"), lambda chunk: None, lambda result: None)
    assert session.handle == pid

    session.cancel()
    qtbot.waitUntil(lambda: bool(results), timeout=10000)
    assert len(results) == 1


def test_session_can_be_reused_after_termination(qtbot, session):
    _, first = run_to_completion(qtbot, session, python_request("print('one')"))
    _, second = run_to_completion(qtbot, session, python_request("print('two')"))
    assert first[0] == ("data", "one")
    assert second[0] == ("data", "two")


def test_spawn_failure_raises_without_termination(qtbot, session):
    events = []
    with pytest.raises(SpawnError) as excinfo:
        session.start(InvocationRequest("definitely-not-a-real-tool-xyz"), events.append, events.append)

    assert "definitely-not-a-real-tool-xyz" in str(excinfo.value)
    assert not session.is_running
    qtbot.wait(200)
    assert events == []


def test_cancel_stale_handles_is_silent():
    finished = subprocess.Popen([PYTHON, "-c", "pass"])
    finished.wait()

    cancel_process("")
    cancel_process(None)
    cancel_process("not-a-pid")
    cancel_process("-1")
    cancel_process("0")
    cancel_process(str(finished.pid))


def test_cancel_without_active_run_fires_no_callback(qtbot, session):
    session.cancel()
    qtbot.wait(100)
    assert not session.is_running


def test_idle_session_ignores_foreign_handle(qtbot, session):
    other = subprocess.Popen([PYTHON, *SLEEPER])
    try:
        session.cancel(str(other.pid))
        qtbot.wait(300)
        assert other.poll() is None
    finally:
        other.kill()
        other.wait()


def test_running_session_ignores_handle_of_another_process(qtbot, session):
    results = []
    other = subprocess.Popen([PYTHON, *SLEEPER])
    try:
        pid = session.start(InvocationRequest(PYTHON, SLEEPER), lambda chunk: None, results.append)
        session.cancel(str(other.pid))
        qtbot.wait(300)
        assert other.poll() is None
        assert session.handle == pid
        assert results == []

        session.cancel(pid)
        qtbot.waitUntil(lambda: bool(results), timeout=10000)
        assert other.poll() is None
    finally:
        other.kill()
        other.wait()


def test_cancel_after_termination_is_ignored(qtbot, session):
    pid, _ = run_to_completion(qtbot, session, python_request("print('done')"))
    session.cancel(pid)
    qtbot.wait(100)
    assert not session.is_running
