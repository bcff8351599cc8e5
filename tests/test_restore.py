import pytest

from zellij_pane_mcp.errors import HostCommandError
from zellij_pane_mcp.focus import FocusTracker
from zellij_pane_mcp.navigator import Navigator
from zellij_pane_mcp.restore import FocusLease, get_focus_lock, restore_origin

from conftest import FakeZellij


def session_host():
    return FakeZellij([
        ("main", ["terminal_1", "terminal_2"]),
        ("shell", ["terminal_3", "terminal_4"]),
    ])


def parts(host):
    tracker = FocusTracker(host)
    return Navigator(host, tracker), tracker


def test_restore_is_free_when_already_on_origin():
    host = session_host()
    navigator, tracker = parts(host)
    assert restore_origin(navigator, tracker, "terminal_1", "main") is None
    assert [call[0] for call in host.calls] == ["list_clients"]


def test_restore_jumps_to_origin_tab():
    host = session_host()
    navigator, tracker = parts(host)
    host.focus("terminal_2")
    origin = "terminal_2"
    host.focus("terminal_4")
    assert restore_origin(navigator, tracker, origin, "main") is None
    assert host.focused == "terminal_2"
    assert ("go_to_tab_name", "main") in host.calls


def test_restore_without_tab_searches_everywhere():
    host = session_host()
    navigator, tracker = parts(host)
    host.focus("terminal_4")
    assert restore_origin(navigator, tracker, "terminal_1", None) is None
    assert host.focused == "terminal_1"


def test_restore_with_wrong_tab_falls_back():
    host = session_host()
    navigator, tracker = parts(host)
    host.focus("terminal_3")
    assert restore_origin(navigator, tracker, "terminal_2", "shell") is None
    assert host.focused == "terminal_2"


def test_restore_reports_closed_origin():
    host = session_host()
    navigator, tracker = parts(host)
    host.focus("terminal_3")
    host.close("terminal_1")
    warning = restore_origin(navigator, tracker, "terminal_1", "main")
    assert "terminal_1 no longer exists" in warning


def test_lease_restores_on_success():
    host = session_host()
    navigator, tracker = parts(host)
    host.focus("terminal_2")
    with FocusLease(navigator, tracker) as lease:
        assert lease.origin == "terminal_2"
        assert lease.origin_tab == "main"
        host.focus("terminal_4")
    assert host.focused == "terminal_2"
    assert lease.warnings == []


def test_lease_restores_when_body_raises():
    host = session_host()
    navigator, tracker = parts(host)
    with pytest.raises(HostCommandError):
        with FocusLease(navigator, tracker):
            host.focus("terminal_3")
            raise HostCommandError("dump failed")
    assert host.focused == "terminal_1"


def test_lease_releases_lock_and_records_restore_failure():
    host = session_host()
    navigator, tracker = parts(host)
    lease = FocusLease(navigator, tracker, session="lease-test")
    with lease:
        host.focus("terminal_3")
        host.fail_on.add("go_to_tab_name")
    assert any("Failed to restore focus" in w for w in lease.warnings)
    lock = get_focus_lock("lease-test")
    assert lock.acquire(blocking=False)
    lock.release()


def test_lease_releases_lock_when_origin_unknown():
    host = FakeZellij([("main", [])])
    navigator, tracker = parts(host)
    with pytest.raises(HostCommandError):
        with FocusLease(navigator, tracker, session="empty-test"):
            pass
    lock = get_focus_lock("empty-test")
    assert lock.acquire(blocking=False)
    lock.release()


def test_focus_locks_are_per_session():
    assert get_focus_lock("a") is get_focus_lock("a")
    assert get_focus_lock("a") is not get_focus_lock("b")
