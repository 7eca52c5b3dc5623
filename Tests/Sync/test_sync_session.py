# test_sync_session.py
#
# Imports
import pytest
#
# Local Imports
from tem_client.Sync.error_classifier import ClassifiedError, ErrorKind
from tem_client.Sync.exceptions import SyncProtocolError
from tem_client.Sync.sync_session import SyncCursor, SyncSession, SyncState, format_eta
#
########################################################################################################################
#
# Tests:

def test_begin_resets_cursor_progress_and_error():
    session = SyncSession()
    session.cursor.advance(500, 2000, token="T")
    session.loaded, session.total = 500, 2000
    session.fail(ClassifiedError(ErrorKind.NETWORK, "Network Failure", "down"))

    run_id = session.begin(now=100.0)

    assert run_id == 1
    assert session.state == SyncState.BOOTSTRAPPING
    assert session.loading is True
    assert session.error is None
    assert (session.cursor.token, session.cursor.offset, session.cursor.total) == (None, 0, 0)
    assert session.loaded == 0 and session.total == 0


def test_each_run_gets_a_new_token():
    session = SyncSession()
    first = session.begin(now=0.0)
    second = session.resume(now=1.0)
    assert second == first + 1
    assert session.is_current(second) and not session.is_current(first)


def test_fail_keeps_loading_and_cancel_clears_it():
    session = SyncSession()
    session.begin(now=0.0)
    session.fail(ClassifiedError(ErrorKind.TIMEOUT, "Connection Timeout", "slow"))
    assert session.state == SyncState.ERRORED
    assert session.loading is True
    assert session.status == "Connection Timeout: slow"

    session.cancel()
    assert session.state == SyncState.CANCELLED
    assert session.loading is False
    assert session.error is None


def test_cursor_never_moves_backwards():
    cursor = SyncCursor()
    cursor.advance(50, 120, token="T")
    cursor.advance(120, 120)
    assert cursor.token == "T"
    with pytest.raises(SyncProtocolError):
        cursor.advance(100, 120)
    assert cursor.offset == 120


def test_throughput_and_eta():
    session = SyncSession()
    session.begin(now=0.0)
    session.record_progress(50, 120)
    assert session.throughput(10.0) == pytest.approx(5.0)
    assert session.eta_seconds(10.0) == pytest.approx(14.0)


def test_eta_unknown_without_rate_or_total():
    session = SyncSession()
    session.begin(now=5.0)
    assert session.eta_seconds(5.0) is None
    session.record_progress(10, 0)
    assert session.eta_seconds(15.0) is None


def test_resume_measures_rate_from_resume_point():
    session = SyncSession()
    session.begin(now=0.0)
    session.record_progress(500, 2000)
    session.resume(now=100.0)
    session.record_progress(500, 2000)
    # 500 new records in 50 s, not 1000 in 150 s
    assert session.throughput(150.0) == pytest.approx(10.0)
    assert session.eta_seconds(150.0) == pytest.approx(100.0)


@pytest.mark.parametrize("seconds, text", [
    (None, "unknown"),
    (0, "0s"),
    (14.4, "14s"),
    (59.6, "1m 00s"),
    (125, "2m 05s"),
    (3600, "1h 00m"),
    (7384, "2h 03m"),
])
def test_format_eta(seconds, text):
    assert format_eta(seconds) == text

#
# End of test_sync_session.py
########################################################################################################################
