"""Unit tests for GpsdPositionSource."""

import asyncio
import subprocess
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from locwatch.actions import TriggerMeta
from locwatch.location.coordinator import LocationWatchCoordinator
from locwatch.location.errors import PositionErrorCode, PositionSourceError
from locwatch.location.gpsd_position_source import GpsdPositionSource
from locwatch.location.position import normalize_position
from locwatch.location.position_source import PositionOptions
from tests.utils import RecordingErrorLogger, RecordingExecutor

GPSD_OUTPUT = (
    '{"class":"VERSION"}\n'
    '{"class":"TPV","mode":3,"time":"2024-05-01T12:00:00.000Z","lat":40.123,"lon":-74.456,'
    '"alt":50.0,"eph":5.0,"epv":7.5,"track":181.2,"speed":0.4}\n'
    '{"class":"SKY","uSat":10}\n'
)

BAD_TIME_OUTPUT = '{"class":"TPV","lat":1.0,"lon":2.0,"time":"not-a-time"}\n'


def gpspipe_result(stdout=GPSD_OUTPUT, returncode=0):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    return result


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def test_parse_tpv_maps_fields():
    raw = GpsdPositionSource.parse_gpspipe_output(GPSD_OUTPUT)
    assert raw["coords"]["latitude"] == pytest.approx(40.123)
    assert raw["coords"]["longitude"] == pytest.approx(-74.456)
    assert raw["coords"]["altitude"] == pytest.approx(50.0)
    assert raw["coords"]["accuracy"] == pytest.approx(5.0)
    assert raw["coords"]["altitudeAccuracy"] == pytest.approx(7.5)
    assert raw["coords"]["heading"] == pytest.approx(181.2)
    assert raw["coords"]["speed"] == pytest.approx(0.4)
    assert raw["timestamp"] == 1714564800000


def test_parse_uses_last_tpv_and_alt_hae_fallback():
    output = (
        '{"class":"TPV","lat":1.0,"lon":2.0,"time":"2024-05-01T12:00:00Z"}\n'
        "not json\n"
        '{"class":"TPV","lat":3.0,"lon":4.0,"altHAE":99.0,"time":"2024-05-01T12:00:01Z"}\n'
    )
    raw = GpsdPositionSource.parse_gpspipe_output(output)
    assert raw["coords"]["latitude"] == 3.0
    assert raw["coords"]["altitude"] == 99.0
    assert raw["coords"]["speed"] is None


def test_parse_without_position_returns_none():
    assert GpsdPositionSource.parse_gpspipe_output('{"class":"TPV","mode":1}\n') is None
    assert GpsdPositionSource.parse_gpspipe_output("") is None


def test_parse_skips_non_object_json_lines():
    output = "[1, 2]\n5\n\"TPV\"\n" + GPSD_OUTPUT
    raw = GpsdPositionSource.parse_gpspipe_output(output)
    assert raw["coords"]["latitude"] == pytest.approx(40.123)


def test_parse_skips_tpv_with_bad_time():
    output = (
        '{"class":"TPV","lat":1.0,"lon":2.0,"time":"2024-05-01T12:00:00Z"}\n'
        '{"class":"TPV","lat":3.0,"lon":4.0,"time":"not-a-time"}\n'
        '{"class":"TPV","lat":5.0,"lon":6.0,"time":12345}\n'
    )
    raw = GpsdPositionSource.parse_gpspipe_output(output)
    assert raw["coords"]["latitude"] == 1.0
    assert raw["timestamp"] == 1714564800000


def test_parse_only_bad_times_returns_none():
    assert GpsdPositionSource.parse_gpspipe_output(BAD_TIME_OUTPUT) is None


def test_parsed_output_normalizes():
    position = normalize_position(GpsdPositionSource.parse_gpspipe_output(GPSD_OUTPUT))
    assert position.coords.heading == pytest.approx(181.2)


# ---------------------------------------------------------------------------
# read_position
# ---------------------------------------------------------------------------


def test_is_available_false():
    with patch("subprocess.run", side_effect=FileNotFoundError):
        assert GpsdPositionSource().is_available() is False


def test_is_available_true():
    with patch("subprocess.run", return_value=gpspipe_result()):
        assert GpsdPositionSource().is_available() is True


def test_read_position_passes_timeout_and_count():
    source = GpsdPositionSource(message_count=4)
    with patch("subprocess.run", return_value=gpspipe_result()) as run:
        source.read_position(PositionOptions(timeout_ms=2500))
    args, kwargs = run.call_args
    assert args[0] == ["gpspipe", "-w", "-n", "4"]
    assert kwargs["timeout"] == pytest.approx(2.5)


def test_read_position_timeout():
    with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("gpspipe", 1)):
        with pytest.raises(PositionSourceError) as exc_info:
            GpsdPositionSource().read_position(PositionOptions())
    assert exc_info.value.code is PositionErrorCode.TIMEOUT


def test_read_position_missing_gpspipe():
    with patch("subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(PositionSourceError) as exc_info:
            GpsdPositionSource().read_position(PositionOptions())
    assert exc_info.value.code is PositionErrorCode.POSITION_UNAVAILABLE


def test_read_position_nonzero_exit():
    with patch("subprocess.run", return_value=gpspipe_result(returncode=1)):
        with pytest.raises(PositionSourceError):
            GpsdPositionSource().read_position(PositionOptions())


def test_read_position_no_fix():
    with patch("subprocess.run", return_value=gpspipe_result(stdout='{"class":"VERSION"}\n')):
        with pytest.raises(PositionSourceError, match="fix unavailable"):
            GpsdPositionSource().read_position(PositionOptions())


def test_read_position_undecodable_output():
    with patch("subprocess.run", side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")):
        with pytest.raises(PositionSourceError) as exc_info:
            GpsdPositionSource().read_position(PositionOptions())
    assert exc_info.value.code is PositionErrorCode.POSITION_UNAVAILABLE


# ---------------------------------------------------------------------------
# Callback API
# ---------------------------------------------------------------------------


def test_fetch_once_invokes_success_callback():
    source = GpsdPositionSource()
    done = threading.Event()
    results = []

    def on_success(raw):
        results.append(raw)
        done.set()

    with patch("subprocess.run", return_value=gpspipe_result()):
        source.fetch_once(PositionOptions(), on_success, MagicMock())
        assert done.wait(timeout=2.0)
    assert results[0]["coords"]["latitude"] == pytest.approx(40.123)


def test_fetch_once_invokes_error_callback():
    source = GpsdPositionSource()
    done = threading.Event()
    errors = []

    def on_error(error):
        errors.append(error)
        done.set()

    with patch("subprocess.run", side_effect=FileNotFoundError):
        source.fetch_once(PositionOptions(), MagicMock(), on_error)
        assert done.wait(timeout=2.0)
    assert errors[0].code is PositionErrorCode.POSITION_UNAVAILABLE


def test_subscribe_reports_fix_then_unsubscribe_stops_thread():
    source = GpsdPositionSource(poll_interval_seconds=0.01)
    received = threading.Event()
    on_success = MagicMock(side_effect=lambda raw: received.set())

    with patch("subprocess.run", return_value=gpspipe_result()):
        handle = source.subscribe(PositionOptions(), on_success, MagicMock())
        assert received.wait(timeout=2.0)
        thread = source._subscriptions[handle].thread
        source.unsubscribe(handle)
        source.close()

    assert not thread.is_alive()
    # The same gpsd fix is only reported once
    assert on_success.call_count == 1


def test_subscribe_reports_errors():
    source = GpsdPositionSource(poll_interval_seconds=0.01)
    failed = threading.Event()
    on_error = MagicMock(side_effect=lambda error: failed.set())

    with patch("subprocess.run", side_effect=FileNotFoundError):
        handle = source.subscribe(PositionOptions(), MagicMock(), on_error)
        assert failed.wait(timeout=2.0)
        source.close()

    assert handle not in source._subscriptions
    assert isinstance(on_error.call_args.args[0], PositionSourceError)


def test_unsubscribe_unknown_handle_is_ignored():
    GpsdPositionSource().unsubscribe(12345)


def test_fetch_once_reports_unexpected_failure_as_error():
    source = GpsdPositionSource()
    done = threading.Event()
    errors = []

    def on_error(error):
        errors.append(error)
        done.set()

    with patch.object(GpsdPositionSource, "parse_gpspipe_output", side_effect=RuntimeError("boom")):
        with patch("subprocess.run", return_value=gpspipe_result()):
            source.fetch_once(PositionOptions(), MagicMock(), on_error)
            assert done.wait(timeout=2.0)
    assert errors[0].code is PositionErrorCode.POSITION_UNAVAILABLE
    assert "boom" in errors[0].message


def test_watch_keeps_polling_after_unexpected_failure():
    source = GpsdPositionSource(poll_interval_seconds=0.01)
    received = threading.Event()
    on_success = MagicMock(side_effect=lambda raw: received.set())
    on_error = MagicMock()

    with patch("subprocess.run", side_effect=[RuntimeError("boom"), gpspipe_result()] + [gpspipe_result()] * 500):
        source.subscribe(PositionOptions(), on_success, on_error)
        assert received.wait(timeout=2.0)
        source.close()

    assert on_error.call_args_list[0].args[0].code is PositionErrorCode.POSITION_UNAVAILABLE


def test_unsubscribe_does_not_wait_for_inflight_read():
    source = GpsdPositionSource(poll_interval_seconds=0.01)
    in_flight = threading.Event()
    release = threading.Event()

    def slow_run(*args, **kwargs):
        in_flight.set()
        release.wait(timeout=2.0)
        return gpspipe_result()

    with patch("subprocess.run", side_effect=slow_run):
        handle = source.subscribe(PositionOptions(), MagicMock(), MagicMock())
        assert in_flight.wait(timeout=2.0)
        thread = source._subscriptions[handle].thread
        started = time.monotonic()
        source.unsubscribe(handle)
        assert time.monotonic() - started < 0.5
        assert thread.is_alive()
        release.set()
        source.close()

    assert not thread.is_alive()


# ---------------------------------------------------------------------------
# With the coordinator
# ---------------------------------------------------------------------------

META = TriggerMeta(source="Button1", trigger_property_name="onClick")


def test_coordinator_fetch_with_bad_gpsd_time_returns_none():
    error_logger = RecordingErrorLogger()
    coordinator = LocationWatchCoordinator(GpsdPositionSource(), RecordingExecutor(), error_logger=error_logger)

    with patch("subprocess.run", return_value=gpspipe_result(stdout=BAD_TIME_OUTPUT)):
        position = asyncio.run(asyncio.wait_for(coordinator.fetch_once(trigger_meta=META), timeout=2.0))

    assert position is None
    assert error_logger.calls == [("GPS fix unavailable", "Button1", "onClick")]


def test_coordinator_fetch_with_undecodable_gpsd_output_returns_none():
    error_logger = RecordingErrorLogger()
    coordinator = LocationWatchCoordinator(GpsdPositionSource(), RecordingExecutor(), error_logger=error_logger)

    with patch("subprocess.run", side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")):
        position = asyncio.run(asyncio.wait_for(coordinator.fetch_once(trigger_meta=META), timeout=2.0))

    assert position is None
    assert len(error_logger.calls) == 1


def test_coordinator_stop_watch_returns_while_gpsd_read_in_flight():
    source = GpsdPositionSource(poll_interval_seconds=0.01)
    coordinator = LocationWatchCoordinator(source, RecordingExecutor(), error_logger=RecordingErrorLogger())
    in_flight = threading.Event()

    def slow_run(*args, **kwargs):
        in_flight.set()
        time.sleep(1.0)
        return gpspipe_result()

    async def scenario():
        assert coordinator.start_watch(trigger_meta=META)
        assert await asyncio.to_thread(in_flight.wait, 2.0)
        started = time.monotonic()
        assert coordinator.stop_watch(META)
        elapsed = time.monotonic() - started
        await asyncio.wait_for(coordinator.join(), timeout=0.5)
        return elapsed

    with patch("subprocess.run", side_effect=slow_run):
        elapsed = asyncio.run(scenario())
        source.close()

    assert elapsed < 0.5
