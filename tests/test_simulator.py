"""Tests del simulador de dispositivos."""

import random
from unittest.mock import MagicMock

import pytest
import requests

from telemetry_jobs.simulator import (
    SimulatorConfig,
    build_simulators,
    classify_status,
    run,
    run_round,
)
from telemetry_jobs.simulator.cli import main
from telemetry_jobs.simulator.runner import ApiUnavailable, wait_for_api


def _cfg(**overrides):
    base = dict(
        api_url="http://api:8080/",
        devices=3,
        interval_seconds=7.0,
        health_retries=3,
        health_retry_seconds=0.5,
    )
    base.update(overrides)
    return SimulatorConfig(**base)


def _response(status_code):
    resp = MagicMock()
    resp.status_code = status_code
    return resp


class TestGenerator:
    def test_device_ids_and_distinct_bases(self):
        sims = build_simulators(8)

        assert [s.device_id for s in sims][:3] == ["device-001", "device-002", "device-003"]
        assert sims[-1].device_id == "device-008"
        assert len({(s.base_voltage, s.base_current, s.base_temp) for s in sims}) == 8

    def test_generated_values_stay_in_accepted_ranges(self):
        rng = random.Random(7)
        for sim in build_simulators(8):
            for _ in range(50):
                m = sim.generate_metric(rng)
                assert 100 <= m["voltage"] <= 240
                assert 0 <= m["current"] <= 100
                assert 0 <= m["temperature"] <= 100
                assert m["status"] in ("normal", "warning", "error")
                assert "timestamp" not in m

    def test_timestamp_is_passed_through(self):
        sim = build_simulators(1)[0]

        m = sim.generate_metric(random.Random(1), timestamp="2024-01-01T12:00:00Z")

        assert m["timestamp"] == "2024-01-01T12:00:00Z"

    def test_same_seed_same_readings(self):
        sim = build_simulators(1)[0]

        assert sim.generate_metric(random.Random(3)) == sim.generate_metric(random.Random(3))

    @pytest.mark.parametrize(
        "voltage,current,temperature,expected",
        [
            (220, 50, 50, "normal"),
            (108, 50, 50, "warning"),
            (232, 50, 50, "warning"),
            (220, 92, 50, "warning"),
            (220, 50, 85, "warning"),
            (104, 50, 50, "error"),
            (236, 50, 50, "error"),
            (220, 96, 50, "error"),
            (220, 50, 91, "error"),
        ],
    )
    def test_classify_status(self, voltage, current, temperature, expected):
        assert classify_status(voltage, current, temperature) == expected


class TestWaitForApi:
    def test_returns_once_healthy(self):
        session = MagicMock()
        session.get.side_effect = [requests.ConnectionError("refused"), _response(503), _response(200)]
        sleeps = []

        wait_for_api(session, _cfg(), sleep=sleeps.append)

        assert session.get.call_count == 3
        assert session.get.call_args.args[0] == "http://api:8080/health"
        assert sleeps == [0.5, 0.5]

    def test_gives_up_after_retries(self):
        session = MagicMock()
        session.get.return_value = _response(503)

        with pytest.raises(ApiUnavailable):
            wait_for_api(session, _cfg(health_retries=2), sleep=lambda s: None)

        assert session.get.call_count == 2


class TestRunRound:
    def test_posts_one_reading_per_device(self):
        session = MagicMock()
        session.post.return_value = _response(201)
        sims = build_simulators(3)

        sent = run_round(session, _cfg(), sims, random.Random(0))

        assert sent == 3
        urls = [c.args[0] for c in session.post.call_args_list]
        assert urls == [
            "http://api:8080/api/v1/devices/device-001/metrics",
            "http://api:8080/api/v1/devices/device-002/metrics",
            "http://api:8080/api/v1/devices/device-003/metrics",
        ]
        body = session.post.call_args.kwargs["json"]
        assert body["timestamp"].endswith("Z")

    def test_rejections_and_errors_are_not_counted(self):
        session = MagicMock()
        session.post.side_effect = [_response(201), _response(400), requests.Timeout("slow")]

        sent = run_round(session, _cfg(), build_simulators(3), random.Random(0))

        assert sent == 1


class TestRun:
    def test_once_sends_a_single_round(self):
        session = MagicMock()
        session.get.return_value = _response(200)
        session.post.return_value = _response(201)
        sleeps = []

        run(_cfg(once=True, seed=1), session=session, sleep=sleeps.append)

        assert session.post.call_count == 3
        assert sleeps == []

    def test_own_session_is_closed(self, monkeypatch):
        session = MagicMock()
        session.__enter__.return_value = session
        session.get.return_value = _response(200)
        session.post.return_value = _response(201)
        monkeypatch.setattr("telemetry_jobs.simulator.runner.requests.Session", lambda: session)

        run(_cfg(once=True), sleep=lambda s: None)

        assert session.post.call_count == 3
        session.__exit__.assert_called_once()

    def test_own_session_is_closed_on_failure(self, monkeypatch):
        session = MagicMock()
        session.__enter__.return_value = session
        session.get.return_value = _response(503)
        monkeypatch.setattr("telemetry_jobs.simulator.runner.requests.Session", lambda: session)

        with pytest.raises(ApiUnavailable):
            run(_cfg(once=True, health_retries=1), sleep=lambda s: None)

        session.__exit__.assert_called_once()

    def test_passed_session_is_left_open(self):
        session = MagicMock()
        session.get.return_value = _response(200)
        session.post.return_value = _response(201)

        run(_cfg(once=True), session=session, sleep=lambda s: None)

        session.__exit__.assert_not_called()
        session.close.assert_not_called()

    def test_sleeps_interval_between_rounds(self):
        session = MagicMock()
        session.get.return_value = _response(200)
        session.post.return_value = _response(201)

        class Stop(Exception):
            pass

        def sleep(seconds):
            assert seconds == 7.0
            raise Stop()

        with pytest.raises(Stop):
            run(_cfg(), session=session, sleep=sleep)

        assert session.post.call_count == 3


class TestCli:
    def test_unavailable_api_exits_1(self, monkeypatch):
        def fake_run(cfg):
            raise ApiUnavailable("down")

        monkeypatch.setattr("telemetry_jobs.simulator.cli.run", fake_run)

        assert main(["--api-url", "http://x", "--devices", "2", "--once"]) == 1

    def test_arguments_build_config(self, monkeypatch):
        seen = []
        monkeypatch.setattr("telemetry_jobs.simulator.cli.run", seen.append)

        assert main(["--api-url", "http://x", "--devices", "0", "--interval-seconds", "3", "--seed", "9"]) == 0

        cfg = seen[0]
        assert cfg.api_url == "http://x"
        assert cfg.devices == 1
        assert cfg.interval_seconds == 3.0
        assert cfg.seed == 9
        assert cfg.once is False
