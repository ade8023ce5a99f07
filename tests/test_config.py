from __future__ import annotations

import sys
from pathlib import Path

import pytest

from charge_watch.config import BASE_DIR, Settings
from charge_watch.guard import BreakerState, PushCircuitBreaker, VehicleDataCircuitBreaker


ENV_VARS = [
    "TASKS_FILE_PATH",
    "WORKER_EXECUTABLE",
    "WORKER_SCRIPT",
    "WORKFLOW_NAME",
    "WORKFLOW_MODULES",
    "LOG_LEVEL",
    "HTTP_TIMEOUT_SECONDS",
    "VEHICLE_BREAKER_FAILURE_THRESHOLD",
    "VEHICLE_BREAKER_RESET_TIMEOUT_SECONDS",
    "PUSH_BREAKER_FAILURE_THRESHOLD",
    "PUSH_BREAKER_RESET_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults(tmp_path):
    settings = Settings.from_env()

    assert settings.tasks_file_path == tmp_path / "charge_tasks.json"
    assert settings.worker_executable == sys.executable
    assert settings.worker_script == BASE_DIR / "run_worker.py"
    assert settings.workflow_name == "charge_monitoring"
    assert settings.workflow_modules == []
    assert settings.vehicle_breaker.failure_threshold == 5
    assert settings.vehicle_breaker.reset_timeout == 60.0
    assert settings.push_breaker.failure_threshold == 3
    assert settings.push_breaker.reset_timeout == 30.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TASKS_FILE_PATH", "/var/lib/charge/tasks.json")
    monkeypatch.setenv("WORKFLOW_MODULES", "workflows.charge, workflows.range ,")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("VEHICLE_BREAKER_FAILURE_THRESHOLD", "8")
    monkeypatch.setenv("PUSH_BREAKER_RESET_TIMEOUT_SECONDS", "12.5")

    settings = Settings.from_env()

    assert settings.tasks_file_path == Path("/var/lib/charge/tasks.json")
    assert settings.workflow_modules == ["workflows.charge", "workflows.range"]
    assert settings.log_level == "DEBUG"
    assert settings.vehicle_breaker.failure_threshold == 8
    assert settings.push_breaker.reset_timeout == 12.5
    assert settings.push_breaker.failure_threshold == 3


@pytest.mark.parametrize(
    "name,value",
    [
        ("VEHICLE_BREAKER_FAILURE_THRESHOLD", "abc"),
        ("PUSH_BREAKER_FAILURE_THRESHOLD", "0"),
        ("HTTP_TIMEOUT_SECONDS", "soon"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        Settings.from_env()


def test_breaker_factories_use_configured_options(monkeypatch):
    monkeypatch.setenv("VEHICLE_BREAKER_FAILURE_THRESHOLD", "2")
    monkeypatch.setenv("PUSH_BREAKER_RESET_TIMEOUT_SECONDS", "7")
    settings = Settings.from_env()

    vehicle = settings.vehicle_data_breaker()
    push = settings.push_circuit_breaker()

    assert isinstance(vehicle, VehicleDataCircuitBreaker)
    assert isinstance(push, PushCircuitBreaker)
    assert vehicle.options.failure_threshold == 2
    assert vehicle.options.reset_timeout == 60.0
    assert push.options.reset_timeout == 7.0
    assert push.options.failure_threshold == 3
    assert vehicle.get_status()["state"] == BreakerState.CLOSED.value


def test_breaker_factories_return_independent_instances():
    settings = Settings()

    first = settings.vehicle_data_breaker()
    second = settings.vehicle_data_breaker()

    assert first is not second
    assert first.options is not settings.vehicle_breaker


def test_http_client_uses_configured_timeout(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "4.5")
    settings = Settings.from_env()
    breaker = settings.push_circuit_breaker()

    client = settings.http_client("https://push.example.com/", breaker)

    assert client.timeout == 4.5
    assert client.breaker is breaker
    assert client.base_url == "https://push.example.com"
