#!/usr/bin/env python3
"""
Tests for server-side failures, startup and shutdown of the application
"""

from fastapi.testclient import TestClient

from dyndnsd.core.exceptions import PersistenceException
from dyndnsd.main import create_app, main

from conftest import make_settings

ALICE = ("alice", "secret")
PARAMS = {"hostname": "home.example.com", "myip": "203.0.113.5"}


def failing_write(data):
    raise PersistenceException("No space left on device")


def test_persistence_failure_returns_911(client, monkeypatch):
    """Test that a failed save is reported and the server keeps serving"""
    daemon = client.app.state.daemon
    monkeypatch.setattr(daemon.db, "_write", failing_write)

    response = client.get("/nic/update", params=PARAMS, auth=ALICE)
    assert response.status_code == 500
    assert response.text == "911"
    assert daemon.serial == 1
    assert daemon.db.changed()

    monkeypatch.undo()
    response = client.get("/nic/update", params=PARAMS, auth=ALICE)
    assert response.status_code == 200
    assert daemon.serial == 2
    assert not daemon.db.changed()


def test_persistence_failure_rest_style(tmp_path, monkeypatch):
    client = TestClient(create_app(make_settings(tmp_path, RESPONDER="RestStyle")))
    monkeypatch.setattr(client.app.state.daemon.db, "_write", failing_write)

    response = client.get("/nic/update", params=PARAMS, auth=ALICE)
    assert response.status_code == 500
    assert response.text == "Internal Server Error"


def test_propagation_failure_still_succeeds(tmp_path):
    """Test that a failing reload command does not fail the update"""
    updater = {
        "name": "command_with_bind_zone",
        "params": {
            "zone_file": str(tmp_path / "example.com.zone"),
            "command": "false",
            "dns": "ns1.example.com.",
            "email_addr": "admin.example.com.",
        },
    }
    client = TestClient(create_app(make_settings(tmp_path, UPDATER=updater)))

    response = client.get("/nic/update", params=PARAMS, auth=ALICE)
    assert response.status_code == 200
    assert response.text == "good 203.0.113.5"
    assert "home IN A 203.0.113.5" in (tmp_path / "example.com.zone").read_text()


def test_unexpected_error_returns_911(client, monkeypatch):
    def explode(request):
        raise RuntimeError("boom")

    monkeypatch.setattr(client.app.state.daemon, "handle_update", explode)
    client = TestClient(client.app, raise_server_exceptions=False)

    response = client.get("/nic/update", params=PARAMS, auth=ALICE)
    assert response.status_code == 500
    assert response.text == "911"


def test_lifespan_writes_metrics(tmp_path):
    metrics_file = tmp_path / "dyndnsd.prom"
    app = create_app(make_settings(tmp_path, METRICS={"file": str(metrics_file), "prefix": "dyndnsd"}))

    with TestClient(app) as client:
        client.get("/nic/update", params=PARAMS, auth=("alice", "wrong"))

    assert "dyndnsd_requests_auth_failed_total 1" in metrics_file.read_text()


def test_sql_database_url(tmp_path):
    app = create_app(make_settings(tmp_path, DB=f"sqlite:///{tmp_path / 'dyndnsd.sqlite'}"))
    with TestClient(app) as client:
        assert client.get("/nic/update", params=PARAMS, auth=ALICE).text == "good 203.0.113.5"

    app = create_app(make_settings(tmp_path, DB=f"sqlite:///{tmp_path / 'dyndnsd.sqlite'}"))
    assert app.state.daemon.serial == 2
    assert app.state.daemon.hosts == {"home.example.com": ["203.0.113.5"]}


def test_main_with_missing_config(tmp_path, capsys):
    assert main([str(tmp_path / "missing.yaml")]) == 1
    captured = capsys.readouterr()
    assert "DynDNSd version" in captured.out
    assert "Config file not found" in captured.err
