import pytest
from models.receipt_counter_store import generate_receipt_no
from tests.utils import utc


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


@pytest.mark.db
def test_readyz_talks_to_db(client):
    r = client.get("/readyz")
    assert r.status_code == 200
    assert r.get_json()["status"] == "ok"


def test_display_tz_config(app):
    assert app.config["DISPLAY_TZ"] == "Asia/Jakarta"


@pytest.mark.db
def test_cli_preview_receipt(app):
    runner = app.test_cli_runner()
    res = runner.invoke(args=["preview-receipt", "--at", "2025-01-31T17:30:00Z", "--type", "INT"])
    assert res.exit_code == 0, res.output
    assert res.output.strip() == "WITT.22.2025.02.0001"

    generate_receipt_no(utc(2025, 2, 3), "INT")
    res = runner.invoke(args=["preview-receipt", "--at", "2025-02-03T00:00:00Z", "--type", "INT"])
    assert res.output.strip() == "WITT.22.2025.02.0002"


def test_cli_preview_rejects_garbage(app):
    res = app.test_cli_runner().invoke(args=["preview-receipt", "--at", "not-a-date"])
    assert res.exit_code != 0


@pytest.mark.db
def test_cli_init_db(app):
    res = app.test_cli_runner().invoke(args=["init-db"])
    assert res.exit_code == 0
    assert "schema ready" in res.output
