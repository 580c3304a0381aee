import io

import pytest

from stockledger.app import Application, main
from stockledger.database import DatabaseError


@pytest.fixture
def app(tmp_path):
    application = Application(str(tmp_path / "app.db"))
    yield application
    application.close()


def test_signup_links_dashboard_and_models(app):
    password = "password"
    user_id = app.users.signup("alice", password, "alice@example.com")
    assert app.dashboard.user_id == user_id
    assert app.inventory.user_id == user_id
    assert app.sales.user_id == user_id


def test_logout_clears_dashboard(app):
    password = "password"
    app.users.signup("alice", password, "alice@example.com")
    app.users.logout()
    assert app.dashboard.user_id is None
    assert app.users.is_logged_in is False


def test_login_after_logout_restores_user(app):
    password = "password"
    user_id = app.users.signup("alice", password, "alice@example.com")
    app.users.logout()
    assert app.users.login("alice", password) == user_id
    assert app.dashboard.user_id == user_id


def test_close_closes_database(tmp_path):
    application = Application(str(tmp_path / "app.db"))
    application.close()
    assert application.db.is_open is False


def test_unopenable_database_raises(tmp_path):
    with pytest.raises(DatabaseError):
        Application(str(tmp_path / "missing" / "app.db"))


def _run(monkeypatch, tmp_path, commands):
    monkeypatch.setattr("sys.stdin", io.StringIO(commands))
    return main(["--database", str(tmp_path / "cli.db")])


def test_main_session(monkeypatch, tmp_path, capsys):
    password = "password"
    commands = (
        f"signup alice {password} alice@example.com\n"
        "add Widget Tools 3 2.5\n"
        "items\n"
        "dashboard\n"
        "quit\n"
    )
    assert _run(monkeypatch, tmp_path, commands) == 0
    out = capsys.readouterr().out
    assert "Logged in as alice" in out
    assert "Widget" in out
    assert "Total inventory items: 1" in out
    assert "Low stock items: 1" in out


def test_main_reports_missing_user(monkeypatch, tmp_path, capsys):
    assert _run(monkeypatch, tmp_path, "sell 1 1 1.0\n") == 0
    assert "Error: User not set. Unable to add sale." in capsys.readouterr().out


def test_main_reports_bad_login(monkeypatch, tmp_path, capsys):
    password = "password"
    assert _run(monkeypatch, tmp_path, f"login nobody {password}\n") == 0
    assert "Error: Invalid username or password" in capsys.readouterr().out


def test_main_bad_database_returns_failure(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    assert main(["--database", str(tmp_path / "missing" / "cli.db")]) == 1
    assert "Failed to initialize database" in capsys.readouterr().err