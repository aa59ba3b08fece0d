from unittest.mock import patch

from use_cases import bootstrap


def test_run_startup_init_happens_before_session_state() -> None:
    order = []
    bootstrap.session_manager.st.session_state.clear()

    with patch("use_cases.bootstrap.auth.init_auth_db", side_effect=lambda: order.append("init_auth_db")), patch(
        "use_cases.bootstrap.session_manager.init_session_state",
        side_effect=lambda: order.append("init_session_state"),
    ):
        result = bootstrap.run_startup()

    assert result.status == "CONTINUE"
    assert order == ["init_auth_db", "init_session_state"]
    assert result.planned_steps == ("init_auth_db", "init_session_state")


@patch("use_cases.bootstrap.auth.get_secret", return_value=None)
def test_run_startup_creates_schema(_mock_secret, monkeypatch, tmp_path) -> None:
    db = tmp_path / "boot.db"
    monkeypatch.setenv("SESSION_DB", str(db))
    bootstrap.session_manager.st.session_state.clear()

    result = bootstrap.run_startup()

    assert result.status == "CONTINUE"
    assert db.exists()
    assert bootstrap.auth.get_session_store().load() is None
    assert bootstrap.auth.get_audit_repo().get_logs() == []
