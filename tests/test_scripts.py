from app.services.workflow_bridge import BridgeResult, BridgeTrace
from conftest import ROOT
from scripts.verify_env_vars import find_env_vars, verify_environment
from scripts.workflow_cli import summarize


def test_summarize_reports_active_state():
    result = BridgeResult(200, {"id": 42, "name": "Daily email sender", "active": True}, BridgeTrace())
    assert summarize(result) == "Workflow Daily email sender is active"


def test_summarize_reports_failure():
    result = BridgeResult(502, {"error": "n8n API returned 500"}, BridgeTrace())
    assert summarize(result) == "FAILED (502): n8n API returned 500"


def test_find_env_vars_reads_settings_aliases(monkeypatch):
    monkeypatch.chdir(ROOT)
    env_vars = find_env_vars()
    for name in ("N8N_URL", "N8N_API_KEY", "N8N_WORKFLOW_ID", "N8N_DIALECT", "DATABASE_URL"):
        assert name in env_vars


def test_verify_environment_flags_missing_required(monkeypatch, capsys):
    monkeypatch.chdir(ROOT)
    monkeypatch.delenv("N8N_API_KEY", raising=False)
    assert verify_environment() is False
    assert "N8N_API_KEY" in capsys.readouterr().out
