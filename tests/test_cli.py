import logging

import pytest

from survey_csv.cli import main
from survey_csv.config import load_settings
from survey_csv.models import SurveyRecord
from survey_csv.rules import CSV_HEADER
from survey_csv.storage import FileStore, SurveyStorage


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("SURVEY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SURVEY_ADMIN_PASSWORD", "pw123")
    storage = SurveyStorage(FileStore(tmp_path / "data"))
    storage.append(SurveyRecord(name="王小明", phone="0912345678", region="台北市", occupation="藥師", timestamp="t1"))
    storage.append(SurveyRecord(name="Amy", phone="0223456789", region="台北市", occupation="其他", timestamp="t2"))
    return tmp_path


def test_load_settings_from_environment():
    settings = load_settings({
        "SURVEY_DATA_DIR": "/srv/survey",
        "SURVEY_ALLOWED_ORIGINS": "https://a.example, https://b.example",
        "SURVEY_LOG_LEVEL": "debug",
    })
    assert str(settings.data_dir) == "/srv/survey"
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.log_level == "DEBUG"
    assert settings.admin_password == "3939889"


def test_stats_command(data_dir, capsys):
    assert main(["stats"]) == 0
    out = capsys.readouterr().out
    assert "總回覆數: 2" in out
    assert "台北市: 2" in out
    assert "藥師: 1" in out


def test_export_command(data_dir, capsys):
    out_path = data_dir / "export.csv"
    assert main(["export", "--password", "pw123", "--output", str(out_path)]) == 0

    raw = out_path.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    lines = raw.decode("utf-8-sig").split("\n")
    assert lines[0] == CSV_HEADER
    assert len(lines) == 3


def test_export_command_wrong_password(data_dir, capsys):
    out_path = data_dir / "export.csv"
    assert main(["export", "--password", "nope", "--output", str(out_path)]) == 1
    assert not out_path.exists()
    assert "密碼錯誤" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "usage" in capsys.readouterr().out


def test_serve_command_logs_banner(monkeypatch, caplog):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    caplog.set_level(logging.INFO, logger="survey_csv.cli")

    assert main(["serve", "--port", "9001"]) == 0
    assert calls == [("survey_csv.main:app", {"host": "0.0.0.0", "port": 9001, "reload": False})]
    assert "Starting survey-csv API on 0.0.0.0:9001" in caplog.messages
