import pytest
from contractintel.utils.config import DEFAULT_REQUIRED_CLAUSE_TYPES, AppConfig, RiskScoringOptions

ENV_KEYS = [
    "DATABASE_URL", "STORAGE_ROOT", "LOG_LEVEL",
    "RISK_MISSING_REQUIRED_CLAUSE_WEIGHT", "RISK_AUTO_RENEW_SHORT_NOTICE_WEIGHT",
    "RISK_SHORT_NOTICE_DAYS", "RISK_REQUIRED_CLAUSE_TYPES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    options = RiskScoringOptions.from_env()
    assert options == RiskScoringOptions()
    assert options.required_clause_types == DEFAULT_REQUIRED_CLAUSE_TYPES
    config = AppConfig.from_env()
    assert config.database_url == "sqlite:///contractintel.db"
    assert config.storage_root == "storage"
    assert config.log_level == "INFO"


def test_risk_options_from_env(monkeypatch):
    monkeypatch.setenv("RISK_MISSING_REQUIRED_CLAUSE_WEIGHT", "10")
    monkeypatch.setenv("RISK_AUTO_RENEW_SHORT_NOTICE_WEIGHT", "40")
    monkeypatch.setenv("RISK_SHORT_NOTICE_DAYS", "60")
    monkeypatch.setenv("RISK_REQUIRED_CLAUSE_TYPES", " Renewal, governing_law ,, ")
    options = RiskScoringOptions.from_env()
    assert options.missing_required_clause_weight == 10
    assert options.auto_renew_short_notice_weight == 40
    assert options.short_notice_days == 60
    assert options.required_clause_types == ("renewal", "governing_law")


def test_app_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'x.db'}")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "files"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("RISK_SHORT_NOTICE_DAYS", "14")
    config = AppConfig.from_env()
    assert config.database_url.endswith("x.db")
    assert config.storage_root == str(tmp_path / "files")
    assert config.log_level == "DEBUG"
    assert config.risk.short_notice_days == 14
