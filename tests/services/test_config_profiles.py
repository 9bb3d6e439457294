from __future__ import annotations

from pathlib import Path

import pytest

from cinebill.config import load_column_config
from cinebill.core.errors import ConfigError
from cinebill.core.profiles import DEFAULT_ISSUER, get_profile, load_profiles, load_settings


def test_bundled_column_config() -> None:
    config = load_column_config()

    assert "In_no" in config.columns["invoice_number"]
    assert config.contains["total_collection"] == "total collec"
    assert config.required == ["client_name"]
    assert config.day_group_regex.match("23-05 show")


def test_column_config_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_column_config(tmp_path / "missing.yaml")

    bad = tmp_path / "columns.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_column_config(bad)

    bad.write_text("day_group_pattern: '([unclosed'\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_column_config(bad)


def test_bundled_settings_and_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CINEBILL_LEDGER_YEAR", raising=False)

    settings = load_settings()
    profile = get_profile()

    assert settings.default_profile == "first_film_studios"
    assert settings.ledger_year == 2025
    assert settings.parameters["gst_rate"] == 18
    assert settings.store["base_url"] == "http://localhost:5000"
    assert profile.firm_name == DEFAULT_ISSUER.firm_name
    assert profile.bank_account == "50200099601176"
    assert profile.logo_path is None


def test_ledger_year_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CINEBILL_LEDGER_YEAR", "2026")
    assert load_settings().ledger_year == 2026

    monkeypatch.setenv("CINEBILL_LEDGER_YEAR", "next")
    with pytest.raises(ConfigError):
        load_settings()


def test_custom_profile_file(tmp_path: Path) -> None:
    cfg = tmp_path / "profiles.yaml"
    cfg.write_text(
        "default_profile: other\n"
        "profiles:\n"
        "  other:\n"
        "    firm_name: OTHER PICTURES LLP\n"
        "    bank:\n"
        "      account_no: 12345\n",
        encoding="utf-8",
    )

    profiles = load_profiles(cfg)
    other = get_profile(None, cfg)

    assert list(profiles) == ["other"]
    assert other.firm_name == "OTHER PICTURES LLP"
    assert other.signatory == "For OTHER PICTURES LLP"
    assert other.bank_account == "12345"
    assert other.bank_ifsc == DEFAULT_ISSUER.bank_ifsc
    with pytest.raises(ConfigError):
        get_profile("missing", cfg)


def test_missing_profiles_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")


def test_logger_writes_under_work_dir(_isolated_work_dir: Path) -> None:
    from cinebill.core.logger import get_logger

    logger = get_logger()
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert get_logger() is logger
    assert "hello" in (_isolated_work_dir / "logs" / "cinebill.log").read_text(encoding="utf-8")
