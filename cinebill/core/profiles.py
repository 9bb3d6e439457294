from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

DEFAULT_LEDGER_YEAR = 2025
LEDGER_YEAR_ENV = "CINEBILL_LEDGER_YEAR"


@dataclass(frozen=True)
class IssuerProfile:
    """Identity of the firm issuing invoices.

    Attributes:
        name: Profile key.
        firm_name: Legal name printed in the header and signature block.
        address_lines: Postal address, one printed line per entry.
        email: Contact email printed in the header.
        gst: GSTIN of the issuing firm.
        pan: PAN of the issuing firm.
        reg_no: LLP registration number.
        bank_name: Bank printed in the payment terms.
        bank_account: Account number printed in the payment terms.
        bank_ifsc: IFSC code printed in the payment terms.
        bank_branch: Branch printed in the payment terms.
        jurisdiction: City whose courts govern disputes.
        payment_due_days: Days allowed before interest applies.
        late_interest: Interest rate text for delayed payment.
        logo_path: Optional header logo image.
        stamp_path: Optional stamp overlay image.
        signature_path: Optional signature overlay image.
    """

    name: str
    firm_name: str
    address_lines: tuple[str, ...]
    email: str
    gst: str
    pan: str
    reg_no: str
    bank_name: str
    bank_account: str
    bank_ifsc: str
    bank_branch: str
    jurisdiction: str
    payment_due_days: int = 14
    late_interest: str = "18% pa."
    logo_path: str | None = None
    stamp_path: str | None = None
    signature_path: str | None = None

    @property
    def signatory(self) -> str:
        return f"For {self.firm_name}"


DEFAULT_ISSUER = IssuerProfile(
    name="first_film_studios",
    firm_name="FIRST FILM STUDIOS LLP",
    address_lines=(
        "26-104, RIDDHI SIDHI, CHS, CSR COMPLEX, OLD MHADA,",
        "KANDIVALI WEST, MUMBAI - 400067, MAHARASHTRA",
    ),
    email="info@firstfilmstudios.com",
    gst="27AAJFF7915J1Z1",
    pan="AAJFF7915J",
    reg_no="ACH-2259",
    bank_name="HDFC BANK LIMITED",
    bank_account="50200099601176",
    bank_ifsc="HDFC0000543",
    bank_branch="AHURA CENTRE, ANDHERI WEST",
    jurisdiction="Mumbai",
)


@dataclass
class AppSettings:
    """Runtime settings read from profiles.yaml next to the issuer profiles."""

    default_profile: str
    ledger_year: int
    parameters: Dict[str, Any] = field(default_factory=dict)
    store: Dict[str, Any] = field(default_factory=dict)


def _project_root() -> Path:
    env = os.getenv("CINEBILL_ROOT")
    if env:
        return Path(env)
    # In source layout, this file is under <root>/cinebill/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


def _work_dir() -> Path:
    return _project_root() / "cinebill" / "work"


def ensure_work_dirs() -> dict[str, Path]:
    base = _work_dir()
    inbox = base / "inbox"
    out = base / "out"
    tmp = base / "tmp"
    logs = base / "logs"
    for p in (inbox, out, tmp, logs):
        p.mkdir(parents=True, exist_ok=True)
    return {"inbox": inbox, "out": out, "tmp": tmp, "logs": logs}


def _read_profiles_file(path: str | Path | None) -> dict[str, Any]:
    cfg_path = Path(path) if path else _config_dir() / "profiles.yaml"
    if not cfg_path.exists():
        raise ConfigError(f"profiles.yaml not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("profiles.yaml must contain a mapping")
    return data


def _build_profile(key: str, p: Dict[str, Any]) -> IssuerProfile:
    bank = p.get("bank") or {}
    assets = p.get("assets") or {}
    base = DEFAULT_ISSUER
    return IssuerProfile(
        name=key,
        firm_name=p.get("firm_name", base.firm_name),
        address_lines=tuple(p.get("address_lines") or base.address_lines),
        email=p.get("email", base.email),
        gst=p.get("gst", base.gst),
        pan=p.get("pan", base.pan),
        reg_no=str(p.get("reg_no", base.reg_no)),
        bank_name=bank.get("name", base.bank_name),
        bank_account=str(bank.get("account_no", base.bank_account)),
        bank_ifsc=bank.get("ifsc", base.bank_ifsc),
        bank_branch=bank.get("branch", base.bank_branch),
        jurisdiction=p.get("jurisdiction", base.jurisdiction),
        payment_due_days=int(p.get("payment_due_days", base.payment_due_days)),
        late_interest=str(p.get("late_interest", base.late_interest)),
        logo_path=resolve_asset_path(assets.get("logo")),
        stamp_path=resolve_asset_path(assets.get("stamp")),
        signature_path=resolve_asset_path(assets.get("signature")),
    )


def load_profiles(path: str | Path | None = None) -> dict[str, IssuerProfile]:
    """Load issuer profiles from config/profiles.yaml.

    Returns a dict of profile-key -> IssuerProfile.
    """
    data = _read_profiles_file(path)
    profiles_raw = data.get("profiles", {})
    if not profiles_raw:
        raise ConfigError("profiles.yaml defines no profiles")
    profiles: dict[str, IssuerProfile] = {}
    for key, p in profiles_raw.items():
        try:
            prof = _build_profile(key, p or {})
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"invalid profile {key}: {e}") from e
        profiles[key] = prof
    return profiles


def load_settings(path: str | Path | None = None) -> AppSettings:
    """Read default profile, ledger year, parameters and store section."""

    data = _read_profiles_file(path)
    year_raw = os.getenv(LEDGER_YEAR_ENV) or data.get("ledger_year", DEFAULT_LEDGER_YEAR)
    try:
        ledger_year = int(year_raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"ledger_year must be an integer: {year_raw!r}") from e
    profiles = data.get("profiles") or {}
    default_profile = data.get("default_profile") or next(iter(profiles), DEFAULT_ISSUER.name)
    return AppSettings(
        default_profile=default_profile,
        ledger_year=ledger_year,
        parameters=dict(data.get("parameters") or {}),
        store=dict(data.get("store") or {}),
    )


def get_profile(name: str | None = None, path: str | Path | None = None) -> IssuerProfile:
    """Return the named profile, or the configured default one."""

    profiles = load_profiles(path)
    key = name or load_settings(path).default_profile
    if key not in profiles:
        raise ConfigError(f"unknown issuer profile: {key}")
    return profiles[key]


def resolve_config_path(path: str | Path) -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    # Support paths with or without leading 'cinebill/'
    parts = p.parts
    if parts and parts[0] == "cinebill":
        return _project_root() / p
    return _project_root() / "cinebill" / p


def resolve_asset_path(path: str | None) -> str | None:
    if not path:
        return None
    return str(resolve_config_path(path))
