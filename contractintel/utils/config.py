from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Tuple
from dotenv import load_dotenv

DEFAULT_REQUIRED_CLAUSE_TYPES: Tuple[str, ...] = (
    "renewal",
    "termination",
    "data_protection",
    "liability_cap",
    "governing_law",
)


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class RiskScoringOptions:
    missing_required_clause_weight: int = 15
    auto_renew_short_notice_weight: int = 25
    short_notice_days: int = 30
    required_clause_types: Tuple[str, ...] = DEFAULT_REQUIRED_CLAUSE_TYPES

    @classmethod
    def from_env(cls) -> "RiskScoringOptions":
        load_dotenv()
        required = os.getenv("RISK_REQUIRED_CLAUSE_TYPES")
        return cls(
            missing_required_clause_weight=int(os.getenv("RISK_MISSING_REQUIRED_CLAUSE_WEIGHT", "15")),
            auto_renew_short_notice_weight=int(os.getenv("RISK_AUTO_RENEW_SHORT_NOTICE_WEIGHT", "25")),
            short_notice_days=int(os.getenv("RISK_SHORT_NOTICE_DAYS", "30")),
            required_clause_types=_split_csv(required) if required else DEFAULT_REQUIRED_CLAUSE_TYPES,
        )


@dataclass(frozen=True)
class AppConfig:
    database_url: str = "sqlite:///contractintel.db"
    storage_root: str = "storage"
    log_level: str = "INFO"
    risk: RiskScoringOptions = field(default_factory=RiskScoringOptions)

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///contractintel.db"),
            storage_root=os.getenv("STORAGE_ROOT", "storage"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            risk=RiskScoringOptions.from_env(),
        )
