"""Import configuration for ledgerimport.

Provides the header synonym tables, category aliases and detection limits
with sensible defaults. A JSON file can override any of them, e.g. to add
another bank's column names without touching code.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

INCOME = "입금"
EXPENSE = "출금"

# Default configuration (used when no config file is given)
DEFAULT_CONFIG = {
    "headers": {
        "combined_date": ["거래일시", "일시"],
        "date_part": ["거래일자"],
        "time_part": ["거래시간"],
        "type": ["구분"],
        "amount": ["거래금액", "금액"],
        "withdraw": [
            "출금(원)",
            "출금금액(원)",
            "출금금액",
            "출금액",
            "출금",
            "출금(-)",
            "출금금액(-)",
        ],
        "deposit": [
            "입금(원)",
            "입금금액(원)",
            "입금금액",
            "입금액",
            "입금",
            "입금(+)",
            "입금금액(+)",
        ],
        "category": ["거래구분", "적요"],
        "description": ["내용"],
    },
    "category_aliases": {
        "체크카드결제": "체크카드",
    },
    "direction": {
        "income_markers": ["입금", "입금액"],
        "expense_markers": ["출금", "출금액"],
    },
    "amounts": {
        "currency_units": ["원", "₩"],
    },
    "detection": {
        "encryption_scan_bytes": 128 * 1024,
    },
    "pdf": {
        "column_separator": r"\s{2,}",
    },
}


@dataclass(frozen=True)
class HeaderGroups:
    """Synonym groups for each logical column. Tuples keep the tables constant."""
    combined_date: Tuple[str, ...]
    date_part: Tuple[str, ...]
    time_part: Tuple[str, ...]
    type: Tuple[str, ...]
    amount: Tuple[str, ...]
    withdraw: Tuple[str, ...]
    deposit: Tuple[str, ...]
    category: Tuple[str, ...]
    description: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeaderGroups":
        defaults = DEFAULT_CONFIG["headers"]
        return cls(**{
            name: tuple(data.get(name) or defaults[name])
            for name in defaults
        })


@dataclass(frozen=True)
class ImportConfig:
    """
    Configuration for statement import.

    Usage:
        config = ImportConfig.load(Path("config/import.json"))
        groups = config.headers
    """
    headers: HeaderGroups = field(
        default_factory=lambda: HeaderGroups.from_dict(DEFAULT_CONFIG["headers"])
    )
    category_aliases: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["category_aliases"])
    )
    income_markers: Tuple[str, ...] = tuple(DEFAULT_CONFIG["direction"]["income_markers"])
    expense_markers: Tuple[str, ...] = tuple(DEFAULT_CONFIG["direction"]["expense_markers"])
    currency_units: Tuple[str, ...] = tuple(DEFAULT_CONFIG["amounts"]["currency_units"])
    encryption_scan_bytes: int = DEFAULT_CONFIG["detection"]["encryption_scan_bytes"]
    pdf_column_separator: str = DEFAULT_CONFIG["pdf"]["column_separator"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportConfig":
        """Build a config from a (possibly partial) dictionary."""
        unknown = set(data) - set(DEFAULT_CONFIG) - {"$schema", "version"}
        if unknown:
            logger.warning(f"Ignoring unknown config sections: {sorted(unknown)}")

        merged = cls._deep_merge(DEFAULT_CONFIG, data)
        return cls(
            headers=HeaderGroups.from_dict(merged["headers"]),
            category_aliases=dict(merged["category_aliases"]),
            income_markers=tuple(merged["direction"]["income_markers"]),
            expense_markers=tuple(merged["direction"]["expense_markers"]),
            currency_units=tuple(merged["amounts"]["currency_units"]),
            encryption_scan_bytes=int(merged["detection"]["encryption_scan_bytes"]),
            pdf_column_separator=merged["pdf"]["column_separator"],
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "ImportConfig":
        """
        Load configuration with fallback to defaults.

        Args:
            config_path: JSON file overriding the defaults - optional

        Returns:
            ImportConfig instance
        """
        if config_path is None:
            return cls()

        config_path = Path(config_path)
        if not config_path.exists():
            logger.warning(f"Config file not found, using defaults: {config_path}")
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load import config {config_path}: {e}")
            return cls()

        logger.debug(f"Loaded import config from {config_path}")
        return cls.from_dict(data)

    def normalize_category(self, category: Optional[str]) -> str:
        """Trim a category and map known aliases (case-insensitive)."""
        if category is None or not category.strip():
            return ""

        normalized = category.strip()
        for alias, target in self.category_aliases.items():
            if normalized.casefold() == alias.casefold():
                return target
        return normalized

    @staticmethod
    def _deep_merge(base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries, override takes precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ImportConfig._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


DEFAULT_IMPORT_CONFIG = ImportConfig()
