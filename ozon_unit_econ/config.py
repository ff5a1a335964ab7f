# config.py
# Бизнес-константы и настройки расчёта.
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

# ---- Константы по умолчанию ----

SUBSCRIPTION_FEE = 24990.0      # подписка Ozon за отчётный период, ₽
CROSS_DOCKING_RATE = 0.015      # кросс-докинг, доля от выручки
INCOME_TAX_RATE = 0.25          # налог на прибыль

COGS_MODES = ("NET", "GROSS")

# Путь к YAML можно задать так: export OZON_UNIT_ECON_CONFIG=/path/to/unit_econ_config.yaml
CONFIG_ENV = "OZON_UNIT_ECON_CONFIG"

_ENV_KEYS = {
    "subscription_fee": "SUBSCRIPTION_FEE",
    "cross_docking_rate": "CROSS_DOCKING_RATE",
    "income_tax_rate": "INCOME_TAX_RATE",
    "cogs_mode": "COGS_MODE",
    "distribute_ads_evenly": "DISTRIBUTE_ADS",
}

_TRUE = {"1", "true", "yes", "y", "on", "да"}
_FALSE = {"0", "false", "no", "n", "off", "нет", ""}


@dataclass(frozen=True)
class Settings:
    """
    Параметры расчёта метрик.
    - subscription_fee: фиксированная подписка за период (распределяется по доле выручки)
    - cross_docking_rate: ставка кросс-докинга (0.015 == 1.5%)
    - income_tax_rate: ставка налога на положительную прибыль
    - cogs_mode: "NET" — себестоимость считается по (доставлено − возвращено),
      "GROSS" — по доставленным штукам
    - distribute_ads_evenly: распределять рекламу по доле выручки, а не брать прямые расходы SKU
    """
    subscription_fee: float = SUBSCRIPTION_FEE
    cross_docking_rate: float = CROSS_DOCKING_RATE
    income_tax_rate: float = INCOME_TAX_RATE
    cogs_mode: str = "NET"
    distribute_ads_evenly: bool = False

    def __post_init__(self) -> None:
        mode = str(self.cogs_mode).upper()
        if mode not in COGS_MODES:
            raise ConfigError(f"Неизвестный cogs_mode: {self.cogs_mode!r} (ожидается NET или GROSS)")
        object.__setattr__(self, "cogs_mode", mode)


DEFAULT_SETTINGS = Settings()


def _to_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"{key}: ожидалось логическое значение, получено {value!r}")


def _to_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: ожидалось число, получено {value!r}") from e


def _coerce(raw: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if key in ("subscription_fee", "cross_docking_rate", "income_tax_rate"):
            out[key] = _to_float(value, key)
        elif key == "distribute_ads_evenly":
            out[key] = _to_bool(value, key)
        elif key == "cogs_mode":
            out[key] = str(value).strip()
    return out


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Не найден конфиг: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Не удалось разобрать конфиг {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"Конфиг {path} должен быть словарём")

    # Плоский словарь из секций business/analysis
    flat: Dict[str, Any] = {}
    for section in ("business", "analysis"):
        block = cfg.get(section) or {}
        if not isinstance(block, dict):
            raise ConfigError(f"Секция '{section}' в {path} должна быть словарём")
        flat.update({k: v for k, v in block.items() if k in _ENV_KEYS})
    return flat


def load_settings(path: Optional[str | Path] = None, *, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Собирает настройки расчёта.
    Приоритет: переменные окружения -> YAML -> значения по умолчанию.
    """
    environ = os.environ if env is None else env

    cfg_path = path or environ.get(CONFIG_ENV)
    raw: Dict[str, Any] = {}
    if cfg_path:
        raw.update(_read_yaml(Path(cfg_path).expanduser()))

    for key, env_key in _ENV_KEYS.items():
        if env_key in environ:
            raw[key] = environ[env_key]

    return replace(DEFAULT_SETTINGS, **_coerce(raw))
