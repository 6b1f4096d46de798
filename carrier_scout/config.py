"""
Модуль загрузки и валидации конфигурации CarrierScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

DEFAULT_SNAPSHOT_URL = (
    "https://safer.fmcsa.dot.gov/query.asp?searchtype=ANY&query_type=queryCarrierSnapshot"
    "&query_param=MC_MX&query_string={identifier}"
)
MIN_SLICE_DELAY_MS = 50


class OperatingMode(str, Enum):
    """What a run produces: full records, accepted URLs only, or both."""

    FULL = "full"
    URLS = "urls"
    BOTH = "both"

    @property
    def wants_records(self) -> bool:
        return self is not OperatingMode.URLS

    @property
    def wants_urls(self) -> bool:
        return self is not OperatingMode.FULL


class ScraperConfig(BaseModel):
    """Конфигурация одного запуска. Значения по умолчанию рассчитаны на публичный сервис SAFER."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    snapshot_url: str = Field(
        DEFAULT_SNAPSHOT_URL, description="Шаблон URL снимка, содержит {identifier}."
    )
    concurrency: int = Field(4, ge=1, description="Число идентификаторов в одном срезе.")
    delay_ms: int = Field(1000, ge=0, description="Пауза между срезами (мс, минимум 50).")
    min_age_days: int = Field(180, ge=0, description="Минимальный возраст регистрации (дней).")
    fetch_timeout_ms: int = Field(30000, gt=0, description="Таймаут одной попытки (мс).")
    max_attempts: int = Field(3, ge=1, description="Число попыток загрузки.")
    backoff_base_ms: int = Field(2000, ge=0, description="База экспоненциальной паузы (мс).")
    politeness_delay_ms: int = Field(300, ge=0, description="Пауза перед каждым deep-fetch шагом.")
    mode: OperatingMode = Field(OperatingMode.FULL, description="full | urls | both.")
    extractor: Literal["regex", "soup"] = Field("regex", description="Стратегия разбора HTML.")
    user_agent: str = Field("CarrierScout/1.0", min_length=1, description="Заголовок User-Agent.")
    batch_index: int = Field(0, ge=0, description="Номер пакета, попадает в имя выходного файла.")
    output_dir: Path = Field(Path("output"), description="Каталог для CSV и списков URL.")

    @field_validator("snapshot_url")
    def _check_placeholder(cls, v: str) -> str:
        if "{identifier}" not in v:
            raise ValueError("snapshot_url must contain the '{identifier}' placeholder")
        return v

    @field_validator("delay_ms")
    def _floor_delay(cls, v: int) -> int:
        return max(MIN_SLICE_DELAY_MS, v)

    # Derived values in seconds for the asyncio code -------------------------
    @property
    def slice_delay(self) -> float:
        return self.delay_ms / 1000

    @property
    def fetch_timeout(self) -> float:
        return self.fetch_timeout_ms / 1000

    @property
    def backoff_base(self) -> float:
        return self.backoff_base_ms / 1000

    @property
    def politeness_delay(self) -> float:
        return self.politeness_delay_ms / 1000


_DEFAULT_CFG = Path("configs/default.yaml")


#: suffix -> (parser, errors the parser raises on malformed input)
_PARSERS: Dict[str, Tuple[Callable[[str], Any], Tuple[type, ...]]] = {
    ".yaml": (yaml.safe_load, (yaml.YAMLError,)),
    ".yml": (yaml.safe_load, (yaml.YAMLError,)),
    ".json": (json.loads, (json.JSONDecodeError,)),
}


def _read_mapping(path: Path) -> Dict[str, Any]:
    """Parse a config file by suffix; the top level must be a mapping of config keys."""
    suffix = path.suffix.lower()
    if suffix not in _PARSERS:
        raise ValueError(f"Unsupported config format {suffix!r} (expected .yaml, .yml or .json)")
    parse, errors = _PARSERS[suffix]
    try:
        data = parse(path.read_text(encoding="utf-8")) or {}
    except errors as exc:
        raise ValueError(f"Cannot parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"{path.name}: expected a mapping of config keys, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScraperConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScraperConfig.
    Без явного пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScraperConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    return ScraperConfig(**_read_mapping(path_obj))


def with_overrides(config: ScraperConfig, **overrides: Any) -> ScraperConfig:
    """Возвращает новую проверенную копию config; значения None игнорируются."""
    values: Dict[str, Any] = config.model_dump()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ScraperConfig(**values)
