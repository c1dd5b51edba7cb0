# === FILE: bookstack_backup/config.py ===
"""
Загрузка и валидация конфигурации бэкапа BookStack.
Используется Pydantic для описания схемы и проверки данных.

Каноническая форма цели (target): список ``ids``; одиночное поле ``id``
из старых конфигов отклоняется с явным сообщением.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Annotated, Any, Literal, Union
from urllib.parse import urlparse

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)


class _TargetBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    ids: tuple[str, ...] = Field(..., min_length=1, description="Идентификаторы книг или полок.")

    @model_validator(mode="before")
    @classmethod
    def _reject_single_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" in data:
            raise ValueError("target.id is not supported, list the identifiers as 'ids: [...]'")
        return data

    @field_validator("ids", mode="before")
    @classmethod
    def _normalize_ids(cls, v: Any) -> Any:
        if isinstance(v, (str, int)):
            raise ValueError("ids must be a list")
        if not isinstance(v, (list, tuple)):
            return v
        seen: dict[str, None] = {}
        for item in v:
            if isinstance(item, bool) or not isinstance(item, (str, int)):
                raise ValueError(f"invalid id {item!r}")
            key = str(item).strip()
            if not key:
                raise ValueError("ids must not contain empty values")
            seen.setdefault(key, None)
        return tuple(seen)


class BookTarget(_TargetBase):
    """Бэкап отдельных книг."""

    type: Literal["book"]


class ShelveTarget(_TargetBase):
    """Бэкап всех книг с указанных полок."""

    type: Literal["shelve"]


TargetConfig = Annotated[Union[BookTarget, ShelveTarget], Field(discriminator="type")]


class InstanceConfig(BaseModel):
    """Один экземпляр BookStack: адрес, токен, каталог бэкапа и расписание."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Имя для логов.")
    base_url: str = Field(..., description="Корневой URL экземпляра BookStack.")
    token_id: str = Field(..., min_length=1)
    token_secret: SecretStr
    backup_path: Path = Field(..., description="Корневой каталог для выгрузок.")
    schedule: str = Field(..., min_length=1, description="Cron-выражение (5 полей).")
    target: TargetConfig
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    concurrency: int = Field(1, ge=1, description="Параллельные запросы страниц внутри главы.")

    @field_validator("base_url", mode="before")
    @classmethod
    def _check_base_url(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        v = v.strip().rstrip("/")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v

    @field_validator("backup_path", mode="after")
    @classmethod
    def _expand_backup_path(cls, v: Path) -> Path:
        return v.expanduser()


class BackupConfig(BaseModel):
    """Корневой объект конфигурации: список экземпляров."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    instances: list[InstanceConfig] = Field(..., min_length=1)

    def get(self, name: str) -> InstanceConfig:
        """Возвращает экземпляр по имени или бросает KeyError."""
        for inst in self.instances:
            if inst.name == name:
                return inst
        raise KeyError(name)


_DEFAULT_CFG = Path("config.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> BackupConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект BackupConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return BackupConfig(**data)


__all__ = [
    "BookTarget",
    "ShelveTarget",
    "TargetConfig",
    "InstanceConfig",
    "BackupConfig",
    "ValidationError",
    "load_config",
]
