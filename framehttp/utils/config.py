"""기본값 병합 기능을 갖춘 YAML 설정 로더."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger("framehttp.utils.config")

# 환경변수 → Config 경로 매핑
_ENV_OVERRIDES: list[tuple[str, str, type]] = [
    ("FRAMEHTTP_HOST", "server.host", str),
    ("FRAMEHTTP_PORT", "server.port", int),
    ("FRAMEHTTP_LOG_LEVEL", "logging.level", str),
    ("FRAMEHTTP_LOG_FORMAT", "logging.format", str),
    ("FRAMEHTTP_PUBLIC_DIR", "handler.public_dir", str),
]

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "default.yaml"

_DEFAULTS: dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 3000,
        "backlog": 100,
    },
    "http": {
        "max_header_bytes": 8192,
    },
    "timeouts": {
        "read_seconds": None,
        "write_seconds": None,
        "handler_seconds": None,
    },
    "logging": {
        "level": "INFO",
        "directory": "data/logs",
        "max_bytes": 10_485_760,
        "backup_count": 5,
        "format": "text",
    },
    "handler": {
        "public_dir": "public",
        "server_name": "framehttp",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """override를 base에 재귀적으로 병합하여 새 dict를 반환한다. 입력은 공유하지 않는다."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    """점 표기법을 사용하여 중첩 dict에 값을 설정한다."""
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _apply_env_overrides(data: dict) -> None:
    """환경변수가 설정되어 있으면 YAML 값을 오버라이드한다."""
    for env_var, config_path, cast in _ENV_OVERRIDES:
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(data, config_path, cast(value))


class Config:
    """YAML 파일에서 로드된 불변 설정 컨테이너."""

    def __init__(self, data: dict[str, Any], config_path: str | Path | None = None) -> None:
        self._data = _deep_merge(_DEFAULTS, data)
        self.config_path: str | None = str(config_path) if config_path else None

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> Config:
        """YAML 파일에서 설정을 로드한다.

        프로젝트 루트 기준 config/default.yaml을 기본 경로로 사용한다.
        환경변수 FRAMEHTTP_CONFIG로 경로를 오버라이드할 수 있다.
        .env 파일이 존재하면 자동으로 로드하여 환경변수를 설정한다.
        기본 경로에 파일이 없으면 내장 기본값만 사용한다.
        overrides는 점 표기법 키로 환경변수보다 나중에 적용된다.
        """
        load_dotenv()

        if config_path is None:
            config_path = os.environ.get("FRAMEHTTP_CONFIG")
        explicit = config_path is not None
        if not explicit:
            config_path = _DEFAULT_CONFIG_PATH

        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            logger.debug("No config file at %s, using built-in defaults", config_path)
            data = {}
            config_path = None

        inner = data.get("framehttp", data)
        _apply_env_overrides(inner)
        for dotted_key, value in (overrides or {}).items():
            _set_nested(inner, dotted_key, value)

        return cls(inner, config_path=config_path)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """점 표기법으로 값을 조회한다: 'server.port' -> config['server']['port']."""
        keys = dotted_key.split(".")
        current = self._data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def section(self, key: str) -> dict[str, Any]:
        """주어진 최상위 키에 대한 하위 dict를 반환한다."""
        return self._data.get(key, {})

    def timeout(self, name: str) -> float | None:
        """timeouts.<name>_seconds 값을 반환한다. null 또는 0이면 None (무제한)."""
        value = self.get(f"timeouts.{name}_seconds")
        if not value:
            return None
        return float(value)

    @property
    def raw(self) -> dict[str, Any]:
        """설정 데이터의 원본 dict를 반환한다."""
        return self._data
