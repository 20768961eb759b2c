"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/streams) lean config de forma consistente.

Prioridad: variables `HORIZON_*` del entorno, luego el `.env` del usuario (el que
escribe `horizon doctor set-server`) y por último el `.env` del proyecto.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.kinds import Network

APP_DIR_NAME = "horizon-client"
CONFIG_DIR_ENV = "HORIZON_CONFIG_DIR"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario.

    `HORIZON_CONFIG_DIR` lo reemplaza por completo; si no, se usa la convención
    de cada plataforma (APPDATA, Application Support o XDG).
    """

    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()

    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or Path.home())
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def parse_env_text(text: str) -> dict[str, str]:
    """Lee pares KEY=VALUE; acepta `export KEY=...` y valores entre comillas."""

    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        data[key] = value
    return data


def read_user_env_vars(*, env_path: Path | None = None) -> dict[str, str]:
    """Variables guardadas en el .env del usuario (vacío si no existe)."""

    env_path = env_path or get_user_env_file()
    if not env_path.is_file():
        return {}
    return parse_env_text(env_path.read_text(encoding="utf-8"))


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Fusiona `values` en el .env del usuario. Un valor None borra la clave."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    merged = read_user_env_vars(env_path=env_path)
    for key, value in values.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    env_path.write_text(f"# {APP_DIR_NAME} user config (.env)\n{body}", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central del cliente.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="HORIZON_",
        extra="ignore",
        case_sensitive=False,
        # El último archivo gana: el .env del usuario pisa al del proyecto.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    server: str = Field(
        default=Network.PUBLIC.value,
        min_length=1,
        description="Preset ('public', 'testnet') o URL de un servidor Horizon.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos). No aplica a la sesión completa de un stream.",
    )
    user_agent: str = Field(
        default="horizon-client/0.1",
        min_length=1,
        description="User-Agent de las peticiones.",
    )

    stream_initial_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Espera inicial antes de reconectar un stream.",
    )
    stream_max_backoff_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Tope de la espera exponencial entre reconexiones.",
    )

    page_size: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Tamaño de página por defecto para listados de la CLI.",
    )
