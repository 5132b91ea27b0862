from __future__ import annotations

from .load import load_config
from .schema import AppConfig, DatabaseConfig, EnvOverrides

__all__ = ["AppConfig", "DatabaseConfig", "EnvOverrides", "load_config"]
