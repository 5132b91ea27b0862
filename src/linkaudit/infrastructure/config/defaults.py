"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "linkaudit",
    "http": {
        "timeout_seconds": 3.0,
        "follow_redirects": True,
        "user_agent": "linkaudit/0.1.0",
    },
    "check": {
        "max_concurrent": None,  # Derived from CPU capacity when unset
        "success_policy": "2xx",
    },
    "logging": {
        "level": "WARNING",
        "format": "console",
        "dir": "./logs",
        "file_name": "log.txt",
    },
    "database": {
        "url": None,
        "driver": "mysql+pymysql",
        "host": "localhost",
        "port": None,
        "name": None,
        "user": None,
        "password": None,
        "table": "mdl_url",
        "id_column": "id",
        "owner_column": "course",
        "name_column": "name",
        "url_column": "externalurl",
    },
    "report": {
        "owner_url_template": (
            "https://moodle.example.org/course/view.php?id={owner_id}"
        ),
    },
}
