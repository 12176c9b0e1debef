from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    # Default vault root used by the CLI.
    vault_path: str = os.getenv("VAULTLINKS_VAULT_PATH", ".")

    # Scanning
    extensions: tuple[str, ...] = _csv(os.getenv("VAULTLINKS_EXTENSIONS", ".md,.markdown"))
    ignore_dirs: tuple[str, ...] = _csv(os.getenv("VAULTLINKS_IGNORE_DIRS", "templates"))
    workers: int = int(os.getenv("VAULTLINKS_WORKERS", "4"))

    # Orphan detection
    entry_points: tuple[str, ...] = _csv(os.getenv("VAULTLINKS_ENTRY_POINTS", ""))
    entry_tags: tuple[str, ...] = _csv(os.getenv("VAULTLINKS_ENTRY_TAGS", "moc"))

    log_level: str = os.getenv("VAULTLINKS_LOG_LEVEL", "WARNING")
