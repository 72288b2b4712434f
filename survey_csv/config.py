"""
survey-csv configuration: paths, credentials, CORS, logging.

Every setting can be overridden through a SURVEY_* environment variable.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .rules import STORAGE_KEY

DEFAULT_ADMIN_PASSWORD = "3939889"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _split_origins(raw: str) -> Tuple[str, ...]:
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or ("*",)


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    storage_key: str = STORAGE_KEY
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    allowed_origins: Tuple[str, ...] = field(default=("*",))
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        data_dir=Path(env.get("SURVEY_DATA_DIR", "data")),
        storage_key=env.get("SURVEY_STORAGE_KEY", STORAGE_KEY),
        admin_password=env.get("SURVEY_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        allowed_origins=_split_origins(env.get("SURVEY_ALLOWED_ORIGINS", "*")),
        log_level=env.get("SURVEY_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
