import json
import logging
import logging.config
import sys
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import yaml

from convo_driver.config.settings import AppSettings, load_settings

LOGGER_NAME = "convo_driver"
_FALLBACK_HANDLER_NAME = "convo_driver.fallback"


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False)


def setup_logger(
    path: Union[str, Path, None] = None,
    cfg: Optional[AppSettings] = None,
) -> logging.Logger:
    """Apply the YAML logging config, or warn and fall back to JSON lines on stderr."""

    cfg = cfg or load_settings()
    config_path = Path(path or cfg.log_config_file)
    logger = logging.getLogger(LOGGER_NAME)

    problem = None
    if not config_path.is_file():
        problem = f"log config {config_path} not found"
    else:
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top level is not a mapping")
            data.setdefault("version", 1)
            data.setdefault("disable_existing_loggers", False)
            logging.config.dictConfig(data)
            return logger
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError, ImportError) as exc:
            problem = f"failed to apply log config {config_path}: {exc}"

    warnings.warn(f"{problem}; using default logging")
    _install_fallback(logger, cfg)
    return logger


def _install_fallback(logger: logging.Logger, cfg: AppSettings) -> None:
    for handler in list(logger.handlers):
        if handler.get_name() == _FALLBACK_HANDLER_NAME:
            logger.removeHandler(handler)
    sh = logging.StreamHandler(sys.stderr)
    sh.set_name(_FALLBACK_HANDLER_NAME)
    sh.setFormatter(JsonFormatter(redact_content=cfg.log_redact_content))
    logger.addHandler(sh)
    logger.setLevel(cfg.log_level)
