"""Helpers de baixo nível para os arquivos de log."""

import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


def format_date_for_log(dt=None) -> str:
    """Retorna data no formato YYYY-MM-DD (segura para nomes)."""
    try:
        if dt is None:
            return date.today().isoformat()
        if isinstance(dt, datetime):
            return dt.date().isoformat()
        return dt.isoformat()
    except (AttributeError, TypeError):
        return datetime.now(timezone.utc).date().isoformat()


def ensure_dir_writable(p: Path) -> bool:
    """Garante, em melhor esforço, que `p` existe e é gravável."""
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("ensure_dir_writable: failed for %s: %s", p, exc, exc_info=True)
        return False
    test = p / f".touch-{os.getpid()}"
    try:
        with open(test, "a", encoding="utf-8") as f:
            f.write("ok")
    except OSError as exc:
        logger.error("ensure_dir_writable: write test failed for %s: %s", p, exc, exc_info=True)
        return False
    finally:
        try:
            if test.exists():
                test.unlink()
        except OSError:
            # nosec B110 - limpeza em melhor esforço
            pass
    return True
