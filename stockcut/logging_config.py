"""Logs do StockCut: uma linha JSON por evento (ou texto simples em desenvolvimento)."""
import json
import logging
import sys
from datetime import datetime, timezone

from .config import LOG_JSON, LOG_LEVEL

# Campos passados via ``extra=`` pelos módulos do pacote
OPTIMIZER_FIELDS = ("duration_ms", "bars", "waste_percentage", "stock_length", "candidates")


class JSONFormatter(logging.Formatter):
    """Formata o registro e os campos de otimização presentes."""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update({name: getattr(record, name) for name in OPTIMIZER_FIELDS if hasattr(record, name)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = LOG_LEVEL, json_output: bool = LOG_JSON):
    """Instala o handler de stdout no logger raiz e silencia uvicorn.access e matplotlib."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JSONFormatter() if json_output
        else logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = [handler]

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
