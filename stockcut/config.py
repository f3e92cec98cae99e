"""
Configuração do StockCut via variáveis de ambiente.

Importe daqui em vez de repetir valores padrão nos módulos.
"""

import os
from typing import Optional


def _float_env(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


# ── Otimização ────────────────────────────────────────────────────────────────
DEFAULT_KERF: float = _float_env("STOCKCUT_KERF", 0.25)
DEFAULT_MIN_LENGTH: float = _float_env("STOCKCUT_MIN_LENGTH", 180)
DEFAULT_MAX_LENGTH: float = _float_env("STOCKCUT_MAX_LENGTH", 300)

# Quantidade do catálogo sintético usado no modo de comprimento automático
DEFAULT_CATALOG_QTY: int = int(os.getenv("STOCKCUT_CATALOG_QTY", "1000"))

# Segundos; None = sem limite
SEARCH_TIMEOUT: Optional[float] = _float_env("STOCKCUT_SEARCH_TIMEOUT", None)

# ── Logs ──────────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON: bool = os.getenv("LOG_FORMAT", "json").lower() != "text"

# ── API ───────────────────────────────────────────────────────────────────────
API_HOST: str = os.getenv("STOCKCUT_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("STOCKCUT_PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
