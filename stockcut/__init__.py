"""
StockCut - Otimização de Corte de Perfis de Alumínio

Calcula como cortar o menor número de barras de estoque para atender uma lista
de peças lineares, considerando a espessura da serra, e busca o melhor
comprimento de barra para encomenda.
"""

from .core import ExtrusionOptimizer, optimize_extrusions, find_best_stock_length, calculate_summary, build_stock_catalog
from .exceptions import (
    StockCutError, DemandExceedsStockError, InternalPackingInvariantError,
    StockLengthRangeError, OptimizationTimeoutError,
)
from .models import (
    DemandLine, StockOption, WorkItem, Cut, CutPlanBar, StockConsumption,
    OptimizationSummary, OptimizationResult, OptimizationRequest,
)

__version__ = "1.0.0"
__author__ = "StockCut Team"

__all__ = [
    "ExtrusionOptimizer",
    "optimize_extrusions",
    "find_best_stock_length",
    "calculate_summary",
    "build_stock_catalog",
    "StockCutError",
    "DemandExceedsStockError",
    "InternalPackingInvariantError",
    "StockLengthRangeError",
    "OptimizationTimeoutError",
    "DemandLine",
    "StockOption",
    "WorkItem",
    "Cut",
    "CutPlanBar",
    "StockConsumption",
    "OptimizationSummary",
    "OptimizationResult",
    "OptimizationRequest",
]
