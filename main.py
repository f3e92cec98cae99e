"""
Servidor FastAPI principal para o StockCut
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from stockcut import ExtrusionOptimizer, __version__
from stockcut.config import API_HOST, API_PORT, CORS_ORIGINS, DEFAULT_KERF, LOG_JSON, LOG_LEVEL
from stockcut.exceptions import DemandExceedsStockError, StockLengthRangeError
from stockcut.logging_config import setup_logging
from stockcut.models import OptimizationRequest, OptimizationResult
from stockcut.utils import CutPlanReporter

setup_logging(level=LOG_LEVEL, json_output=LOG_JSON)
logger = logging.getLogger("stockcut-api")

# Configuração do FastAPI
app = FastAPI(
    title="StockCut API",
    description="API para otimização de corte de perfis de alumínio",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configuração de CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instância global do otimizador
optimizer = ExtrusionOptimizer(kerf_width=DEFAULT_KERF)


@app.get("/")
async def root():
    """Página inicial da API - redireciona para documentação"""
    return {
        "message": "StockCut API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health_check():
    """Verificação de saúde da API"""
    return {
        "status": "healthy",
        "service": "StockCut API",
        "version": __version__
    }


@app.post("/optimize")
def optimize(request: OptimizationRequest):
    """
    Otimização de corte com catálogo informado ou comprimento automático

    Args:
        request: Requisição de otimização

    Returns:
        Plano de corte e, no modo automático, o comprimento escolhido
    """
    if not request.find_optimal_length and request.stock_lengths is None:
        raise HTTPException(
            status_code=400,
            detail="stock_lengths é obrigatório quando find_optimal_length é falso"
        )

    try:
        result, optimal_length = optimizer.optimize_request(request)
    except (DemandExceedsStockError, StockLengthRangeError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Erro na otimização")
        raise HTTPException(status_code=500, detail=str(e))

    response = result.model_dump()
    if optimal_length is not None:
        response["optimal_length"] = optimal_length
    return response


@app.post("/optimize/best-length")
def best_length(request: OptimizationRequest):
    """Retorna apenas o melhor comprimento de barra para a demanda"""
    try:
        optimal_length = optimizer.find_best_stock_length(
            request.parts, request.min_length, request.max_length, request.blade_width
        )
    except StockLengthRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Erro na busca de comprimento")
        raise HTTPException(status_code=500, detail=str(e))

    return {"optimal_length": optimal_length}


@app.post("/report/generate")
async def generate_report(optimization_result: OptimizationResult, format: str = "all"):
    """
    Gera relatórios em diferentes formatos

    Args:
        optimization_result: Resultado da otimização
        format: Formato do relatório (txt, csv, json, all)
    """
    formats = ["txt", "csv", "json"] if format == "all" else [format]
    unknown = [f for f in formats if f not in ("txt", "csv", "json")]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Formato desconhecido: {', '.join(unknown)}")

    reporter = CutPlanReporter(optimization_result)
    results = {}

    if "txt" in formats:
        results["txt"] = reporter.generate_text_report()

    if "csv" in formats:
        results["csv"] = reporter.generate_csv_report()

    if "json" in formats:
        results["json"] = optimization_result.model_dump()

    return {
        "formats_generated": formats,
        "results": results
    }


@app.get("/examples")
async def get_example():
    """Retorna exemplo de dados para otimização"""
    return {
        "parts": [
            {"part_no": "AL-4501", "finish": "ANOD", "length": 96.5, "qty": 4, "mark_no": "M1", "fab": "F1"},
            {"part_no": "AL-4501", "finish": "ANOD", "length": 48.25, "qty": 6, "mark_no": "M2", "fab": "F1"},
            {"part_no": "AL-7720", "finish": "PAINT", "length": 120, "qty": 3, "mark_no": "T1", "fab": "F2"}
        ],
        "stock_lengths": [
            {"part_no": "AL-4501", "finish": "ANOD", "length1": 288, "qty1": 20, "length2": 252, "qty2": 20},
            {"part_no": "AL-7720", "finish": "PAINT", "length1": 288, "qty1": 10}
        ],
        "blade_width": 0.25,
        "find_optimal_length": False
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
        log_level="info"
    )
