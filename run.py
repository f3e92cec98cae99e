#!/usr/bin/env python3
"""
Script principal para executar o sistema StockCut
"""

import argparse
import logging
import sys

from stockcut import ExtrusionOptimizer, build_stock_catalog
from stockcut.config import API_HOST, API_PORT, LOG_JSON, LOG_LEVEL
from stockcut.exceptions import StockCutError
from stockcut.logging_config import setup_logging
from stockcut.models import DemandLine, StockOption
from stockcut.utils import export_result, create_visualization

logger = logging.getLogger("stockcut-cli")


def create_sample_data():
    """Cria dados de exemplo para demonstração"""

    demand = [
        DemandLine(part_no="AL-4501", finish="ANOD", length=96.5, qty=4, mark_no="M1", fab="F1"),
        DemandLine(part_no="AL-4501", finish="ANOD", length=48.25, qty=6, mark_no="M2", fab="F1"),
        DemandLine(part_no="AL-4501", finish="ANOD", length=30, qty=5, mark_no="M3", fab="F2"),
        DemandLine(part_no="AL-7720", finish="PAINT", length=120, qty=3, mark_no="T1", fab="F2"),
        DemandLine(part_no="AL-7720", finish="PAINT", length=60.5, qty=4, mark_no="T2", fab="F2"),
    ]

    stock_options = [
        StockOption(part_no="AL-4501", finish="ANOD", length1=288, qty1=20, length2=252, qty2=20),
        StockOption(part_no="AL-7720", finish="PAINT", length1=288, qty1=10),
    ]

    return demand, stock_options


def run_demo(find_length: bool = False):
    """Executa demonstração do sistema"""

    print("StockCut - Demonstração do Sistema")
    print("=" * 60)

    demand, stock_options = create_sample_data()
    optimizer = ExtrusionOptimizer(kerf_width=0.25)

    print(f"✓ Espessura da serra: {optimizer.kerf_width}")
    print(f"✓ {len(demand)} linhas de demanda, {len(stock_options)} opções de estoque")

    if find_length:
        optimal_length = optimizer.find_best_stock_length(demand, 180, 300)
        print(f"✓ Melhor comprimento de barra: {optimal_length}")
        stock_options = build_stock_catalog(demand, optimal_length)

    result = optimizer.optimize(demand, stock_options)
    summary = result.summary

    print(f"\nDesperdício: {summary.waste_percentage:.2f}%")
    print(f"Barras utilizadas: {summary.total_stock_pieces}")
    print(f"Tempo de processamento: {result.processing_time:.1f}ms")

    print("\nBarras necessárias:")
    for stock in result.stock_lengths_needed:
        print(f"  • {stock.part_no} {stock.finish} {stock.stock_length:g}: {stock.quantity}")

    return result


def run_api_server():
    """Inicia o servidor da API"""
    import uvicorn

    print(f"Servidor em http://{API_HOST}:{API_PORT} (documentação em /docs)")
    uvicorn.run("main:app", host=API_HOST, port=API_PORT, reload=True, log_level="info")


def run_tests():
    """Executa os testes do sistema"""
    import pytest

    return pytest.main(["tests", "-q"]) == 0


def main():
    """Função principal"""

    parser = argparse.ArgumentParser(
        description="StockCut - Otimização de Corte de Perfis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos de uso:
  python run.py demo                    # Executa demonstração
  python run.py demo --find-length      # Busca o melhor comprimento de barra
  python run.py api                     # Inicia servidor da API
  python run.py test                    # Executa testes
  python run.py demo --export results   # Executa demo e exporta resultados
        """
    )

    parser.add_argument(
        'command',
        choices=['demo', 'api', 'test'],
        help='Comando a executar'
    )

    parser.add_argument(
        '--export',
        metavar='DIR',
        help='Diretório para exportar resultados'
    )

    parser.add_argument(
        '--visualization',
        action='store_true',
        help='Criar visualizações dos resultados'
    )

    parser.add_argument(
        '--find-length',
        action='store_true',
        help='Buscar o melhor comprimento de barra antes de otimizar'
    )

    args = parser.parse_args()
    setup_logging(level=LOG_LEVEL, json_output=LOG_JSON)

    try:
        if args.command == 'demo':
            result = run_demo(find_length=args.find_length)

            if args.export:
                print(f"\nExportando resultados para: {args.export}")
                export_result(result, args.export)

                if args.visualization:
                    create_visualization(result, args.export)

        elif args.command == 'api':
            run_api_server()

        elif args.command == 'test':
            sys.exit(0 if run_tests() else 1)

    except KeyboardInterrupt:
        print("\nSistema interrompido pelo usuário")
    except StockCutError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
