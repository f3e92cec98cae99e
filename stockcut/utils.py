"""
Utilitários para visualização e relatórios do StockCut
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
import numpy as np
import pandas as pd

from .models import OptimizationResult

logger = logging.getLogger("stockcut-reports")

CUT_PATTERN_COLUMNS = ["Stock ID", "Stock Length", "Part No", "Cut Length", "Mark", "Finish", "Fab"]


class CutPlanVisualizer:
    """Classe para visualização do plano de corte"""

    def __init__(self, result: OptimizationResult):
        """
        Inicializa o visualizador

        Args:
            result: Resultado da otimização
        """
        self.result = result
        self.colors = plt.cm.Set3(np.linspace(0, 1, 12))

    def plot_cut_pattern(self, save_path: Optional[str] = None, show: bool = False) -> None:
        """Plota cada barra com seus cortes e a sobra"""
        bars = self.result.cut_pattern
        if not bars:
            logger.info("Nenhum corte para visualizar")
            return

        fig, ax = plt.subplots(figsize=(12, max(2, 0.6 * len(bars) + 1)))
        max_length = max(bar.stock_length for bar in bars)
        kerf = self._infer_kerf()

        for row, bar in enumerate(bars):
            y = len(bars) - row - 1
            ax.add_patch(Rectangle((0, y - 0.3), bar.stock_length, 0.6,
                                   facecolor='#eeeeee', edgecolor='black', linewidth=1))
            position = 0.0
            for j, cut in enumerate(bar.cuts):
                ax.add_patch(Rectangle((position, y - 0.3), cut.length, 0.6,
                                       facecolor=self.colors[j % len(self.colors)],
                                       edgecolor='black', linewidth=0.5))
                ax.text(position + cut.length / 2, y, f"{cut.mark or cut.part_no}\n{cut.length:g}",
                        ha='center', va='center', fontsize=7)
                position += cut.length + kerf

        ax.set_xlim(0, max_length * 1.02)
        ax.set_ylim(-1, len(bars))
        ax.set_yticks(range(len(bars)))
        ax.set_yticklabels([f"{bar.cuts[0].part_no} #{bar.stock_id}" for bar in reversed(bars)])
        ax.set_xlabel("Comprimento")
        ax.set_title(f"Plano de corte - desperdício {self.result.summary.waste_percentage:.1f}%")

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        if show:
            plt.show()
        plt.close(fig)

    def create_summary_chart(self, save_path: Optional[str] = None, show: bool = False) -> None:
        """Cria gráfico de barras consumidas e aproveitamento por barra"""
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))

        labels = [f"{s.part_no} {s.finish} {s.stock_length:g}".strip()
                  for s in self.result.stock_lengths_needed]
        quantities = [s.quantity for s in self.result.stock_lengths_needed]
        ax1.bar(labels, quantities, color='skyblue', edgecolor='navy')
        ax1.set_title('Barras por perfil')
        ax1.set_ylabel('Barras')
        ax1.tick_params(axis='x', rotation=45)

        efficiencies = [bar.efficiency for bar in self.result.cut_pattern]
        ax2.hist(efficiencies, bins=10, range=(0, 100), color='lightgreen', edgecolor='darkgreen')
        ax2.set_title('Aproveitamento por barra')
        ax2.set_xlabel('Aproveitamento (%)')

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        if show:
            plt.show()
        plt.close(fig)

    def _infer_kerf(self) -> float:
        """Espessura da serra deduzida da primeira barra (sobra descontada)"""
        bar = self.result.cut_pattern[0]
        consumed = bar.stock_length - bar.remaining_length - bar.used_length
        return consumed / len(bar.cuts)


class CutPlanReporter:
    """Classe para geração de relatórios"""

    def __init__(self, result: OptimizationResult):
        self.result = result

    def to_dataframe(self) -> pd.DataFrame:
        """Uma linha por corte, com as colunas da exportação CSV"""
        rows = [
            [bar.stock_id, bar.stock_length, cut.part_no, cut.length, cut.mark, cut.finish, cut.fab]
            for bar in self.result.cut_pattern
            for cut in bar.cuts
        ]
        return pd.DataFrame(rows, columns=CUT_PATTERN_COLUMNS)

    def generate_text_report(self) -> str:
        """Gera relatório em formato texto"""
        summary = self.result.summary
        report = []
        report.append("=" * 60)
        report.append("RELATÓRIO DE OTIMIZAÇÃO DE CORTES")
        report.append("=" * 60)
        report.append("")

        report.append("RESUMO GERAL:")
        report.append(f"  • Comprimento total de barras: {summary.total_stock_length:g}")
        report.append(f"  • Comprimento total cortado: {summary.total_cut_length:g}")
        report.append(f"  • Desperdício: {summary.waste_percentage:.2f}%")
        report.append(f"  • Barras utilizadas: {summary.total_stock_pieces}")
        report.append(f"  • Tempo de processamento: {self.result.processing_time:.1f} ms")
        report.append("")

        report.append("BARRAS NECESSÁRIAS:")
        report.append("-" * 40)
        for stock in self.result.stock_lengths_needed:
            report.append(f"  • {stock.part_no} {stock.finish} - {stock.stock_length:g}: {stock.quantity}")

        report.append("\nPLANO DE CORTE:")
        report.append("-" * 40)
        for bar in self.result.cut_pattern:
            part_no = bar.cuts[0].part_no
            report.append(f"\n{part_no} barra {bar.stock_id} ({bar.stock_length:g}) - "
                          f"sobra {bar.remaining_length:g}")
            for j, cut in enumerate(bar.cuts, 1):
                report.append(f"     {j}. {cut.length:g} marca {cut.mark or '-'} fab {cut.fab or '-'}")

        report.append("\n" + "=" * 60)

        return "\n".join(report)

    def generate_csv_report(self, file_path: Optional[str] = None) -> str:
        """Gera o CSV em seções (resumo, barras necessárias, plano de corte)"""
        summary = self.result.summary
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\r\n")

        writer.writerow(["OPTIMIZATION SUMMARY"])
        writer.writerow(["Total Stock Length", summary.total_stock_length])
        writer.writerow(["Total Cut Length", summary.total_cut_length])
        writer.writerow(["Waste Percentage", f"{summary.waste_percentage:.2f}%"])
        writer.writerow(["Total Stock Pieces", summary.total_stock_pieces])
        writer.writerow([])

        writer.writerow(["STOCK LENGTHS NEEDED"])
        writer.writerow(["Part No", "Finish", "Stock Length", "Quantity"])
        for stock in self.result.stock_lengths_needed:
            writer.writerow([stock.part_no, stock.finish, stock.stock_length, stock.quantity])
        writer.writerow([])

        writer.writerow(["CUT PATTERNS"])
        self.to_dataframe().to_csv(buffer, index=False, lineterminator="\r\n")

        content = buffer.getvalue()
        if file_path:
            with open(file_path, 'w', newline='', encoding='utf-8') as f:
                f.write(content)
        return content

    def generate_json_report(self, file_path: str) -> None:
        """Gera relatório em formato JSON"""
        report_data = self.result.model_dump()

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False, default=str)


def export_result(result: OptimizationResult, output_dir: str, formats: List[str] = None) -> None:
    """
    Exporta resultado em múltiplos formatos

    Args:
        result: Resultado da otimização
        output_dir: Diretório de saída
        formats: Lista de formatos (txt, csv, json)
    """
    if formats is None:
        formats = ["txt", "csv", "json"]

    Path(output_dir).mkdir(parents=True, exist_ok=True)

    reporter = CutPlanReporter(result)
    base_path = Path(output_dir) / "plano_de_corte"

    if "txt" in formats:
        with open(f"{base_path}.txt", 'w', encoding='utf-8') as f:
            f.write(reporter.generate_text_report())

    if "csv" in formats:
        reporter.generate_csv_report(f"{base_path}.csv")

    if "json" in formats:
        reporter.generate_json_report(f"{base_path}.json")

    logger.info(f"Relatórios exportados para: {output_dir}")


def create_visualization(result: OptimizationResult, output_dir: str, show: bool = False) -> None:
    """
    Cria visualizações do resultado

    Args:
        result: Resultado da otimização
        output_dir: Diretório de saída
        show: Se deve mostrar os gráficos
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    visualizer = CutPlanVisualizer(result)
    base_path = Path(output_dir) / "visualizacao_stockcut"

    visualizer.plot_cut_pattern(f"{base_path}_barras.png", show=show)
    visualizer.create_summary_chart(f"{base_path}_resumo.png", show=show)
