"""
Erros do otimizador StockCut
"""

from typing import Iterable, List


class StockCutError(Exception):
    """Erro base do StockCut"""


class DemandExceedsStockError(StockCutError):
    """Uma ou mais peças são maiores que todas as barras disponíveis"""

    def __init__(self, part_numbers: Iterable[str]):
        self.part_numbers: List[str] = list(part_numbers)
        super().__init__(
            f"Os perfis {', '.join(self.part_numbers)} têm comprimentos maiores "
            f"que as barras de estoque informadas."
        )


class InternalPackingInvariantError(StockCutError):
    """O motor não conseguiu iniciar uma barra apesar da validação (defeito de lógica)"""

    def __init__(self, part_no: str, finish: str, stock_length: float):
        self.part_no = part_no
        self.finish = finish
        self.stock_length = stock_length
        super().__init__(
            f"Nenhuma peça de {part_no}/{finish or '-'} cabe na barra de {stock_length:g} "
            f"com demanda pendente"
        )


class StockLengthRangeError(StockCutError, ValueError):
    """Faixa de comprimentos vazia para a busca"""

    def __init__(self, min_length: float, max_length: float):
        self.min_length = min_length
        self.max_length = max_length
        super().__init__(
            f"Faixa de busca vazia: mínimo {min_length:g} maior que máximo {max_length:g}"
        )


class OptimizationTimeoutError(StockCutError):
    """A busca do melhor comprimento excedeu o tempo limite"""

    def __init__(self, timeout: float, last_length: float):
        self.timeout = timeout
        self.last_length = last_length
        super().__init__(
            f"Busca interrompida após {timeout:g}s (último comprimento testado: {last_length:g})"
        )
