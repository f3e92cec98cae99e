"""
Núcleo do StockCut: otimização de corte de perfis em barras de estoque
"""

import logging
import math
import time
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import numpy as np

from .config import (
    DEFAULT_CATALOG_QTY, DEFAULT_KERF, DEFAULT_MAX_LENGTH,
    DEFAULT_MIN_LENGTH, SEARCH_TIMEOUT,
)
from .exceptions import (
    DemandExceedsStockError, InternalPackingInvariantError,
    OptimizationTimeoutError, StockLengthRangeError,
)
from .models import (
    CutPlanBar, DemandLine, OptimizationRequest, OptimizationResult,
    OptimizationSummary, StockConsumption, StockOption, WorkItem,
)

logger = logging.getLogger("stockcut-core")

DemandInput = Iterable[Union[DemandLine, dict]]
StockInput = Iterable[Union[StockOption, dict]]


class BarPacking(NamedTuple):
    """Resultado de uma barra: peças na ordem de corte e sobra"""
    placed: List[WorkItem]
    remaining_length: float


def _as_demand(demand: DemandInput) -> List[DemandLine]:
    return [line if isinstance(line, DemandLine) else DemandLine(**line) for line in demand]


def _as_stock(stock_options: StockInput) -> List[StockOption]:
    return [opt if isinstance(opt, StockOption) else StockOption(**opt) for opt in stock_options]


def _by_length(item: WorkItem) -> float:
    return item.length


def calculate_summary(cut_pattern: List[CutPlanBar]) -> OptimizationSummary:
    """Calcula as métricas de desperdício do plano de corte"""
    total_stock_length = sum(bar.stock_length for bar in cut_pattern)
    total_cut_length = sum(cut.length for bar in cut_pattern for cut in bar.cuts)

    if total_stock_length > 0:
        waste_percentage = (total_stock_length - total_cut_length) / total_stock_length * 100
    else:
        waste_percentage = 0.0

    return OptimizationSummary(
        total_stock_length=total_stock_length,
        total_cut_length=total_cut_length,
        waste_percentage=waste_percentage,
        total_stock_pieces=len(cut_pattern),
    )


def build_stock_catalog(demand: DemandInput, length: float,
                        qty: int = DEFAULT_CATALOG_QTY) -> List[StockOption]:
    """
    Monta um catálogo com um único comprimento para cada perfil/acabamento da demanda

    Args:
        demand: Linhas de demanda
        length: Comprimento de barra (normalmente o retornado pela busca)
        qty: Quantidade disponível declarada

    Returns:
        Uma opção de estoque por par (perfil, acabamento), na ordem de aparição
    """
    catalog = []
    seen = set()
    for line in _as_demand(demand):
        key = (line.part_no, line.finish)
        if key in seen:
            continue
        seen.add(key)
        catalog.append(StockOption(part_no=line.part_no, finish=line.finish,
                                   length1=length, qty1=qty))
    return catalog


class ExtrusionOptimizer:
    """
    Otimizador de corte 1D para perfis de alumínio

    Heurística gulosa: cada barra começa pela maior peça que cabe (âncora) e é
    completada com a maior peça pendente que ainda cabe na sobra junto com a serra.
    """

    def __init__(self, kerf_width: float = DEFAULT_KERF):
        """
        Args:
            kerf_width: Espessura da serra, descontada após cada peça
        """
        self.kerf_width = kerf_width

    def optimize(self, demand: DemandInput, stock_options: StockInput,
                 kerf: Optional[float] = None) -> OptimizationResult:
        """
        Gera o plano de corte para um catálogo de barras informado

        Args:
            demand: Linhas de demanda
            stock_options: Catálogo de barras por perfil/acabamento
            kerf: Espessura da serra (padrão: a do otimizador)

        Returns:
            Plano de corte, barras necessárias e resumo

        Raises:
            DemandExceedsStockError: alguma peça não cabe em nenhuma barra
        """
        start_time = time.time()
        kerf = self.kerf_width if kerf is None else kerf
        demand = _as_demand(demand)
        stock_options = _as_stock(stock_options)

        too_long = self._validate_part_lengths(demand, stock_options)
        if too_long:
            logger.info(f"Demanda rejeitada: perfis maiores que o estoque {too_long}")
            raise DemandExceedsStockError(too_long)

        work_items = self._prepare_work_items(demand)
        self._select_stock_lengths(work_items, stock_options, kerf)
        cut_pattern, stock_lengths_needed = self._assemble_plan(work_items, stock_options, kerf)
        summary = calculate_summary(cut_pattern)

        processing_time = (time.time() - start_time) * 1000
        logger.info(
            f"Plano de corte: {summary.total_stock_pieces} barras, "
            f"desperdício {summary.waste_percentage:.2f}%",
            extra={"duration_ms": round(processing_time, 2), "bars": summary.total_stock_pieces,
                   "waste_percentage": round(summary.waste_percentage, 2)},
        )

        return OptimizationResult(
            cut_pattern=cut_pattern,
            stock_lengths_needed=stock_lengths_needed,
            summary=summary,
            processing_time=processing_time,
        )

    def find_best_stock_length(self, demand: DemandInput,
                               min_length: Optional[float] = None,
                               max_length: Optional[float] = None,
                               kerf: Optional[float] = None,
                               timeout: Optional[float] = SEARCH_TIMEOUT) -> int:
        """
        Busca exaustiva do comprimento inteiro de barra que consome menos material

        Args:
            demand: Linhas de demanda
            min_length: Menor comprimento a testar (elevado para maior peça + 1)
            max_length: Maior comprimento a testar (inclusivo)
            kerf: Espessura da serra
            timeout: Limite em segundos, verificado entre comprimentos

        Returns:
            O menor comprimento entre os de menor consumo total
        """
        kerf = self.kerf_width if kerf is None else kerf
        min_length = DEFAULT_MIN_LENGTH if min_length is None else min_length
        max_length = DEFAULT_MAX_LENGTH if max_length is None else max_length

        work_items = self._prepare_work_items(_as_demand(demand))
        if work_items:
            longest = max(item.length for item in work_items)
            min_length = max(min_length, longest + 1)

        first, last = math.ceil(min_length), math.floor(max_length)
        if first > last:
            raise StockLengthRangeError(min_length, max_length)

        groups: Dict[Tuple[str, str], List[WorkItem]] = {}
        for item in work_items:
            groups.setdefault((item.part_no, item.finish), []).append(item)
        ordered_groups = [sorted(group, key=_by_length, reverse=True) for group in groups.values()]

        candidates = np.arange(first, last + 1)
        totals = np.zeros(len(candidates))
        started = time.monotonic()

        for i, length in enumerate(candidates):
            if timeout is not None and i and time.monotonic() - started > timeout:
                logger.warning(f"Busca de comprimento interrompida em {candidates[i - 1]}")
                raise OptimizationTimeoutError(timeout, float(candidates[i - 1]))

            bars = 0
            for group in ordered_groups:
                for item in group:
                    item.reset()
                bars += self._count_bars(group, float(length), kerf)
            totals[i] = length * bars

        best_length = int(candidates[int(np.argmin(totals))])
        logger.info(
            f"Melhor comprimento de barra: {best_length} "
            f"({len(candidates)} comprimentos testados entre {first} e {last})",
            extra={"duration_ms": round((time.monotonic() - started) * 1000, 2),
                   "stock_length": best_length, "candidates": len(candidates)},
        )
        return best_length

    def optimize_request(self, request: OptimizationRequest) -> Tuple[OptimizationResult, Optional[int]]:
        """
        Executa a requisição no modo informado (catálogo explícito ou comprimento automático)

        Returns:
            Resultado e, no modo automático, o comprimento escolhido
        """
        if request.find_optimal_length:
            optimal_length = self.find_best_stock_length(
                request.parts, request.min_length, request.max_length, request.blade_width
            )
            catalog = build_stock_catalog(request.parts, optimal_length)
            return self.optimize(request.parts, catalog, request.blade_width), optimal_length

        if request.stock_lengths is None:
            raise ValueError("stock_lengths é obrigatório quando find_optimal_length é falso")
        return self.optimize(request.parts, request.stock_lengths, request.blade_width), None

    def _prepare_work_items(self, demand: List[DemandLine]) -> List[WorkItem]:
        """Agrupa a demanda por perfil, acabamento, comprimento, marca e fabricação"""
        grouped: Dict[Tuple[str, str, float, str, str], WorkItem] = {}

        for line in demand:
            key = (line.part_no, line.finish, line.length, line.mark_no, line.fab)
            work_item = grouped.get(key)
            if work_item is None:
                work_item = WorkItem(
                    item=len(grouped) + 1,
                    part_no=line.part_no,
                    finish=line.finish,
                    length=line.length,
                    mark=line.mark_no,
                    fab=line.fab,
                    release=line.release,
                    qty=0,
                    stock_length=line.stock_length_size or 0,
                )
                grouped[key] = work_item
            work_item.qty += line.qty

        work_items = list(grouped.values())
        for work_item in work_items:
            work_item.remaining = work_item.qty
        return work_items

    def _validate_part_lengths(self, demand: List[DemandLine],
                               stock_options: List[StockOption]) -> List[str]:
        """Retorna os perfis (sem repetição) que não cabem em nenhuma barra"""
        lengths_by_group: Dict[Tuple[str, str], List[float]] = {}
        for option in stock_options:
            lengths_by_group.setdefault((option.part_no, option.finish), []).extend(option.candidates)

        too_long: List[str] = []
        for line in demand:
            available = lengths_by_group.get((line.part_no, line.finish), [])
            if not available or max(available) < line.length:
                if line.part_no not in too_long:
                    too_long.append(line.part_no)
        return too_long

    def _select_stock_lengths(self, work_items: List[WorkItem],
                              stock_options: List[StockOption], kerf: float) -> None:
        """Para perfis com dois comprimentos possíveis, fixa o de menor sobra"""
        for option in stock_options:
            if not option.has_alternative:
                continue

            group = [item for item in work_items
                     if item.part_no == option.part_no and item.finish == option.finish]
            if not group:
                continue

            longest = max(item.length for item in group)
            best_length = 0.0
            best_waste = math.inf

            for length, qty in ((option.length1, option.qty1), (option.length2, option.qty2)):
                if length <= 0 or qty <= 0 or length < longest:
                    continue

                trial = [item.copy() for item in group]
                waste = self._pack_bar(trial, length, kerf, commit=False).remaining_length
                logger.debug(f"{option.part_no}/{option.finish}: barra {length:g} sobra {waste:g}")

                if waste < best_waste:
                    best_waste = waste
                    best_length = length

            if best_length:
                for item in group:
                    item.stock_length = best_length

    def _assign_default_stock_lengths(self, work_items: List[WorkItem],
                                      stock_options: List[StockOption]) -> None:
        """Itens sem barra recebem o primeiro comprimento do catálogo que os comporta"""
        for item in work_items:
            if item.stock_length:
                continue

            matching = [opt for opt in stock_options
                        if opt.part_no == item.part_no and opt.finish == item.finish]
            if not matching:
                continue

            if matching[0].length1 >= item.length:
                item.stock_length = matching[0].length1
            else:
                item.stock_length = next(
                    (length for opt in matching for length in opt.candidates if length >= item.length), 0
                )

    def _assemble_plan(self, work_items: List[WorkItem], stock_options: List[StockOption],
                       kerf: float) -> Tuple[List[CutPlanBar], List[StockConsumption]]:
        """Corta cada grupo (perfil, acabamento, barra) até zerar a demanda"""
        self._assign_default_stock_lengths(work_items, stock_options)

        groups: Dict[Tuple[str, str, float], List[WorkItem]] = {}
        for item in work_items:
            groups.setdefault((item.part_no, item.finish, item.stock_length), []).append(item)

        cut_pattern: List[CutPlanBar] = []
        stock_lengths_needed: List[StockConsumption] = []

        for (part_no, finish, stock_length), group in groups.items():
            ordered = sorted(group, key=_by_length, reverse=True)
            consumption = None
            stock_id = 0

            while any(item.remaining > 0 for item in ordered):
                packing = self._pack_bar(ordered, stock_length, kerf, commit=True)
                stock_id += 1
                cut_pattern.append(CutPlanBar(
                    stock_length=stock_length,
                    stock_id=stock_id,
                    cuts=[item.to_cut() for item in packing.placed],
                    remaining_length=packing.remaining_length,
                ))

                if consumption is None:
                    consumption = StockConsumption(part_no=part_no, finish=finish,
                                                   stock_length=stock_length, quantity=0)
                    stock_lengths_needed.append(consumption)
                consumption.quantity += 1

            logger.debug(f"{part_no}/{finish} em barras de {stock_length:g}: {stock_id} barras")

        return cut_pattern, stock_lengths_needed

    def _count_bars(self, ordered: List[WorkItem], stock_length: float, kerf: float) -> int:
        """Quantas barras o grupo consome (altera o estado dos itens)"""
        bars = 0
        while any(item.remaining > 0 for item in ordered):
            self._pack_bar(ordered, stock_length, kerf, commit=True)
            bars += 1
        return bars

    def _pack_bar(self, items: List[WorkItem], stock_length: float, kerf: float,
                  commit: bool) -> BarPacking:
        """
        Monta uma barra: âncora seguida do maior encaixe possível

        Args:
            items: Itens de um mesmo perfil/acabamento/barra
            stock_length: Comprimento da barra
            kerf: Espessura da serra (descontada após cada peça, inclusive a última)
            commit: Se falso, apenas avalia; os itens não são alterados

        Returns:
            Peças colocadas e sobra da barra
        """
        ordered = sorted(items, key=_by_length, reverse=True)
        left = [item.remaining for item in ordered]

        if not any(left):
            return BarPacking([], stock_length)

        anchor_index = next(
            (i for i, item in enumerate(ordered) if left[i] > 0 and item.length <= stock_length),
            None,
        )
        if anchor_index is None:
            first = ordered[0]
            raise InternalPackingInvariantError(first.part_no, first.finish, stock_length)

        anchor = ordered[anchor_index]
        left[anchor_index] -= 1
        placed = [anchor]
        bar_left = stock_length - (anchor.length + kerf)

        while True:
            best_index = -1
            best_length = 0.0
            for i, item in enumerate(ordered):
                if left[i] > 0 and item.length + kerf <= bar_left and item.length > best_length:
                    best_index = i
                    best_length = item.length

            if best_index == -1:
                break

            left[best_index] -= 1
            placed.append(ordered[best_index])
            bar_left -= ordered[best_index].length + kerf

        if commit:
            anchor.anchor_count += 1
            for filler in placed[1:]:
                filler.drop_count += 1
                if filler is not anchor and filler.item not in anchor.used_drops_for:
                    anchor.used_drops_for.append(filler.item)
            for item, remaining in zip(ordered, left):
                item.remaining = remaining

        return BarPacking(placed, bar_left)


_default_optimizer = ExtrusionOptimizer()


def optimize_extrusions(demand: DemandInput, stock_options: StockInput,
                        kerf: float = DEFAULT_KERF) -> OptimizationResult:
    """Atalho para ExtrusionOptimizer.optimize"""
    return _default_optimizer.optimize(demand, stock_options, kerf)


def find_best_stock_length(demand: DemandInput,
                           min_length: float = DEFAULT_MIN_LENGTH,
                           max_length: float = DEFAULT_MAX_LENGTH,
                           kerf: float = DEFAULT_KERF,
                           timeout: Optional[float] = SEARCH_TIMEOUT) -> int:
    """Atalho para ExtrusionOptimizer.find_best_stock_length"""
    return _default_optimizer.find_best_stock_length(demand, min_length, max_length, kerf, timeout)
