"""
Modelos de dados para o sistema StockCut
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class DemandLine(BaseModel):
    """Linha de demanda: peça linear (perfil) a ser cortada"""
    part_no: str = Field(..., description="Código do perfil")
    finish: str = Field("", description="Acabamento")
    length: float = Field(..., gt=0, description="Comprimento nominal da peça")
    qty: int = Field(1, ge=0, description="Quantidade necessária")
    mark_no: str = Field("", description="Marca da peça")
    fab: str = Field("", description="Etiqueta de fabricação")
    release: str = Field("", description="Etiqueta de liberação")
    stock_length_size: Optional[float] = Field(None, ge=0, description="Barra de estoque já atribuída")

    @field_validator('stock_length_size')
    def validate_stock_length_size(cls, v, info: ValidationInfo):
        length = info.data.get('length')
        if v and length is not None and v < length:
            raise ValueError("A barra atribuída é menor que a peça")
        return v


class StockOption(BaseModel):
    """Opção de barra de estoque para um perfil/acabamento (até dois comprimentos)"""
    part_no: str = Field(..., description="Código do perfil")
    finish: str = Field("", description="Acabamento")
    length1: float = Field(..., ge=0, description="Primeiro comprimento disponível")
    qty1: int = Field(0, ge=0, description="Quantidade no primeiro comprimento")
    length2: float = Field(0, ge=0, description="Segundo comprimento (0 = sem alternativa)")
    qty2: int = Field(0, ge=0, description="Quantidade no segundo comprimento")

    @property
    def has_alternative(self) -> bool:
        """Se existe escolha entre dois comprimentos"""
        return self.length2 > 0 and self.qty2 > 0

    @property
    def candidates(self) -> List[float]:
        """Comprimentos positivos oferecidos nesta linha"""
        return [l for l in (self.length1, self.length2) if l > 0]


class Cut(BaseModel):
    """Peça posicionada numa barra"""
    part_no: str
    length: float
    mark: str = ""
    finish: str = ""
    fab: str = ""
    release: str = ""


class CutPlanBar(BaseModel):
    """Uma barra física de estoque e os cortes planejados nela"""
    stock_length: float = Field(..., description="Comprimento da barra")
    stock_id: int = Field(..., ge=1, description="Sequência da barra dentro do grupo")
    cuts: List[Cut] = Field(..., description="Cortes na ordem de execução")
    remaining_length: float = Field(..., description="Sobra após os cortes")

    @property
    def used_length(self) -> float:
        """Comprimento útil cortado (sem serra)"""
        return sum(cut.length for cut in self.cuts)

    @property
    def efficiency(self) -> float:
        """Aproveitamento percentual da barra"""
        if self.stock_length <= 0:
            return 0.0
        return self.used_length / self.stock_length * 100


class StockConsumption(BaseModel):
    """Barras consumidas por perfil/acabamento/comprimento"""
    part_no: str
    finish: str = ""
    stock_length: float
    quantity: int = Field(0, ge=0)


class OptimizationSummary(BaseModel):
    """Métricas agregadas do plano de corte"""
    total_stock_length: float
    total_cut_length: float
    waste_percentage: float
    total_stock_pieces: int


class OptimizationResult(BaseModel):
    """Resultado completo da otimização"""
    cut_pattern: List[CutPlanBar] = Field(..., description="Barras planejadas")
    stock_lengths_needed: List[StockConsumption] = Field(..., description="Barras a comprar")
    summary: OptimizationSummary
    processing_time: float = Field(0, description="Tempo de processamento (ms)")


class OptimizationRequest(BaseModel):
    """Requisição para otimização"""
    parts: List[DemandLine] = Field(..., description="Lista de peças a cortar")
    stock_lengths: Optional[List[StockOption]] = Field(None, description="Catálogo de barras")
    blade_width: float = Field(0.25, ge=0, description="Espessura da serra")
    find_optimal_length: bool = Field(False, description="Buscar o melhor comprimento de barra")
    min_length: float = Field(180, gt=0, description="Menor comprimento a testar")
    max_length: float = Field(300, gt=0, description="Maior comprimento a testar")

    @field_validator('parts')
    def validate_parts(cls, v):
        if not v:
            raise ValueError("A lista de peças não pode ser vazia")
        return v


@dataclass
class WorkItem:
    """Grupo único de demanda manipulado pelo motor durante uma otimização"""
    item: int
    part_no: str
    finish: str
    length: float
    mark: str
    fab: str
    release: str
    qty: int
    remaining: int = 0
    anchor_count: int = 0
    drop_count: int = 0
    used_drops_for: List[int] = field(default_factory=list)
    stock_length: float = 0

    def reset(self) -> None:
        """Volta ao estado inicial, mantendo o comprimento de barra atribuído"""
        self.remaining = self.qty
        self.anchor_count = 0
        self.drop_count = 0
        self.used_drops_for.clear()

    def copy(self) -> "WorkItem":
        return replace(self, used_drops_for=list(self.used_drops_for))

    def to_cut(self) -> Cut:
        return Cut(
            part_no=self.part_no,
            length=self.length,
            mark=self.mark,
            finish=self.finish,
            fab=self.fab,
            release=self.release,
        )
