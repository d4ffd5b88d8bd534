"""
Fronteira do módulo consultivo do Roulette Stats.
Define o contexto entregue a um conselheiro de apostas e a classe
abstrata que ele implementa; a estratégia adaptativa ainda não existe.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging

from .engine import StatsSnapshot
from .models import Outcome
from .stats import StatRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvisoryContext:
    """Entrada do conselheiro: giros recentes, banca, limites da mesa e estatísticas dos grupos."""
    recent_spins: Tuple[int, ...]
    bankroll: float
    table_min: float
    table_max: float
    group_stats: Tuple[StatRecord, ...] = ()


@dataclass(frozen=True)
class Decision:
    """Decisão de apostar ou pular."""
    action: str  # 'BET' | 'SKIP'
    target: Optional[str] = None
    stake: Optional[float] = None
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'action': self.action,
            'target': self.target,
            'stake': self.stake,
            'reasons': list(self.reasons)
        }


def build_context(snapshot: StatsSnapshot, history: Tuple[Outcome, ...], bankroll: float,
                  table_min: float, table_max: float, recent: int = 20) -> AdvisoryContext:
    """
    Monta o contexto a partir de um snapshot já calculado.

    O conselheiro consome os registros dos grupos; nunca recalcula estatísticas.

    Raises:
        ValueError: Se a banca ou os limites da mesa forem inválidos
    """
    if bankroll < 0:
        raise ValueError("Banca não pode ser negativa")
    if table_min <= 0 or table_max < table_min:
        raise ValueError("Limites da mesa inválidos")

    return AdvisoryContext(
        recent_spins=tuple(o.number for o in history[:recent]),
        bankroll=bankroll,
        table_min=table_min,
        table_max=table_max,
        group_stats=snapshot.groups
    )


class Advisor(ABC):
    """Classe base abstrata para conselheiros de aposta."""

    @abstractmethod
    def decide(self, context: AdvisoryContext) -> Decision:
        """
        Analisa o contexto e decide entre apostar ou pular.

        Args:
            context: Giros recentes, banca, limites e estatísticas dos grupos

        Returns:
            Decisão tomada
        """
        pass


class SkipAdvisor(Advisor):
    """Conselheiro padrão enquanto a estratégia adaptativa não existe: sempre pula."""

    def decide(self, context: AdvisoryContext) -> Decision:
        logger.debug(f"Conselho solicitado com {len(context.recent_spins)} giros recentes")
        return Decision(action='SKIP', reasons=['Estratégia adaptativa não implementada'])
