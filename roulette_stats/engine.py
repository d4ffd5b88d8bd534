"""
Motor principal do Roulette Stats.
Gera um snapshot de estatísticas por versão do histórico e gerencia as
sessões em memória que alimentam a API.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Hashable, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import threading

from .classification import Status
from .groups import GroupDefinition, GroupKind, GroupValidationError, merge
from .models import InvalidNumberError, Outcome, StatsConfig, parse_number
from .stats import (
    Anomaly, StatRecord, compute_group_stats, compute_number_stats, detect_anomalies,
    history_numbers, rank_hot_cold
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsSnapshot:
    """
    Resultado compartilhado para uma versão do histórico.
    Imutável; todas as telas (faixa de calor, tabela, matriz de grupos)
    leem o mesmo snapshot.
    """
    spins: int
    numbers: Mapping[int, StatRecord]
    groups: Tuple[StatRecord, ...]
    hot_numbers: Tuple[StatRecord, ...] = ()
    cold_numbers: Tuple[StatRecord, ...] = ()
    hot_groups: Tuple[StatRecord, ...] = ()
    cold_groups: Tuple[StatRecord, ...] = ()
    anomalies: Tuple[Anomaly, ...] = ()

    def group(self, group_id: str) -> StatRecord:
        """Registro de um grupo pelo id."""
        for record in self.groups:
            if record.key == group_id:
                return record
        raise KeyError(group_id)

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'spins': self.spins,
            'numbers': [self.numbers[n].to_dict() for n in sorted(self.numbers)],
            'groups': [r.to_dict() for r in self.groups],
            'hot_numbers': [r.key for r in self.hot_numbers],
            'cold_numbers': [r.key for r in self.cold_numbers],
            'hot_groups': [r.key for r in self.hot_groups],
            'cold_groups': [r.key for r in self.cold_groups],
            'anomalies': [a.to_dict() for a in self.anomalies]
        }


def _catalog_key(groups: Sequence[GroupDefinition]) -> Tuple[Hashable, ...]:
    return tuple((g.id, g.label, tuple(sorted(g.members))) for g in groups)


class StatsEngine:
    """
    Calcula snapshots com cache opcional por conteúdo do histórico.
    Thread-safe; o cache nunca altera o resultado de um recálculo completo.
    """

    def __init__(self, config: Optional[StatsConfig] = None):
        self.config = config or StatsConfig()
        self._cache: 'OrderedDict[Hashable, StatsSnapshot]' = OrderedDict()
        self._lock = threading.Lock()

    def compute(self, history: Sequence[Union[Outcome, int]],
                custom_groups: Sequence[GroupDefinition] = ()) -> StatsSnapshot:
        """
        Recalcula o snapshot completo, sem cache.

        Raises:
            InvalidNumberError: Se o histórico contiver número inválido
            GroupValidationError: Se algum grupo personalizado for inválido
        """
        catalog = merge(custom_groups)
        numbers = compute_number_stats(history, self.config)
        groups = compute_group_stats(history, catalog, self.config)

        top_n = self.config.hot_cold_top_n
        hot_numbers, cold_numbers = rank_hot_cold(numbers.values(), top_n)
        hot_groups, cold_groups = rank_hot_cold(groups, top_n)

        return StatsSnapshot(
            spins=len(history),
            numbers=MappingProxyType(numbers),
            groups=tuple(groups),
            hot_numbers=tuple(hot_numbers),
            cold_numbers=tuple(cold_numbers),
            hot_groups=tuple(hot_groups),
            cold_groups=tuple(cold_groups),
            anomalies=tuple(detect_anomalies(history, self.config.anomaly_window))
        )

    def snapshot(self, history: Sequence[Union[Outcome, int]],
                 custom_groups: Sequence[GroupDefinition] = ()) -> StatsSnapshot:
        """Snapshot da versão atual do histórico, reaproveitando o cache."""
        if self.config.cache_size == 0:
            return self.compute(history, custom_groups)

        key = (tuple(history_numbers(history)), _catalog_key(custom_groups))
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        result = self.compute(history, custom_groups)

        with self._lock:
            self._cache[key] = result
            while len(self._cache) > self.config.cache_size:
                self._cache.popitem(last=False)
        return result

    def clear_cache(self):
        with self._lock:
            self._cache.clear()


@dataclass
class SpinSession:
    """
    Sessão em memória: dona do histórico e dos grupos personalizados.
    O motor recebe sempre uma cópia imutável do histórico.
    """
    engine: StatsEngine = field(default_factory=StatsEngine)
    history: List[Outcome] = field(default_factory=list)
    custom_groups: List[GroupDefinition] = field(default_factory=list)
    next_index: int = 0

    @property
    def config(self) -> StatsConfig:
        return self.engine.config

    def _record(self, number: int) -> Outcome:
        outcome = Outcome(number=number, sequence_index=self.next_index, timestamp=datetime.now())
        self.next_index += 1
        self.history.insert(0, outcome)

        max_history = self.config.max_history
        if max_history and len(self.history) > max_history:
            del self.history[max_history:]
        return outcome

    def history_view(self) -> Tuple[Outcome, ...]:
        """Cópia imutável do histórico (mais recente primeiro)."""
        return tuple(self.history)

    def snapshot(self) -> StatsSnapshot:
        return self.engine.snapshot(self.history_view(), tuple(self.custom_groups))

    def add_spin(self, num_str: Union[str, int]) -> dict:
        """
        Registra um novo número da roleta.

        Args:
            num_str: O número que saiu

        Returns:
            Dict com resultado do processamento
        """
        try:
            number = parse_number(num_str)
        except InvalidNumberError as e:
            return {'success': False, 'error': str(e)}

        outcome = self._record(number)
        snapshot = self.snapshot()
        logger.info(f"Giro registrado: {number} (#{outcome.sequence_index})")

        return {
            'success': True,
            'outcome': outcome.to_dict(),
            'total_spins': snapshot.spins,
            'hot_numbers': [r.key for r in snapshot.hot_numbers],
            'cold_numbers': [r.key for r in snapshot.cold_numbers],
            'alerts': [r.key for r in snapshot.groups if r.status == Status.ALERT],
            'anomalies': [a.to_dict() for a in snapshot.anomalies],
            'history': [o.number for o in self.history[:20]]
        }

    def add_spins(self, numbers: Sequence[Union[str, int]]) -> dict:
        """
        Carrega vários resultados de uma vez (do mais recente ao mais antigo).

        Nada é registrado se algum número for inválido.
        """
        parsed = []
        for num_str in numbers:
            try:
                parsed.append(parse_number(num_str))
            except InvalidNumberError as e:
                return {'success': False, 'error': str(e)}

        # Processa na ordem correta (mais antigo primeiro)
        for number in reversed(parsed):
            self._record(number)

        logger.info(f"Histórico carregado com {len(parsed)} resultados")
        return {
            'success': True,
            'message': f'{len(parsed)} resultados carregados',
            'total_spins': len(self.history)
        }

    def undo(self) -> dict:
        """Remove o resultado mais recente."""
        if not self.history:
            return {'success': False, 'error': 'Histórico vazio'}
        removed = self.history.pop(0)
        logger.info(f"Giro desfeito: {removed.number} (#{removed.sequence_index})")
        return {'success': True, 'removed': removed.to_dict(), 'total_spins': len(self.history)}

    def add_group(self, data: dict) -> dict:
        """Valida e adiciona um grupo personalizado."""
        try:
            group = GroupDefinition.from_dict(data)
            merge(tuple(self.custom_groups) + (group,))
        except GroupValidationError as e:
            return {'success': False, 'error': str(e)}

        self.custom_groups.append(group)
        logger.info(f"Grupo personalizado adicionado: {group.id} ({group.size} números)")
        return {'success': True, 'group': group.to_dict()}

    def remove_group(self, group_id: str) -> dict:
        """Remove um grupo personalizado (grupos fixos não podem ser removidos)."""
        for group in self.custom_groups:
            if group.id == group_id:
                self.custom_groups.remove(group)
                logger.info(f"Grupo personalizado removido: {group_id}")
                return {'success': True, 'message': f"Grupo '{group_id}' removido"}
        return {'success': False, 'error': f"Grupo personalizado não encontrado: '{group_id}'"}

    def catalog(self) -> List[dict]:
        return [g.to_dict() for g in merge(tuple(self.custom_groups))]

    def get_stats(self, kind: Optional[GroupKind] = None) -> dict:
        """Retorna estatísticas atuais, opcionalmente só de um tipo de grupo."""
        snapshot = self.snapshot()
        result = snapshot.to_dict()
        if kind is not None:
            ids = {g.id for g in merge(tuple(self.custom_groups)) if g.kind == kind}
            result['groups'] = [r for r in result['groups'] if r['key'] in ids]
        result['success'] = True
        result['history'] = [o.number for o in self.history[:20]]
        return result

    def reset(self) -> dict:
        """Reseta completamente a sessão."""
        self.history.clear()
        self.custom_groups.clear()
        self.next_index = 0
        self.engine.clear_cache()

        logger.info("Sessão resetada")
        return {'success': True, 'message': 'Sessão reiniciada'}


class SessionManager:
    """
    Gerencia múltiplas sessões (uma por usuário/mesa).
    Todas compartilham o mesmo StatsEngine e, portanto, o mesmo cache.
    No máximo `max_sessions` sessões identificadas ficam em memória; a
    usada há mais tempo é descartada primeiro (0 = sem limite).
    """

    def __init__(self, config: Optional[StatsConfig] = None):
        self.engine = StatsEngine(config)
        self._sessions: 'OrderedDict[str, SpinSession]' = OrderedDict()
        self._default_session = SpinSession(engine=self.engine)
        self._lock = threading.Lock()

    def get_session(self, session_id: Optional[str] = None) -> SpinSession:
        """Obtém uma sessão."""
        if session_id is None:
            return self._default_session

        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
                return session

            session = SpinSession(engine=self.engine)
            self._sessions[session_id] = session
            max_sessions = self.engine.config.max_sessions
            while max_sessions and len(self._sessions) > max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info(f"Sessão descartada por inatividade: {evicted}")
            return session

    def clear_session(self, session_id: Optional[str] = None):
        """Limpa uma sessão."""
        if session_id is None:
            self._default_session = SpinSession(engine=self.engine)
        else:
            with self._lock:
                self._sessions.pop(session_id, None)
