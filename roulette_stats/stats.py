"""
Calculadoras de estatísticas do Roulette Stats.
Produz um StatRecord por número (0-36) e por grupo do catálogo a partir
de um histórico ordenado do mais recente ao mais antigo.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .classification import StatKind, Status, Temperature, status_for, temperature_for
from .groups import GroupDefinition, builtin_groups, validate
from .models import PROPERTIES, WHEEL_SIZE, Color, Outcome, StatsConfig, check_number


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatRecord:
    """
    Vetor de estatísticas de um número ou grupo.
    Imutável, inclusive `hits` (somente leitura); um novo registro é gerado
    a cada mudança do histórico.
    """
    key: Union[int, str]
    label: str
    kind: StatKind
    size: int
    spins: int
    hits: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    total_hits: int = 0
    absence_now: int = 0
    absence_max: int = 0
    consecutive_now: int = 0
    consecutive_max: int = 0
    actual_percent: float = 0.0
    expected_percent: float = 0.0
    deviation: float = 0.0
    z_score: float = 0.0
    just_hit: bool = False
    temperature: Temperature = Temperature.NORMAL
    status: Status = Status.NORM

    @property
    def last_spin(self) -> int:
        """Giros desde o último acerto (mesma grandeza que `absence_now`)."""
        return self.absence_now

    @property
    def expected_gap(self) -> float:
        """Intervalo teórico entre acertos."""
        return WHEEL_SIZE / self.size

    @property
    def due_ratio(self) -> float:
        return self.absence_now / self.expected_gap

    def hit_count(self, window: int) -> int:
        """Acertos nos últimos `window` giros (janela precisa estar configurada)."""
        return self.hits[window]

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'key': self.key,
            'label': self.label,
            'kind': self.kind.value,
            'size': self.size,
            'spins': self.spins,
            'hits': {f"L{w}": count for w, count in self.hits.items()},
            'total_hits': self.total_hits,
            'absence_now': self.absence_now,
            'absence_max': self.absence_max,
            'last_spin': self.last_spin,
            'consecutive_now': self.consecutive_now,
            'consecutive_max': self.consecutive_max,
            'actual_percent': self.actual_percent,
            'expected_percent': self.expected_percent,
            'deviation': self.deviation,
            'z_score': self.z_score,
            'expected_gap': self.expected_gap,
            'due_ratio': self.due_ratio,
            'just_hit': self.just_hit,
            'temperature': self.temperature.value,
            'status': self.status.value
        }


def history_numbers(history: Iterable[Union[Outcome, int]]) -> List[int]:
    """
    Extrai os números de um histórico.

    Aceita Outcome ou inteiros; inteiros são validados.

    Raises:
        InvalidNumberError: Se algum número estiver fora de 0-36
    """
    return [item.number if isinstance(item, Outcome) else check_number(item) for item in history]


def _scan(flags: Sequence[bool], windows: Sequence[int]) -> dict:
    """
    Varredura única das marcações de acerto (mais recente primeiro).

    Conta acertos por janela, ausência e sequência atuais e os máximos de
    ausência e de sequência em todo o histórico recebido.
    """
    total_spins = len(flags)
    window_set = set(windows)
    hits: Dict[int, int] = {}

    total = 0
    first_hit: Optional[int] = None
    leading_hits = 0
    run_hit = run_miss = 0
    max_hit = max_miss = 0

    for i, hit in enumerate(flags):
        if hit:
            total += 1
            run_hit += 1
            run_miss = 0
            if first_hit is None:
                first_hit = i
            if run_hit > max_hit:
                max_hit = run_hit
        else:
            run_miss += 1
            run_hit = 0
            if run_miss > max_miss:
                max_miss = run_miss

        if i == leading_hits and hit:
            leading_hits += 1

        if i + 1 in window_set:
            hits[i + 1] = total

    for w in windows:
        if w >= total_spins:
            hits[w] = total

    if total_spins == 0:
        absence_now = 0
    elif first_hit is None:
        absence_now = total_spins
    else:
        absence_now = first_hit

    return {
        'hits': MappingProxyType({w: hits[w] for w in windows}),
        'total_hits': total,
        'absence_now': absence_now,
        'absence_max': max_miss,
        'consecutive_now': leading_hits,
        'consecutive_max': max_hit,
    }


def _build_record(key: Union[int, str], label: str, kind: StatKind, size: int,
                  flags: Sequence[bool], config: StatsConfig) -> StatRecord:
    spins = len(flags)
    scan = _scan(flags, config.all_windows)

    probability = size / WHEEL_SIZE
    expected_percent = 100.0 * probability
    if spins:
        actual_percent = 100.0 * scan['total_hits'] / spins
        deviation = actual_percent - expected_percent
    else:
        # Histórico vazio: padrão neutro
        actual_percent = 0.0
        deviation = 0.0

    variance = spins * probability * (1 - probability)
    z_score = (scan['total_hits'] - spins * probability) / math.sqrt(variance) if variance > 0 else 0.0

    record = StatRecord(
        key=key,
        label=label,
        kind=kind,
        size=size,
        spins=spins,
        hits=scan['hits'],
        total_hits=scan['total_hits'],
        absence_now=scan['absence_now'],
        absence_max=scan['absence_max'],
        consecutive_now=scan['consecutive_now'],
        consecutive_max=scan['consecutive_max'],
        actual_percent=actual_percent,
        expected_percent=expected_percent,
        deviation=deviation,
        z_score=z_score,
        just_hit=bool(flags) and bool(flags[0]),
    )
    return replace(
        record,
        temperature=temperature_for(record.deviation, kind, config),
        status=status_for(record, kind, config)
    )


def compute_number_stats(history: Iterable[Union[Outcome, int]],
                         config: Optional[StatsConfig] = None) -> Dict[int, StatRecord]:
    """
    Calcula as estatísticas de cada número de 0 a 36.

    Args:
        history: Resultados do mais recente ao mais antigo
        config: Janelas e limites de classificação

    Returns:
        Dict número -> StatRecord
    """
    config = config or StatsConfig()
    numbers = history_numbers(history)

    stats = {
        n: _build_record(n, str(n), StatKind.NUMBER, 1, [x == n for x in numbers], config)
        for n in range(WHEEL_SIZE)
    }
    logger.debug(f"Estatísticas de números calculadas para {len(numbers)} giros")
    return stats


def _membership_mask(group: GroupDefinition) -> Tuple[bool, ...]:
    return tuple(n in group.members for n in range(WHEEL_SIZE))


def compute_group_stats(history: Iterable[Union[Outcome, int]],
                        groups: Optional[Sequence[GroupDefinition]] = None,
                        config: Optional[StatsConfig] = None) -> List[StatRecord]:
    """
    Calcula as estatísticas de cada grupo, na ordem do catálogo.

    Cada grupo é independente: grupos sobrepostos não recebem tratamento especial.

    Args:
        history: Resultados do mais recente ao mais antigo
        groups: Catálogo a analisar (padrão: grupos fixos)
        config: Janelas e limites de classificação

    Raises:
        GroupValidationError: Se algum grupo for vazio ou tiver números inválidos
    """
    config = config or StatsConfig()
    numbers = history_numbers(history)
    catalog = builtin_groups() if groups is None else groups

    records = []
    for group in catalog:
        validate(group, reserved_ids=())
        mask = _membership_mask(group)
        records.append(
            _build_record(group.id, group.label, StatKind.GROUP, group.size,
                          [mask[x] for x in numbers], config)
        )

    logger.debug(f"Estatísticas de {len(records)} grupos calculadas para {len(numbers)} giros")
    return records


def rank_hot_cold(records: Iterable[StatRecord], top_n: int = 3) -> Tuple[List[StatRecord], List[StatRecord]]:
    """
    Retorna os registros mais quentes e mais frios pelo desvio.

    Só entram desvios positivos (quentes) ou negativos (frios); empates
    preservam a ordem de entrada.
    """
    records = list(records)
    hot = sorted((r for r in records if r.deviation > 0), key=lambda r: -r.deviation)
    cold = sorted((r for r in records if r.deviation < 0), key=lambda r: r.deviation)
    return hot[:top_n], cold[:top_n]


def hit_counts_by_number(history: Iterable[Union[Outcome, int]], window: int = 36) -> Dict[int, int]:
    """Contagem de cada número nos últimos `window` giros."""
    counts = {n: 0 for n in range(WHEEL_SIZE)}
    for n in history_numbers(history)[:window]:
        counts[n] += 1
    return counts


@dataclass(frozen=True)
class Anomaly:
    """Ausência ou viés improvável nos giros mais recentes."""
    kind: str  # 'missing_dozen' | 'missing_column' | 'color_bias'
    description: str
    severity: str  # 'high' | 'critical'
    data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'kind': self.kind,
            'description': self.description,
            'severity': self.severity,
            'data': dict(self.data)
        }


# Viés de cor só é avaliado a partir desta janela
COLOR_BIAS_MIN_WINDOW = 20
COLOR_BIAS_RATIO = 0.75
# Coluna ausente só é avaliada a partir desta janela
MISSING_COLUMN_MIN_WINDOW = 15

_DOZEN_LABELS = {1: '1-12', 2: '13-24', 3: '25-36'}


def detect_anomalies(history: Iterable[Union[Outcome, int]], window: int = 16) -> List[Anomaly]:
    """
    Procura anomalias nos últimos `window` giros.

    Com menos giros que a janela não há anomalia. Detecta dúzia ausente
    (crítica), coluna ausente (janelas a partir de 15) e viés de cor acima
    de 75% (janelas a partir de 20). O zero não conta para nenhuma delas.

    Raises:
        InvalidNumberError: Se algum número estiver fora de 0-36
    """
    numbers = history_numbers(history)
    if len(numbers) < window:
        return []

    recent = [PROPERTIES[n] for n in numbers[:window]]
    dozens = {d: 0 for d in (1, 2, 3)}
    columns = {c: 0 for c in (1, 2, 3)}
    colors = {Color.RED: 0, Color.BLACK: 0, Color.GREEN: 0}
    for props in recent:
        colors[props.color] += 1
        if props.dozen is not None:
            dozens[props.dozen] += 1
            columns[props.column] += 1

    anomalies = []
    for dozen, count in dozens.items():
        if count == 0:
            anomalies.append(Anomaly(
                kind='missing_dozen',
                description=f"Dúzia {dozen} ({_DOZEN_LABELS[dozen]}) não saiu nos últimos {window} giros",
                severity='critical',
                data=MappingProxyType({'dozen': dozen, 'window': window})
            ))

    dominant = Color.RED if colors[Color.RED] > colors[Color.BLACK] else Color.BLACK
    bias = colors[dominant] / window
    if window >= COLOR_BIAS_MIN_WINDOW and bias > COLOR_BIAS_RATIO:
        anomalies.append(Anomaly(
            kind='color_bias',
            description=f"Viés extremo de {dominant.name.lower()}: {round(bias * 100)}% nos últimos {window} giros",
            severity='high',
            data=MappingProxyType({'color': dominant.value, 'bias': bias, 'window': window})
        ))

    if window >= MISSING_COLUMN_MIN_WINDOW:
        for column, count in columns.items():
            if count == 0:
                anomalies.append(Anomaly(
                    kind='missing_column',
                    description=f"Coluna {column} não saiu nos últimos {window} giros",
                    severity='high',
                    data=MappingProxyType({'column': column, 'window': window})
                ))

    if anomalies:
        logger.debug(f"{len(anomalies)} anomalias nos últimos {window} giros")
    return anomalies
