"""
Política de classificação do Roulette Stats.
Converte estatísticas brutas em rótulos: temperatura (quente/frio) e,
para grupos, status de alerta por atraso.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from .models import StatsConfig

if TYPE_CHECKING:
    from .stats import StatRecord


class StatKind(Enum):
    """Tipo do registro estatístico."""
    NUMBER = "number"
    GROUP = "group"


class Temperature(Enum):
    """Temperatura derivada do desvio."""
    VERY_HOT = "VERY HOT"
    HOT = "HOT"
    NORMAL = "NORMAL"
    COLD = "COLD"
    VERY_COLD = "VERY COLD"


class Status(Enum):
    """Status exibido na tabela de grupos."""
    ALERT = "ALERT"
    HOT = "HOT"
    COLD = "COLD"
    NORM = "NORM"


DEFAULT_CONFIG = StatsConfig()

_STATUS_BY_TEMPERATURE = {
    Temperature.VERY_HOT: Status.HOT,
    Temperature.HOT: Status.HOT,
    Temperature.NORMAL: Status.NORM,
    Temperature.COLD: Status.COLD,
    Temperature.VERY_COLD: Status.COLD,
}


def temperature_for(deviation: float, kind: StatKind, config: Optional[StatsConfig] = None) -> Temperature:
    """
    Classifica o desvio (pontos percentuais) em uma temperatura.

    Comparações estritas: um valor exatamente no limite fica no rótulo mais calmo.
    """
    config = config or DEFAULT_CONFIG
    if kind == StatKind.NUMBER:
        hot, very_hot = config.number_hot, config.number_very_hot
    else:
        hot, very_hot = config.group_hot, config.group_very_hot

    if deviation > very_hot:
        return Temperature.VERY_HOT
    if deviation > hot:
        return Temperature.HOT
    if deviation < -very_hot:
        return Temperature.VERY_COLD
    if deviation < -hot:
        return Temperature.COLD
    return Temperature.NORMAL


def alert_threshold(expected_gap: float, config: Optional[StatsConfig] = None) -> float:
    """Ausência máxima tolerada antes do alerta de atraso."""
    config = config or DEFAULT_CONFIG
    return min(config.alert_gap_multiple * expected_gap, float(config.alert_absence_cap))


def is_overdue(record: 'StatRecord', config: Optional[StatsConfig] = None) -> bool:
    """Verdadeiro quando a ausência atual supera o limite de atraso do grupo."""
    if record.spins == 0:
        return False
    return record.absence_now > alert_threshold(record.expected_gap, config)


def status_for(record: 'StatRecord', kind: StatKind, config: Optional[StatsConfig] = None) -> Status:
    """Status da tabela: ALERT (só grupos) tem precedência sobre quente/frio."""
    if kind == StatKind.GROUP and is_overdue(record, config):
        return Status.ALERT
    return _STATUS_BY_TEMPERATURE[temperature_for(record.deviation, kind, config)]


def classify(record: 'StatRecord', kind: StatKind,
             config: Optional[StatsConfig] = None) -> Union[Temperature, Status]:
    """
    Rótulo principal de um registro.

    Números recebem uma temperatura; grupos recebem um status, que pode
    ser ALERT independentemente do eixo quente/frio.
    """
    if kind == StatKind.NUMBER:
        return temperature_for(record.deviation, kind, config)
    return status_for(record, kind, config)
