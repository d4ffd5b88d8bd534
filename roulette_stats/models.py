"""
Modelos de dados do Roulette Stats.
Implementa o modelo de resultado (spin), as propriedades físicas de cada
número e a configuração das estatísticas.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple


logger = logging.getLogger(__name__)


WHEEL_SIZE = 37

# Números vermelhos na roleta europeia
RED_NUMBERS: FrozenSet[int] = frozenset({
    1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36
})

# Ordem física do cilindro europeu, a partir do zero, sentido horário
WHEEL_ORDER: Tuple[int, ...] = (
    0, 32, 15, 19, 4, 21, 2, 25, 17, 34, 6, 27, 13, 36, 11, 30, 8, 23, 10,
    5, 24, 16, 33, 1, 20, 14, 31, 9, 22, 18, 29, 7, 28, 12, 35, 3, 26,
)

VOISINS: Tuple[int, ...] = (22, 18, 29, 7, 28, 12, 35, 3, 26, 0, 32, 15, 19, 4, 21, 2, 25)
ORPHELINS: Tuple[int, ...] = (17, 34, 6, 1, 20, 14, 31, 9)
TIERS: Tuple[int, ...] = (27, 13, 36, 11, 30, 8, 23, 10, 5, 24, 16, 33)


class Color(Enum):
    """Cores da roleta."""
    RED = "R"
    BLACK = "B"
    GREEN = "G"


class Parity(Enum):
    """Paridade de um número (zero não tem paridade)."""
    EVEN = "EVEN"
    ODD = "ODD"
    NONE = "NONE"


class Range(Enum):
    """Metade da mesa: baixo (1-18) ou alto (19-36)."""
    LOW = "LOW"
    HIGH = "HIGH"
    NONE = "NONE"


class Sector(Enum):
    """Setores clássicos do cilindro."""
    VOISINS = "VOISINS"
    ORPHELINS = "ORPHELINS"
    TIERS = "TIERS"


class RouletteStatsError(Exception):
    """Erro base do Roulette Stats."""
    pass


class InvalidNumberError(RouletteStatsError, ValueError):
    """Erro para número de roleta inválido."""
    pass


class ConfigurationError(RouletteStatsError):
    """Erro de configuração inválida."""
    pass


_SECTOR_BY_NUMBER: Dict[int, Sector] = {}
for _members, _sector in ((VOISINS, Sector.VOISINS), (ORPHELINS, Sector.ORPHELINS), (TIERS, Sector.TIERS)):
    for _n in _members:
        _SECTOR_BY_NUMBER[_n] = _sector


def check_number(n: int) -> int:
    """
    Garante que `n` é um número válido da roleta europeia.

    Raises:
        InvalidNumberError: Se `n` não for inteiro ou estiver fora de 0-36
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidNumberError(f"Número inválido: {n!r}")
    if not 0 <= n <= 36:
        raise InvalidNumberError(f"Número {n} fora do intervalo válido (0-36)")
    return n


def parse_number(num_str: str) -> int:
    """
    Converte a entrada do usuário em número da roleta.

    Raises:
        InvalidNumberError: Se o formato ou o valor forem inválidos
    """
    text = str(num_str).strip()
    try:
        n = int(text)
    except ValueError:
        raise InvalidNumberError(f"Formato de número inválido: {num_str}")
    return check_number(n)


@dataclass(frozen=True)
class NumberProperties:
    """
    Propriedades físicas de um número.
    Imutável; `dozen` e `column` são None para o zero.
    """
    number: int
    color: Color
    parity: Parity
    range: Range
    dozen: Optional[int]
    column: Optional[int]
    sector: Sector
    wheel_position: int


def number_properties(n: int) -> NumberProperties:
    """
    Deriva cor, paridade, metade, dúzia, coluna e setor de um número.

    Args:
        n: Número de 0 a 36

    Returns:
        Instância de NumberProperties

    Raises:
        InvalidNumberError: Se o número for inválido (nunca ajusta o valor)
    """
    check_number(n)

    if n == 0:
        return NumberProperties(
            number=0,
            color=Color.GREEN,
            parity=Parity.NONE,
            range=Range.NONE,
            dozen=None,
            column=None,
            sector=_SECTOR_BY_NUMBER[0],
            wheel_position=0
        )

    return NumberProperties(
        number=n,
        color=Color.RED if n in RED_NUMBERS else Color.BLACK,
        parity=Parity.EVEN if n % 2 == 0 else Parity.ODD,
        range=Range.LOW if n <= 18 else Range.HIGH,
        dozen=(n - 1) // 12 + 1,
        column=(n - 1) % 3 + 1,
        sector=_SECTOR_BY_NUMBER[n],
        wheel_position=WHEEL_ORDER.index(n)
    )


# Tabela pré-calculada, reaproveitada por todas as consultas
PROPERTIES: Tuple[NumberProperties, ...] = tuple(number_properties(n) for n in range(WHEEL_SIZE))


@dataclass(frozen=True)
class Outcome:
    """
    Um resultado registrado da roleta.
    Imutável após o registro; o histórico é ordenado do mais recente ao mais antigo.
    """
    number: int
    sequence_index: int = 0
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        check_number(self.number)

    @property
    def properties(self) -> NumberProperties:
        return PROPERTIES[self.number]

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'number': self.number,
            'sequence_index': self.sequence_index,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'color': self.properties.color.value
        }


def history_from_numbers(numbers, start_index: int = 0) -> Tuple[Outcome, ...]:
    """
    Monta um histórico a partir de números (do mais recente ao mais antigo).

    O mais antigo recebe `start_index` e os índices crescem até o mais recente.
    """
    numbers = list(numbers)
    total = len(numbers)
    return tuple(
        Outcome(number=n, sequence_index=start_index + total - 1 - i)
        for i, n in enumerate(numbers)
    )


@dataclass
class StatsConfig:
    """Configuração das estatísticas e da classificação."""
    windows: Tuple[int, ...] = (9, 18, 27, 36)
    long_windows: Tuple[int, ...] = (72, 144, 288)
    number_hot: float = 7.0
    number_very_hot: float = 15.0
    group_hot: float = 10.0
    group_very_hot: float = 20.0
    alert_gap_multiple: float = 3.0
    alert_absence_cap: int = 15
    hot_cold_top_n: int = 3
    max_history: int = 0
    cache_size: int = 8
    anomaly_window: int = 16
    max_sessions: int = 256

    def __post_init__(self):
        for name in ('windows', 'long_windows'):
            value = getattr(self, name)
            if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
                raise ConfigurationError(f"'{name}' deve ser uma lista de inteiros")
            setattr(self, name, tuple(value))
        self.validate()

    def validate(self) -> None:
        """
        Valida os limites configurados.

        Raises:
            ConfigurationError: Se algum valor for incoerente
        """
        for name in ('number_hot', 'number_very_hot', 'group_hot', 'group_very_hot', 'alert_gap_multiple'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"'{name}' deve ser numérico, recebido {value!r}")
        for name in ('alert_absence_cap', 'hot_cold_top_n', 'max_history', 'cache_size',
                     'anomaly_window', 'max_sessions'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"'{name}' deve ser inteiro, recebido {value!r}")

        for w in self.windows + self.long_windows:
            if isinstance(w, bool) or not isinstance(w, int) or w <= 0:
                raise ConfigurationError(f"Janela inválida: {w!r}")
        if not 0 <= self.number_hot <= self.number_very_hot:
            raise ConfigurationError("Limites de números devem satisfazer 0 <= hot <= very_hot")
        if not 0 <= self.group_hot <= self.group_very_hot:
            raise ConfigurationError("Limites de grupos devem satisfazer 0 <= hot <= very_hot")
        if self.alert_gap_multiple <= 0 or self.alert_absence_cap <= 0:
            raise ConfigurationError("Limites de alerta devem ser positivos")
        if self.hot_cold_top_n < 0 or self.max_history < 0 or self.cache_size < 0 or self.max_sessions < 0:
            raise ConfigurationError("Tamanhos não podem ser negativos")
        if self.anomaly_window <= 0:
            raise ConfigurationError("Janela de anomalias deve ser positiva")

    @property
    def all_windows(self) -> Tuple[int, ...]:
        return self.windows + tuple(w for w in self.long_windows if w not in self.windows)

    @classmethod
    def from_file(cls, file_path: Path) -> 'StatsConfig':
        """Carrega a configuração de um arquivo JSON."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Arquivo de configuração não encontrado: {file_path}. Usando padrões.")
            return cls()
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"JSON inválido no arquivo de configuração: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError("Arquivo de configuração deve conter um objeto JSON")

        unknown = sorted(set(data) - {f.name for f in fields(cls)})
        if unknown:
            raise ConfigurationError(f"Campos de configuração desconhecidos: {', '.join(unknown)}")
        return cls(**data)

    def save_to_file(self, file_path: Path) -> None:
        """Salva a configuração em JSON."""
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def to_dict(self) -> dict:
        """Converte para dicionário."""
        data = asdict(self)
        data['windows'] = list(self.windows)
        data['long_windows'] = list(self.long_windows)
        return data
