"""
Catálogo de grupos de apostas do Roulette Stats.
Os 47 grupos fixos são dados declarativos; grupos personalizados
compartilham o mesmo formato e são validados antes da mescla.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .models import ORPHELINS, RED_NUMBERS, TIERS, VOISINS, WHEEL_SIZE, RouletteStatsError


logger = logging.getLogger(__name__)


class GroupKind(Enum):
    """Origem do grupo."""
    TABLE = "table"
    WHEEL = "wheel"
    CUSTOM = "custom"


class GroupValidationError(RouletteStatsError, ValueError):
    """Erro para definição de grupo inválida ou id duplicado."""
    pass


@dataclass(frozen=True)
class GroupDefinition:
    """
    Definição de um grupo de números tratado como um único alvo.
    Imutável; `members` é um subconjunto de 0-36.
    """
    id: str
    label: str
    members: FrozenSet[int]
    category: str = "Custom"
    kind: GroupKind = GroupKind.CUSTOM

    def __post_init__(self):
        # Aceita listas/tuplas vindas do armazenamento externo
        if not isinstance(self.members, frozenset):
            object.__setattr__(self, 'members', frozenset(self.members))

    @property
    def size(self) -> int:
        return len(self.members)

    @staticmethod
    def from_dict(data: dict) -> 'GroupDefinition':
        """
        Cria um grupo personalizado a partir do formato do armazenamento.

        Aceita `label` ou `name` e `members` ou `numbers`.

        Raises:
            GroupValidationError: Se os campos obrigatórios estiverem ausentes
        """
        if not isinstance(data, dict):
            raise GroupValidationError("Grupo deve ser um objeto")

        group_id = data.get('id')
        label = data.get('label', data.get('name'))
        members = data.get('members', data.get('numbers'))

        if members is None:
            raise GroupValidationError(f"Grupo {group_id!r} sem números")
        if isinstance(members, (str, bytes)) or not isinstance(members, Iterable):
            raise GroupValidationError(f"Números do grupo {group_id!r} devem ser uma lista")

        try:
            members = frozenset(members)
        except TypeError:
            raise GroupValidationError(f"Números do grupo {group_id!r} devem ser inteiros de 0 a 36")

        return GroupDefinition(
            id=group_id,
            label=label if label is not None else group_id,
            members=members,
            category=data.get('category', 'Custom')
        )

    def to_dict(self) -> dict:
        """Converte para dicionário para API."""
        return {
            'id': self.id,
            'label': self.label,
            'members': sorted(self.members),
            'category': self.category,
            'kind': self.kind.value
        }


def _table(group_id: str, label: str, members: Iterable[int], category: str) -> GroupDefinition:
    return GroupDefinition(group_id, label, frozenset(members), category, GroupKind.TABLE)


def _wheel(group_id: str, label: str, members: Iterable[int], category: str) -> GroupDefinition:
    return GroupDefinition(group_id, label, frozenset(members), category, GroupKind.WHEEL)


_NON_ZERO = range(1, WHEEL_SIZE)

TABLE_GROUPS: Tuple[GroupDefinition, ...] = (
    _table('low', 'Low (1-18)', range(1, 19), 'Range'),
    _table('high', 'High (19-36)', range(19, 37), 'Range'),

    _table('red', 'Red', RED_NUMBERS, 'Color'),
    _table('black', 'Black', (n for n in _NON_ZERO if n not in RED_NUMBERS), 'Color'),

    _table('even', 'Even', (n for n in _NON_ZERO if n % 2 == 0), 'Parity'),
    _table('odd', 'Odd', (n for n in _NON_ZERO if n % 2 == 1), 'Parity'),

    _table('dozen_1', '1st Dozen', range(1, 13), 'Dozen'),
    _table('dozen_2', '2nd Dozen', range(13, 25), 'Dozen'),
    _table('dozen_3', '3rd Dozen', range(25, 37), 'Dozen'),

    _table('row_1', '1st Row', range(1, 37, 3), 'Row'),
    _table('row_2', '2nd Row', range(2, 37, 3), 'Row'),
    _table('row_3', '3rd Row', range(3, 37, 3), 'Row'),

    _table('six_1', "1st Six's", range(1, 7), 'Double Street'),
    _table('six_2', "2nd Six's", range(7, 13), 'Double Street'),
    _table('six_3', "3rd Six's", range(13, 19), 'Double Street'),
    _table('six_4', "4th Six's", range(19, 25), 'Double Street'),
    _table('six_5', "5th Six's", range(25, 31), 'Double Street'),
    _table('six_6', "6th Six's", range(31, 37), 'Double Street'),

    # Alternâncias de linhas de três: A/B a cada 3, AA/BB a cada 6, AAA/BBB a cada 9
    _table('alt_1_a', 'Alt 1 - A', (n for n in _NON_ZERO if (n - 1) // 3 % 2 == 0), '1st Alternate'),
    _table('alt_1_b', 'Alt 1 - B', (n for n in _NON_ZERO if (n - 1) // 3 % 2 == 1), '1st Alternate'),
    _table('alt_2_aa', 'Alt 2 - AA', (n for n in _NON_ZERO if (n - 1) // 6 % 2 == 0), '2nd Alternate'),
    _table('alt_2_bb', 'Alt 2 - BB', (n for n in _NON_ZERO if (n - 1) // 6 % 2 == 1), '2nd Alternate'),
    _table('alt_3_aaa', 'Alt 3 - AAA', (n for n in _NON_ZERO if (n - 1) // 9 % 2 == 0), '3rd Alternate'),
    _table('alt_3_bbb', 'Alt 3 - BBB', (n for n in _NON_ZERO if (n - 1) // 9 % 2 == 1), '3rd Alternate'),

    _table('edge', 'Edge', list(range(1, 10)) + list(range(28, 37)), 'Edge/Center'),
    _table('center', 'Center', range(10, 28), 'Edge/Center'),
)

WHEEL_GROUPS: Tuple[GroupDefinition, ...] = (
    _wheel('voisins', 'Voisins', VOISINS, 'Special Bets 1'),
    _wheel('orphelins', 'Orphelins', ORPHELINS, 'Special Bets 1'),
    _wheel('tiers', 'Tiers', TIERS, 'Special Bets 1'),
    _wheel('jeu_zero', 'Jeu Zero', (12, 35, 3, 26, 0, 32, 15), 'Special Bets 1'),

    _wheel('non_voisin', 'Non-Voisin', ORPHELINS + TIERS, 'Special Bets 2'),

    _wheel('wheel_18_a', '18-A',
           (32, 19, 21, 25, 34, 27, 36, 30, 23, 5, 16, 1, 14, 9, 18, 7, 12, 3), '18s A/B'),
    _wheel('wheel_18_b', '18-B',
           (15, 4, 2, 17, 6, 13, 11, 8, 10, 24, 33, 20, 31, 22, 29, 28, 35, 26), '18s A/B'),

    _wheel('wheel_18_aa', '18-AA',
           (32, 15, 21, 2, 34, 6, 36, 11, 23, 10, 16, 33, 14, 31, 18, 29, 12, 35), '18s AA/BB'),
    _wheel('wheel_18_bb', '18-BB',
           (19, 4, 25, 17, 27, 13, 30, 8, 5, 24, 1, 20, 9, 22, 7, 28, 3, 26), '18s AA/BB'),

    _wheel('wheel_18_aaa', '18-AAA',
           (32, 15, 19, 25, 17, 34, 36, 11, 30, 5, 24, 16, 14, 31, 9, 7, 28, 12), '18s AAA/BBB'),
    _wheel('wheel_18_bbb', '18-BBB',
           (4, 21, 2, 6, 27, 13, 8, 23, 10, 33, 1, 20, 22, 18, 29, 35, 3, 26), '18s AAA/BBB'),

    _wheel('wheel_18_a6', '18-A6',
           (32, 15, 19, 4, 21, 2, 36, 11, 30, 8, 23, 10, 14, 31, 9, 22, 18, 29), '18s A6/B6'),
    _wheel('wheel_18_b6', '18-B6',
           (25, 17, 34, 6, 27, 13, 5, 24, 16, 33, 1, 20, 7, 28, 12, 35, 3, 26), '18s A6/B6'),

    _wheel('wheel_18_a9', '18-A9',
           (32, 15, 19, 4, 21, 2, 25, 17, 34, 5, 24, 16, 33, 1, 20, 14, 31, 9), '18s A9/B9'),
    _wheel('wheel_18_b9', '18-B9',
           (6, 27, 13, 36, 11, 30, 8, 23, 10, 22, 18, 29, 7, 28, 12, 35, 3, 26), '18s A9/B9'),

    _wheel('wheel_18_right', '18-Right',
           (32, 15, 19, 4, 21, 2, 25, 17, 34, 6, 27, 13, 36, 11, 30, 8, 23, 10), '18s Right/Left'),
    _wheel('wheel_18_left', '18-Left',
           (5, 24, 16, 33, 1, 20, 14, 31, 9, 22, 18, 29, 7, 28, 12, 35, 3, 26), '18s Right/Left'),

    _wheel('wheel_9_1st', '9-1st', (32, 15, 19, 4, 21, 2, 25, 17, 34), '9s'),
    _wheel('wheel_9_2nd', '9-2nd', (6, 27, 13, 36, 11, 30, 8, 23, 10), '9s'),
    _wheel('wheel_9_3rd', '9-3rd', (5, 24, 16, 33, 1, 20, 14, 31, 9), '9s'),
    _wheel('wheel_9_4th', '9-4th', (22, 18, 29, 7, 28, 12, 35, 3, 26), '9s'),
)

BUILTIN_GROUPS: Tuple[GroupDefinition, ...] = TABLE_GROUPS + WHEEL_GROUPS
BUILTIN_IDS: FrozenSet[str] = frozenset(g.id for g in BUILTIN_GROUPS)


def builtin_groups() -> Tuple[GroupDefinition, ...]:
    """Retorna os grupos fixos em ordem determinística de exibição."""
    return BUILTIN_GROUPS


def groups_by_kind(kind: GroupKind, groups: Optional[Sequence[GroupDefinition]] = None) -> List[GroupDefinition]:
    """Filtra grupos (padrão: os fixos) pela origem, preservando a ordem."""
    source = BUILTIN_GROUPS if groups is None else groups
    return [g for g in source if g.kind == kind]


def validate(definition: GroupDefinition, reserved_ids: Optional[Iterable[str]] = None) -> GroupDefinition:
    """
    Valida uma definição de grupo.

    Args:
        definition: Grupo a validar
        reserved_ids: Ids já ocupados (padrão: ids dos grupos fixos)

    Returns:
        A própria definição, se válida

    Raises:
        GroupValidationError: Id ou rótulo vazio, grupo vazio, número fora de 0-36 ou id duplicado
    """
    reserved = BUILTIN_IDS if reserved_ids is None else frozenset(reserved_ids)

    if not isinstance(definition.id, str) or not definition.id.strip():
        raise GroupValidationError("Grupo deve ter um id não vazio")
    if not isinstance(definition.label, str) or not definition.label.strip():
        raise GroupValidationError(f"Grupo '{definition.id}' deve ter um rótulo de texto não vazio")
    if not isinstance(definition.category, str):
        raise GroupValidationError(f"Categoria do grupo '{definition.id}' deve ser texto")
    if not definition.members:
        raise GroupValidationError(f"Grupo '{definition.id}' não tem números")

    invalid = sorted(
        (n for n in definition.members
         if isinstance(n, bool) or not isinstance(n, int) or not 0 <= n < WHEEL_SIZE),
        key=repr
    )
    if invalid:
        raise GroupValidationError(
            f"Grupo '{definition.id}' contém números fora do intervalo 0-36: {invalid}"
        )
    if definition.id in reserved:
        raise GroupValidationError(f"Id de grupo duplicado: '{definition.id}'")

    return definition


def merge(custom: Sequence[GroupDefinition] = ()) -> List[GroupDefinition]:
    """
    Mescla grupos personalizados aos fixos.

    Fixos primeiro, depois os personalizados na ordem recebida. Colisão de id
    é erro, nunca sobrescrita.

    Raises:
        GroupValidationError: Se algum grupo personalizado for inválido
    """
    merged: List[GroupDefinition] = list(BUILTIN_GROUPS)
    seen: Set[str] = set(BUILTIN_IDS)

    for definition in custom:
        validate(definition, reserved_ids=seen)
        seen.add(definition.id)
        merged.append(definition)

    if custom:
        logger.debug(f"Catálogo mesclado: {len(BUILTIN_GROUPS)} fixos + {len(custom)} personalizados")
    return merged
