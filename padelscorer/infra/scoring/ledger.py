"""
积分账本与搭档记忆
账本按球员累计积分，搭档记忆记录每对球员同队的轮数（仅Americano使用）
所有更新操作返回新对象，不修改原对象
"""

from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

PAIR_KEY_SEPARATOR = "|"


def pair_key(player_a: str, player_b: str) -> str:
    """生成与顺序无关的搭档键"""
    first, second = sorted((player_a, player_b))
    return f"{first}{PAIR_KEY_SEPARATOR}{second}"


class ScoreLedger:
    """积分账本: 纯累加器，缺失的球员视为0分"""

    def __init__(self, totals: Optional[Mapping[str, int]] = None):
        self._totals: Dict[str, int] = dict(totals or {})

    def get(self, player_id: str) -> int:
        return self._totals.get(player_id, 0)

    def __getitem__(self, player_id: str) -> int:
        return self.get(player_id)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._totals

    def __iter__(self) -> Iterator[str]:
        return iter(self._totals)

    def __len__(self) -> int:
        return len(self._totals)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScoreLedger):
            return NotImplemented
        return self._totals == other._totals

    def __repr__(self) -> str:
        return f"ScoreLedger({self._totals!r})"

    def apply_delta(self, delta: Mapping[str, int]) -> "ScoreLedger":
        """累加积分变化量（不拒绝负数，只做加法）"""
        totals = dict(self._totals)
        for player_id, points in delta.items():
            totals[player_id] = totals.get(player_id, 0) + points
        return ScoreLedger(totals)

    def reset(self) -> "ScoreLedger":
        """清空所有积分"""
        return ScoreLedger()

    def total(self) -> int:
        return sum(self._totals.values())

    def as_dict(self) -> Dict[str, int]:
        return dict(self._totals)


class PartnershipMemory:
    """搭档记忆: 无序球员对 -> 同队轮数，单调不减"""

    def __init__(self, counts: Optional[Mapping[str, int]] = None):
        self._counts: Dict[str, int] = dict(counts or {})

    def count(self, player_a: str, player_b: str) -> int:
        return self._counts.get(pair_key(player_a, player_b), 0)

    def __len__(self) -> int:
        return len(self._counts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartnershipMemory):
            return NotImplemented
        return self._counts == other._counts

    def __repr__(self) -> str:
        return f"PartnershipMemory({self._counts!r})"

    def record(self, teams: Iterable[Tuple[str, str]]) -> "PartnershipMemory":
        """每支队伍的搭档计数加1"""
        counts = dict(self._counts)
        for player_a, player_b in teams:
            key = pair_key(player_a, player_b)
            counts[key] = counts.get(key, 0) + 1
        return PartnershipMemory(counts)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)
