"""
配对策略模块
提供Americano（轮换搭档）和Mexicano（按积分平衡）两种配对策略
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Set
import random

from padelscorer.core.models import CourtLayout, Mode, RoundLayout
from padelscorer.utils.logger import get_logger
from .ledger import PartnershipMemory, ScoreLedger
from .mode_state import ModeState

logger = get_logger(__name__)

PLAYERS_PER_COURT = 4


def effective_court_count(num_players: int, requested: int) -> int:
    """实际可开场地数: 至少请求1块，最多 num_players // 4 块"""
    return min(num_players // PLAYERS_PER_COURT, max(1, requested))


class PairingStrategy(ABC):
    """配对策略基类: 定义配对策略接口"""

    mode: Mode

    @abstractmethod
    def generate_courts(
        self,
        players: List[str],
        court_count: int,
        state: ModeState,
    ) -> List[CourtLayout]:
        """生成本轮各场地的对阵（court_count 已按人数截断）"""
        pass

    def generate_layout(
        self,
        players: Sequence[str],
        court_count: int,
        state: ModeState,
    ) -> RoundLayout:
        """生成暂定轮次布局，人数不足4人时返回空布局"""
        players = list(dict.fromkeys(players))
        courts_to_fill = effective_court_count(len(players), court_count)
        if courts_to_fill == 0:
            logger.warning(f"{self.mode.value}: 可用球员 {len(players)} 人，不足 {PLAYERS_PER_COURT} 人，不生成配对")
            return RoundLayout(mode=self.mode)

        courts = self.generate_courts(players, courts_to_fill, state)
        logger.info(f"{self.mode.value}: 生成 {len(courts)} 块场地配对 (请求 {court_count} 块, 球员 {len(players)} 人)")
        return RoundLayout(mode=self.mode, courts=tuple(courts))


class AmericanoPairingStrategy(PairingStrategy):
    """Americano配对策略: 随机打乱后贪心选择同队次数最少的搭档"""

    mode = Mode.AMERICANO

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_courts(
        self,
        players: List[str],
        court_count: int,
        state: ModeState,
    ) -> List[CourtLayout]:
        """
        贪心配对：
        每个队伍先取打乱顺序中第一个未使用的球员作为锚点，
        再从剩余球员中选与锚点同队次数最少者，次数相同取打乱顺序靠前者
        """
        memory = state.partnerships or PartnershipMemory()
        shuffled = players.copy()
        self.rng.shuffle(shuffled)

        used: Set[str] = set()
        courts = []

        for _ in range(court_count):
            if len(shuffled) - len(used) < PLAYERS_PER_COURT:
                break

            teams = []
            for _ in range(2):
                anchor = next(pid for pid in shuffled if pid not in used)
                used.add(anchor)
                teammate = self._pick_teammate(anchor, shuffled, used, memory)
                used.add(teammate)
                teams.append((anchor, teammate))

            courts.append(CourtLayout(team_a=teams[0], team_b=teams[1]))

        return courts

    @staticmethod
    def _pick_teammate(
        anchor: str,
        shuffled: List[str],
        used: Set[str],
        memory: PartnershipMemory,
    ) -> str:
        best_teammate = None
        min_count = float('inf')

        for candidate in shuffled:
            if candidate in used:
                continue
            count = memory.count(anchor, candidate)
            if count < min_count:
                best_teammate = candidate
                min_count = count

        return best_teammate


class MexicanoPairingStrategy(PairingStrategy):
    """Mexicano配对策略: 按积分排名每4人一场，(1+4) 对 (2+3)"""

    mode = Mode.MEXICANO

    def generate_courts(
        self,
        players: List[str],
        court_count: int,
        state: ModeState,
    ) -> List[CourtLayout]:
        """按当前积分降序稳定排序，同分保持原有顺序"""
        ranked = self.rank_players(players, state.ledger)

        courts = []
        for court_idx in range(court_count):
            group = ranked[court_idx * PLAYERS_PER_COURT:(court_idx + 1) * PLAYERS_PER_COURT]
            if len(group) < PLAYERS_PER_COURT:
                break
            strongest, second, third, weakest = group
            courts.append(CourtLayout(team_a=(strongest, weakest), team_b=(second, third)))

        return courts

    @staticmethod
    def rank_players(players: Sequence[str], ledger: ScoreLedger) -> List[str]:
        return sorted(players, key=lambda pid: ledger.get(pid), reverse=True)


def create_pairing_strategy(mode: Mode, rng: Optional[random.Random] = None) -> PairingStrategy:
    """根据模式创建配对策略（固定对阵模式没有配对策略）"""
    if mode is Mode.AMERICANO:
        return AmericanoPairingStrategy(rng=rng)
    if mode is Mode.MEXICANO:
        return MexicanoPairingStrategy()
    raise ValueError(f"模式 {mode.value} 不支持自动配对")


def create_pairing_strategies(rng: Optional[random.Random] = None) -> Dict[Mode, PairingStrategy]:
    """为所有社交模式创建配对策略"""
    return {
        mode: create_pairing_strategy(mode, rng=rng)
        for mode in Mode
        if mode.is_social
    }
