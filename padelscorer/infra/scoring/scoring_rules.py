"""
计分规则模块
提供社交模式（按本队得分累加）和固定对阵（胜方固定加分）两种计分规则
"""

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Set

from padelscorer.core.errors import (
    InsufficientPlayers,
    InvalidScore,
    InvalidTeamSelection,
    UndeterminedWinner,
)
from padelscorer.core.models import CourtResult

DEFAULT_FIXED_MATCH_BONUS = 3


class ScoringRule(ABC):
    """计分规则基类: 先校验再计算积分变化量"""

    def validate(self, courts: Sequence[CourtResult]) -> None:
        """校验整轮结果，任何问题都在修改状态前抛出"""
        if not courts:
            raise InsufficientPlayers("本轮没有可提交的场地")

        seen: Set[str] = set()
        for court_idx, court in enumerate(courts, 1):
            self._validate_teams(court, court_idx)
            for player_id in court.players:
                if player_id in seen:
                    raise InvalidTeamSelection(f"球员 {player_id} 在同一轮出现在多个场地")
                seen.add(player_id)
            self._validate_score(court, court_idx)

    @staticmethod
    def _validate_teams(court: CourtResult, court_idx: int) -> None:
        if len(court.team_a) != 2 or len(court.team_b) != 2:
            raise InvalidTeamSelection(f"场地 {court_idx}: 每支队伍必须恰好2人")
        if len(set(court.players)) != 4:
            raise InvalidTeamSelection(f"场地 {court_idx}: 队伍成员重复或两队重叠")

    @staticmethod
    def _validate_score(court: CourtResult, court_idx: int) -> None:
        for value in (court.score.a, court.score.b):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidScore(f"场地 {court_idx}: 比分必须是非负整数，收到 {value!r}")

    @abstractmethod
    def compute_delta(self, courts: Sequence[CourtResult]) -> Dict[str, int]:
        """计算本轮每位球员的积分变化量"""
        pass


class SocialScoringRule(ScoringRule):
    """社交模式计分: 每位球员获得本队在该场的得分，平局同样有效"""

    def compute_delta(self, courts: Sequence[CourtResult]) -> Dict[str, int]:
        delta: Dict[str, int] = {}
        for court in courts:
            for player_id in court.team_a:
                delta[player_id] = delta.get(player_id, 0) + court.score.a
            for player_id in court.team_b:
                delta[player_id] = delta.get(player_id, 0) + court.score.b
        return delta


class FixedMatchScoringRule(ScoringRule):
    """固定对阵计分: 单场2对2，必须分出胜负，胜方每人加固定分"""

    def __init__(self, winner_bonus: int = DEFAULT_FIXED_MATCH_BONUS):
        self.winner_bonus = winner_bonus

    def validate(self, courts: Sequence[CourtResult]) -> None:
        if len(courts) != 1:
            raise InvalidTeamSelection(f"固定对阵每次只能提交1场比赛，收到 {len(courts)} 场")
        super().validate(courts)
        court = courts[0]
        if court.score.a == court.score.b:
            raise UndeterminedWinner(f"比分 {court.score} 相同，需要分出胜者")

    def compute_delta(self, courts: Sequence[CourtResult]) -> Dict[str, int]:
        delta: Dict[str, int] = {}
        for court in courts:
            winners = court.team_a if court.score.a > court.score.b else court.team_b
            for player_id in winners:
                delta[player_id] = delta.get(player_id, 0) + self.winner_bonus
        return delta
