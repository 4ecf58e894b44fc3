"""
计分数据模型
球员、场地布局、场地比分、轮次记录等不可变数据结构
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Team = Tuple[str, str]

UNKNOWN_PLAYER_NAME = "unknown"


class Mode(str, Enum):
    """计分模式"""
    FIXED_MATCH = "fixed_match"
    AMERICANO = "americano"
    MEXICANO = "mexicano"

    @property
    def label(self) -> str:
        return MODE_LABELS[self]

    @property
    def is_social(self) -> bool:
        return self is not Mode.FIXED_MATCH


MODE_LABELS = {
    Mode.FIXED_MATCH: "Match 2x2",
    Mode.AMERICANO: "Americano",
    Mode.MEXICANO: "Mexicano",
}


class ScoreKind(str, Enum):
    """固定对阵比赛的计分方式: 按盘（classic）或按分（race）"""
    CLASSIC = "classic"
    RACE = "race"


def generate_id() -> str:
    """生成8位十六进制唯一ID"""
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    color: str


@dataclass(frozen=True)
class Score:
    a: int
    b: int

    def __str__(self) -> str:
        return f"{self.a}:{self.b}"


@dataclass(frozen=True)
class CourtLayout:
    """未计分的场地布局: 两支两人队伍"""
    team_a: Team
    team_b: Team

    @property
    def players(self) -> Tuple[str, ...]:
        return tuple(self.team_a) + tuple(self.team_b)

    def with_score(self, score: Score) -> "CourtResult":
        return CourtResult(team_a=self.team_a, team_b=self.team_b, score=score)


@dataclass(frozen=True)
class CourtResult:
    """已计分的场地结果"""
    team_a: Team
    team_b: Team
    score: Score

    @property
    def players(self) -> Tuple[str, ...]:
        return tuple(self.team_a) + tuple(self.team_b)

    def side_of(self, player_id: str) -> Optional[str]:
        """返回球员所在的一侧（'a'/'b'），未参赛返回None"""
        if player_id in self.team_a:
            return 'a'
        if player_id in self.team_b:
            return 'b'
        return None


@dataclass(frozen=True)
class RoundLayout:
    """配对引擎输出的暂定轮次布局（尚未写入历史）"""
    mode: Mode
    courts: Tuple[CourtLayout, ...] = ()

    @property
    def court_count(self) -> int:
        return len(self.courts)

    @property
    def is_empty(self) -> bool:
        return not self.courts

    @property
    def players(self) -> List[str]:
        return [pid for court in self.courts for pid in court.players]

    def with_scores(self, scores: Sequence[Score]) -> List[CourtResult]:
        """按场地顺序合并比分"""
        if len(scores) != len(self.courts):
            raise ValueError(
                f"比分数量({len(scores)})与场地数量({len(self.courts)})不一致"
            )
        return [court.with_score(score) for court, score in zip(self.courts, scores)]


@dataclass(frozen=True)
class RoundRecord:
    """已提交的轮次记录"""
    id: str
    timestamp: str
    mode: Mode
    courts: Tuple[CourtResult, ...]
    score_kind: Optional[ScoreKind] = None

    def involves(self, player_id: str) -> bool:
        return any(court.side_of(player_id) for court in self.courts)


def name_of(players: Sequence[Player], player_id: str) -> str:
    """按ID查找球员名称，已删除的球员显示为 unknown"""
    for player in players:
        if player.id == player_id:
            return player.name
    return UNKNOWN_PLAYER_NAME

