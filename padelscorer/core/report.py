"""
排行榜与球员战绩
负责把积分账本和轮次历史整理成排行榜、球员历史明细和文本记录
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from padelscorer.core.models import Mode, Player, RoundRecord, name_of
from padelscorer.infra.scoring import ModeState, ScoreLedger
from padelscorer.utils.logger import get_logger

logger = get_logger(__name__)

LEADERBOARD_COLUMNS = ['rank', 'player_id', 'name', 'color', 'score']
HISTORY_COLUMNS = ['timestamp', 'mode', 'partner', 'opponents', 'score', 'points']


def build_leaderboard(players: Sequence[Player], ledger: ScoreLedger) -> pd.DataFrame:
    """生成排行榜: 包含名单中全部球员，按积分降序（同分保持名单顺序）"""
    rows = [
        {
            'player_id': player.id,
            'name': player.name,
            'color': player.color,
            'score': ledger.get(player.id),
        }
        for player in players
    ]
    if not rows:
        return pd.DataFrame(columns=LEADERBOARD_COLUMNS)

    df = pd.DataFrame(rows)
    df = df.sort_values('score', ascending=False, kind='mergesort').reset_index(drop=True)
    df.insert(0, 'rank', range(1, len(df) + 1))
    return df[LEADERBOARD_COLUMNS]


def export_leaderboard_csv(leaderboard: pd.DataFrame, path: Path) -> Path:
    """导出排行榜CSV"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    leaderboard.to_csv(path, index=False)
    logger.info(f"已保存排行榜: {path}")
    return path


@dataclass(frozen=True)
class PlayerHistory:
    """球员在所有模式中的比赛明细"""
    player_id: str
    name: str
    entries: pd.DataFrame
    total_scored: int

    @property
    def games(self) -> int:
        return len(self.entries)

    @property
    def average_points(self) -> float:
        if self.entries.empty:
            return 0.0
        return float(np.mean(self.entries['points'].to_numpy()))


def player_history(
    player_id: str,
    players: Sequence[Player],
    states: Mapping[Mode, ModeState],
) -> PlayerHistory:
    """汇总球员参与过的每一场比赛（最新在前），得分为本队在该场的得分"""
    records: List[RoundRecord] = [
        record
        for state in states.values()
        for record in state.history
        if record.involves(player_id)
    ]
    records.sort(key=lambda r: r.timestamp, reverse=True)

    rows: List[Dict] = []
    for record in records:
        for court in record.courts:
            side = court.side_of(player_id)
            if side is None:
                continue
            own, other = (court.team_a, court.team_b) if side == 'a' else (court.team_b, court.team_a)
            partner = next((pid for pid in own if pid != player_id), '')
            rows.append({
                'timestamp': record.timestamp,
                'mode': record.mode.label,
                'partner': name_of(players, partner),
                'opponents': ", ".join(name_of(players, pid) for pid in other),
                'score': str(court.score),
                'points': court.score.a if side == 'a' else court.score.b,
            })

    entries = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
    total_scored = int(entries['points'].sum()) if rows else 0
    return PlayerHistory(
        player_id=player_id,
        name=name_of(players, player_id),
        entries=entries,
        total_scored=total_scored,
    )


def _team_names(players: Sequence[Player], team) -> str:
    return " + ".join(name_of(players, pid) for pid in team)


def format_round(record: RoundRecord, players: Sequence[Player]) -> str:
    """一条历史记录的文本描述"""
    if record.mode is Mode.FIXED_MATCH:
        court = record.courts[0]
        return f"{_team_names(players, court.team_a)} vs {_team_names(players, court.team_b)} - {court.score}"
    return "; ".join(
        f"Court {idx}: {_team_names(players, court.team_a)} vs {_team_names(players, court.team_b)} - {court.score}"
        for idx, court in enumerate(record.courts, 1)
    )
