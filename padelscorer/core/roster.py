"""球员名单管理: 添加时按调色板轮流分配颜色，删除不影响历史记录"""

from typing import Callable, Optional, Sequence, Tuple

from padelscorer.core.models import Player, generate_id

DEFAULT_COLORS = (
    "#3b82f6", "#ef4444", "#22c55e", "#f59e0b", "#a78bfa",
    "#ec4899", "#06b6d4", "#10b981", "#8b5cf6", "#f97316",
)


def next_color(players: Sequence[Player]) -> str:
    return DEFAULT_COLORS[len(players) % len(DEFAULT_COLORS)]


def add_player(
    players: Sequence[Player],
    name: str,
    color: Optional[str] = None,
    id_factory: Callable[[], str] = generate_id,
) -> Tuple[Tuple[Player, ...], Player]:
    """追加球员，返回新名单和新球员；名称去除首尾空白后不能为空"""
    name = name.strip()
    if not name:
        raise ValueError("球员名称不能为空")

    existing_ids = {p.id for p in players}
    player_id = id_factory()
    while player_id in existing_ids:
        player_id = id_factory()

    player = Player(id=player_id, name=name, color=color or next_color(players))
    return tuple(players) + (player,), player


def remove_player(players: Sequence[Player], player_id: str) -> Tuple[Player, ...]:
    """删除球员（不存在时原样返回）"""
    return tuple(p for p in players if p.id != player_id)


def find_player(players: Sequence[Player], ref: str) -> Optional[Player]:
    """按ID或名称（不区分大小写）查找球员"""
    for player in players:
        if player.id == ref:
            return player
    lowered = ref.strip().lower()
    for player in players:
        if player.name.lower() == lowered:
            return player
    return None
