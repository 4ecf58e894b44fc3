"""
会话快照编解码
快照与JSON兼容的字典互相转换，加载时做结构校验，任何问题抛出 MalformedSnapshot
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from padelscorer.core.errors import MalformedSnapshot
from padelscorer.core.models import (
    CourtLayout,
    CourtResult,
    Mode,
    Player,
    RoundLayout,
    RoundRecord,
    Score,
    ScoreKind,
)
from padelscorer.infra.scoring import ModeState, PartnershipMemory, ScoreLedger

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class Snapshot:
    """会话快照: 球员名单、各模式状态、界面状态（不透明字典）"""
    players: Tuple[Player, ...] = ()
    modes: Mapping[Mode, ModeState] = field(default_factory=dict)
    ui: Mapping[str, Any] = field(default_factory=dict)

    def state_for(self, mode: Mode) -> ModeState:
        return self.modes.get(mode) or ModeState.empty(mode)


def empty_snapshot() -> Snapshot:
    return Snapshot(modes={mode: ModeState.empty(mode) for mode in Mode})


# ==================== 编码 ====================

def layout_to_list(layout: RoundLayout) -> List[Dict[str, List[str]]]:
    return [
        {'team_a': list(court.team_a), 'team_b': list(court.team_b)}
        for court in layout.courts
    ]


def court_result_to_dict(court: CourtResult) -> Dict[str, Any]:
    return {
        'team_a': list(court.team_a),
        'team_b': list(court.team_b),
        'score': {'a': court.score.a, 'b': court.score.b},
    }


def record_to_dict(record: RoundRecord) -> Dict[str, Any]:
    return {
        'id': record.id,
        'timestamp': record.timestamp,
        'mode': record.mode.value,
        'courts': [court_result_to_dict(court) for court in record.courts],
        'score_kind': record.score_kind.value if record.score_kind else None,
    }


def mode_state_to_dict(state: ModeState) -> Dict[str, Any]:
    data = {
        'totals': state.ledger.as_dict(),
        'history': [record_to_dict(record) for record in state.history],
    }
    if state.mode is Mode.AMERICANO:
        memory = state.partnerships or PartnershipMemory()
        data['partners'] = memory.as_dict()
    return data


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """快照转为JSON兼容字典"""
    return {
        'version': SNAPSHOT_VERSION,
        'players': [
            {'id': p.id, 'name': p.name, 'color': p.color}
            for p in snapshot.players
        ],
        'modes': {
            mode.value: mode_state_to_dict(snapshot.state_for(mode))
            for mode in Mode
        },
        'ui': dict(snapshot.ui),
    }


def dumps_snapshot(snapshot: Snapshot) -> str:
    """序列化快照（键排序，保证多次保存内容一致）"""
    return json.dumps(snapshot_to_dict(snapshot), ensure_ascii=False, sort_keys=True, indent=2)


# ==================== 解码 ====================

def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise MalformedSnapshot(message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_team(raw: Any, where: str) -> Tuple[str, str]:
    _expect(isinstance(raw, list) and len(raw) == 2, f"{where}: 队伍必须是2个球员ID")
    _expect(all(isinstance(pid, str) for pid in raw), f"{where}: 球员ID必须是字符串")
    return raw[0], raw[1]


def layout_from_list(mode: Mode, raw: Any) -> RoundLayout:
    _expect(isinstance(raw, list), f"{mode.value}: 暂定布局必须是列表")
    courts = []
    for idx, item in enumerate(raw, 1):
        where = f"{mode.value} 布局场地 {idx}"
        _expect(isinstance(item, dict), f"{where}: 必须是对象")
        courts.append(CourtLayout(
            team_a=_parse_team(item.get('team_a'), where),
            team_b=_parse_team(item.get('team_b'), where),
        ))
    return RoundLayout(mode=mode, courts=tuple(courts))


def _parse_court_result(raw: Any, where: str) -> CourtResult:
    _expect(isinstance(raw, dict), f"{where}: 必须是对象")
    score = raw.get('score')
    _expect(isinstance(score, dict), f"{where}: 缺少 score")
    _expect(_is_int(score.get('a')) and _is_int(score.get('b')), f"{where}: 比分必须是整数")
    _expect(score['a'] >= 0 and score['b'] >= 0, f"{where}: 比分不能为负数")
    court = CourtResult(
        team_a=_parse_team(raw.get('team_a'), where),
        team_b=_parse_team(raw.get('team_b'), where),
        score=Score(a=score['a'], b=score['b']),
    )
    _expect(len(set(court.players)) == 4, f"{where}: 四名球员必须互不相同")
    return court


def _parse_record(raw: Any, mode: Mode, idx: int) -> RoundRecord:
    where = f"{mode.value} 历史 #{idx}"
    _expect(isinstance(raw, dict), f"{where}: 必须是对象")
    _expect(isinstance(raw.get('id'), str), f"{where}: 缺少 id")
    _expect(isinstance(raw.get('timestamp'), str), f"{where}: 缺少 timestamp")
    _expect(raw.get('mode') == mode.value, f"{where}: 模式不匹配 {raw.get('mode')!r}")
    _expect(isinstance(raw.get('courts'), list), f"{where}: courts 必须是列表")

    score_kind = raw.get('score_kind')
    if score_kind is not None:
        try:
            score_kind = ScoreKind(score_kind)
        except ValueError:
            raise MalformedSnapshot(f"{where}: 未知的计分方式 {score_kind!r}")

    return RoundRecord(
        id=raw['id'],
        timestamp=raw['timestamp'],
        mode=mode,
        courts=tuple(
            _parse_court_result(court, f"{where} 场地 {court_idx}")
            for court_idx, court in enumerate(raw['courts'], 1)
        ),
        score_kind=score_kind,
    )


def _parse_counts(raw: Any, where: str) -> Dict[str, int]:
    _expect(isinstance(raw, dict), f"{where}: 必须是对象")
    _expect(all(isinstance(k, str) and _is_int(v) for k, v in raw.items()), f"{where}: 值必须是整数")
    return dict(raw)


def _parse_mode_state(mode: Mode, raw: Any) -> ModeState:
    if raw is None:
        return ModeState.empty(mode)
    _expect(isinstance(raw, dict), f"{mode.value}: 模式状态必须是对象")

    ledger = ScoreLedger(_parse_counts(raw.get('totals', {}), f"{mode.value}.totals"))
    history_raw = raw.get('history', [])
    _expect(isinstance(history_raw, list), f"{mode.value}.history 必须是列表")
    history = tuple(_parse_record(item, mode, idx) for idx, item in enumerate(history_raw, 1))

    partnerships = None
    if mode is Mode.AMERICANO:
        partnerships = PartnershipMemory(_parse_counts(raw.get('partners', {}), f"{mode.value}.partners"))

    return ModeState(mode=mode, ledger=ledger, history=history, partnerships=partnerships)


def _parse_player(raw: Any, idx: int) -> Player:
    where = f"球员 #{idx}"
    _expect(isinstance(raw, dict), f"{where}: 必须是对象")
    for key in ('id', 'name', 'color'):
        _expect(isinstance(raw.get(key), str), f"{where}: 缺少字段 {key}")
    return Player(id=raw['id'], name=raw['name'], color=raw['color'])


def snapshot_from_dict(data: Any) -> Snapshot:
    """从字典恢复快照，缺失的模式视为空状态，结构错误抛出 MalformedSnapshot"""
    _expect(isinstance(data, dict), "快照必须是JSON对象")

    version = data.get('version', SNAPSHOT_VERSION)
    _expect(version == SNAPSHOT_VERSION, f"不支持的快照版本: {version!r}")

    players_raw = data.get('players', [])
    _expect(isinstance(players_raw, list), "players 必须是列表")
    players = tuple(_parse_player(item, idx) for idx, item in enumerate(players_raw, 1))
    _expect(len({p.id for p in players}) == len(players), "球员ID重复")

    modes_raw = data.get('modes', {})
    _expect(isinstance(modes_raw, dict), "modes 必须是对象")
    unknown = set(modes_raw) - {mode.value for mode in Mode}
    _expect(not unknown, f"未知的模式: {sorted(unknown)}")
    modes = {mode: _parse_mode_state(mode, modes_raw.get(mode.value)) for mode in Mode}

    ui = data.get('ui', {})
    _expect(isinstance(ui, dict), "ui 必须是对象")

    return Snapshot(players=players, modes=modes, ui=ui)


def loads_snapshot(text: str) -> Snapshot:
    """解析JSON文本为快照"""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedSnapshot(f"快照JSON解析失败: {e}")
    return snapshot_from_dict(data)


def parse_optional_layout(mode: Mode, raw: Optional[Any]) -> Optional[RoundLayout]:
    if raw is None:
        return None
    return layout_from_list(mode, raw)
