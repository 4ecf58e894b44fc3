"""
快照编解码单元测试
"""

import json

import pytest

from padelscorer.core.errors import MalformedSnapshot
from padelscorer.core.models import CourtResult, Mode, Player, RoundRecord, Score, ScoreKind
from padelscorer.core.snapshot import (
    SNAPSHOT_VERSION,
    Snapshot,
    dumps_snapshot,
    empty_snapshot,
    loads_snapshot,
    snapshot_from_dict,
    snapshot_to_dict,
)
from padelscorer.infra.scoring import ModeState, PartnershipMemory, ScoreLedger


@pytest.fixture
def snapshot():
    players = (
        Player(id='a1', name='Alice', color='#3b82f6'),
        Player(id='b2', name='Bob', color='#ef4444'),
        Player(id='c3', name='Cara', color='#22c55e'),
        Player(id='d4', name='Dan', color='#f59e0b'),
    )
    court = CourtResult(team_a=('a1', 'b2'), team_b=('c3', 'd4'), score=Score(6, 3))
    americano = ModeState(
        mode=Mode.AMERICANO,
        ledger=ScoreLedger({'a1': 6, 'b2': 6, 'c3': 3, 'd4': 3}),
        history=(RoundRecord(id='r1', timestamp='2026-10-19T18:00:00', mode=Mode.AMERICANO, courts=(court,)),),
        partnerships=PartnershipMemory({'a1|b2': 1, 'c3|d4': 1}),
    )
    fixed = ModeState(
        mode=Mode.FIXED_MATCH,
        ledger=ScoreLedger({'a1': 3, 'b2': 3}),
        history=(RoundRecord(
            id='r2', timestamp='2026-10-19T18:30:00', mode=Mode.FIXED_MATCH,
            courts=(court,), score_kind=ScoreKind.CLASSIC,
        ),),
    )
    return Snapshot(
        players=players,
        modes={Mode.AMERICANO: americano, Mode.FIXED_MATCH: fixed, Mode.MEXICANO: ModeState.empty(Mode.MEXICANO)},
        ui={'active_mode': 'americano'},
    )


def test_round_trip_is_stable(snapshot):
    """测试序列化-反序列化-序列化结果一致"""
    text = dumps_snapshot(snapshot)
    restored = loads_snapshot(text)

    assert dumps_snapshot(restored) == text
    assert restored.players == snapshot.players
    assert restored.state_for(Mode.AMERICANO) == snapshot.state_for(Mode.AMERICANO)
    assert restored.state_for(Mode.FIXED_MATCH).history[0].score_kind is ScoreKind.CLASSIC


def test_partners_only_for_americano(snapshot):
    """测试只有Americano模式保存搭档记忆"""
    data = snapshot_to_dict(snapshot)

    assert data['version'] == SNAPSHOT_VERSION
    assert data['modes']['americano']['partners'] == {'a1|b2': 1, 'c3|d4': 1}
    assert 'partners' not in data['modes']['mexicano']
    assert 'partners' not in data['modes']['fixed_match']


def test_missing_modes_are_empty():
    """测试缺失的模式视为空状态"""
    restored = snapshot_from_dict({'players': [], 'modes': {}})

    for mode in Mode:
        assert restored.state_for(mode) == ModeState.empty(mode)


def test_empty_snapshot_serializes():
    """测试空快照可以序列化"""
    data = json.loads(dumps_snapshot(empty_snapshot()))
    assert set(data['modes']) == {'fixed_match', 'americano', 'mexicano'}
    assert data['players'] == []


@pytest.mark.parametrize('text', [
    'not json',
    '[]',
    '{"version": 99}',
    '{"players": {}}',
    '{"players": [{"id": "a1", "name": "Alice"}]}',
    '{"players": [{"id": "a1", "name": "A", "color": "#fff"}, {"id": "a1", "name": "B", "color": "#000"}]}',
    '{"modes": {"tennis": {}}}',
    '{"modes": {"americano": {"totals": {"a1": "six"}}}}',
    '{"modes": {"americano": {"history": {}}}}',
    '{"modes": {"mexicano": {"history": [{"id": "r1", "timestamp": "t", "mode": "americano", "courts": []}]}}}',
    '{"modes": {"mexicano": {"history": [{"id": "r1", "timestamp": "t", "mode": "mexicano", '
    '"courts": [{"team_a": ["a", "b"], "team_b": ["c"], "score": {"a": 1, "b": 2}}]}]}}}',
    '{"ui": []}',
    '{"modes": {"americano": {"history": [{"id": "r1", "timestamp": "t", "mode": "americano", '
    '"courts": [{"team_a": ["a", "a"], "team_b": ["a", "b"], "score": {"a": 5, "b": 3}}]}]}}}',
    '{"modes": {"americano": {"history": [{"id": "r1", "timestamp": "t", "mode": "americano", '
    '"courts": [{"team_a": ["a", "b"], "team_b": ["c", "d"], "score": {"a": -5, "b": 3}}]}]}}}',
])
def test_malformed_snapshot_rejected(text):
    """测试结构错误的快照抛出 MalformedSnapshot"""
    with pytest.raises(MalformedSnapshot):
        loads_snapshot(text)


def test_unknown_score_kind_rejected():
    """测试未知计分方式被拒绝"""
    data = {
        'modes': {
            'fixed_match': {
                'history': [{
                    'id': 'r1', 'timestamp': 't', 'mode': 'fixed_match', 'score_kind': 'golden',
                    'courts': [{'team_a': ['a', 'b'], 'team_b': ['c', 'd'], 'score': {'a': 6, 'b': 4}}],
                }],
            },
        },
    }
    with pytest.raises(MalformedSnapshot):
        snapshot_from_dict(data)
