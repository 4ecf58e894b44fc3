"""
计分规则单元测试
"""

import pytest

from padelscorer.core.errors import (
    InsufficientPlayers,
    InvalidScore,
    InvalidTeamSelection,
    UndeterminedWinner,
)
from padelscorer.core.models import CourtResult, Score
from padelscorer.infra.scoring.scoring_rules import FixedMatchScoringRule, SocialScoringRule


def court(team_a, team_b, a, b):
    return CourtResult(team_a=tuple(team_a), team_b=tuple(team_b), score=Score(a=a, b=b))


def test_social_rule_each_player_gets_own_team_score():
    """测试每位球员获得本队得分"""
    delta = SocialScoringRule().compute_delta([court('AB', 'CD', 6, 3)])
    assert delta == {'A': 6, 'B': 6, 'C': 3, 'D': 3}


def test_social_rule_delta_sum_is_twice_court_scores():
    """测试积分变化总和等于场地比分总和的2倍"""
    courts = [
        court('AB', 'CD', 6, 3),
        court('EF', 'GH', 4, 4),
        court('IJ', 'KL', 0, 7),
    ]
    rule = SocialScoringRule()
    rule.validate(courts)
    delta = rule.compute_delta(courts)

    assert sum(delta.values()) == 2 * sum(c.score.a + c.score.b for c in courts)


def test_social_rule_accepts_tie():
    """测试社交模式允许平局"""
    rule = SocialScoringRule()
    courts = [court('AB', 'CD', 5, 5)]
    rule.validate(courts)

    assert rule.compute_delta(courts) == {'A': 5, 'B': 5, 'C': 5, 'D': 5}


def test_fixed_rule_winner_bonus():
    """测试固定对阵胜方每人加3分，负方不加分"""
    rule = FixedMatchScoringRule()
    courts = [court('AB', 'CD', 2, 6)]
    rule.validate(courts)

    assert rule.compute_delta(courts) == {'C': 3, 'D': 3}


def test_fixed_rule_custom_bonus():
    """测试自定义胜方加分"""
    rule = FixedMatchScoringRule(winner_bonus=5)
    assert rule.compute_delta([court('AB', 'CD', 6, 1)]) == {'A': 5, 'B': 5}


def test_fixed_rule_rejects_tie():
    """测试固定对阵平局被拒绝"""
    with pytest.raises(UndeterminedWinner):
        FixedMatchScoringRule().validate([court('AB', 'CD', 4, 4)])


def test_fixed_rule_rejects_multiple_courts():
    """测试固定对阵只能提交一场"""
    with pytest.raises(InvalidTeamSelection):
        FixedMatchScoringRule().validate([court('AB', 'CD', 6, 4), court('EF', 'GH', 6, 4)])


@pytest.mark.parametrize('team_a,team_b', [
    ('AB', 'BC'),
    ('AA', 'CD'),
    ('ABC', 'DE'),
    ('A', 'CD'),
])
def test_invalid_team_selection(team_a, team_b):
    """测试队伍重叠或人数不是2人"""
    with pytest.raises(InvalidTeamSelection):
        SocialScoringRule().validate([court(team_a, team_b, 6, 3)])
    with pytest.raises(InvalidTeamSelection):
        FixedMatchScoringRule().validate([court(team_a, team_b, 6, 3)])


def test_player_on_two_courts_rejected():
    """测试同一球员出现在两块场地"""
    with pytest.raises(InvalidTeamSelection):
        SocialScoringRule().validate([court('AB', 'CD', 6, 3), court('AE', 'FG', 6, 3)])


def test_negative_score_rejected():
    """测试负数比分被拒绝"""
    with pytest.raises(InvalidScore):
        SocialScoringRule().validate([court('AB', 'CD', -1, 3)])


def test_empty_round_rejected():
    """测试空轮次被拒绝"""
    with pytest.raises(InsufficientPlayers):
        SocialScoringRule().validate([])
