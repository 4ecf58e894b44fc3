"""
轮次结算模块
校验并应用一轮比分: 更新积分账本和搭档记忆、追加轮次记录，并立即生成下一轮配对
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from padelscorer.core.errors import PadelScorerError
from padelscorer.core.models import (
    CourtResult,
    Mode,
    RoundLayout,
    RoundRecord,
    ScoreKind,
    generate_id,
)
from padelscorer.utils.logger import get_logger
from .ledger import PartnershipMemory, ScoreLedger
from .mode_state import ModeState
from .pairing_strategies import PairingStrategy
from .scoring_rules import FixedMatchScoringRule, ScoringRule, SocialScoringRule


@dataclass(frozen=True)
class SettlementResult:
    """结算结果: 新状态、积分变化量、新轮次记录、下一轮暂定布局"""
    state: ModeState
    record: RoundRecord
    delta: Dict[str, int]
    next_layout: Optional[RoundLayout] = None

    @property
    def ledger(self) -> ScoreLedger:
        return self.state.ledger

    @property
    def partnerships(self) -> Optional[PartnershipMemory]:
        return self.state.partnerships


class RoundSettlement:
    """轮次结算器: 协调计分规则、账本更新、搭档记忆和下一轮配对"""

    def __init__(
        self,
        pairing_strategies: Mapping[Mode, PairingStrategy],
        scoring_rules: Optional[Mapping[Mode, ScoringRule]] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = generate_id,
        logger: Any = None,
    ):
        self.pairing_strategies = dict(pairing_strategies)
        self.scoring_rules = dict(scoring_rules or default_scoring_rules())
        self.clock = clock
        self.id_factory = id_factory
        self.logger = logger or get_logger(__name__)

    def settle(
        self,
        state: ModeState,
        courts: Sequence[CourtResult],
        players: Sequence[str] = (),
        court_count: int = 1,
        score_kind: Optional[ScoreKind] = None,
    ) -> SettlementResult:
        """结算一轮比分（先全部校验，校验失败时不产生任何新状态）"""
        mode = state.mode
        courts = list(courts)
        rule = self.scoring_rules[mode]
        try:
            rule.validate(courts)
        except PadelScorerError as e:
            self.logger.warning(f"{mode.value}: 拒绝提交本轮比分: {e}")
            raise

        delta = rule.compute_delta(courts)
        new_state = state.with_ledger(state.ledger.apply_delta(delta))

        if mode is Mode.AMERICANO:
            memory = state.partnerships or PartnershipMemory()
            teams = [team for court in courts for team in (court.team_a, court.team_b)]
            new_state = new_state.with_partnerships(memory.record(teams))

        if mode is Mode.FIXED_MATCH and score_kind is None:
            score_kind = ScoreKind.CLASSIC
        record = RoundRecord(
            id=self.id_factory(),
            timestamp=self.clock().isoformat(),
            mode=mode,
            courts=tuple(courts),
            score_kind=score_kind if mode is Mode.FIXED_MATCH else None,
        )
        new_state = new_state.prepend_record(record)

        self.logger.info(
            f"{mode.value}: 第 {len(new_state.history)} 轮已结算, "
            f"场地数: {len(courts)}, 积分合计 +{sum(delta.values())}"
        )
        self._log_current_ranking(new_state.ledger, mode)

        next_layout = None
        strategy = self.pairing_strategies.get(mode)
        if strategy is not None:
            next_layout = strategy.generate_layout(players, court_count, new_state)

        return SettlementResult(
            state=new_state,
            record=record,
            delta=delta,
            next_layout=next_layout,
        )

    def _log_current_ranking(self, ledger: ScoreLedger, mode: Mode):
        """记录当前排名"""
        totals = ledger.as_dict()
        self.logger.debug(f"{mode.value} - 当前排名:")
        for rank, (player_id, points) in enumerate(
            sorted(totals.items(), key=lambda x: x[1], reverse=True),
            1
        ):
            self.logger.debug(f"  {rank}. {player_id} - {points}")


def default_scoring_rules(fixed_match_bonus: Optional[int] = None) -> Dict[Mode, ScoringRule]:
    """各模式的默认计分规则"""
    fixed_rule = (
        FixedMatchScoringRule()
        if fixed_match_bonus is None
        else FixedMatchScoringRule(winner_bonus=fixed_match_bonus)
    )
    social_rule = SocialScoringRule()
    return {
        Mode.FIXED_MATCH: fixed_rule,
        Mode.AMERICANO: social_rule,
        Mode.MEXICANO: social_rule,
    }

