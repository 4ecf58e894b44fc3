"""
计分会话
对外提供生成配对、提交比分、重置积分、清空历史等操作；
状态以快照对象显式保存，每次操作替换为新的状态对象
"""

import random
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from padelscorer.core import roster
from padelscorer.core.errors import InvalidScore, InvalidTeamSelection, MalformedSnapshot
from padelscorer.core.models import (
    CourtResult,
    Mode,
    Player,
    RoundLayout,
    RoundRecord,
    Score,
    ScoreKind,
    generate_id,
)
from padelscorer.core.snapshot import (
    Snapshot,
    empty_snapshot,
    layout_to_list,
    parse_optional_layout,
)
from padelscorer.infra.scoring import (
    ModeState,
    PairingStrategy,
    RoundSettlement,
    ScoreLedger,
    SettlementResult,
    create_pairing_strategies,
    default_scoring_rules,
)
from padelscorer.utils.logger import get_logger

logger = get_logger(__name__)

UI_ACTIVE_MODE = 'active_mode'
UI_COURT_COUNTS = 'court_counts'
UI_PENDING_LAYOUTS = 'pending_layouts'
DEFAULT_ACTIVE_MODE = Mode.AMERICANO
DEFAULT_SESSION_NAME = "Padel Scorer"


class ScoringSession:
    """计分会话: 名单 + 三种模式的状态 + 各社交模式的暂定配对"""

    def __init__(
        self,
        snapshot: Optional[Snapshot] = None,
        pairing_strategies: Optional[Mapping[Mode, PairingStrategy]] = None,
        rng: Optional[random.Random] = None,
        fixed_match_bonus: Optional[int] = None,
        default_court_count: int = 1,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = generate_id,
        session_name: str = DEFAULT_SESSION_NAME,
    ):
        snapshot = snapshot or empty_snapshot()
        self.session_name = session_name
        self.pairing_strategies = dict(pairing_strategies or create_pairing_strategies(rng))
        self.settlement = RoundSettlement(
            pairing_strategies=self.pairing_strategies,
            scoring_rules=default_scoring_rules(fixed_match_bonus),
            clock=clock,
            id_factory=id_factory,
        )
        self.default_court_count = max(1, default_court_count)
        self.id_factory = id_factory

        self._players: Tuple[Player, ...] = tuple(snapshot.players)
        self._states: Dict[Mode, ModeState] = {mode: snapshot.state_for(mode) for mode in Mode}
        self._active_mode = DEFAULT_ACTIVE_MODE
        self._court_counts: Dict[Mode, int] = {}
        self._pending: Dict[Mode, RoundLayout] = {}
        self._ui_extra: Dict[str, Any] = {}
        self._restore_ui(snapshot.ui)

    # ==================== 构造与持久化 ====================

    @staticmethod
    def options_from_config(config_manager) -> Dict[str, Any]:
        """从配置中读取会话参数"""
        seed = config_manager.get_random_seed()
        return {
            'rng': random.Random(seed) if seed is not None else None,
            'fixed_match_bonus': config_manager.get_fixed_match_bonus(),
            'default_court_count': config_manager.get_default_court_count(),
            'session_name': config_manager.get_session_name(),
        }

    @classmethod
    def from_config(cls, config_manager, snapshot: Optional[Snapshot] = None, **kwargs) -> "ScoringSession":
        """按配置创建会话"""
        options = cls.options_from_config(config_manager)
        options.update(kwargs)
        return cls(snapshot=snapshot, **options)

    @classmethod
    def load(cls, store, **kwargs) -> "ScoringSession":
        """从存储读取快照；快照不存在或损坏时回退为空会话"""
        try:
            snapshot = store.load()
        except MalformedSnapshot as e:
            logger.warning(f"快照损坏，使用空白会话: {e}")
            snapshot = None
        if snapshot is None:
            logger.info("未找到已保存的会话，创建空白会话")
        return cls(snapshot=snapshot, **kwargs)

    def save(self, store) -> bool:
        """保存当前会话快照"""
        saved = store.save(self.snapshot())
        if not saved:
            logger.warning("会话快照保存失败")
        return saved

    def snapshot(self) -> Snapshot:
        """生成当前状态的一致性快照"""
        ui = dict(self._ui_extra)
        ui[UI_ACTIVE_MODE] = self._active_mode.value
        ui[UI_COURT_COUNTS] = {mode.value: count for mode, count in self._court_counts.items()}
        ui[UI_PENDING_LAYOUTS] = {
            mode.value: layout_to_list(layout) for mode, layout in self._pending.items()
        }
        return Snapshot(players=self._players, modes=dict(self._states), ui=ui)

    def _restore_ui(self, ui: Mapping[str, Any]) -> None:
        ui = dict(ui or {})
        active = ui.pop(UI_ACTIVE_MODE, None)
        court_counts = ui.pop(UI_COURT_COUNTS, None) or {}
        pending = ui.pop(UI_PENDING_LAYOUTS, None) or {}
        self._ui_extra = ui

        try:
            self._active_mode = Mode(active) if active else DEFAULT_ACTIVE_MODE
        except ValueError:
            logger.warning(f"忽略未知的当前模式: {active!r}")

        if isinstance(court_counts, dict):
            for key, value in court_counts.items():
                mode = _parse_mode(key)
                if mode is not None and isinstance(value, int) and not isinstance(value, bool) and value >= 1:
                    self._court_counts[mode] = value

        if isinstance(pending, dict):
            for key, value in pending.items():
                mode = _parse_mode(key)
                if mode is None or not mode.is_social:
                    continue
                try:
                    layout = parse_optional_layout(mode, value)
                except MalformedSnapshot as e:
                    logger.warning(f"忽略损坏的暂定配对: {e}")
                    continue
                if layout is not None:
                    self._pending[mode] = layout

    # ==================== 只读访问 ====================

    @property
    def players(self) -> Tuple[Player, ...]:
        return self._players

    @property
    def player_ids(self):
        return [p.id for p in self._players]

    @property
    def active_mode(self) -> Mode:
        return self._active_mode

    def set_active_mode(self, mode: Mode) -> None:
        self._active_mode = mode

    def state(self, mode: Mode) -> ModeState:
        return self._states[mode]

    def states(self) -> Dict[Mode, ModeState]:
        return dict(self._states)

    def court_count(self, mode: Mode) -> int:
        return self._court_counts.get(mode, self.default_court_count)

    def pending_layout(self, mode: Mode) -> Optional[RoundLayout]:
        return self._pending.get(mode)

    # ==================== 配对 ====================

    def generate_layout(self, mode: Mode, court_count: Optional[int] = None) -> RoundLayout:
        """生成暂定配对并替换之前未提交的配对"""
        strategy = self._strategy_for(mode)
        if court_count is not None:
            self._court_counts[mode] = max(1, court_count)
        layout = strategy.generate_layout(self.player_ids, self.court_count(mode), self._states[mode])
        self._pending[mode] = layout
        return layout

    def on_roster_changed(self) -> Dict[Mode, RoundLayout]:
        """名单变化后重新生成所有社交模式的配对"""
        return {mode: self.generate_layout(mode) for mode in self.pairing_strategies}

    def on_court_count_changed(self, mode: Mode, court_count: int) -> RoundLayout:
        """场地数变化后重新生成该模式的配对"""
        return self.generate_layout(mode, court_count=court_count)

    def _strategy_for(self, mode: Mode) -> PairingStrategy:
        strategy = self.pairing_strategies.get(mode)
        if strategy is None:
            raise ValueError(f"模式 {mode.value} 不支持自动配对")
        return strategy

    # ==================== 提交比分 ====================

    def commit_round(self, mode: Mode, courts: Sequence[CourtResult]) -> SettlementResult:
        """提交一轮带比分的对阵，结算后立即生成下一轮暂定配对"""
        self._strategy_for(mode)
        result = self.settlement.settle(
            self._states[mode],
            courts,
            players=self.player_ids,
            court_count=self.court_count(mode),
        )
        self._states[mode] = result.state
        if result.next_layout is not None:
            self._pending[mode] = result.next_layout
        return result

    def commit_scores(self, mode: Mode, scores: Sequence[Score]) -> SettlementResult:
        """为当前暂定配对按场地顺序填入比分并提交"""
        layout = self._pending.get(mode) or RoundLayout(mode=mode)
        try:
            courts = layout.with_scores(scores)
        except ValueError as e:
            raise InvalidScore(str(e))
        return self.commit_round(mode, courts)

    def commit_match(
        self,
        team_a: Sequence[str],
        team_b: Sequence[str],
        score_a: int,
        score_b: int,
        score_kind: ScoreKind = ScoreKind.CLASSIC,
    ) -> SettlementResult:
        """提交一场固定对阵比赛"""
        known_ids = set(self.player_ids)
        unknown = [pid for pid in list(team_a) + list(team_b) if pid not in known_ids]
        if unknown:
            raise InvalidTeamSelection(f"未知球员: {', '.join(unknown)}")

        court = CourtResult(team_a=tuple(team_a), team_b=tuple(team_b), score=Score(a=score_a, b=score_b))
        result = self.settlement.settle(
            self._states[Mode.FIXED_MATCH],
            [court],
            score_kind=score_kind,
        )
        self._states[Mode.FIXED_MATCH] = result.state
        return result

    # ==================== 重置 ====================

    def reset_totals(self, mode: Mode) -> ScoreLedger:
        """清空该模式积分（保留历史和搭档记忆）"""
        state = self._states[mode]
        self._states[mode] = state.with_ledger(state.ledger.reset())
        logger.info(f"{mode.value}: 积分已重置")
        return self._states[mode].ledger

    def clear_history(self, mode: Mode) -> Tuple[RoundRecord, ...]:
        """清空该模式历史（保留积分和搭档记忆）"""
        self._states[mode] = self._states[mode].with_history(())
        logger.info(f"{mode.value}: 历史已清空")
        return self._states[mode].history

    # ==================== 名单 ====================

    def add_player(self, name: str, color: Optional[str] = None) -> Player:
        self._players, player = roster.add_player(self._players, name, color, id_factory=self.id_factory)
        logger.info(f"已添加球员: {player.name} ({player.id})")
        self.on_roster_changed()
        return player

    def remove_player(self, player_id: str) -> bool:
        """删除球员，历史记录中的ID保持不变"""
        remaining = roster.remove_player(self._players, player_id)
        if len(remaining) == len(self._players):
            return False
        self._players = remaining
        logger.info(f"已删除球员: {player_id}")
        self.on_roster_changed()
        return True


def _parse_mode(value: Any) -> Optional[Mode]:
    try:
        return Mode(value)
    except ValueError:
        return None
