"""单个计分模式的状态: 积分账本、轮次历史、搭档记忆"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from padelscorer.core.models import Mode, RoundRecord
from .ledger import PartnershipMemory, ScoreLedger


@dataclass(frozen=True)
class ModeState:
    """模式状态（不可变），每个模式一份，搭档记忆仅Americano持有"""
    mode: Mode
    ledger: ScoreLedger = field(default_factory=ScoreLedger)
    history: Tuple[RoundRecord, ...] = ()
    partnerships: Optional[PartnershipMemory] = None

    @classmethod
    def empty(cls, mode: Mode) -> "ModeState":
        partnerships = PartnershipMemory() if mode is Mode.AMERICANO else None
        return cls(mode=mode, partnerships=partnerships)

    def with_ledger(self, ledger: ScoreLedger) -> "ModeState":
        return replace(self, ledger=ledger)

    def with_history(self, history: Tuple[RoundRecord, ...]) -> "ModeState":
        return replace(self, history=tuple(history))

    def with_partnerships(self, partnerships: PartnershipMemory) -> "ModeState":
        return replace(self, partnerships=partnerships)

    def prepend_record(self, record: RoundRecord) -> "ModeState":
        """新记录放在历史最前面"""
        return replace(self, history=(record,) + self.history)
