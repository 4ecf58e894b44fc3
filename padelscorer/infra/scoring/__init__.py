"""
计分系统基础设施
提供积分账本、搭档记忆、配对策略、计分规则和轮次结算
"""

from .ledger import (
    PartnershipMemory,
    ScoreLedger,
    pair_key,
)
from .mode_state import ModeState
from .pairing_strategies import (
    PairingStrategy,
    AmericanoPairingStrategy,
    MexicanoPairingStrategy,
    create_pairing_strategy,
    create_pairing_strategies,
    effective_court_count,
)
from .scoring_rules import (
    ScoringRule,
    SocialScoringRule,
    FixedMatchScoringRule,
)
from .round_settlement import (
    RoundSettlement,
    SettlementResult,
    default_scoring_rules,
)

__all__ = [
    # 账本与搭档记忆
    'PartnershipMemory',
    'ScoreLedger',
    'pair_key',
    'ModeState',
    # 配对策略
    'PairingStrategy',
    'AmericanoPairingStrategy',
    'MexicanoPairingStrategy',
    'create_pairing_strategy',
    'create_pairing_strategies',
    'effective_court_count',
    # 计分规则
    'ScoringRule',
    'SocialScoringRule',
    'FixedMatchScoringRule',
    # 轮次结算
    'RoundSettlement',
    'SettlementResult',
    'default_scoring_rules',
]
