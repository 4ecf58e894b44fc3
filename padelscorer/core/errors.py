"""计分会话异常定义"""


class PadelScorerError(Exception):
    """计分系统异常基类"""


class InvalidTeamSelection(PadelScorerError):
    """队伍人数不是2人、队伍重叠或同一球员出现在多个场地"""


class UndeterminedWinner(PadelScorerError):
    """固定对阵比赛比分相同，无法判定胜者"""


class InvalidScore(PadelScorerError):
    """比分不是非负整数"""


class InsufficientPlayers(PadelScorerError):
    """可用球员不足4人，本轮没有可提交的场地"""


class MalformedSnapshot(PadelScorerError):
    """快照无法解析或结构校验失败"""
