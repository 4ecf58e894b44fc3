import argparse
import os
import re
import sys
from typing import List, Optional, Sequence

from padelscorer.core.errors import PadelScorerError
from padelscorer.core.models import Mode, RoundLayout, Score, ScoreKind, name_of
from padelscorer.core.report import build_leaderboard, export_leaderboard_csv, format_round, player_history
from padelscorer.core.roster import find_player
from padelscorer.core.session import ScoringSession
from padelscorer.infra.config import ConfigManager
from padelscorer.storage import JsonFileSnapshotStore, SQLiteSnapshotStore
from padelscorer.utils.env_loader import load_project_env
from padelscorer.utils.logger import configure_root_logger, get_logger

logger = get_logger(__name__)

SCORE_PATTERN = re.compile(r"^\s*(\d+)\s*[-:]\s*(\d+)\s*$")
MODE_CHOICES = [mode.value for mode in Mode]
SOCIAL_MODE_CHOICES = [mode.value for mode in Mode if mode.is_social]


def parse_score(text: str) -> Score:
    """解析 6:3 或 6-3 格式的比分"""
    match = SCORE_PATTERN.match(text)
    if not match:
        raise argparse.ArgumentTypeError(f"比分格式错误: '{text}'，示例: 6:3")
    return Score(a=int(match.group(1)), b=int(match.group(2)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="padelscorer", description="Padel 社交赛计分与配对")
    parser.add_argument('--config', type=str, default=None, help='YAML配置文件路径（默认读取 PADELSCORER_CONFIG 或内置配置）')
    sub = parser.add_subparsers(dest='command', required=True)

    players = sub.add_parser('players', help='管理球员名单')
    players_sub = players.add_subparsers(dest='players_command', required=True)
    players_sub.add_parser('list', help='列出球员')
    add = players_sub.add_parser('add', help='添加球员')
    add.add_argument('name')
    add.add_argument('--color', default=None)
    remove = players_sub.add_parser('remove', help='删除球员（历史记录保留）')
    remove.add_argument('player', help='球员ID或名称')

    pair = sub.add_parser('pair', help='生成下一轮暂定配对')
    pair.add_argument('mode', choices=SOCIAL_MODE_CHOICES)
    pair.add_argument('--courts', type=int, default=None, help='场地数')

    commit = sub.add_parser('commit', help='按场地顺序提交暂定配对的比分')
    commit.add_argument('mode', choices=SOCIAL_MODE_CHOICES)
    commit.add_argument('scores', nargs='+', type=parse_score, help='每块场地一个比分，如 6:3')

    match = sub.add_parser('match', help='提交一场固定对阵（2x2）比赛')
    match.add_argument('--team-a', nargs=2, required=True, metavar='PLAYER')
    match.add_argument('--team-b', nargs=2, required=True, metavar='PLAYER')
    match.add_argument('--score', type=parse_score, required=True)
    match.add_argument('--kind', choices=[kind.value for kind in ScoreKind], default=ScoreKind.CLASSIC.value)

    leaderboard = sub.add_parser('leaderboard', help='显示排行榜')
    leaderboard.add_argument('mode', choices=MODE_CHOICES)
    leaderboard.add_argument('--csv', default=None, help='导出CSV路径')

    history = sub.add_parser('history', help='显示历史记录')
    history.add_argument('mode', choices=MODE_CHOICES)

    player = sub.add_parser('player', help='显示球员战绩')
    player.add_argument('player', help='球员ID或名称')

    reset = sub.add_parser('reset', help='清空积分')
    reset.add_argument('mode', choices=MODE_CHOICES)

    clear = sub.add_parser('clear-history', help='清空历史')
    clear.add_argument('mode', choices=MODE_CHOICES)

    export = sub.add_parser('export', help='导出快照为JSON文件')
    export.add_argument('path', nargs='?', default=None)

    import_ = sub.add_parser('import', help='从JSON文件导入快照')
    import_.add_argument('path')

    return parser


def format_layout(layout: RoundLayout, session: ScoringSession) -> List[str]:
    if layout.is_empty:
        return ["没有可用配对，至少需要4名球员"]
    lines = []
    for idx, court in enumerate(layout.courts, 1):
        team_a = " + ".join(name_of(session.players, pid) for pid in court.team_a)
        team_b = " + ".join(name_of(session.players, pid) for pid in court.team_b)
        lines.append(f"Court {idx}: {team_a} vs {team_b}")
    return lines


def _resolve_player(session: ScoringSession, ref: str) -> str:
    player = find_player(session.players, ref)
    if player is None:
        raise PadelScorerError(f"未找到球员: {ref}")
    return player.id


def run_command(args: argparse.Namespace, session: ScoringSession) -> bool:
    """执行子命令，返回会话是否被修改"""
    command = args.command

    if command == 'players':
        if args.players_command == 'list':
            for p in session.players:
                print(f"{p.id}  {p.name}  {p.color}")
            return False
        if args.players_command == 'add':
            player = session.add_player(args.name, args.color)
            print(f"{player.id}  {player.name}  {player.color}")
            return True
        removed = session.remove_player(_resolve_player(session, args.player))
        return removed

    if command == 'pair':
        mode = Mode(args.mode)
        layout = session.generate_layout(mode, court_count=args.courts)
        session.set_active_mode(mode)
        for line in format_layout(layout, session):
            print(line)
        return True

    if command == 'commit':
        mode = Mode(args.mode)
        result = session.commit_scores(mode, args.scores)
        print(format_round(result.record, session.players))
        print("下一轮:")
        for line in format_layout(result.next_layout, session):
            print(line)
        return True

    if command == 'match':
        team_a = [_resolve_player(session, ref) for ref in args.team_a]
        team_b = [_resolve_player(session, ref) for ref in args.team_b]
        result = session.commit_match(team_a, team_b, args.score.a, args.score.b, ScoreKind(args.kind))
        session.set_active_mode(Mode.FIXED_MATCH)
        print(format_round(result.record, session.players))
        return True

    if command == 'leaderboard':
        mode = Mode(args.mode)
        board = build_leaderboard(session.players, session.state(mode).ledger)
        print(f"{session.session_name} - {mode.label}")
        if board.empty:
            print("名单为空")
        else:
            print(board.to_string(index=False))
        if args.csv:
            export_leaderboard_csv(board, args.csv)
        return False

    if command == 'history':
        records = session.state(Mode(args.mode)).history
        if not records:
            print("暂无记录")
        for record in records:
            print(f"{record.timestamp}  {format_round(record, session.players)}")
        return False

    if command == 'player':
        stats = player_history(_resolve_player(session, args.player), session.players, session.states())
        print(f"{stats.name}: 总得分 {stats.total_scored}, 场次 {stats.games}, 场均 {stats.average_points:.2f}")
        if not stats.entries.empty:
            print(stats.entries.to_string(index=False))
        return False

    if command == 'reset':
        session.reset_totals(Mode(args.mode))
        return True

    if command == 'clear-history':
        session.clear_history(Mode(args.mode))
        return True

    raise ValueError(f"未知命令: {command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_project_env()

    parser = build_parser()
    args = parser.parse_args(argv)
    config_path = args.config or os.getenv('PADELSCORER_CONFIG')

    try:
        config_manager = ConfigManager(config_path)
        validation_errors = config_manager.validate_config()
        if validation_errors:
            logger.error("配置验证失败，发现以下问题：")
            for error in validation_errors:
                logger.error(f"  - {error}")
            return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"配置加载失败: {e}")
        return 1

    logging_settings = config_manager.get_logging_settings()
    configure_root_logger(
        level=logging_settings['level'],
        log_to_file=logging_settings['log_to_file'],
        log_to_console=True,
    )

    try:
        store = SQLiteSnapshotStore(
            db_path=config_manager.get_storage_db_path(),
            snapshot_key=config_manager.get_snapshot_key(),
            snapshots_table=config_manager.get_snapshots_table(),
        )
        options = ScoringSession.options_from_config(config_manager)
    except ValueError as e:
        logger.error(f"配置加载失败: {e}")
        return 1

    if args.command == 'export':
        session = ScoringSession.load(store, **options)
        path = args.path or JsonFileSnapshotStore.default_export_name()
        return 0 if session.save(JsonFileSnapshotStore(path)) else 1

    if args.command == 'import':
        try:
            snapshot = JsonFileSnapshotStore(args.path).load()
        except (PadelScorerError, OSError) as e:
            logger.error(f"导入失败: {e}")
            return 1
        if snapshot is None:
            logger.error(f"文件不存在: {args.path}")
            return 1
        session = ScoringSession(snapshot=snapshot, **options)
        logger.info(f"已导入 {len(session.players)} 名球员")
        return 0 if session.save(store) else 1

    session = ScoringSession.load(store, **options)
    try:
        changed = run_command(args, session)
    except PadelScorerError as e:
        logger.error(f"操作失败: {e}")
        return 1

    if changed and not session.save(store):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
