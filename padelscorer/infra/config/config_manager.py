"""
统一配置管理器
加载和解析YAML配置文件，支持环境变量解析、配置验证
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
import os

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "configs" / "default.yaml"

DEFAULT_DB_PATH = "data/padelscorer.db"
DEFAULT_SNAPSHOTS_TABLE = "snapshots"
DEFAULT_SNAPSHOT_KEY = "padel_scorer_state"

_UNRESOLVED = object()


class ConfigManager:
    """统一配置管理器: 加载YAML配置、解析环境变量、提供配置访问接口"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        if not self.config_path.exists():
            raise FileNotFoundError(f"配置文件不存在: {self.config_path}")

        self._config = self._load_config()

    def _load_config(self) -> dict:
        """加载配置文件"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
                if not config:
                    raise ValueError("配置文件为空")
                if not isinstance(config, dict):
                    raise ValueError("配置文件顶层必须是映射")
                return config
        except yaml.YAMLError as e:
            raise ValueError(f"配置文件格式错误: {e}")

    def _resolve_env_var(self, value: Any) -> Any:
        """解析环境变量格式的配置值，支持格式: env_var:VARIABLE_NAME"""
        if isinstance(value, str) and value.startswith("env_var:"):
            env_key = value[8:]  # 移除 "env_var:" 前缀
            env_value = os.getenv(env_key)
            if env_value is None:
                raise ValueError(f"环境变量 {env_key} 未设置")
            return env_value
        return value

    def get_raw_config(self) -> dict:
        """获取原始配置字典"""
        return self._config

    def get_session_name(self) -> str:
        """获取计分会话名称"""
        return self._config.get('session_name', 'Padel Scorer')

    # ==================== 计分与配对 ====================

    def get_scoring_settings(self) -> Dict:
        """获取计分设置"""
        return self._config.get('scoring', {}) or {}

    def get_fixed_match_bonus(self) -> int:
        """获取固定对阵胜方加分"""
        return int(self._resolve_env_var(self.get_scoring_settings().get('fixed_match_bonus', 3)))

    def get_pairing_settings(self) -> Dict:
        """获取配对设置"""
        return self._config.get('pairing', {}) or {}

    def get_default_court_count(self) -> int:
        """获取默认场地数"""
        return int(self._resolve_env_var(self.get_pairing_settings().get('default_court_count', 1)))

    def get_random_seed(self) -> Optional[int]:
        """获取随机种子（None 表示使用系统随机源）"""
        seed = self._resolve_env_var(self.get_pairing_settings().get('random_seed'))
        if seed is None or seed == '':
            return None
        return int(seed)

    # ==================== 存储相关配置 ====================

    def get_storage_config(self) -> Dict:
        """获取存储配置"""
        return self._config.get('storage', {}) or {}

    def get_storage_db_path(self) -> str:
        """获取SQLite数据库路径"""
        sqlite_config = self.get_storage_config().get('sqlite', {}) or {}
        return self._resolve_env_var(sqlite_config.get('db_path', DEFAULT_DB_PATH))

    def get_snapshots_table(self) -> str:
        """获取快照表名"""
        sqlite_config = self.get_storage_config().get('sqlite', {}) or {}
        return sqlite_config.get('snapshots_table', DEFAULT_SNAPSHOTS_TABLE)

    def get_snapshot_key(self) -> str:
        """获取快照键"""
        return self.get_storage_config().get('snapshot_key', DEFAULT_SNAPSHOT_KEY)

    # ==================== 日志相关配置 ====================

    def get_logging_settings(self) -> Dict:
        """获取日志配置"""
        settings = self._config.get('logging', {}) or {}
        return {
            'level': settings.get('level', 'INFO'),
            'log_to_file': bool(settings.get('log_to_file', False)),
        }

    def validate_config(self) -> List[str]:
        """验证配置文件的完整性和有效性"""
        errors = []

        if not self._config.get('session_name'):
            errors.append("缺少必要配置: session_name")

        bonus = self._resolve_for_validation(
            self.get_scoring_settings().get('fixed_match_bonus', 3), 'scoring.fixed_match_bonus', errors
        )
        if bonus is not _UNRESOLVED and (not _is_int_like(bonus) or int(bonus) < 0):
            errors.append(f"scoring.fixed_match_bonus 必须是非负整数: {bonus!r}")

        court_count = self._resolve_for_validation(
            self.get_pairing_settings().get('default_court_count', 1), 'pairing.default_court_count', errors
        )
        if court_count is not _UNRESOLVED and (not _is_int_like(court_count) or int(court_count) < 1):
            errors.append(f"pairing.default_court_count 必须是正整数: {court_count!r}")

        seed = self._resolve_for_validation(
            self.get_pairing_settings().get('random_seed'), 'pairing.random_seed', errors
        )
        if seed is not _UNRESOLVED and seed not in (None, '') and not _is_int_like(seed):
            errors.append(f"pairing.random_seed 必须是整数或留空: {seed!r}")

        sqlite_config = self.get_storage_config().get('sqlite', {}) or {}
        self._resolve_for_validation(sqlite_config.get('db_path', DEFAULT_DB_PATH), 'storage.sqlite.db_path', errors)

        table = self.get_snapshots_table()
        if not table or not str(table).replace("_", "").isalnum():
            errors.append(f"storage.sqlite.snapshots_table 不是合法的表名: {table!r}")

        if not self.get_snapshot_key():
            errors.append("storage.snapshot_key 不能为空")

        level = str(self.get_logging_settings()['level']).upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"logging.level 不合法: {level}")

        return errors

    def _resolve_for_validation(self, value: Any, key: str, errors: List[str]) -> Any:
        """解析环境变量引用，未设置时记录错误并返回 _UNRESOLVED"""
        try:
            return self._resolve_env_var(value)
        except ValueError as e:
            errors.append(f"{key}: {e}")
            return _UNRESOLVED


def _is_int_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip().lstrip('-').isdigit()
