"""
ConfigManager单元测试
"""

import os
import tempfile
import pytest
import yaml

from padelscorer.infra.config import DEFAULT_CONFIG_PATH, ConfigManager


@pytest.fixture
def sample_config():
    """创建示例配置"""
    return {
        'session_name': 'Thursday Club',
        'scoring': {
            'fixed_match_bonus': 'env_var:TEST_BONUS',
        },
        'pairing': {
            'default_court_count': 2,
            'random_seed': 42,
        },
        'storage': {
            'snapshot_key': 'club_state',
            'sqlite': {
                'db_path': 'env_var:TEST_DB_PATH',
                'snapshots_table': 'club_snapshots',
            },
        },
        'logging': {
            'level': 'DEBUG',
            'log_to_file': True,
        },
    }


def write_config(config):
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config, f)
        return f.name


@pytest.fixture
def config_file(sample_config):
    """创建临时配置文件"""
    config_path = write_config(sample_config)

    yield config_path

    # 清理
    os.unlink(config_path)


@pytest.fixture
def env_keys(monkeypatch):
    """为依赖环境变量的测试提供默认值"""
    monkeypatch.setenv('TEST_BONUS', '5')
    monkeypatch.setenv('TEST_DB_PATH', 'club.db')
    yield
    monkeypatch.delenv('TEST_BONUS', raising=False)
    monkeypatch.delenv('TEST_DB_PATH', raising=False)


def test_config_manager_initialization(config_file):
    """测试ConfigManager初始化"""
    manager = ConfigManager(config_file)
    assert manager.config_path.exists()
    assert manager.get_raw_config()['session_name'] == 'Thursday Club'


def test_missing_config_file(tmp_path):
    """测试配置文件不存在"""
    with pytest.raises(FileNotFoundError):
        ConfigManager(str(tmp_path / 'missing.yaml'))


def test_empty_config_file(tmp_path):
    """测试空配置文件"""
    path = tmp_path / 'empty.yaml'
    path.write_text('', encoding='utf-8')
    with pytest.raises(ValueError):
        ConfigManager(str(path))


def test_default_config_is_valid():
    """测试随包发布的默认配置"""
    manager = ConfigManager()
    assert manager.config_path == DEFAULT_CONFIG_PATH
    assert manager.validate_config() == []
    assert manager.get_fixed_match_bonus() == 3
    assert manager.get_default_court_count() == 1
    assert manager.get_random_seed() is None
    assert manager.get_snapshot_key() == 'padel_scorer_state'


def test_scoring_and_pairing_settings(config_file, env_keys):
    """测试计分与配对设置（含环境变量解析）"""
    manager = ConfigManager(config_file)

    assert manager.get_session_name() == 'Thursday Club'
    assert manager.get_fixed_match_bonus() == 5
    assert manager.get_default_court_count() == 2
    assert manager.get_random_seed() == 42


def test_storage_settings(config_file, env_keys):
    """测试获取存储配置"""
    manager = ConfigManager(config_file)

    assert manager.get_storage_db_path() == 'club.db'
    assert manager.get_snapshots_table() == 'club_snapshots'
    assert manager.get_snapshot_key() == 'club_state'


def test_logging_settings(config_file):
    """测试获取日志配置"""
    manager = ConfigManager(config_file)
    assert manager.get_logging_settings() == {'level': 'DEBUG', 'log_to_file': True}


def test_resolve_env_var_missing(config_file, monkeypatch):
    """测试缺失的环境变量"""
    monkeypatch.delenv('TEST_BONUS', raising=False)
    manager = ConfigManager(config_file)

    with pytest.raises(ValueError, match="环境变量.*未设置"):
        manager.get_fixed_match_bonus()


def test_defaults_when_sections_missing():
    """测试缺少配置段时使用默认值"""
    config_path = write_config({'session_name': 'Minimal'})
    try:
        manager = ConfigManager(config_path)
        assert manager.get_fixed_match_bonus() == 3
        assert manager.get_default_court_count() == 1
        assert manager.get_storage_db_path() == 'data/padelscorer.db'
        assert manager.get_snapshots_table() == 'snapshots'
        assert manager.get_logging_settings() == {'level': 'INFO', 'log_to_file': False}
        assert manager.validate_config() == []
    finally:
        os.unlink(config_path)


def test_validate_config_valid(config_file, env_keys):
    """测试配置验证 - 有效配置"""
    manager = ConfigManager(config_file)
    assert manager.validate_config() == []


def test_validate_config_invalid_values():
    """测试配置验证 - 非法取值"""
    config = {
        'scoring': {'fixed_match_bonus': -1},
        'pairing': {'default_court_count': 0, 'random_seed': 'abc'},
        'storage': {'snapshot_key': '', 'sqlite': {'snapshots_table': 'bad-table'}},
        'logging': {'level': 'LOUD'},
    }
    config_path = write_config(config)

    try:
        manager = ConfigManager(config_path)
        errors = manager.validate_config()

        assert any('session_name' in error for error in errors)
        assert any('fixed_match_bonus' in error for error in errors)
        assert any('default_court_count' in error for error in errors)
        assert any('random_seed' in error for error in errors)
        assert any('snapshots_table' in error for error in errors)
        assert any('snapshot_key' in error for error in errors)
        assert any('logging.level' in error for error in errors)
    finally:
        os.unlink(config_path)


def test_validate_config_unset_env_var(config_file, monkeypatch):
    """测试配置验证 - 引用的环境变量未设置"""
    monkeypatch.delenv('TEST_BONUS', raising=False)
    monkeypatch.delenv('TEST_DB_PATH', raising=False)
    manager = ConfigManager(config_file)
    errors = manager.validate_config()

    assert any('scoring.fixed_match_bonus' in error and '未设置' in error for error in errors)
    assert any('storage.sqlite.db_path' in error for error in errors)


def test_validate_config_resolved_env_value(config_file, monkeypatch):
    """测试配置验证 - 环境变量解析后的值也要校验"""
    monkeypatch.setenv('TEST_BONUS', 'many')
    monkeypatch.setenv('TEST_DB_PATH', 'club.db')
    errors = ConfigManager(config_file).validate_config()

    assert any('fixed_match_bonus' in error for error in errors)
