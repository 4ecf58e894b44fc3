"""
快照存储单元测试
"""

import sqlite3
from datetime import date

import pytest

from padelscorer.core.errors import MalformedSnapshot
from padelscorer.core.models import Mode, Player
from padelscorer.core.snapshot import Snapshot, dumps_snapshot, empty_snapshot
from padelscorer.infra.scoring import ModeState, ScoreLedger
from padelscorer.storage import JsonFileSnapshotStore, SQLiteSnapshotStore


@pytest.fixture
def snapshot():
    return Snapshot(
        players=(Player(id='a1', name='Alice', color='#3b82f6'),),
        modes={Mode.MEXICANO: ModeState(mode=Mode.MEXICANO, ledger=ScoreLedger({'a1': 9}))},
        ui={'active_mode': 'mexicano'},
    )


def test_sqlite_missing_key_returns_none(tmp_path):
    """测试没有保存过时返回 None"""
    store = SQLiteSnapshotStore(str(tmp_path / "scorer.db"))
    assert store.load() is None


def test_sqlite_save_and_load(tmp_path, snapshot):
    """测试保存后读取一致，重复保存覆盖同一行"""
    store = SQLiteSnapshotStore(str(tmp_path / "data" / "scorer.db"))

    assert store.save(empty_snapshot()) is True
    assert store.save(snapshot) is True

    loaded = store.load()
    assert dumps_snapshot(loaded) == dumps_snapshot(snapshot)
    assert [row['snapshot_key'] for row in store.list_snapshots()] == ['padel_scorer_state']


def test_sqlite_keys_are_independent(tmp_path, snapshot):
    """测试不同快照键互不影响"""
    db_path = str(tmp_path / "scorer.db")
    SQLiteSnapshotStore(db_path, snapshot_key='club').save(snapshot)

    assert SQLiteSnapshotStore(db_path, snapshot_key='other').load() is None


def test_sqlite_corrupt_row(tmp_path):
    """测试损坏的数据抛出 MalformedSnapshot"""
    db_path = tmp_path / "scorer.db"
    store = SQLiteSnapshotStore(str(db_path))
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO snapshots (snapshot_key, payload_json, created_at, updated_at) VALUES (?, ?, ?, ?)",
            ('padel_scorer_state', '{broken', 'x', 'x'),
        )

    with pytest.raises(MalformedSnapshot):
        store.load()


def test_sqlite_invalid_table_name(tmp_path):
    """测试非法表名被拒绝"""
    with pytest.raises(ValueError):
        SQLiteSnapshotStore(str(tmp_path / "scorer.db"), snapshots_table="snapshots; DROP TABLE x")


def test_json_export_and_import(tmp_path, snapshot):
    """测试JSON文件导出后导入"""
    path = tmp_path / "exports" / "backup.json"
    store = JsonFileSnapshotStore(str(path))

    assert store.load() is None
    assert store.save(snapshot) is True
    assert path.read_text(encoding='utf-8') == dumps_snapshot(snapshot)

    loaded = store.load()
    assert loaded.state_for(Mode.MEXICANO).ledger.get('a1') == 9


def test_json_import_malformed(tmp_path):
    """测试导入损坏的文件"""
    path = tmp_path / "bad.json"
    path.write_text('{"modes": 3}', encoding='utf-8')

    with pytest.raises(MalformedSnapshot):
        JsonFileSnapshotStore(str(path)).load()


def test_default_export_name():
    """测试默认导出文件名"""
    assert JsonFileSnapshotStore.default_export_name(date(2026, 10, 19)) == "padel-scorer-2026-10-19.json"


def test_sqlite_non_utf8_row(tmp_path):
    """测试数据库中非UTF-8内容抛出 MalformedSnapshot"""
    db_path = tmp_path / "scorer.db"
    store = SQLiteSnapshotStore(str(db_path))
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO snapshots (snapshot_key, payload_json, created_at, updated_at) "
            "VALUES (?, CAST(X'7B22FFFE227D' AS TEXT), ?, ?)",
            ('padel_scorer_state', 'x', 'x'),
        )

    with pytest.raises(MalformedSnapshot):
        store.load()


def test_json_import_non_utf8(tmp_path):
    """测试导入编码错误的文件"""
    path = tmp_path / "binary.json"
    path.write_bytes(b'{"players": [\xff\xfe]}')

    with pytest.raises(MalformedSnapshot):
        JsonFileSnapshotStore(str(path)).load()
