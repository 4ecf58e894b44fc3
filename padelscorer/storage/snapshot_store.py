"""
快照存储
提供SQLite（会话持久化）和JSON文件（导入/导出）两种快照存储
"""

import sqlite3
import time
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from padelscorer.core.errors import MalformedSnapshot
from padelscorer.core.snapshot import Snapshot, dumps_snapshot, loads_snapshot
from padelscorer.utils.logger import get_logger

logger = get_logger(__name__)


class SnapshotStore(ABC):
    """快照存储基类: load 返回快照或 None，save 返回是否成功"""

    @abstractmethod
    def load(self) -> Optional[Snapshot]:
        """读取快照，不存在时返回 None，内容损坏时抛出 MalformedSnapshot"""
        pass

    @abstractmethod
    def save(self, snapshot: Snapshot) -> bool:
        """写入快照"""
        pass


class SQLiteSnapshotStore(SnapshotStore):
    """SQLite快照存储: 每个快照键一行，保存序列化后的JSON"""

    def __init__(
        self,
        db_path: str,
        snapshot_key: str = "padel_scorer_state",
        snapshots_table: str = "snapshots",
        max_retries: int = 5,
    ) -> None:
        self.db_path = Path(db_path)
        self.snapshot_key = snapshot_key
        self.snapshots_table = self._sanitize_identifier(snapshots_table)
        self.max_retries = max_retries

        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    @staticmethod
    def _sanitize_identifier(value: str) -> str:
        if not value or not value.replace("_", "").isalnum():
            raise ValueError(f"非法的SQLite标识符: {value}")
        return value

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.snapshots_table} (
                    snapshot_key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def load(self) -> Optional[Snapshot]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"""
                    SELECT payload_json FROM {self.snapshots_table}
                    WHERE snapshot_key = ?
                    LIMIT 1;
                    """,
                    (self.snapshot_key,),
                ).fetchone()
        except sqlite3.OperationalError as e:
            if "decode" not in str(e):
                raise
            raise MalformedSnapshot(f"快照内容不是合法的UTF-8: {e}")
        if not row:
            return None
        return loads_snapshot(row["payload_json"])

    def save(self, snapshot: Snapshot) -> bool:
        payload_json = dumps_snapshot(snapshot)
        now = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())

        for attempt in range(self.max_retries):
            try:
                with self._connect() as conn:
                    conn.execute(
                        f"""
                        INSERT INTO {self.snapshots_table}
                            (snapshot_key, payload_json, created_at, updated_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(snapshot_key) DO UPDATE SET
                            payload_json=excluded.payload_json,
                            updated_at=excluded.updated_at;
                        """,
                        (self.snapshot_key, payload_json, now, now),
                    )
                    conn.commit()
                logger.debug(f"快照已保存: {self.db_path} [{self.snapshot_key}]")
                return True
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e) and attempt < self.max_retries - 1:
                    # 指数退避重试
                    wait_time = 0.1 * (2 ** attempt)
                    time.sleep(wait_time)
                    continue
                logger.error(f"快照保存失败: {e}")
                return False
            except sqlite3.Error as e:
                logger.error(f"快照保存失败: {e}")
                return False
        return False

    def list_snapshots(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT snapshot_key, created_at, updated_at
                FROM {self.snapshots_table}
                ORDER BY updated_at DESC;
                """
            ).fetchall()

        return [
            {
                'snapshot_key': row['snapshot_key'],
                'created_at': row['created_at'],
                'updated_at': row['updated_at'],
            }
            for row in rows
        ]


class JsonFileSnapshotStore(SnapshotStore):
    """JSON文件快照存储: 用于导入/导出"""

    def __init__(self, path: str, encoding: str = 'utf-8'):
        self.path = Path(path)
        self.encoding = encoding

    @staticmethod
    def default_export_name(day: Optional[date] = None) -> str:
        day = day or date.today()
        return f"padel-scorer-{day.isoformat()}.json"

    def load(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding=self.encoding) as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise MalformedSnapshot(f"{self.path}: 文件编码错误: {e}")
        return loads_snapshot(text)

    def save(self, snapshot: Snapshot) -> bool:
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding=self.encoding) as f:
                f.write(dumps_snapshot(snapshot))
            logger.info(f"快照已导出: {self.path}")
            return True
        except OSError as e:
            logger.error(f"快照导出失败: {self.path}, 错误: {e}")
            return False
