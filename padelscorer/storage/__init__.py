from .snapshot_store import SnapshotStore, SQLiteSnapshotStore, JsonFileSnapshotStore

__all__ = ['SnapshotStore', 'SQLiteSnapshotStore', 'JsonFileSnapshotStore']
