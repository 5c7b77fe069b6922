"""Persistent store for raw and derived procurement tables.

The pipeline treats the store as an external collaborator with three
operations: ``read_all``, ``replace_all`` and ``append``. Derived tables are
written inside ``transaction()`` so that a run publishes all of them or none:

- ``MemoryStore`` stages writes in a dict and swaps them in on commit.
- ``FileStore`` writes a new snapshot directory and publishes it by atomically
  replacing the ``CURRENT`` pointer file. Readers only ever follow
  ``CURRENT``, so a half-written snapshot is never visible.

Both stores serialize pipeline runs through ``run_lock()``.
"""

import logging
import os
import shutil
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import pandas as pd

from procurement_intel.config import StoreConfig
from procurement_intel.domains.procurement.models import (
    DERIVED_TABLES,
    TABLE_COLUMNS,
    TABLE_SCHEMAS,
    Table,
)
from procurement_intel.errors import ProcurementStoreError, RunLockError
from procurement_intel.utils.io import read_table_file, write_output
from procurement_intel.utils.transforms import coerce_columns, empty_frame
from procurement_intel.utils.validators import conform_dataframe

logger = logging.getLogger(__name__)

CURRENT_POINTER = "CURRENT"
LOCK_FILE = ".run.lock"
SETUP_DESCRIPTION = "Initialized procurement intelligence store"


class ProcurementStore(ABC):
    """Table-level read/replace/append contract used by the pipeline."""

    @abstractmethod
    def read_all(self, table: Table) -> pd.DataFrame: ...

    @abstractmethod
    def replace_all(self, table: Table, rows: pd.DataFrame) -> None: ...

    @abstractmethod
    def append(self, table: Table, row: Mapping[str, object]) -> None: ...

    @abstractmethod
    def transaction(self): ...

    @abstractmethod
    def run_lock(self): ...

    def initialize(self) -> None:
        """Record the one-off SETUP entry in the project log."""
        if self.read_all(Table.PROJECT_LOG).empty:
            self.append(
                Table.PROJECT_LOG,
                {
                    "action_type": "SETUP",
                    "action_description": SETUP_DESCRIPTION,
                    "action_time": datetime.now(),
                    "status": "success",
                },
            )

    def _conform(self, table: Table, rows: pd.DataFrame) -> pd.DataFrame:
        try:
            typed = coerce_columns(rows, TABLE_COLUMNS[table])
            return conform_dataframe(typed.reset_index(drop=True), TABLE_SCHEMAS[table])
        except (ValueError, TypeError) as exc:
            raise ProcurementStoreError(f"Table {table} rejected by store: {exc}") from exc

    def _append_row(self, table: Table, existing: pd.DataFrame, row: Mapping[str, object]) -> pd.DataFrame:
        if table is not Table.PROJECT_LOG:
            raise ProcurementStoreError(f"Table {table} does not support append")
        entry = {"log_id": len(existing) + 1, **row}
        appended = pd.DataFrame([entry])
        if existing.empty:
            return self._conform(table, appended)
        return self._conform(table, pd.concat([existing, appended], ignore_index=True))


class MemoryStore(ProcurementStore):
    """In-process store, used for tests and embedding the pipeline."""

    def __init__(self) -> None:
        self._tables: dict[Table, pd.DataFrame] = {}
        self._pending: dict[Table, pd.DataFrame] | None = None
        self._lock = threading.Lock()

    def read_all(self, table: Table) -> pd.DataFrame:
        if table in self._tables:
            return self._tables[table].copy()
        return empty_frame(TABLE_COLUMNS[table])

    def replace_all(self, table: Table, rows: pd.DataFrame) -> None:
        conformed = self._conform(table, rows)
        if self._pending is not None and table in DERIVED_TABLES:
            self._pending[table] = conformed
        else:
            self._tables[table] = conformed

    def append(self, table: Table, row: Mapping[str, object]) -> None:
        self._tables[table] = self._append_row(table, self.read_all(table), row)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._pending is not None:
            raise ProcurementStoreError("A store transaction is already open")
        self._pending = {}
        try:
            yield
            self._tables.update(self._pending)
        finally:
            self._pending = None

    @contextmanager
    def run_lock(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise RunLockError("Another pipeline run holds this store")
        try:
            yield
        finally:
            self._lock.release()


class FileStore(ProcurementStore):
    """Directory-backed store with snapshot publishing.

    Layout::

        <root>/raw/stg_procurement_raw.<fmt>
        <root>/snapshots/<snapshot_id>/<table>.<fmt>
        <root>/CURRENT
        <root>/project_log.<fmt>
    """

    def __init__(self, root: Path, fmt: str = "csv", retain_snapshots: int = 2) -> None:
        self.root = Path(root)
        self.fmt = fmt
        self.retain_snapshots = retain_snapshots
        self._pending_dir: Path | None = None

    @classmethod
    def from_config(cls, config: StoreConfig) -> "FileStore":
        return cls(config.root, fmt=config.fmt, retain_snapshots=config.retain_snapshots)

    @property
    def snapshots_dir(self) -> Path:
        return self.root / "snapshots"

    def initialize(self) -> None:
        try:
            (self.root / "raw").mkdir(parents=True, exist_ok=True)
            self.snapshots_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ProcurementStoreError(f"Cannot create store at {self.root}: {exc}") from exc
        super().initialize()
        logger.info(f"Store ready at {self.root}")

    def current_snapshot(self) -> str | None:
        pointer = self.root / CURRENT_POINTER
        if not pointer.exists():
            return None
        return pointer.read_text(encoding="utf-8").strip() or None

    def read_all(self, table: Table) -> pd.DataFrame:
        path = self._committed_path(table)
        if path is None or not path.exists():
            return empty_frame(TABLE_COLUMNS[table])
        try:
            rows = read_table_file(path, self.fmt)
        except (OSError, ValueError) as exc:
            raise ProcurementStoreError(f"Cannot read {table} from {path}: {exc}") from exc
        return self._conform(table, rows)

    def replace_all(self, table: Table, rows: pd.DataFrame) -> None:
        conformed = self._conform(table, rows)

        if table not in DERIVED_TABLES:
            self._write_atomic(conformed, self._committed_path(table))
            return

        if self._pending_dir is None:
            with self.transaction():
                self.replace_all(table, conformed)
            return

        self._write_atomic(conformed, self._table_file(self._pending_dir, table))

    def append(self, table: Table, row: Mapping[str, object]) -> None:
        appended = self._append_row(table, self.read_all(table), row)
        self._write_atomic(appended, self._table_file(self.root, table))

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._pending_dir is not None:
            raise ProcurementStoreError("A store transaction is already open")

        snapshot_id = f"{datetime.now():%Y%m%dT%H%M%S%f}-{uuid.uuid4().hex[:6]}"
        pending_dir = self.snapshots_dir / f".pending-{snapshot_id}"
        try:
            pending_dir.mkdir(parents=True)
        except OSError as exc:
            raise ProcurementStoreError(f"Cannot stage snapshot in {pending_dir}: {exc}") from exc

        self._pending_dir = pending_dir
        try:
            yield
            self._publish(pending_dir, snapshot_id)
        except BaseException:
            shutil.rmtree(pending_dir, ignore_errors=True)
            raise
        finally:
            self._pending_dir = None

        self._prune_snapshots()

    @contextmanager
    def run_lock(self) -> Iterator[None]:
        lock_path = self.root / LOCK_FILE
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd = self._acquire_lock(lock_path)
        except FileExistsError as exc:
            raise RunLockError(f"Another pipeline run holds {lock_path}") from exc
        except OSError as exc:
            raise ProcurementStoreError(f"Cannot create run lock {lock_path}: {exc}") from exc

        try:
            os.write(fd, str(os.getpid()).encode("ascii"))
            yield
        finally:
            os.close(fd)
            lock_path.unlink(missing_ok=True)

    def _acquire_lock(self, lock_path: Path) -> int:
        flags = os.O_CREAT | os.O_EXCL | os.O_WRONLY
        try:
            return os.open(lock_path, flags)
        except FileExistsError:
            holder = _lock_holder(lock_path)
            if holder is None or _process_alive(holder):
                raise
            logger.warning(f"Reclaiming run lock {lock_path} left by dead process {holder}")
            lock_path.unlink(missing_ok=True)
            return os.open(lock_path, flags)

    def _publish(self, pending_dir: Path, snapshot_id: str) -> None:
        current = self.current_snapshot()
        try:
            # Tables not rewritten in this transaction carry over unchanged
            if current is not None:
                for table in DERIVED_TABLES:
                    staged = self._table_file(pending_dir, table)
                    previous = self._table_file(self.snapshots_dir / current, table)
                    if not staged.exists() and previous.exists():
                        shutil.copy2(previous, staged)

            final_dir = self.snapshots_dir / snapshot_id
            os.replace(pending_dir, final_dir)

            pointer_tmp = self.root / f"{CURRENT_POINTER}.tmp"
            pointer_tmp.write_text(snapshot_id + "\n", encoding="utf-8")
            os.replace(pointer_tmp, self.root / CURRENT_POINTER)
        except OSError as exc:
            raise ProcurementStoreError(f"Cannot publish snapshot {snapshot_id}: {exc}") from exc

        logger.info(f"Published snapshot {snapshot_id}")

    def _prune_snapshots(self) -> None:
        current = self.current_snapshot()
        snapshots = sorted(
            path for path in self.snapshots_dir.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        )
        for stale in snapshots[: -self.retain_snapshots]:
            if stale.name != current:
                shutil.rmtree(stale, ignore_errors=True)

    def _committed_path(self, table: Table) -> Path | None:
        match table:
            case Table.RAW:
                return self._table_file(self.root / "raw", table)
            case Table.PROJECT_LOG:
                return self._table_file(self.root, table)
            case _:
                current = self.current_snapshot()
                if current is None:
                    return None
                return self._table_file(self.snapshots_dir / current, table)

    def _table_file(self, directory: Path, table: Table) -> Path:
        return directory / f"{table.value}.{self.fmt}"

    def _write_atomic(self, rows: pd.DataFrame, path: Path) -> None:
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            write_output(rows, tmp_path, fmt=self.fmt, quiet=True)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise ProcurementStoreError(f"Cannot write {path}: {exc}") from exc


def _lock_holder(lock_path: Path) -> int | None:
    """PID recorded in a lock file, or None while it is unreadable or still empty."""
    try:
        return int(lock_path.read_text(encoding="ascii").strip())
    except (OSError, ValueError):
        return None


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        pass  # owned by another user
    return True


def open_store(config: StoreConfig) -> FileStore:
    return FileStore.from_config(config)
