"""Database tracking for bagging training runs.

This module records training runs, per-member fit statistics and OOB error
curves in SQLite so they can be queried (and plotted) after training.
"""

import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from datetime import datetime

import pandas as pd


class BaggingDatabase:
    """SQLite database manager for bagging training runs.

    Uses WAL mode for concurrent read/write access, allowing reporting
    code to query runs while training is in progress.
    """

    def __init__(self, db_path: Path, enable_wal: bool = True):
        """Initialize database manager.

        Parameters
        ----------
        db_path : Path
            Path to SQLite database file.
        enable_wal : bool, default=True
            Whether to switch the database to WAL journal mode.
        """
        self.db_path = Path(db_path)
        self.enable_wal = enable_wal
        self.timeout = 30.0  # Seconds

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def reset(self) -> None:
        """Delete the database file if it exists to start fresh."""
        if self.db_path.exists():
            self.db_path.unlink()

    def initialize(self) -> None:
        """Initialize database with required tables and indexes.

        Creates three tables:
        - training_runs: One row per training run
        - member_log: Per-iteration bootstrap and fit statistics
        - oob_curve: OOB error by number of members included

        Safe to call multiple times - only creates tables if they don't exist.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            if self.enable_wal:
                conn.execute('PRAGMA journal_mode=WAL')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS training_runs (
                    run_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    config_hash TEXT NOT NULL,
                    task TEXT NOT NULL,
                    learner TEXT NOT NULL,
                    n_estimators INTEGER NOT NULL,
                    n_samples INTEGER NOT NULL,
                    n_features INTEGER NOT NULL,
                    random_state INTEGER,
                    voting TEXT,
                    backend TEXT,
                    oob_error REAL,
                    oob_coverage REAL,
                    training_time_sec REAL
                )
            ''')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS member_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT NOT NULL,
                    iteration_num INTEGER NOT NULL,
                    n_unique INTEGER NOT NULL,
                    oob_size INTEGER NOT NULL,
                    fit_time_sec REAL,
                    memory_mb REAL
                )
            ''')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS oob_curve (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT NOT NULL,
                    n_estimators INTEGER NOT NULL,
                    oob_error REAL
                )
            ''')

            conn.execute('CREATE INDEX IF NOT EXISTS idx_member_run ON member_log(run_id)')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_curve_run ON oob_curve(run_id)')
            conn.commit()
        finally:
            conn.close()

    def insert_run(self, run_data: Dict) -> None:
        """Insert (or replace) a training run record.

        Parameters
        ----------
        run_data : dict
            Dictionary with required keys: run_id, config_hash, task, learner,
            n_estimators, n_samples, n_features. Optional: timestamp,
            random_state, voting, backend, oob_error, oob_coverage,
            training_time_sec.
        """
        conn = self._connect()
        try:
            conn.execute('''
                INSERT OR REPLACE INTO training_runs (
                    run_id, timestamp, config_hash, task, learner, n_estimators,
                    n_samples, n_features, random_state, voting, backend,
                    oob_error, oob_coverage, training_time_sec
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                run_data['run_id'],
                run_data.get('timestamp', datetime.now().isoformat()),
                run_data['config_hash'],
                run_data['task'],
                run_data['learner'],
                run_data['n_estimators'],
                run_data['n_samples'],
                run_data['n_features'],
                run_data.get('random_state'),
                run_data.get('voting'),
                run_data.get('backend'),
                run_data.get('oob_error'),
                run_data.get('oob_coverage'),
                run_data.get('training_time_sec')
            ))
            conn.commit()
        finally:
            conn.close()

    def insert_members(self, run_id: str, members: Iterable) -> None:
        """Insert per-member statistics for a run.

        Parameters
        ----------
        run_id : str
            Run identifier.
        members : iterable of EnsembleMember
            Fitted ensemble members.
        """
        rows = [
            (run_id, int(m.iteration), int(m.n_unique), int(m.oob_size),
             float(m.fit_time_sec), float(m.memory_mb))
            for m in members
        ]
        conn = self._connect()
        try:
            conn.executemany('''
                INSERT INTO member_log (
                    run_id, iteration_num, n_unique, oob_size, fit_time_sec, memory_mb
                ) VALUES (?, ?, ?, ?, ?, ?)
            ''', rows)
            conn.commit()
        finally:
            conn.close()

    def insert_oob_curve(self, run_id: str, curve: pd.Series) -> None:
        """Insert an OOB error curve (Series indexed by n_estimators)."""
        rows = [
            (run_id, int(n_estimators), None if pd.isna(error) else float(error))
            for n_estimators, error in curve.items()
        ]
        conn = self._connect()
        try:
            conn.execute('DELETE FROM oob_curve WHERE run_id = ?', (run_id,))
            conn.executemany(
                'INSERT INTO oob_curve (run_id, n_estimators, oob_error) VALUES (?, ?, ?)',
                rows
            )
            conn.commit()
        finally:
            conn.close()

    def query_runs(self, limit: Optional[int] = None) -> pd.DataFrame:
        """Query training runs, most recent first.

        Parameters
        ----------
        limit : int or None, default=None
            Maximum number of rows to return.

        Returns
        -------
        df : pd.DataFrame
            Run data, empty if no data exists.
        """
        conn = self._connect()
        try:
            query = 'SELECT * FROM training_runs ORDER BY timestamp DESC'
            params = ()
            if limit is not None:
                query += ' LIMIT ?'
                params = (int(limit),)
            return pd.read_sql_query(query, conn, params=params)
        finally:
            conn.close()

    def query_members(self, run_id: str) -> pd.DataFrame:
        """Query per-member statistics of a run, ordered by iteration."""
        conn = self._connect()
        try:
            return pd.read_sql_query(
                'SELECT * FROM member_log WHERE run_id = ? ORDER BY iteration_num',
                conn,
                params=(run_id,)
            )
        finally:
            conn.close()

    def query_oob_curve(self, run_id: str) -> pd.Series:
        """OOB error curve of a run as a Series indexed by n_estimators."""
        conn = self._connect()
        try:
            df = pd.read_sql_query(
                'SELECT n_estimators, oob_error FROM oob_curve '
                'WHERE run_id = ? ORDER BY n_estimators',
                conn,
                params=(run_id,)
            )
        finally:
            conn.close()

        curve = df.set_index('n_estimators')['oob_error'].astype(float)
        curve.name = 'oob_error'
        return curve

    def get_run_ids(self) -> List[str]:
        """Get list of all run IDs, oldest first."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute('SELECT run_id FROM training_runs ORDER BY timestamp')
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def exists(self) -> bool:
        """Check if the database file exists."""
        return self.db_path.exists()

    def get_size_mb(self) -> float:
        """Get the size of the database file in MB.

        Returns
        -------
        size_mb : float
            Size in megabytes, or 0 if database doesn't exist.
        """
        if self.db_path.exists():
            return self.db_path.stat().st_size / (1024 * 1024)
        return 0.0
