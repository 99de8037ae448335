import sqlite3
import logging

from minirel.config import EngineConfig
from minirel.errors import ConstraintViolationError

class DatabaseEngine:
    logger = logging.getLogger("minirel")

    def __init__(self, db_path=None, config=None):
        if config is None:
            config = EngineConfig() if db_path is None else EngineConfig(database=db_path)
        elif db_path is not None:
            config = config.model_copy(update={"database": db_path})
        self.config = config
        self.log_level = logging.INFO if config.echo else logging.DEBUG

        # autocommit: every statement stands alone
        self.connection = sqlite3.connect(
            config.database, isolation_level=None, check_same_thread=config.check_same_thread
        )
        self.connection.row_factory = sqlite3.Row
        if config.foreign_keys:
            self.connection.execute("PRAGMA foreign_keys = ON")

    def _log(self, sql, params=None):
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.log(self.log_level, msg)

    def _run(self, sql, params):
        self._log(sql, params)
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params or ())
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(f"{e} while executing: {sql}") from e
        return cursor

    def execute(self, sql, params=None):
        return self._run(sql, params).fetchall()

    def execute_insert(self, sql, params=None):
        return self._run(sql, params).lastrowid

    def iterate(self, sql, params=None):
        """Yield rows one at a time straight from the cursor."""
        cursor = self._run(sql, params)
        row = cursor.fetchone()
        while row is not None:
            yield row
            row = cursor.fetchone()

    def table_names(self):
        rows = self.execute("SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'")
        return [row["name"] for row in rows]

    def close(self):
        self.connection.close()

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
