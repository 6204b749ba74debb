"""
Development-mode SQL logging.

When enabled, every statement is rendered with its bind values and written to
the log together with transaction markers (begin, commit, rollback). When
disabled nothing is rendered at all. Rendering problems are reported as
warnings and never reach the statement being executed.
"""
from typing import Any, Optional

from dbexec.utility.binding import render_bound_sql
from dbexec.utility.logger import DbExecLogger, get_logger


class BindLogger:
    def __init__(self, enabled: bool, logger: Optional[DbExecLogger] = None):
        self.enabled = enabled
        self.logger = logger or get_logger("dbexec.sql")

    def log_statement(self, sql: str, params: Any = None) -> None:
        if not self.enabled:
            return
        try:
            rendered = render_bound_sql(sql, params)
        except Exception as e:
            self.logger.warning(f"Could not render bound SQL: {str(e)}")
            rendered = sql
        self.logger.sql(rendered)

    def log_marker(self, marker: str) -> None:
        """Log a transaction marker such as 'commit' or 'rollback'."""
        if self.enabled:
            self.logger.sql(marker)
