"""
Statement and batch result models.
"""
from typing import Any, Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from dbexec.connections.result import QueryResult
from dbexec.utility.binding import Params


class Statement(BaseModel):
    """
    One SQL statement and its bind values.

    ``params`` is either an ordered list (positional binds) or a mapping
    (named binds). The ``query`` / ``parameters`` keys are accepted as aliases
    so batch files can use either spelling.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sql: str = Field(alias="query", min_length=1)
    params: Params = Field(default=None, alias="parameters")

    @classmethod
    def coerce(
        cls, value: Union["Statement", str, Tuple[str, Any], Dict[str, Any]]
    ) -> "Statement":
        """
        Build a Statement from the shapes callers commonly pass.

        Accepts a Statement, a bare SQL string, an ``(sql, params)`` tuple, or
        a mapping with ``sql``/``query`` and ``params``/``parameters``.
        """
        if isinstance(value, Statement):
            return value
        if isinstance(value, str):
            return cls(sql=value)
        if isinstance(value, tuple):
            sql, params = value
            return cls(sql=sql, params=params)
        return cls.model_validate(value)


class StatementResult(BaseModel):
    """Result of one statement in a batch, tagged with its list position."""

    position: int
    result: QueryResult
