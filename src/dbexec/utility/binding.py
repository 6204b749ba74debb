"""
Render a statement and its bind values into one loggable SQL string.

The rendered text is for humans reading logs only; it is never sent to the
database. Supports named binds (``:name``), numbered binds (``:1``) and
positional markers (``?``, ``%s``). Placeholders inside quoted literals are
left alone.
"""
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

# Positional (list) or named (mapping) bind values
Params = Optional[Union[List[Any], Dict[str, Any]]]

# Quoted literal first so binds inside strings are skipped
_TOKEN = re.compile(
    r"'(?:[^']|'')*'"
    r"|(?<!:):(?P<name>[A-Za-z_][A-Za-z0-9_$#]*)"
    r"|(?<!:):(?P<num>\d+)"
    r"|(?P<qmark>\?)"
    r"|(?P<format>%s)"
)


def format_literal(value: Any) -> str:
    """Format a single bind value as a SQL literal."""
    # oracledb-style bind definitions: {"val": ..., "dir": ..., "type": ...}
    if isinstance(value, Mapping) and "val" in value:
        value = value["val"]

    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return f"'{value.isoformat()}'"
    if isinstance(value, (bytes, bytearray)):
        return f"X'{bytes(value).hex().upper()}'"
    text = str(value).replace("'", "''")
    return f"'{text}'"


def render_bound_sql(sql: str, params: Params = None) -> str:
    """
    Substitute bind values into ``sql`` for logging.

    Args:
        sql: Statement text with placeholders
        params: Named mapping or ordered sequence of bind values

    Returns:
        Statement text with placeholders replaced by literals. Placeholders
        without a matching value are kept as written.
    """
    if not params:
        return sql

    positional = iter(()) if isinstance(params, Mapping) else iter(params)
    ordered = [] if isinstance(params, Mapping) else list(params)

    def replace(match: "re.Match[str]") -> str:
        if match.group("name") is not None:
            key = match.group("name")
            if isinstance(params, Mapping) and key in params:
                return format_literal(params[key])
            return match.group(0)
        if match.group("num") is not None:
            index = int(match.group("num")) - 1
            if 0 <= index < len(ordered):
                return format_literal(ordered[index])
            return match.group(0)
        if match.group("qmark") is not None or match.group("format") is not None:
            try:
                return format_literal(next(positional))
            except StopIteration:
                return match.group(0)
        return match.group(0)

    return _TOKEN.sub(replace, sql)
