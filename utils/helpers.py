import re
from typing import List, Optional


DESTRUCTIVE_KEYWORDS = {"DELETE", "DROP", "TRUNCATE"}


def truncate_string(s: str, max_len: int = 80, suffix: str = "...") -> str:
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix


# quoted strings, quoted identifiers and comments; a ";" inside them is not a separator
_SQL_TOKEN = re.compile(
    r"'(?:[^'\\]|\\.|'')*'"
    r'|"(?:[^"\\]|\\.|"")*"'
    r"|`(?:[^`]|``)*`"
    r"|--[^\n]*|#[^\n]*|/\*.*?\*/"
    r"|;",
    re.DOTALL,
)

_USE_STATEMENT = re.compile(
    r"\s*use\s+(?:`((?:[^`]|``)+)`|([^`;\s]+))",
    re.IGNORECASE,
)


def split_statements(sql: str) -> List[str]:
    """Split on top-level semicolons, dropping empty statements."""
    statements = []
    start = 0
    for match in _SQL_TOKEN.finditer(sql):
        if match.group() == ";":
            statements.append(sql[start:match.start()])
            start = match.end()
    statements.append(sql[start:])
    return [s.strip() for s in statements if s.strip()]


def sanitize_sql(sql: str) -> str:
    statements = split_statements(sql)
    return statements[0] if statements else ""


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def first_keyword(sql: str) -> str:
    return sql.strip().split()[0].upper() if sql.strip() else ""


def is_destructive_query(sql: str) -> bool:
    return first_keyword(sql) in DESTRUCTIVE_KEYWORDS


def extract_use_database(sql: str) -> Optional[str]:
    match = _USE_STATEMENT.match(sql)
    if not match:
        return None
    quoted, bare = match.groups()
    return quoted.replace("``", "`") if quoted is not None else bare


def parse_mysql_version(version_string: str) -> str:
    match = re.search(r"(\d+\.\d+\.\d+)", version_string)
    return match.group(1) if match else version_string
