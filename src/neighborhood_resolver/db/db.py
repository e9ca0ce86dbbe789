from contextlib import contextmanager
import duckdb

from ..settings import settings

def get_duckdb_path() -> str:
    return str(settings.ddb_path)

@contextmanager
def duckdb_connection(db_path: str | None = None, read_only: bool = False):
    con = duckdb.connect(db_path or get_duckdb_path(), read_only=read_only)
    try:
        con.execute("INSTALL spatial;")
        con.execute("LOAD spatial;")
        yield con
    finally:
        con.close()

def split_table_name(table_name: str) -> tuple[str | None, str]:
    """Split 'schema.table' into its parts. Bare names have no schema."""
    if '.' in table_name:
        schema, table = table_name.split('.', 1)
        return schema, table
    return None, table_name
