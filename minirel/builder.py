import re

class QueryBuilder:
    DIRECTIONS = ("ASC", "DESC")

    def __init__(self):
        self._safe_ident_pattern = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

    def _quote(self, identifier):
        if not identifier or not self._safe_ident_pattern.match(str(identifier)):
            raise ValueError(f"Unsafe SQL identifier: {identifier}")
        return f'"{identifier}"'

    def build_insert(self, table_name, data):
        """Build INSERT SQL from table name and data dict."""
        table = self._quote(table_name)
        if not data:
            return f"INSERT INTO {table} DEFAULT VALUES", ()
        fields = list(data.keys())
        quoted_fields = [self._quote(f) for f in fields]
        placeholders = ", ".join(["?" for _ in fields])
        values = [data[f] for f in fields]
        sql = f"INSERT INTO {table} ({', '.join(quoted_fields)}) VALUES ({placeholders})"
        return sql, tuple(values)

    def build_update(self, table_name, data, pk_value, pk_column="id"):
        table = self._quote(table_name)
        if not data:
            raise ValueError("update data must not be empty")
        set_parts = []
        params = []
        for col, val in data.items():
            set_parts.append(f"{self._quote(col)} = ?")
            params.append(val)
        params.append(pk_value)
        sql = f"UPDATE {table} SET {', '.join(set_parts)} WHERE {self._quote(pk_column)} = ?"
        return sql, tuple(params)

    def build_delete(self, table_name, pk_value, pk_column="id"):
        table = self._quote(table_name)
        sql = f"DELETE FROM {table} WHERE {self._quote(pk_column)} = ?"
        return sql, (pk_value,)

    def build_select(self, mapper, conditions=None, joins=None, order_by=None, limit=None, offset=None, distinct=False):
        """
        conditions: list of (table_ref, column, value); table_ref None means the mapper's table.
        joins: list of (table_name, alias, alias_column, target_column), joined as
               alias.alias_column = <mapper table>.target_column
        """
        table = self._quote(mapper.table_name)
        cols = [f"{table}.{self._quote(c)} AS {self._quote(c)}" for c in mapper.columns]
        sql = f"SELECT {'DISTINCT ' if distinct else ''}{', '.join(cols)} FROM {table}"

        for join_table, alias, alias_column, target_column in joins or []:
            a = self._quote(alias)
            sql += (f" JOIN {self._quote(join_table)} AS {a}"
                    f" ON {a}.{self._quote(alias_column)} = {table}.{self._quote(target_column)}")

        params = []
        if conditions:
            where_parts = []
            for table_ref, col, val in conditions:
                prefix = self._quote(table_ref) if table_ref else table
                quoted_col = f"{prefix}.{self._quote(col)}"
                if val is None:
                    where_parts.append(f"{quoted_col} IS NULL")
                else:
                    where_parts.append(f"{quoted_col} = ?")
                    params.append(val)
            sql += " WHERE " + " AND ".join(where_parts)

        if order_by:
            order_clauses = []
            for col, direction in order_by:
                direction = direction.upper()
                if direction not in self.DIRECTIONS:
                    raise ValueError(f"Unknown sort direction: {direction}")
                order_clauses.append(f"{table}.{self._quote(col)} {direction}")
            sql += " ORDER BY " + ", ".join(order_clauses)

        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset is not None: sql += f" OFFSET {int(offset)}"
        elif offset is not None:
            sql += f" LIMIT -1 OFFSET {int(offset)}"

        return sql, tuple(params)

    def build_count(self, select_sql, params):
        return f"SELECT COUNT(*) AS count FROM ({select_sql})", params
