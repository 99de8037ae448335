import logging

from minirel.builder import QueryBuilder
from minirel.orm_types import ForeignKey

logger = logging.getLogger("minirel.schema")


class SchemaGenerator:
    TYPE_MAP = {str: "TEXT", int: "INTEGER", bool: "INTEGER", float: "REAL"}

    def __init__(self):
        self._q = QueryBuilder()._quote

    def generate_create_table(self, mapper):
        column_defs = []
        constraints = []

        for name, col in mapper.columns.items():
            sql_type = self.TYPE_MAP.get(col.dtype, "TEXT")
            parts = [self._q(name), sql_type]
            if name == mapper.pk:
                parts.append("PRIMARY KEY AUTOINCREMENT" if sql_type == "INTEGER" else "PRIMARY KEY")
            else:
                if not col.nullable:
                    parts.append("NOT NULL")
                if col.unique:
                    parts.append("UNIQUE")
            column_defs.append(" ".join(parts))

            if isinstance(col, ForeignKey) and col.constraint:
                target = mapper.registry.resolve(col.target)
                constraints.append(
                    f"FOREIGN KEY ({self._q(name)}) REFERENCES {self._q(target.table_name)} ({self._q(target.pk)})"
                )

        return f"CREATE TABLE IF NOT EXISTS {self._q(mapper.table_name)} ({', '.join(column_defs + constraints)})"

    def generate_indexes(self, mapper):
        statements = []
        for name, col in mapper.columns.items():
            if isinstance(col, ForeignKey):
                index_name = f"index_{mapper.table_name}_on_{name}"
                statements.append(
                    f"CREATE INDEX IF NOT EXISTS {self._q(index_name)} ON {self._q(mapper.table_name)} ({self._q(name)})"
                )
        return statements

    def generate_drop_table(self, mapper):
        return f"DROP TABLE IF EXISTS {self._q(mapper.table_name)}"

    def sorted_mappers(self, registry):
        """Referenced tables before the tables pointing at them."""
        mappers = list(registry)
        ordered = []
        visiting = set()

        def visit(mapper):
            if mapper in ordered or mapper.name in visiting:
                return
            visiting.add(mapper.name)
            for col in mapper.columns.values():
                if isinstance(col, ForeignKey) and col.constraint:
                    target = registry.resolve(col.target)
                    if target is not mapper:
                        visit(target)
            ordered.append(mapper)

        for mapper in mappers:
            visit(mapper)
        return ordered

    def create_all(self, engine, registry, drop_first=True):
        mappers = self.sorted_mappers(registry)
        if drop_first:
            self.drop_all(engine, registry)
        for mapper in mappers:
            engine.execute(self.generate_create_table(mapper))
            for statement in self.generate_indexes(mapper):
                engine.execute(statement)
        logger.debug(f"Created tables: {[m.table_name for m in mappers]}")

    def drop_all(self, engine, registry):
        for mapper in reversed(self.sorted_mappers(registry)):
            engine.execute(self.generate_drop_table(mapper))
