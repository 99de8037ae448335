from minirel.orm_types import AssociationKind


class Query:
    def __init__(self, model_class, session):
        self.model_class = model_class
        self.mapper = model_class._mapper
        self.session = session
        self.conditions = []
        self._joins = []
        self._order_by = []
        self._limit = None
        self._offset = None
        self._distinct = False

    def __repr__(self):
        sql, params = self.to_sql()
        return f"<Query {self.mapper.name}: {sql} params={params}>"

    def filter(self, **kwargs):
        for key, value in kwargs.items():
            if key in self.mapper.columns:
                self.conditions.append((None, key, value))
                continue
            assoc = self.mapper.associations.get(key)
            if assoc is not None and assoc.kind is AssociationKind.DIRECT:
                if hasattr(value, "_mapper"):
                    value = value._pk_value()
                self.conditions.append((None, assoc.foreign_key, value))
                continue
            raise AttributeError(f"Model {self.mapper.name} has no column {key}")
        return self

    def where_on(self, alias, column, value):
        """Condition on a joined table, referenced by its alias."""
        self.conditions.append((alias, column, value))
        return self

    def join(self, table_name, alias, alias_column, target_column):
        self._joins.append((table_name, alias, alias_column, target_column))
        return self

    def order_by(self, column, direction="ASC"):
        if column not in self.mapper.columns:
            raise AttributeError(f"Model {self.mapper.name} has no column {column}")
        self._order_by.append((column, direction))
        return self

    def limit(self, value: int):
        self._limit = value
        return self

    def offset(self, value: int):
        self._offset = value
        return self

    def distinct(self, value=True):
        self._distinct = value
        return self

    def to_sql(self):
        return self.session.query_builder.build_select(
            self.mapper, self.conditions, joins=self._joins, order_by=self._order_by,
            limit=self._limit, offset=self._offset, distinct=self._distinct
        )

    def materialize(self):
        """Lazy sequence of instances; the statement runs on first iteration."""
        sql, params = self.to_sql()
        rows = self.session.engine.iterate(sql, params)
        return self.session.materializer.materialize(rows, self.mapper)

    def __iter__(self):
        return iter(self.materialize())

    def all(self):
        return list(self.materialize())

    def first(self):
        self.limit(1)
        results = self.all()
        return results[0] if results else None

    def count(self):
        sql, params = self.session.query_builder.build_count(*self.to_sql())
        return self.session.engine.execute(sql, params)[0]["count"]

    def exists(self):
        return self.count() > 0
