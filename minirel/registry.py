from collections import Counter

from minirel.errors import DuplicateForeignKeyError, NotFoundError, SchemaError


class SchemaRegistry:
    """Entity types of one schema, by class name and by table name."""

    def __init__(self, name="default"):
        self.name = name
        self._mappers = {}

    def __repr__(self):
        return f"<SchemaRegistry {self.name} entities=[{', '.join(self._mappers)}]>"

    def __contains__(self, name):
        return name in self._mappers

    def __iter__(self):
        return iter(list(self._mappers.values()))

    def __len__(self):
        return len(self._mappers)

    def register(self, mapper):
        if mapper.name in self._mappers:
            raise SchemaError(f"Entity {mapper.name} is already registered in {self.name}")

        for other in self._mappers.values():
            if other.table_name == mapper.table_name:
                raise SchemaError(
                    f"Table '{mapper.table_name}' is already used by {other.name}, cannot register {mapper.name}"
                )

        counts = Counter(fk_name for fk_name, _ in mapper.foreign_keys)
        for fk_name, count in counts.items():
            if count > 1:
                raise DuplicateForeignKeyError(mapper.name, fk_name)

        self._mappers[mapper.name] = mapper
        return mapper

    def lookup(self, name):
        try:
            return self._mappers[name]
        except KeyError:
            raise NotFoundError(f"Entity {name} is not registered in {self.name}") from None

    def lookup_table(self, table_name):
        for mapper in self._mappers.values():
            if mapper.table_name == table_name:
                return mapper
        raise NotFoundError(f"No entity is mapped to table '{table_name}' in {self.name}")

    def resolve(self, target):
        """Accept a model class or its name."""
        if isinstance(target, type):
            target = target.__name__
        return self.lookup(target)


default_registry = SchemaRegistry()
