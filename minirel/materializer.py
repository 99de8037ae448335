"""
Turns raw result rows into entity instances.

Rows are pulled from the source only while the sequence is being iterated,
and every instance is kept once built, so iterating a second time yields the
same objects without touching the source again.
"""


class MaterializedSequence:
    def __init__(self, rows, hydrate):
        self._rows = iter(rows)
        self._hydrate = hydrate
        self._instances = []
        self._exhausted = False

    def __repr__(self):
        state = "complete" if self._exhausted else "partial"
        return f"<MaterializedSequence {len(self._instances)} loaded ({state})>"

    def _advance(self):
        if self._exhausted:
            return False
        try:
            row = next(self._rows)
        except StopIteration:
            self._exhausted = True
            return False
        self._instances.append(self._hydrate(row))
        return True

    def _fill(self):
        while self._advance():
            pass

    @property
    def loaded(self):
        return len(self._instances)

    def __iter__(self):
        index = 0
        while index < len(self._instances) or self._advance():
            yield self._instances[index]
            index += 1

    def __len__(self):
        self._fill()
        return len(self._instances)

    def __bool__(self):
        return bool(self._instances) or self._advance()

    def __getitem__(self, index):
        if isinstance(index, slice) or index < 0:
            self._fill()
            return self._instances[index]
        while index >= len(self._instances) and self._advance():
            pass
        return self._instances[index]


class EntityMaterializer:
    def __init__(self, session=None):
        self.session = session

    def materialize(self, rows, mapper):
        return MaterializedSequence(rows, lambda row: self._hydrate(row, mapper))

    def _hydrate(self, row, mapper):
        if hasattr(row, "keys"):
            row_dict = {key: row[key] for key in row.keys()}
        else:
            # plain tuples follow the mapper's column order
            row_dict = dict(zip(mapper.columns, row))
        obj = mapper.hydrate(row_dict)
        if self.session is not None:
            self.session._attach(obj)
        return obj
