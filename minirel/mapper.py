from minirel.errors import SchemaError
from minirel.inflection import tableize, foreign_key
from minirel.orm_types import AssociationKind, ForeignKey, Number
from minirel.states import ObjectState


class Mapper:
    """Entity type: table, ordered columns, primary key and associations of one model class."""

    def __init__(self, cls, columns, associations, meta_attrs, registry):
        self.cls = cls
        self.name = cls.__name__
        self.meta = meta_attrs or {}
        self.registry = registry

        self.table_name = self.meta.get("table_name", tableize(cls.__name__))
        self.parent = None
        self.pk = None
        self.declared_columns = dict(columns)
        self.columns = {}
        self.declared_associations = dict(associations)
        self.associations = {}
        self.foreign_keys = []

        self._resolve_parent()
        self._resolve_pk()
        self._resolve_columns()
        self._resolve_associations()

    def __repr__(self):
        cols = ", ".join(self.columns.keys())
        assocs = ", ".join(f"{name}:{a.kind.value}" for name, a in self.associations.items())
        return f"<Mapper class={self.name} table={self.table_name} columns=[{cols}] pk={self.pk} associations=[{assocs}]>"

    def _resolve_parent(self):
        for base in self.cls.__bases__:
            if getattr(base, "_mapper", None) is not None:
                self.parent = base._mapper
                return

    def _resolve_pk(self):
        pk_cols = [name for name, col in self.declared_columns.items() if col.pk]
        if len(pk_cols) > 1:
            raise SchemaError(f"Class {self.name} declares more than one primary key: {pk_cols}")
        if pk_cols:
            self.pk = pk_cols[0]
        elif self.parent:
            self.pk = self.parent.pk
        else:
            # implicit integer key, as every table gets one
            pk_col = Number(pk=True, nullable=False)
            self._attach(pk_col, "id")
            self.declared_columns = {"id": pk_col, **self.declared_columns}
            self.pk = "id"

    def _resolve_columns(self):
        if self.parent:
            self.columns = dict(self.parent.columns)
        self.columns.update(self.declared_columns)

    def _resolve_associations(self):
        if self.parent:
            self.associations = dict(self.parent.associations)
            self.foreign_keys = list(self.parent.foreign_keys)

        for name, assoc in self.declared_associations.items():
            self.associations[name] = assoc
            if assoc.kind is AssociationKind.DIRECT:
                self._apply_direct(name, assoc)
            elif assoc.kind is AssociationKind.INVERSE and assoc.foreign_key is None:
                assoc.foreign_key = foreign_key(self.name)

    def _apply_direct(self, name, assoc):
        fk_name = assoc.foreign_key
        existing = self.columns.get(fk_name)
        if existing is not None and not isinstance(existing, ForeignKey):
            raise SchemaError(
                f"Column '{fk_name}' on {self.name} is already declared and is not a foreign key for '{name}'"
            )
        if existing is None:
            existing = ForeignKey(
                assoc.target,
                nullable=not assoc.required,
                constraint=assoc.foreign_key_constraint,
            )
            self._attach(existing, fk_name)
            self.columns[fk_name] = existing
            self.declared_columns[fk_name] = existing
        existing.association = name
        self.foreign_keys.append((fk_name, name))

    def _attach(self, column, name):
        setattr(self.cls, name, column)
        column.__set_name__(self.cls, name)

    def has_attribute(self, name):
        return name in self.columns or name in self.associations

    def column_values(self, entity, include_pk=False):
        values = {}
        for col_name, col in self.columns.items():
            if col_name == self.pk and not include_pk:
                continue
            value = entity.__dict__.get(col_name)
            if value is None and col.default is not None:
                value = col.default
            values[col_name] = value
        return values

    def snapshot(self, entity):
        return self.column_values(entity, include_pk=True)

    def hydrate(self, row_dict):
        obj = self.cls()
        for key, value in row_dict.items():
            if key in self.columns:
                obj.__dict__[key] = value
        object.__setattr__(obj, "_orm_state", ObjectState.PERSISTENT)
        object.__setattr__(obj, "_snapshot", self.snapshot(obj))
        return obj
