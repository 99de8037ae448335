from enum import Enum

from minirel.errors import SchemaError
from minirel.inflection import classify
from minirel.states import ObjectState


class Column:
    def __init__(self, dtype, pk=False, nullable=True, unique=False, default=None):
        self.dtype = dtype
        self.pk = pk
        self.nullable = nullable
        self.unique = unique
        self.default = default
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance, value):
        if self.pk:
            current = instance.__dict__.get(self.name)
            state = instance.__dict__.get("_orm_state")
            if state is ObjectState.PERSISTENT and current is not None and current != value:
                raise AttributeError(
                    f"Cannot change primary key '{self.name}' "
                    f"for {type(instance).__name__} after it has been persisted."
                )
        instance.__dict__[self.name] = value

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} {self.dtype.__name__}{' pk' if self.pk else ''}>"


class Text(Column):
    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(str, pk, nullable, unique, default)


class Number(Column):
    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(int, pk, nullable, unique, default)


class ForeignKey(Column):
    """Integer column holding the primary key of a row in another table."""

    def __init__(self, target, nullable=True, unique=False, constraint=True):
        super().__init__(int, pk=False, nullable=nullable, unique=unique)
        self.target = target
        self.constraint = constraint
        self.association = None

    @property
    def target_name(self):
        return self.target if isinstance(self.target, str) else self.target.__name__

    def __set__(self, instance, value):
        # a new key makes the cached target stale
        if self.association:
            cache = instance.__dict__.get("_association_cache")
            cached = cache.get(self.association) if cache else None
            if cached is not None and cached._pk_value() != value:
                cache.pop(self.association)
        super().__set__(instance, value)


class AssociationKind(Enum):
    DIRECT = "belongs_to"
    INVERSE = "has_many"
    THROUGH = "has_many :through"


class Association:
    kind = None

    def __init__(self, target=None):
        self.target = target
        self.name = None
        self.owner = None

    def __set_name__(self, owner, name):
        self.name = name
        self.owner = owner
        if self.target is None and self.kind is not AssociationKind.THROUGH:
            self.target = classify(name)

    @property
    def target_name(self):
        if self.target is None or isinstance(self.target, str):
            return self.target
        return self.target.__name__

    @property
    def collection(self):
        return self.kind is not AssociationKind.DIRECT

    def __get__(self, instance, owner):
        if instance is None:
            return self
        cache = instance._association_cache
        if self.name not in cache:
            cache[self.name] = instance._load_association(self.name)
        return cache[self.name]

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} target={self.target_name}>"


class BelongsTo(Association):
    kind = AssociationKind.DIRECT

    def __init__(self, target=None, foreign_key=None, required=False, foreign_key_constraint=True):
        super().__init__(target)
        self.foreign_key = foreign_key
        self.required = required
        self.foreign_key_constraint = foreign_key_constraint

    def __set_name__(self, owner, name):
        super().__set_name__(owner, name)
        if self.foreign_key is None:
            self.foreign_key = f"{name}_id"

    def __set__(self, instance, value):
        fk_value = value._pk_value() if value is not None else None
        setattr(instance, self.foreign_key, fk_value)
        instance._association_cache[self.name] = value


class HasMany(Association):
    kind = AssociationKind.INVERSE
    DEPENDENT_OPTIONS = (None, "destroy", "nullify")

    def __init__(self, target=None, foreign_key=None, dependent=None):
        super().__init__(target)
        if dependent not in self.DEPENDENT_OPTIONS:
            raise SchemaError(f"Unknown dependent option: {dependent}")
        # left None to be inferred from the owner's name
        self.foreign_key = foreign_key
        self.dependent = dependent

    def __set__(self, instance, value):
        instance._association_cache[self.name] = list(value or [])


class HasManyThrough(Association):
    kind = AssociationKind.THROUGH

    def __init__(self, target=None, through=None, source=None, distinct=False):
        super().__init__(target)
        if not through:
            raise SchemaError("HasManyThrough requires the name of the association to go through")
        self.through = through
        self.source = source
        self.distinct = distinct

    def __set__(self, instance, value):
        raise AttributeError(f"'{self.name}' goes through '{self.through}' and cannot be assigned")

    def __repr__(self):
        return f"<HasManyThrough {self.name} through={self.through} source={self.source}>"
