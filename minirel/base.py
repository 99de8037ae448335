from minirel.mapper import Mapper
from minirel.orm_types import Column, Association
from minirel.registry import default_registry
from minirel.states import ObjectState


class MiniBase:
    _registry = default_registry
    _mapper = None

    def __repr__(self):
        pk_val = self._pk_value()
        return f"<{self.__class__.__name__}(id={pk_val if pk_val is not None else 'New'})>"

    def __init__(self, **kwargs):
        object.__setattr__(self, "_orm_state", ObjectState.TRANSIENT)
        object.__setattr__(self, "_session", None)
        object.__setattr__(self, "_association_cache", {})
        object.__setattr__(self, "_snapshot", {})
        mapper = type(self)._mapper
        if mapper is None:
            raise TypeError(f"{type(self).__name__} is abstract and cannot be instantiated")
        for key, value in kwargs.items():
            if not mapper.has_attribute(key):
                raise AttributeError(f"unknown attribute '{key}' for {type(self).__name__}")
            setattr(self, key, value)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = {
            name: col
            for name, col in cls.__dict__.items()
            if isinstance(col, Column)
        }

        associations = {
            name: assoc
            for name, assoc in cls.__dict__.items()
            if isinstance(assoc, Association)
        }

        meta_cls = cls.__dict__.get("Meta")
        meta_attrs = {}
        if meta_cls:
            for attr in dir(meta_cls):
                if not attr.startswith("_"):
                    meta_attrs[attr] = getattr(meta_cls, attr)

        if "registry" in meta_attrs:
            cls._registry = meta_attrs["registry"]

        if meta_attrs.get("abstract", False):
            cls._mapper = None
            return

        cls._mapper = Mapper(cls, columns, associations, meta_attrs, cls._registry)
        cls._registry.register(cls._mapper)

    def _pk_value(self):
        return self.__dict__.get(type(self)._mapper.pk)

    def _load_association(self, name):
        rel = self._mapper.associations[name]
        session = self._session
        if session is None:
            # not attached yet: nothing to query
            return [] if rel.collection else None
        return session.resolver.load(self, name)

    def _reset_associations(self):
        self._association_cache.clear()
