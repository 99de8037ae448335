import logging
import weakref

from minirel.builder import QueryBuilder
from minirel.errors import ConstraintViolationError, NotFoundError
from minirel.materializer import EntityMaterializer
from minirel.orm_types import AssociationKind
from minirel.query import Query
from minirel.resolver import AssociationResolver
from minirel.states import ObjectState

logger = logging.getLogger("minirel.session")


class Session:
    def __init__(self, engine):
        self.engine = engine
        self.query_builder = QueryBuilder()
        self.resolver = AssociationResolver(self)
        self.materializer = EntityMaterializer(self)
        # weak, so entities still go away once nothing else holds them
        self._attached = weakref.WeakSet()
        self._saving = set()

    def query(self, model_class):
        return Query(model_class, self)

    def get(self, model_class, pk):
        return self.query(model_class).filter(**{model_class._mapper.pk: pk}).first()

    def find(self, model_class, pk):
        entity = self.get(model_class, pk)
        if entity is None:
            raise NotFoundError(f"Couldn't find {model_class.__name__} with {model_class._mapper.pk}={pk}")
        return entity

    def create(self, model_class, **attrs):
        entity = model_class(**attrs)
        self.save(entity)
        logger.debug(f"Created {entity}")
        return entity

    def resolve(self, entity, association_name):
        return self.resolver.resolve(entity, association_name)

    def save(self, entity):
        state = entity._orm_state
        if state == ObjectState.DELETED:
            raise ConstraintViolationError(f"{entity} has been deleted and cannot be saved")
        if id(entity) in self._saving:
            return entity

        self._saving.add(id(entity))
        try:
            self._save_parents(entity)
            self._check_required(entity)
            # saving a parent may already have inserted this entity through its collection
            if entity._orm_state == ObjectState.TRANSIENT:
                self._insert(entity)
            else:
                self._update(entity)
            self._save_children(entity)
        finally:
            self._saving.discard(id(entity))
        return entity

    def _save_parents(self, entity):
        mapper = entity._mapper
        for name, rel in mapper.associations.items():
            if rel.kind is not AssociationKind.DIRECT:
                continue
            parent = entity._association_cache.get(name)
            if parent is None:
                continue
            if parent._orm_state == ObjectState.TRANSIENT:
                self.save(parent)
            setattr(entity, rel.foreign_key, parent._pk_value())

    def _check_required(self, entity):
        mapper = entity._mapper
        for name, rel in mapper.associations.items():
            if rel.kind is AssociationKind.DIRECT and rel.required:
                if getattr(entity, rel.foreign_key) is None:
                    raise ConstraintViolationError(
                        f"{mapper.name}.{name} is required but {rel.foreign_key} is not set"
                    )

    def _save_children(self, entity):
        mapper = entity._mapper
        pk_val = entity._pk_value()
        for name, rel in mapper.associations.items():
            if rel.kind is not AssociationKind.INVERSE:
                continue
            children = entity._association_cache.get(name)
            if not children:
                continue
            target = self.resolver.target_mapper(mapper, rel)
            fk_name = self.resolver.inverse_foreign_key(mapper, rel, target)
            for child in children:
                # deleted since the collection was loaded
                if child._orm_state == ObjectState.DELETED:
                    continue
                if getattr(child, fk_name) != pk_val:
                    setattr(child, fk_name, pk_val)
                self.save(child)

    def _insert(self, entity):
        mapper = entity._mapper
        data = mapper.column_values(entity)
        pk_val = entity._pk_value()
        if pk_val is not None:
            data[mapper.pk] = pk_val

        sql, params = self.query_builder.build_insert(mapper.table_name, data)
        new_id = self.engine.execute_insert(sql, params)
        if pk_val is None:
            entity.__dict__[mapper.pk] = new_id

        for name, rel in mapper.associations.items():
            if rel.kind is AssociationKind.THROUGH:
                entity._association_cache.pop(name, None)
        self._attach(entity)

    def _update(self, entity):
        mapper = entity._mapper
        old_state = entity._snapshot
        changed = {
            col: val for col, val in mapper.column_values(entity).items()
            if old_state.get(col) != val
        }
        if changed:
            sql, params = self.query_builder.build_update(
                mapper.table_name, changed, entity._pk_value(), pk_column=mapper.pk
            )
            self.engine.execute(sql, params)
        self._attach(entity)

    def delete(self, entity):
        state = entity._orm_state
        if state == ObjectState.TRANSIENT:
            return
        if state == ObjectState.DELETED:
            return

        mapper = entity._mapper
        for name, rel in mapper.associations.items():
            if rel.kind is not AssociationKind.INVERSE or rel.dependent is None:
                continue
            dependents = self.resolver.load(entity, name)
            logger.debug(f"{rel.dependent} {len(dependents)} {name} of {entity}")
            for dependent in dependents:
                if rel.dependent == "destroy":
                    self.delete(dependent)
                else:
                    setattr(dependent, rel.foreign_key, None)
                    self.save(dependent)

        sql, params = self.query_builder.build_delete(mapper.table_name, entity._pk_value(), pk_column=mapper.pk)
        self.engine.execute(sql, params)
        object.__setattr__(entity, "_orm_state", ObjectState.DELETED)
        entity._reset_associations()
        self._attached.discard(entity)

    def refresh(self, entity):
        mapper = entity._mapper
        pk_val = entity._pk_value()
        if pk_val is None:
            return entity

        sql, params = self.query_builder.build_select(mapper, [(None, mapper.pk, pk_val)], limit=1)
        rows = self.engine.execute(sql, params)
        if not rows:
            raise NotFoundError(f"{entity} no longer exists")
        for col in mapper.columns:
            entity.__dict__[col] = rows[0][col]

        entity._reset_associations()
        self._attach(entity)
        return entity

    def _attach(self, entity):
        object.__setattr__(entity, "_orm_state", ObjectState.PERSISTENT)
        object.__setattr__(entity, "_session", self)
        object.__setattr__(entity, "_snapshot", entity._mapper.snapshot(entity))
        self._attached.add(entity)

    def close(self):
        attached = list(self._attached)
        for obj in attached:
            object.__setattr__(obj, "_session", None)
            object.__setattr__(obj, "_orm_state", ObjectState.DETACHED)
        self._attached.clear()
        logger.debug(f"Detached {len(attached)} objects.")

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
