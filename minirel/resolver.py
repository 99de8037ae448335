from minirel.errors import NotFoundError, UnresolvableAssociationError
from minirel.inflection import singularize
from minirel.orm_types import AssociationKind


class AssociationResolver:
    """Builds the query that fetches the rows behind an instance's association."""

    def __init__(self, session):
        self.session = session

    def association_for(self, mapper, name):
        assoc = mapper.associations.get(name)
        if assoc is None:
            raise NotFoundError(f"{mapper.name} has no association '{name}'")
        return assoc

    def target_mapper(self, owner_mapper, assoc):
        return owner_mapper.registry.resolve(assoc.target)

    def inverse_foreign_key(self, owner_mapper, assoc, target_mapper):
        fk_name = assoc.foreign_key
        if fk_name not in target_mapper.columns:
            raise UnresolvableAssociationError(
                owner_mapper.name, assoc.name,
                f"{target_mapper.name} has no foreign key column '{fk_name}'"
            )
        return fk_name

    def resolve(self, instance, association_name):
        mapper = type(instance)._mapper
        assoc = self.association_for(mapper, association_name)
        if assoc.kind is AssociationKind.DIRECT:
            return self._resolve_direct(instance, mapper, assoc)
        if assoc.kind is AssociationKind.INVERSE:
            return self._resolve_inverse(instance, mapper, assoc)
        return self._resolve_through(instance, mapper, assoc)

    def _resolve_direct(self, instance, mapper, assoc):
        target = self.target_mapper(mapper, assoc)
        fk_value = getattr(instance, assoc.foreign_key)
        return self.session.query(target.cls).filter(**{target.pk: fk_value}).limit(1)

    def _resolve_inverse(self, instance, mapper, assoc):
        target = self.target_mapper(mapper, assoc)
        fk_name = self.inverse_foreign_key(mapper, assoc, target)
        return (self.session.query(target.cls)
                .filter(**{fk_name: instance._pk_value()})
                .order_by(target.pk))

    def _source_for(self, mapper, assoc, middle):
        candidates = [assoc.source] if assoc.source else [singularize(assoc.name), assoc.name]
        for name in candidates:
            if name in middle.associations:
                return middle.associations[name]
        raise UnresolvableAssociationError(
            mapper.name, assoc.name,
            f"{middle.name} has no source association {' or '.join(repr(c) for c in candidates)}"
        )

    def _resolve_through(self, instance, mapper, assoc):
        through = mapper.associations.get(assoc.through)
        if through is None:
            raise UnresolvableAssociationError(
                mapper.name, assoc.name, f"{mapper.name} has no association '{assoc.through}' to go through"
            )
        if through.kind is AssociationKind.THROUGH:
            raise UnresolvableAssociationError(
                mapper.name, assoc.name, f"'{through.name}' is itself a through association"
            )

        middle = self.target_mapper(mapper, through)
        source = self._source_for(mapper, assoc, middle)
        if source.kind is AssociationKind.THROUGH:
            raise UnresolvableAssociationError(
                mapper.name, assoc.name, f"source '{source.name}' is itself a through association"
            )

        target = self.target_mapper(middle, source)
        if assoc.target is not None and mapper.registry.resolve(assoc.target) is not target:
            raise UnresolvableAssociationError(
                mapper.name, assoc.name,
                f"source '{middle.name}.{source.name}' leads to {target.name}, not {assoc.target_name}"
            )

        alias = f"{through.name}_through"
        query = self.session.query(target.cls)

        # second hop: intermediate rows to target rows
        if source.kind is AssociationKind.DIRECT:
            query.join(middle.table_name, alias, source.foreign_key, target.pk)
        else:
            fk_name = self.inverse_foreign_key(middle, source, target)
            query.join(middle.table_name, alias, middle.pk, fk_name)

        # first hop: owner to intermediate rows
        if through.kind is AssociationKind.DIRECT:
            query.where_on(alias, middle.pk, getattr(instance, through.foreign_key))
        else:
            fk_name = self.inverse_foreign_key(mapper, through, middle)
            query.where_on(alias, fk_name, instance._pk_value())

        if assoc.distinct:
            query.distinct()
        return query.order_by(target.pk)

    def load(self, instance, association_name):
        """Run the association query: one instance (or None) for belongs_to, a list otherwise."""
        mapper = type(instance)._mapper
        assoc = self.association_for(mapper, association_name)

        if assoc.kind is AssociationKind.DIRECT:
            if getattr(instance, assoc.foreign_key) is None:
                return None
            return self.resolve(instance, association_name).first()

        if instance._pk_value() is None:
            return []
        return self.resolve(instance, association_name).all()
