class MiniRelError(Exception):
    pass


class SchemaError(MiniRelError):
    pass


class DuplicateForeignKeyError(SchemaError):
    def __init__(self, entity_name, column_name):
        super().__init__(f"Duplicate foreign key '{column_name}' on {entity_name}")
        self.entity_name = entity_name
        self.column_name = column_name


class NotFoundError(MiniRelError, LookupError):
    pass


class UnresolvableAssociationError(MiniRelError):
    def __init__(self, entity_name, association_name, reason):
        super().__init__(f"Cannot resolve {entity_name}.{association_name}: {reason}")
        self.entity_name = entity_name
        self.association_name = association_name
        self.reason = reason


class ConstraintViolationError(MiniRelError):
    pass
