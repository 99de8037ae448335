from minirel import MiniBase, SchemaRegistry
from minirel.orm_types import Text, Number, BelongsTo, HasMany, HasManyThrough


class LibraryBase(MiniBase):
    class Meta:
        abstract = True
        registry = SchemaRegistry("library_api")


class Author(LibraryBase):
    name = Text(nullable=False)
    books = HasMany(dependent="destroy")


class Book(LibraryBase):
    title = Text(nullable=False)
    year = Number()
    author = BelongsTo(required=True)


class Physician(LibraryBase):
    name = Text(nullable=False)
    appointments = HasMany(dependent="destroy")
    patients = HasManyThrough(through="appointments", distinct=True)


class Appointment(LibraryBase):
    scheduled_at = Text()
    physician = BelongsTo(required=True)
    patient = BelongsTo(required=True)


class Patient(LibraryBase):
    name = Text(nullable=False)
    appointments = HasMany(dependent="destroy")
    physicians = HasManyThrough(through="appointments", distinct=True)
