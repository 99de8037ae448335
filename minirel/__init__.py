# minirel - associations (belongs_to, has_many, has_many :through) over sqlite
from minirel.base import MiniBase
from minirel.config import EngineConfig, get_config
from minirel.database import DatabaseEngine
from minirel.errors import (
    MiniRelError, SchemaError, DuplicateForeignKeyError, NotFoundError,
    UnresolvableAssociationError, ConstraintViolationError,
)
from minirel.generator import SchemaGenerator
from minirel.materializer import EntityMaterializer, MaterializedSequence
from minirel.mapper import Mapper
from minirel.orm_types import Text, Number, ForeignKey, BelongsTo, HasMany, HasManyThrough, AssociationKind
from minirel.query import Query
from minirel.registry import SchemaRegistry, default_registry
from minirel.resolver import AssociationResolver
from minirel.session import Session

__version__ = "0.1.0"
__all__ = [
    "MiniBase", "Session", "Mapper", "Query", "DatabaseEngine", "SchemaGenerator",
    "SchemaRegistry", "default_registry", "AssociationResolver", "EntityMaterializer",
    "MaterializedSequence", "EngineConfig", "get_config",
    "Text", "Number", "ForeignKey", "BelongsTo", "HasMany", "HasManyThrough", "AssociationKind",
    "MiniRelError", "SchemaError", "DuplicateForeignKeyError", "NotFoundError",
    "UnresolvableAssociationError", "ConstraintViolationError",
]
