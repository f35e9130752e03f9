from .foo import (
    ObjectMetaSchema,
    FooSpecSchema,
    FooStatusSchema,
    FooSchema,
)

__all__ = [
    "ObjectMetaSchema",
    "FooSpecSchema",
    "FooStatusSchema",
    "FooSchema",
]
