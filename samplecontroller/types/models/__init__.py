from .foo import ObjectRef, ObjectMeta, FooSpec, FooStatus, Foo

__all__ = [
    "ObjectRef",
    "ObjectMeta",
    "FooSpec",
    "FooStatus",
    "Foo",
]
