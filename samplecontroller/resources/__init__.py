from .foo import FooResource

__all__ = ["FooResource"]
