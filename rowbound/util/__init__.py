"""Contains utilities that are not specific to RowBOUND's domain of schema-aware statement construction."""

import lazy_loader

__getattr__, __dir__, __all__ = lazy_loader.attach_stub(
    __name__,
    __file__,
)
