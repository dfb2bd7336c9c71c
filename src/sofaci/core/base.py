"""Model base classes shared by configuration and runtime state.

Kept apart from config.py so that log.py can build on them without
importing the configuration.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    def close(self) -> None: ...


class BaseCloseable(BaseModel):
    """Model that closes its closeable fields when it is closed.

    Closing propagates down the tree, e.g.
    Config.close() → Logger.close() → FileSink.close(). A child that
    fails to close is reported on stderr and the rest still close; the
    logger may be the thing that is failing.
    """

    def _closeable_children(self) -> Iterator[tuple[str, Closeable]]:
        for name in type(self).model_fields:
            child = getattr(self, name, None)
            if isinstance(child, Closeable):
                yield name, child

    def close(self):
        for name, child in self._closeable_children():
            try:
                child.close()
            except Exception as e:
                print(f"sofaci: error closing {name}: {e}", file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Configuration section, loaded from YAML, env or CLI."""


class BaseState(BaseCloseable):
    """Runtime state, mutated while a pipeline runs."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
