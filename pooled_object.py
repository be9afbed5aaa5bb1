from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class PooledObject:
    """an object together with the decoration it was pooled with"""
    object: Any
    decoration: Optional[Any] = None

    @property
    def has_decoration(self) -> bool:
        return self.decoration is not None
