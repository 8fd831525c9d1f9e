"""Protocol-based interfaces for the engine's collaborators.

This module exports the protocols the progression core consumes, providing
a clear contract for concrete services and enabling dependency injection
and testing with fakes.
"""

from conquest.interfaces.cities import ICityRegistry
from conquest.interfaces.economy import IResourceStore

__all__ = [
    "ICityRegistry",
    "IResourceStore",
]
