"""Resource Store Protocol Interface.

This module defines the protocol (interface) for the economy collaborator
that owns the player's empire state.
"""

from typing import Protocol

from conquest.domain.models import EmpireState, ResourceBag


class IResourceStore(Protocol):
    """Protocol defining access to the player's empire and resources.

    Implementations must never let a resource go negative; subtraction is
    clamped at zero.
    """

    def get_player_state(self) -> EmpireState:
        """Return the live empire state.

        Returns:
            The EmpireState instance mutated by the engine
        """
        ...

    def add_resources(self, bag: ResourceBag) -> None:
        """Credit resources to the empire.

        Args:
            bag: Amounts to add
        """
        ...

    def subtract_resources(self, bag: ResourceBag) -> ResourceBag:
        """Debit resources, clamping at zero.

        Args:
            bag: Amounts to remove

        Returns:
            The amounts actually removed
        """
        ...

    def has_resources(self, bag: ResourceBag) -> bool:
        """Check raw holdings, ignoring any reserve.

        Args:
            bag: Amounts required

        Returns:
            True when every amount is covered
        """
        ...
