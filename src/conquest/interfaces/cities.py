"""City Registry Protocol Interface.

This module defines the protocol (interface) for the service holding the
world's cities.
"""

from typing import Protocol

from conquest.domain.models import City, CityID, ConquestResult, EmpireState, SiegeStart


class ICityRegistry(Protocol):
    """Protocol defining the contract for the city registry.

    Unknown city ids raise ``CityNotFoundError``; every other condition is
    reported through the returned result objects.
    """

    def all_cities(self) -> list[City]:
        """Return every city in registry order."""
        ...

    def get_conquerable_cities(self, state: EmpireState) -> list[City]:
        """Return unowned, unlocked cities for the given empire.

        Args:
            state: Empire whose ownership and level decide eligibility

        Returns:
            Cities sorted by id
        """
        ...

    def get_city_by_id(self, city_id: CityID) -> City:
        """Look up a city.

        Args:
            city_id: Identifier to look up

        Returns:
            The city

        Raises:
            CityNotFoundError: If the id is unknown
        """
        ...

    def execute_conquest(self, city_id: CityID) -> ConquestResult:
        """Hand a city to the player and release its spoils.

        Args:
            city_id: City taken by the player

        Returns:
            ConquestResult with success flag and spoils
        """
        ...

    def start_siege(self, city_id: CityID, force: int) -> SiegeStart:
        """Open a siege against a city.

        Args:
            city_id: City to besiege
            force: Troops committed

        Returns:
            SiegeStart with success flag and duration in seconds
        """
        ...

    def end_siege(self, city_id: CityID, garrison_losses: int = 0) -> None:
        """Lift the siege flag and apply defender losses.

        Args:
            city_id: City whose siege ended
            garrison_losses: Garrison troops lost in the battle
        """
        ...
