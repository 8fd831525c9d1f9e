"""Exceptions raised by the progression domain."""

from __future__ import annotations

from conquest.domain.enums import FailureReason


class ConquestError(Exception):
    """Base class for domain errors."""


class CityNotFoundError(ConquestError, LookupError):
    """A city id was referenced that the registry does not know about.

    This signals a broken invariant between the engine and its city
    registry and is never converted into a result object.
    """

    def __init__(self, city_id: str) -> None:
        super().__init__(f"city {city_id!r} not found in registry")
        self.city_id = city_id


class ParticipantValidationError(ConquestError, ValueError):
    """Battle participant data failed validation."""

    reason = FailureReason.INVALID_PARTICIPANT

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
