"""Exceptions raised by the seating optimizer."""
from __future__ import annotations


class InsufficientCapacityError(ValueError):
    """Total table capacity is smaller than the number of guests."""

    def __init__(self, guests: int, capacity: int) -> None:
        super().__init__(f"Not enough table capacity for all guests: {guests} guests, {capacity} seats")
        self.guests = guests
        self.capacity = capacity


class RepairInvariantError(AssertionError):
    """A guest could not be re-seated although total capacity suffices."""
