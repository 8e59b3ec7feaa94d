"""
Processing state observed by the presentation layer.

ProcessingState is replaced as a whole on every change, never mutated in
place, so a reader on another thread always sees a consistent snapshot.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from aerofindr.models.flight import FlightInfo


class OutcomeStatus(str, Enum):
    """How a single processing request ended."""
    SUCCESS = 'success'
    EMPTY = 'empty'
    ERROR = 'error'


@dataclass(frozen=True)
class ProcessingState:
    """What the UI shows: spinner, matched flight, or a message."""
    is_loading: bool = False
    flight_info: Optional[FlightInfo] = None
    error_message: Optional[str] = None

    @classmethod
    def loading(cls) -> 'ProcessingState':
        return cls(is_loading=True)

    def to_dict(self) -> dict:
        return {
            'is_loading': self.is_loading,
            'flight': self.flight_info.to_dict() if self.flight_info else None,
            'error_message': self.error_message,
        }


@dataclass(frozen=True)
class ProcessingOutcome:
    """
    Result of one processing request, returned to the caller.

    superseded is True when a newer request started before this one
    finished; such outcomes were not written to ProcessingState.
    """
    status: OutcomeStatus
    flight: Optional[FlightInfo] = None
    message: Optional[str] = None
    superseded: bool = False

    @classmethod
    def success(cls, flight: FlightInfo) -> 'ProcessingOutcome':
        return cls(status=OutcomeStatus.SUCCESS, flight=flight)

    @classmethod
    def empty(cls, message: str) -> 'ProcessingOutcome':
        return cls(status=OutcomeStatus.EMPTY, message=message)

    @classmethod
    def error(cls, message: str) -> 'ProcessingOutcome':
        return cls(status=OutcomeStatus.ERROR, message=message)

    def to_state(self) -> ProcessingState:
        """Final state for a request that settled with this outcome."""
        return ProcessingState(
            is_loading=False,
            flight_info=self.flight,
            error_message=self.message,
        )
