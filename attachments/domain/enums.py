"""Domain enumerations for the attachments service."""

from enum import Enum


class Disposition(str, Enum):
    """Delivery mode for a file response.

    ATTACHMENT forces a download; INLINE lets the browser render the file.
    """

    ATTACHMENT = "attachment"
    INLINE = "inline"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid disposition values as strings."""
        return [d.value for d in cls]

    @classmethod
    def from_inline(cls, inline: bool) -> "Disposition":
        return cls.INLINE if inline else cls.ATTACHMENT


class SweepState(str, Enum):
    """Orphan cleanup lifecycle: IDLE -> COUNTING -> (EMPTY | SWEEPING) -> DONE."""

    IDLE = "idle"
    COUNTING = "counting"
    EMPTY = "empty"
    SWEEPING = "sweeping"
    DONE = "done"
