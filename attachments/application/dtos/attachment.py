"""DTOs for attachment use cases (signed URL payloads, cleanup results)."""

from dataclasses import dataclass
from datetime import datetime

from attachments.domain.enums import Disposition, SweepState
from attachments.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class SignedUrlPayload:
    """Decoded content of a temporary download token."""

    identifier: str
    """Attachment uuid the token grants access to."""

    expire: datetime
    """UTC instant after which the token is rejected."""

    issued_at: datetime
    disposition: Disposition

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once now (default: current UTC time) is past expire."""
        return (now or utc_now()) > self.expire


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of one orphan sweep."""

    state: SweepState
    matched: int
    """Orphans older than the cutoff when counting started."""

    deleted: int
    cutoff: datetime | None = None

    @property
    def is_empty(self) -> bool:
        """True when nothing matched and no deletion was attempted."""
        return self.state == SweepState.EMPTY
