from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class WillStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    EXECUTED = "executed"  # terminal; only an external trigger produces it
    REVOKED = "revoked"


class WillRecord(BaseModel):
    """
    A will as persisted under `will_<id>` in the key/value store.

    Fields
    - id: opaque identifier ("<epoch-millis>-<suffix>"); the key suffix, not part
      of the stored payload.
    - payload: opaque sealed blob supplied by the owner. Never re-sealed.
    - created_at: seconds since epoch, set once at creation.
    - owner / beneficiary: address strings.
    - status: lifecycle state; the only field transitions change.

    Notes
    - The model is frozen. Transitions produce a copy via `with_status`, which
      keeps the read-modify-write of a full record explicit.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    payload: str
    created_at: int = Field(..., ge=0, strict=True, description="Creation time, epoch seconds")
    owner: str
    beneficiary: str
    status: WillStatus = WillStatus.DRAFT

    def with_status(self, status: WillStatus) -> "WillRecord":
        return self.model_copy(update={"status": status})

    def is_owned_by(self, identity: str) -> bool:
        """Case-insensitive address comparison against `owner`."""
        if not identity:
            return False
        return self.owner.lower() == identity.lower()


class WillDraft(BaseModel):
    """Owner-entered fields that get sealed into a record payload."""

    beneficiary: str = ""
    conditions: str = ""
    assets: str = ""


class WillStats(BaseModel):
    total: int = 0
    draft: int = 0
    active: int = 0
    executed: int = 0
    revoked: int = 0
