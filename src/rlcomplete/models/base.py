"""Base model for rlcomplete data types."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict


def new_id() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class BridgeModel(BaseModel):
    """Base for all rlcomplete Pydantic models. Instances are immutable."""

    model_config = ConfigDict(frozen=True)
