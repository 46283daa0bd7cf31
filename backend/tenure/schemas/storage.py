"""Persisted record envelope and feature flag schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class VersionedRecord(BaseModel):
    """Envelope written around every persisted value.

    Serialized as {"schemaVersion": int, "savedAt": iso8601, "data": ...}.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schema_version: StrictInt = Field(..., ge=0)
    saved_at: datetime
    data: Any


class FeatureFlags(BaseModel):
    """Which top-level tabs are available; read-only for peer features."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    show_discover: bool = True
    show_prepare: bool = True
    show_prospect: bool = True
    show_prosper: bool = True
    show_matches: bool = False
