"""
Base models and mixins for the decision core.

This module provides:
- BaseModel: Foundation for all records with versioning
- TimestampMixin: timezone-aware timestamp handling
- SymbolMixin: Instrument symbol validation
- IdentityMixin: Injected event / correlation identifiers
- WhyBlock: Human explanation attached to every output record
- DecisionRecord: Common envelope of snapshots, intents, decisions and actions

Conventions:
1. Use frozen=True for immutability (records are never mutated after creation)
2. Define validators inline using @field_validator
3. Add schema_version for evolution support
4. Use Annotated types with Field descriptions (self-documenting)
5. Identifiers and timestamps are always supplied by the caller
"""

from datetime import datetime
from typing import Annotated
from pydantic import BaseModel as PydanticBaseModel, Field, ConfigDict, field_validator
import re

from shared.models.enums import BrainId, CooldownScope, Severity
from shared.models.reason_codes import ReasonCode


UUID_V4_PATTERN = r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$'


class BaseModel(PydanticBaseModel):
    """
    Base model for all decision core records.

    Features:
    - Immutable (frozen=True)
    - Schema versioning for backward compatibility
    - Strict validation (no coercion of labels, timestamps or sequences)
    - NaN and infinity rejected in every float field
    """

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        validate_assignment=True,
        use_enum_values=False,
        arbitrary_types_allowed=False,
        allow_inf_nan=False,
    )

    schema_version: Annotated[
        int,
        Field(
            default=1,
            ge=1,
            description="Schema version for backward compatibility and migration tracking"
        )
    ]


class TimestampMixin(PydanticBaseModel):
    """
    Mixin for records carrying the logical cycle time.

    The timestamp is injected by the orchestrator; it must be
    timezone-aware and keeps the offset it was given.
    """

    timestamp: Annotated[
        datetime,
        Field(
            description="Logical time of the record (ISO 8601, timezone-aware)"
        )
    ]

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp_aware(cls, v: datetime) -> datetime:
        """Reject naive timestamps."""
        return ensure_aware(v)


class SymbolMixin(PydanticBaseModel):
    """
    Mixin for records tied to one instrument.

    Symbols must:
    - Be uppercase (normalized)
    - Match pattern: 1-12 alphanumeric characters
    - No special characters except . (for futures: ES.c, indexes: ^SPX)
    """

    symbol: Annotated[
        str,
        Field(
            min_length=1,
            max_length=12,
            description="Instrument symbol (e.g. EURUSD, XAUUSD)"
        )
    ]

    @field_validator('symbol')
    @classmethod
    def validate_symbol_format(cls, v: str) -> str:
        """Validate and normalize symbol format."""
        return normalize_symbol(v)


class IdentityMixin(PydanticBaseModel):
    """Mixin for the externally generated identifiers of a record."""

    event_id: Annotated[
        str,
        Field(
            pattern=UUID_V4_PATTERN,
            description="Unique id of this record (UUID v4, caller supplied)"
        )
    ]

    correlation_id: Annotated[
        str,
        Field(
            pattern=UUID_V4_PATTERN,
            description="Id shared by every record of one decision cycle (UUID v4)"
        )
    ]


class EventIds(BaseModel, IdentityMixin):
    """
    Identifier pair handed to every Brain, PM and EHM evaluation.

    Example:
        EventIds(
            event_id='a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d',
            correlation_id='b2c3d4e5-f6a7-4b8c-9d0e-1f2a3b4c5d6e',
        )
    """


class WhyBlock(BaseModel):
    """Human explanation of a record. Not meant for machine branching."""

    reason_code: Annotated[
        ReasonCode,
        Field(description="Code from the central reason catalog")
    ]

    message: Annotated[
        str,
        Field(
            min_length=1,
            max_length=500,
            description="Human-readable explanation"
        )
    ]


class DecisionRecord(BaseModel, IdentityMixin, TimestampMixin):
    """Envelope shared by snapshots, intents, PM decisions and EHM actions."""

    severity: Annotated[
        Severity,
        Field(description="INFO, WARN or ERROR")
    ]

    why: Annotated[
        WhyBlock,
        Field(description="Reason code and message explaining the record")
    ]


# ============================================================================
# Helpers
# ============================================================================

_SYMBOL_RE = re.compile(r'^[\^]?[A-Z0-9]{1,12}(?:\.[A-Z])?$')


def ensure_aware(v: datetime) -> datetime:
    """Raise ValueError for a naive datetime, return it unchanged otherwise."""
    if v.tzinfo is None or v.tzinfo.utcoffset(v) is None:
        raise ValueError("Timestamp must be timezone-aware")
    return v


def normalize_symbol(v: str) -> str:
    """Uppercase and validate an instrument symbol."""
    v = v.upper().strip()
    if not _SYMBOL_RE.match(v):
        raise ValueError(
            f"Invalid symbol format: '{v}'. Must be 1-12 uppercase alphanumeric "
            "characters, optionally starting with '^' or ending with '.X'"
        )
    return v


def normalize_cooldown_target(scope: CooldownScope, target: str) -> str:
    """Check a cooldown target against its scope.

    BRAIN targets must be a brain id, SYMBOL targets are normalized like
    any symbol and GLOBAL cooldowns target ``'*'``.
    """
    if scope == CooldownScope.GLOBAL:
        if target != "*":
            raise ValueError(f"GLOBAL cooldown must target '*', got '{target}'")
        return target
    if scope == CooldownScope.BRAIN:
        if target not in {b.value for b in BrainId}:
            raise ValueError(f"BRAIN cooldown target '{target}' is not a brain id")
        return target
    return normalize_symbol(target)
