"""
Boundary validation for decision core records.

Raw payloads (dicts or JSON strings) coming from the orchestrator, replay
files or fixtures are checked two ways:
1. Pydantic models (types, ranges, cross-field invariants)
2. JSON Schema generated from those models (structural validation)

Usage:
    from contracts.schema_validator import MessageValidator

    validator = MessageValidator()

    result = validator.validate_message(payload, 'trade_intent')
    if result.is_valid:
        intent = result.validated_data
    else:
        print(f"Validation errors: {result.errors}")
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from jsonschema import Draft202012Validator
from pydantic import BaseModel, ValidationError

from shared.models import (
    ActivePositionState,
    EhmAction,
    MarketSnapshot,
    MclInput,
    PmDecision,
    PortfolioState,
    PositionResult,
    TradeIntent,
)


# ============================================================================
# Configuration and Constants
# ============================================================================

logger = logging.getLogger(__name__)

PYDANTIC_MODELS: Dict[str, Type[BaseModel]] = {
    'mcl_input': MclInput,
    'mcl_snapshot': MarketSnapshot,
    'trade_intent': TradeIntent,
    'portfolio_state': PortfolioState,
    'pm_decision': PmDecision,
    'active_position': ActivePositionState,
    'position_result': PositionResult,
    'ehm_action': EhmAction,
}


class ValidationMode(str, Enum):
    """Validation modes."""
    PYDANTIC_ONLY = 'pydantic_only'
    JSON_SCHEMA_ONLY = 'json_schema_only'
    BOTH = 'both'  # Default: run both validators


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json_text(data: Union[Dict[str, Any], str]) -> str:
    """Normalize a payload to JSON text (datetimes as ISO 8601, enums as labels)."""
    if isinstance(data, str):
        return data
    return json.dumps(data, default=_json_default)


def json_schema_for(contract: str) -> Dict[str, Any]:
    """JSON Schema (draft 2020-12) of a contract, generated from its model."""
    model_class = PYDANTIC_MODELS.get(contract)
    if model_class is None:
        raise KeyError(f"Unknown contract: {contract}")
    schema = model_class.model_json_schema(mode='validation')
    schema['$schema'] = 'https://json-schema.org/draft/2020-12/schema'
    return schema


# ============================================================================
# Validation Result
# ============================================================================

@dataclass
class ValidationResult:
    """
    Result of payload validation.

    Attributes:
        is_valid: Whether the payload passed validation
        errors: List of validation error messages
        warnings: List of validation warnings (non-critical)
        validated_data: The validated model instance, when pydantic ran and passed
        contract: The contract the payload was validated against
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    validated_data: Optional[BaseModel] = None
    contract: Optional[str] = None

    def __bool__(self) -> bool:
        """Allow using ValidationResult as a boolean."""
        return self.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'contract': self.contract,
            'has_validated_data': self.validated_data is not None,
        }


# ============================================================================
# Message Validator
# ============================================================================

class MessageValidator:
    """
    Validates payloads against the decision core contracts.

    JSON Schema validators are built once per instance from the pydantic
    models, so the two views of a contract never drift apart.
    """

    def __init__(self, mode: ValidationMode = ValidationMode.BOTH):
        self.mode = mode
        self._json_validators: Dict[str, Draft202012Validator] = {}
        if mode != ValidationMode.PYDANTIC_ONLY:
            for contract in PYDANTIC_MODELS:
                self._json_validators[contract] = Draft202012Validator(json_schema_for(contract))
                logger.debug("Built JSON schema validator for %s", contract)

    def validate_message(
        self,
        data: Union[Dict[str, Any], str],
        contract: str,
    ) -> ValidationResult:
        """
        Validate a payload using the configured validation mode.

        Args:
            data: Payload (dict or JSON string)
            contract: Contract name (e.g. 'trade_intent', 'portfolio_state')

        Returns:
            ValidationResult with validation status and errors
        """
        if contract not in PYDANTIC_MODELS:
            return ValidationResult(
                is_valid=False,
                errors=[f"Unknown contract: {contract}"],
                contract=contract,
            )

        text = to_json_text(data)
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            return ValidationResult(
                is_valid=False,
                errors=[f"Invalid JSON: {e}"],
                contract=contract,
            )

        errors: List[str] = []
        warnings: List[str] = []
        validated_data = None

        if self.mode in (ValidationMode.PYDANTIC_ONLY, ValidationMode.BOTH):
            try:
                validated_data = PYDANTIC_MODELS[contract].model_validate_json(text)
                logger.debug("Pydantic validation passed for %s", contract)
            except ValidationError as e:
                for error in e.errors():
                    field_path = ' -> '.join(str(loc) for loc in error['loc']) or 'root'
                    errors.append(f"Pydantic: {field_path}: {error['msg']}")
                logger.debug("Pydantic validation failed for %s: %s", contract, errors)

        if self.mode in (ValidationMode.JSON_SCHEMA_ONLY, ValidationMode.BOTH):
            for error in self._json_validators[contract].iter_errors(document):
                field_path = ' -> '.join(str(p) for p in error.path) or 'root'
                errors.append(f"JSON Schema: {field_path}: {error.message}")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            validated_data=validated_data,
            contract=contract,
        )

    def validate_batch(
        self,
        messages: List[Union[Dict[str, Any], str]],
        contract: str,
    ) -> List[ValidationResult]:
        """Validate a batch of payloads against one contract."""
        return [self.validate_message(msg, contract) for msg in messages]

    def get_model_for_contract(self, contract: str) -> Optional[Type[BaseModel]]:
        """Get the Pydantic model class for a contract."""
        return PYDANTIC_MODELS.get(contract)

    def get_supported_contracts(self) -> List[str]:
        """Get list of supported contract names."""
        return list(PYDANTIC_MODELS.keys())


# ============================================================================
# Convenience Functions
# ============================================================================

def parse_contract(data: Union[Dict[str, Any], str], contract: str) -> BaseModel:
    """
    Build the model for a contract from a raw payload.

    Raises:
        KeyError: Unknown contract
        pydantic.ValidationError: Malformed payload
    """
    model_class = PYDANTIC_MODELS.get(contract)
    if model_class is None:
        raise KeyError(f"Unknown contract: {contract}")
    return model_class.model_validate_json(to_json_text(data))


def validate(
    data: Union[Dict[str, Any], str],
    contract: str,
    mode: ValidationMode = ValidationMode.BOTH,
) -> ValidationResult:
    """Convenience function to validate one payload."""
    return MessageValidator(mode=mode).validate_message(data, contract)


def export_json_schemas(out_dir: Union[str, Path]) -> List[Path]:
    """
    Write ``<contract>.schema.json`` for every contract.

    Returns:
        Paths of the written files, in contract order
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written = []
    for contract in PYDANTIC_MODELS:
        path = out / f"{contract}.schema.json"
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(json_schema_for(contract), f, indent=2, sort_keys=True)
            f.write('\n')
        written.append(path)
        logger.debug("Wrote JSON schema %s", path)
    return written
