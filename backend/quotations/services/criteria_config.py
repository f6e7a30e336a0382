"""
Complexity criteria configuration

Loads the default market-complexity criteria from JSON, validates them and
synchronises them into the ``ComplexityCriterion`` table. Once seeded, the
table is the source of truth; admins tune weights and rules there.
"""

import json
import logging
from pathlib import Path
from typing import List

from django.conf import settings
from django.db import transaction

from ..models import ComplexityCriterion
from .market_classification import (
    BOOLEAN_FIELDS,
    CLASSIFICATION_FIELDS,
    NUMERIC_FIELDS,
    NUMERIC_OPERATORS,
    TERRAIN_TYPES,
    parse_rule,
)

logger = logging.getLogger(__name__)


class CriteriaConfigurationError(Exception):
    """Raised when the criteria configuration file cannot be loaded"""
    pass


def default_config_path() -> Path:
    configured = getattr(settings, "COMPLEXITY_CRITERIA_PATH", None)
    if configured:
        return Path(configured)
    return Path(__file__).parent.parent / "config" / "complexity_criteria.json"


def load_criteria_config(config_path=None) -> dict:
    """
    Load complexity criteria from a JSON configuration file

    Args:
        config_path: Path to the JSON file. If None, uses the configured default.

    Returns:
        dict: Parsed configuration

    Raises:
        CriteriaConfigurationError: If the file is missing or not valid JSON
    """
    path = Path(config_path) if config_path is not None else default_config_path()
    if not path.exists():
        raise CriteriaConfigurationError(f"Complexity criteria file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise CriteriaConfigurationError(f"Invalid JSON in complexity criteria file: {e}")
    except OSError as e:
        raise CriteriaConfigurationError(f"Error loading complexity criteria configuration: {e}")

    logger.info("Loaded complexity criteria from %s", path)
    return config


def validate_criteria_config(config: dict) -> List[str]:
    """
    Validate that a criteria configuration is complete and consistent

    Returns:
        List[str]: Validation errors (empty if valid)
    """
    errors: List[str] = []

    criteria = config.get("criteria")
    if not isinstance(criteria, list):
        return ["Missing required top-level key: criteria"]

    seen = set()
    for index, item in enumerate(criteria):
        if not isinstance(item, dict):
            errors.append(f"Criterion #{index}: must be an object")
            continue
        code = item.get("code")
        label = code if isinstance(code, str) and code else f"#{index}"
        if not code:
            errors.append(f"Criterion {label}: code is required")
        elif not isinstance(code, str):
            errors.append(f"Criterion {label}: code must be a string")
        elif code in seen:
            errors.append(f"Criterion {label}: duplicate code")
        else:
            seen.add(code)

        if not item.get("name"):
            errors.append(f"Criterion {label}: name is required")

        weight = item.get("weight")
        if weight is not None and (not isinstance(weight, int) or isinstance(weight, bool) or weight < 0):
            errors.append(f"Criterion {label}: weight must be a non-negative integer")

        display_order = item.get("display_order")
        if display_order is not None and (not isinstance(display_order, int) or isinstance(display_order, bool)
                                          or display_order < 0):
            errors.append(f"Criterion {label}: display_order must be a non-negative integer")

        if "is_active" in item and not isinstance(item["is_active"], bool):
            errors.append(f"Criterion {label}: is_active must be true or false")

        errors.extend(validate_rule(label, item.get("rule")))

    if errors:
        logger.warning("Complexity criteria validation found %d errors", len(errors))
    return errors


def validate_rule(label: str, raw) -> List[str]:
    rule = parse_rule(raw)
    if rule is None:
        return [f"Criterion {label}: rule must have field, a supported operator and value"]

    if rule.field not in CLASSIFICATION_FIELDS:
        return [f"Criterion {label}: unknown field '{rule.field}'"]

    if rule.field in NUMERIC_FIELDS:
        if rule.operator not in NUMERIC_OPERATORS:
            return [f"Criterion {label}: {rule.field} needs a numeric comparison"]
        if isinstance(rule.value, bool) or not isinstance(rule.value, (int, float)):
            return [f"Criterion {label}: {rule.field} threshold must be a number"]
    elif rule.field in BOOLEAN_FIELDS:
        if rule.operator != "=" or not isinstance(rule.value, bool):
            return [f"Criterion {label}: {rule.field} must be compared with '=' to true/false"]
    elif rule.field == "terrain_type":
        if rule.operator != "in":
            return [f"Criterion {label}: terrain_type must use 'in'"]
        unknown = [v for v in rule.value if v not in TERRAIN_TYPES]
        if unknown:
            return [f"Criterion {label}: unknown terrain types {unknown}"]
    return []


def sync_criteria(config: dict, deactivate_missing: bool = False) -> dict:
    """
    Upsert criteria from a validated configuration into the database.

    Returns:
        dict: counts of created, updated and deactivated criteria
    """
    errors = validate_criteria_config(config)
    if errors:
        raise CriteriaConfigurationError("; ".join(errors))

    created = updated = deactivated = 0
    codes = []
    with transaction.atomic():
        for order, item in enumerate(config["criteria"]):
            codes.append(item["code"])
            _, was_created = ComplexityCriterion.objects.update_or_create(
                code=item["code"],
                defaults={
                    "name": item["name"],
                    "description": item.get("description") or "",
                    "weight": item.get("weight") or 0,
                    "is_active": item.get("is_active", True),
                    "display_order": order if item.get("display_order") is None else item["display_order"],
                    "rule": item["rule"],
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1

        if deactivate_missing:
            deactivated = (ComplexityCriterion.objects
                           .exclude(code__in=codes)
                           .filter(is_active=True)
                           .update(is_active=False))

    logger.info("Synced complexity criteria: %d created, %d updated, %d deactivated",
                created, updated, deactivated)
    return {"created": created, "updated": updated, "deactivated": deactivated}
