"""
Market Complexity Classification

Scores a quotation's cargo and route characteristics against weighted,
externally configured criteria and buckets the result into a "simple" or
"complex" market. Each criterion carries exactly one rule of the form
``{"field": ..., "operator": ..., "value": ...}``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.utils import d, format_idr, group_thousands, to_decimal_or_none

COMPLEX_MIN = 20
ENGINEERING_MIN = 20

SIMPLE = "simple"
COMPLEX = "complex"
MARKET_TYPE_CHOICES = [(SIMPLE, "Simple"), (COMPLEX, "Complex")]

NUMERIC_OPERATORS = (">", "<", ">=", "<=")
OPERATORS = NUMERIC_OPERATORS + ("=", "in")

TERRAIN_TYPES = ("normal", "mountain", "unpaved", "narrow")

NUMERIC_FIELDS = (
    "cargo_weight_kg",
    "cargo_length_m",
    "cargo_width_m",
    "cargo_height_m",
    "cargo_value",
    "duration_days",
)
BOOLEAN_FIELDS = ("is_new_route", "requires_special_permit", "is_hazardous")
CLASSIFICATION_FIELDS = NUMERIC_FIELDS + BOOLEAN_FIELDS + ("terrain_type",)

_NON_NEGATIVE_MESSAGES = {
    "cargo_weight_kg": "Weight must be non-negative",
    "cargo_length_m": "Length must be non-negative",
    "cargo_width_m": "Width must be non-negative",
    "cargo_height_m": "Height must be non-negative",
    "cargo_value": "Value must be non-negative",
    "duration_days": "Duration must be non-negative",
}


@dataclass
class ClassificationInput:
    cargo_weight_kg: Optional[Decimal] = None
    cargo_length_m: Optional[Decimal] = None
    cargo_width_m: Optional[Decimal] = None
    cargo_height_m: Optional[Decimal] = None
    cargo_value: Optional[Decimal] = None
    duration_days: Optional[int] = None
    is_new_route: Optional[bool] = None
    terrain_type: Optional[str] = None
    requires_special_permit: Optional[bool] = None
    is_hazardous: Optional[bool] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ClassificationInput":
        return cls(**{name: data.get(name) for name in CLASSIFICATION_FIELDS})

    @classmethod
    def from_instance(cls, obj) -> "ClassificationInput":
        return cls(**{name: getattr(obj, name, None) for name in CLASSIFICATION_FIELDS})


@dataclass
class Rule:
    field: str
    operator: str
    value: Any


@dataclass
class Criterion:
    code: str
    name: str
    weight: Optional[int] = None
    is_active: Optional[bool] = True
    rule: Any = None
    description: str = ""
    display_order: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Criterion":
        return cls(
            code=data.get("code", ""),
            name=data.get("name", ""),
            weight=data.get("weight"),
            is_active=data.get("is_active", True),
            rule=data.get("rule"),
            description=data.get("description") or "",
            display_order=data.get("display_order") or 0,
        )


@dataclass
class ComplexityFactor:
    criteria_code: str
    criteria_name: str
    weight: int
    triggered_value: str


@dataclass
class MarketClassification:
    market_type: str
    complexity_score: int
    complexity_factors: List[ComplexityFactor] = field(default_factory=list)
    requires_engineering: bool = False

    def factors_as_json(self) -> List[Dict[str, Any]]:
        return [asdict(f) for f in self.complexity_factors]


def classify_market_type(score, threshold: int = COMPLEX_MIN) -> str:
    """'complex' when the score reaches the threshold, otherwise 'simple'."""
    return COMPLEX if score >= threshold else SIMPLE


def requires_engineering(score, threshold: int = ENGINEERING_MIN) -> bool:
    return score >= threshold


def parse_rule(raw) -> Optional[Rule]:
    """
    Turn a stored rule into a Rule, or None when it is unusable.

    Accepts a mapping or its JSON text. A rule needs a string ``field``, one of
    the supported operators, and a ``value`` key; ``in`` additionally needs a
    list value.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, Mapping):
        return None

    fld = raw.get("field")
    op = raw.get("operator")
    if not isinstance(fld, str) or op not in OPERATORS or "value" not in raw:
        return None
    value = raw["value"]
    if op == "in" and not isinstance(value, (list, tuple)):
        return None
    return Rule(field=fld, operator=op, value=value)


def get_field_value(data: ClassificationInput, name: str):
    if name not in CLASSIFICATION_FIELDS:
        return None
    return getattr(data, name)


def _strict_equal(left, right) -> bool:
    # Booleans only ever equal booleans (True must not match 1)
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    left_num = to_decimal_or_none(left) if not isinstance(left, str) else None
    right_num = to_decimal_or_none(right) if not isinstance(right, str) else None
    if left_num is not None and right_num is not None:
        return left_num == right_num
    return left == right


def evaluate_operator(field_value, operator: str, rule_value) -> bool:
    if operator in NUMERIC_OPERATORS:
        left = to_decimal_or_none(field_value)
        right = to_decimal_or_none(rule_value)
        if left is None or right is None:
            return False
        if operator == ">":
            return left > right
        if operator == "<":
            return left < right
        if operator == ">=":
            return left >= right
        return left <= right

    if operator == "=":
        return _strict_equal(field_value, rule_value)

    if operator == "in":
        if not isinstance(rule_value, (list, tuple)):
            return False
        return any(_strict_equal(field_value, candidate) for candidate in rule_value)

    return False


def evaluate_criterion(criterion: Criterion, data: ClassificationInput) -> bool:
    """
    Check whether one criterion fires for the given record.

    Malformed rules, unknown fields and null field values never trigger.
    """
    rule = parse_rule(criterion.rule)
    if rule is None:
        return False

    field_value = get_field_value(data, rule.field)
    if field_value is None:
        return False

    return evaluate_operator(field_value, rule.operator, rule.value)


def _plain_number(value) -> str:
    number = to_decimal_or_none(value)
    if number is None:
        return str(value)
    number = number.normalize()
    return format(number, "f")


def get_triggered_display_value(criterion: Criterion, data: ClassificationInput) -> str:
    rule = parse_rule(criterion.rule)
    if rule is None:
        return ""

    value = get_field_value(data, rule.field)
    if value is None:
        return ""

    name = rule.field
    if name == "cargo_weight_kg":
        return f"{group_thousands(value)} kg"
    if name in ("cargo_length_m", "cargo_width_m", "cargo_height_m"):
        return f"{_plain_number(value)} m"
    if name == "cargo_value":
        return format_idr(value)
    if name == "duration_days":
        return f"{_plain_number(value)} days"
    if name in BOOLEAN_FIELDS:
        return "Yes" if value else "No"
    if name == "terrain_type":
        text = str(value)
        return text[:1].upper() + text[1:]
    return str(value)


def calculate_market_classification(data: ClassificationInput, criteria: Iterable[Criterion],
                                    threshold: int = COMPLEX_MIN) -> MarketClassification:
    """
    Score a record against the configured criteria.

    Args:
        data: Cargo and route characteristics; None fields are unknown
        criteria: Criteria to evaluate; only those not explicitly inactive count
        threshold: Score from which the market is complex and engineering
            review is needed

    Returns:
        MarketClassification: score, market type, engineering flag and the
        triggered factors in evaluation order
    """
    factors: List[ComplexityFactor] = []
    total = 0

    for criterion in criteria:
        if criterion.is_active is False:
            continue
        if not evaluate_criterion(criterion, data):
            continue

        weight = criterion.weight or 0
        total += weight
        factors.append(ComplexityFactor(
            criteria_code=criterion.code,
            criteria_name=criterion.name,
            weight=weight,
            triggered_value=get_triggered_display_value(criterion, data),
        ))

    return MarketClassification(
        market_type=classify_market_type(total, threshold),
        complexity_score=total,
        complexity_factors=factors,
        requires_engineering=requires_engineering(total, threshold),
    )


def format_complexity_score(score, max_score=100) -> str:
    if d(max_score) <= 0:
        return "100%" if d(score) > 0 else "0%"
    percentage = min(d(score) / d(max_score) * 100, Decimal(100))
    return f"{percentage.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}%"


def is_valid_non_negative(value) -> bool:
    if value is None:
        return True
    number = to_decimal_or_none(value)
    return number is not None and number >= 0


def validate_cargo_specifications(specs: Mapping[str, Any]) -> Tuple[bool, Dict[str, str]]:
    """Per-field messages for negative cargo measurements; empty when valid."""
    errors: Dict[str, str] = {}
    for name, message in _NON_NEGATIVE_MESSAGES.items():
        if not is_valid_non_negative(specs.get(name)):
            errors[name] = message
    return not errors, errors


def _market_type_of(row) -> Optional[str]:
    if isinstance(row, Mapping):
        return row.get("market_type")
    return getattr(row, "market_type", None)


def filter_by_market_type(rows: Iterable, market_type_filter: str) -> list:
    rows = list(rows)
    if market_type_filter == "all":
        return rows
    return [row for row in rows if _market_type_of(row) == market_type_filter]


def count_by_market_type(rows: Iterable) -> Dict[str, int]:
    counts = {SIMPLE: 0, COMPLEX: 0}
    for row in rows:
        if _market_type_of(row) == COMPLEX:
            counts[COMPLEX] += 1
        else:
            counts[SIMPLE] += 1
    return counts
