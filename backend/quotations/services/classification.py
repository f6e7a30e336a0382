"""
Persisting market classification on quotations.

Wraps the pure scorer with the database: active criteria are read from
``ComplexityCriterion`` and the result is written onto the quotation together
with its derived status and engineering status.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone

from ..models import ComplexityCriterion, Quotation
from .market_classification import (
    COMPLEX_MIN,
    ClassificationInput,
    Criterion,
    MarketClassification,
    calculate_market_classification,
)

logger = logging.getLogger(__name__)

QUOTATION_NUMBER_RE = re.compile(r"^QUO-(\d{4})-(\d{4,})$")

NUMBERING_ATTEMPTS = 5

# Statuses in which the engineering decision may still follow the score
RECLASSIFIABLE_STATUSES = ("draft", "engineering_review")
UNSTARTED_ENGINEERING = ("not_required", "pending")


def complexity_threshold() -> int:
    return getattr(settings, "COMPLEXITY_THRESHOLD", COMPLEX_MIN)


def active_criteria() -> List[Criterion]:
    rows = ComplexityCriterion.objects.filter(is_active=True).order_by("display_order", "code")
    return [row.to_criterion() for row in rows]


def classify(data: ClassificationInput, criteria: Optional[List[Criterion]] = None) -> MarketClassification:
    if criteria is None:
        criteria = active_criteria()
    return calculate_market_classification(data, criteria, complexity_threshold())


def initial_statuses(result: MarketClassification) -> dict:
    if result.requires_engineering:
        return {"status": "engineering_review", "engineering_status": "pending"}
    return {"status": "draft", "engineering_status": "not_required"}


def next_quotation_number(year: Optional[int] = None) -> str:
    year = year or timezone.now().year
    last = (Quotation.objects
            .filter(quotation_number__startswith=f"QUO-{year}-")
            .order_by(Length("quotation_number").desc(), "-quotation_number")
            .values_list("quotation_number", flat=True)
            .first())
    sequence = 1
    if last:
        match = QUOTATION_NUMBER_RE.match(last)
        if match:
            sequence = int(match.group(2)) + 1
    return f"QUO-{year}-{sequence:04d}"


def apply_classification(quotation, result: MarketClassification) -> None:
    quotation.market_type = result.market_type
    quotation.complexity_score = result.complexity_score
    quotation.complexity_factors = result.factors_as_json()
    quotation.requires_engineering = result.requires_engineering


def _save_numbered(quotation) -> None:
    for attempt in range(1, NUMBERING_ATTEMPTS + 1):
        quotation.quotation_number = next_quotation_number()
        try:
            with transaction.atomic():
                quotation.save(force_insert=True)
            return
        except IntegrityError:
            if attempt == NUMBERING_ATTEMPTS:
                raise
            logger.warning("Quotation number %s already taken, retrying (attempt %d)",
                           quotation.quotation_number, attempt)


def create_quotation(user, **fields):
    """Create a quotation with its classification and derived statuses."""
    result = classify(ClassificationInput.from_mapping(fields))
    with transaction.atomic():
        quotation = Quotation(created_by=user, **fields)
        apply_classification(quotation, result)
        for name, value in initial_statuses(result).items():
            setattr(quotation, name, value)
        _save_numbered(quotation)

    logger.info("Quotation %s created: %s market, score %d",
                quotation.quotation_number, result.market_type, result.complexity_score)
    return quotation


def reclassify(quotation) -> MarketClassification:
    """
    Re-run classification after the cargo record changed.

    The engineering decision only moves while the quotation is still a draft
    or awaiting review and engineering work has not started. Caller saves.
    """
    result = classify(ClassificationInput.from_instance(quotation))
    previous = quotation.market_type
    apply_classification(quotation, result)

    if quotation.status in RECLASSIFIABLE_STATUSES and quotation.engineering_status in UNSTARTED_ENGINEERING:
        for name, value in initial_statuses(result).items():
            setattr(quotation, name, value)

    if previous != result.market_type:
        logger.info("Quotation %s reclassified %s -> %s (score %d)",
                    quotation.quotation_number, previous, result.market_type, result.complexity_score)
    return result
