"""Deterministic duplicate-customer detection."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import combinations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from customer_merge.merging.normalization import (
    normalize_email,
    normalize_line_user_id,
    normalize_name,
    normalize_phone,
)
from customer_merge.models.customer import Customer
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.schemas.customer import CustomerSummary
from customer_merge.schemas.duplicates import DuplicateCandidate, DuplicatePair
from customer_merge.services.customers import require_customer
from customer_merge.services.dismissals import dismissed_pairs, dismissed_partner_ids

# Scores below this are "possible" rather than "likely" duplicates. Callers decide
# how to present them; detection never filters on it.
REVIEW_THRESHOLD = 70
MAX_CONFIDENCE = 100

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class DuplicateSignal:
    """A deterministic comparison key and the confidence it contributes on equality."""

    label: str
    weight: int
    key: Callable[[Customer], str]


DUPLICATE_SIGNALS: tuple[DuplicateSignal, ...] = (
    DuplicateSignal("shared messaging id", 60, lambda customer: normalize_line_user_id(customer.line_user_id)),
    DuplicateSignal("exact email match", 50, lambda customer: normalize_email(customer.email)),
    DuplicateSignal("exact phone match", 45, lambda customer: normalize_phone(customer.phone)),
    DuplicateSignal("normalized name match", 20, lambda customer: normalize_name(customer.name)),
)


def score_pair(left: Customer, right: Customer) -> tuple[int, list[str]]:
    """Return (confidence, matched signal labels) for two customers."""

    score = 0
    signals: list[str] = []
    for signal in DUPLICATE_SIGNALS:
        left_key = signal.key(left)
        if left_key and left_key == signal.key(right):
            score += signal.weight
            signals.append(signal.label)
    return min(score, MAX_CONFIDENCE), signals


def find_duplicates(db: Session, customer_id: int, *, tenant_id: int) -> list[DuplicateCandidate]:
    """Rank likely duplicates of one customer within its tenant."""

    customer = require_customer(db, tenant_id=tenant_id, customer_id=customer_id)
    if customer.merged_into_id is not None:
        return []

    population = db.scalars(
        select(Customer).where(
            Customer.tenant_id == tenant_id,
            Customer.id != customer.id,
            Customer.merged_into_id.is_(None),
        )
    ).all()
    dismissed = dismissed_partner_ids(db, tenant_id=tenant_id, customer_id=customer.id)

    matches: list[tuple[Customer, int, list[str]]] = []
    for other in population:
        if other.id in dismissed:
            continue
        confidence, signals = score_pair(customer, other)
        if signals:
            matches.append((other, confidence, signals))
    if not matches:
        return []

    activity = latest_activity_by_customer(db, [other for other, _, _ in matches])
    matches.sort(key=lambda match: match[0].id)
    matches.sort(key=lambda match: _recency_key(activity.get(match[0].id)), reverse=True)
    matches.sort(key=lambda match: match[1], reverse=True)

    return [
        DuplicateCandidate(
            customer_id=customer.id,
            candidate=CustomerSummary.model_validate(other),
            confidence=confidence,
            signals=signals,
        )
        for other, confidence, signals in matches
    ]


def find_duplicate_pairs(db: Session, *, tenant_id: int) -> list[DuplicatePair]:
    """Scan the whole tenant once and report every undismissed duplicate pair.

    Customers are only compared when they share at least one signal key, so the
    scan stays proportional to the number of real collisions.
    """

    population = list(
        db.scalars(
            select(Customer)
            .where(Customer.tenant_id == tenant_id, Customer.merged_into_id.is_(None))
            .order_by(Customer.id.asc())
        ).all()
    )
    blocks: dict[tuple[str, str], list[Customer]] = defaultdict(list)
    for customer in population:
        for signal in DUPLICATE_SIGNALS:
            key = signal.key(customer)
            if key:
                blocks[(signal.label, key)].append(customer)

    dismissed = dismissed_pairs(db, tenant_id=tenant_id)
    seen: set[tuple[int, int]] = set()
    pairs: list[DuplicatePair] = []
    for members in blocks.values():
        for left, right in combinations(members, 2):
            pair_key = (left.id, right.id)
            if pair_key in seen or pair_key in dismissed:
                continue
            seen.add(pair_key)
            confidence, signals = score_pair(left, right)
            pairs.append(
                DuplicatePair(
                    customer_a=CustomerSummary.model_validate(left),
                    customer_b=CustomerSummary.model_validate(right),
                    confidence=confidence,
                    signals=signals,
                )
            )

    pairs.sort(key=lambda pair: (-pair.confidence, pair.customer_a.id, pair.customer_b.id))
    return pairs


def latest_activity_by_customer(db: Session, customers: list[Customer]) -> dict[int, datetime | None]:
    """Most recent activity timestamp per customer, falling back to ``last_activity_at``."""

    customer_ids = [customer.id for customer in customers]
    latest = dict(
        db.execute(
            select(CustomerActivity.customer_id, func.max(CustomerActivity.occurred_at))
            .where(CustomerActivity.customer_id.in_(customer_ids))
            .group_by(CustomerActivity.customer_id)
        ).all()
    )
    return {customer.id: latest.get(customer.id) or customer.last_activity_at for customer in customers}


def _recency_key(value: datetime | None) -> datetime:
    if value is None:
        return _OLDEST
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
