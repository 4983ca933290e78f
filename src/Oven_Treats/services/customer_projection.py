"""
Oven_Treats.services.customer_projection

Customers are not stored on their own: they are a projection of the
order log, grouped by customer email (exact, case-sensitive key).

project_customers() is pure and idempotent; the store re-runs it after
every order change, on rehydrate and after every restore.

Also holds the small helpers the customer screens need (sorting,
search, totals).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from rapidfuzz import fuzz

from Oven_Treats.domain.models import Customer, Order


def project_customers(orders: Iterable[Order]) -> List[Customer]:
    """
    One Customer per distinct customer_email:
      - total_orders    = number of orders
      - total_spent     = sum of order totals
      - last_order_date = max order_date
      - name / phone    = from the most recent order (ties: later in iteration wins)

    Output order follows first appearance of each email; callers that
    display customers should sort explicitly (see sort_customers).
    """
    by_email: Dict[str, Customer] = {}

    for order in orders:
        key = order.customer_email
        customer = by_email.get(key)

        if customer is None:
            by_email[key] = Customer(
                id=key,
                name=order.customer_name,
                phone=order.customer_phone,
                email=key,
                total_orders=1,
                total_spent=order.total,
                last_order_date=order.order_date,
            )
            continue

        customer.total_orders += 1
        customer.total_spent += order.total

        if customer.last_order_date is None or order.order_date >= customer.last_order_date:
            customer.last_order_date = order.order_date
            customer.name = order.customer_name
            customer.phone = order.customer_phone

    return list(by_email.values())


def sort_customers(customers: Iterable[Customer]) -> List[Customer]:
    """
    Most recent customers first; customers without a date go last.
    """
    dated = [c for c in customers if c.last_order_date is not None]
    undated = [c for c in customers if c.last_order_date is None]
    dated.sort(key=lambda c: c.last_order_date, reverse=True)
    return dated + undated


def search_customers(
    customers: Iterable[Customer],
    query: str,
    fuzzy_threshold: float = 80.0,
) -> List[Customer]:
    """
    Case-insensitive substring match on name, email or phone.

    If nothing matches literally, fall back to fuzzy name matching so
    small typos ("Alcie") still find the customer.
    """
    customers = list(customers)
    q = (query or "").strip().lower()
    if not q:
        return customers

    hits = [
        c for c in customers
        if q in c.name.lower() or q in c.email.lower() or q in c.phone.lower()
    ]
    if hits:
        return hits

    scored = []
    for c in customers:
        score = fuzz.partial_ratio(q, c.name.lower())
        if score >= fuzzy_threshold:
            scored.append((score, c))
    scored.sort(key=lambda x: x[0], reverse=True)
    return [c for _, c in scored]


@dataclass
class CustomerStats:
    total_customers: int
    total_orders: int
    total_revenue: float
    top_customer: Optional[Customer] = None


def customer_stats(customers: Iterable[Customer]) -> CustomerStats:
    customers = list(customers)
    top = max(customers, key=lambda c: c.total_spent) if customers else None
    return CustomerStats(
        total_customers=len(customers),
        total_orders=sum(c.total_orders for c in customers),
        total_revenue=sum(c.total_spent for c in customers),
        top_customer=top,
    )
