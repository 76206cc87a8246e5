"""
Seller reputation policy.

Stars and rejections change only when a purchase request reaches a
terminal status:

- completed: the seller gains one star and the book is marked unavailable
- rejected: the seller loses one star (never below zero) and gains one
  rejection; at BAN_THRESHOLD rejections the seller is banned

A ban is permanent. Nothing in this module clears ``is_banned``.

These functions mutate the model instances they are given and return the
names of the fields they changed. Saving is left to the caller so that all
writes of one status change happen in a single database transaction (see
core.services.transition_transaction).
"""

import logging

from django.utils import timezone

from .models import BAN_THRESHOLD, Transaction

logger = logging.getLogger(__name__)


def record_completion(seller):
    """Credit the seller with one star for a completed sale."""
    seller.stars += 1
    return ['stars']


def record_rejection(seller, now=None):
    """
    Penalize the seller for a rejected purchase request.

    Args:
        seller: User instance acting as seller
        now: Ban timestamp (defaults to timezone.now())

    Returns:
        list: Names of the changed User fields
    """
    seller.stars = max(0, seller.stars - 1)
    seller.rejections += 1
    changed = ['stars', 'rejections']

    if seller.rejections >= BAN_THRESHOLD and not seller.is_banned:
        seller.is_banned = True
        seller.banned_at = now or timezone.now()
        changed += ['is_banned', 'banned_at']
        logger.warning(
            f"Seller banned after {seller.rejections} rejections. "
            f"User ID: {seller.id}, Email: {seller.email}"
        )

    return changed


def apply_transition(seller, book, new_status, now=None):
    """
    Apply the reputation effects of a transaction reaching new_status.

    Args:
        seller: User instance of the transaction's seller
        book: Book instance the transaction refers to
        new_status: 'completed' or 'rejected'
        now: Timestamp used for a ban

    Returns:
        tuple: (changed seller fields, changed book fields)

    Raises:
        ValueError: If new_status is not a terminal status
    """
    if new_status == Transaction.STATUS_COMPLETED:
        seller_fields = record_completion(seller)
        book.is_available = False
        return seller_fields, ['is_available']

    if new_status == Transaction.STATUS_REJECTED:
        return record_rejection(seller, now=now), []

    raise ValueError(f'No reputation effect defined for status "{new_status}".')


def can_list_books(user):
    """Banned users cannot create new listings. Existing listings are untouched."""
    return not user.is_banned


def replay(seller, statuses, now=None):
    """
    Recompute a seller's stars and rejections from resolved transaction
    outcomes, oldest first.

    The seller's current values are reset before replaying. An existing ban
    is kept even if the replayed history would not justify it.

    Args:
        seller: User instance
        statuses: Iterable of terminal statuses in resolution order
        now: Ban timestamp for a newly applied ban

    Returns:
        User: The same seller instance, updated in memory
    """
    seller.stars = 0
    seller.rejections = 0

    for status in statuses:
        if status == Transaction.STATUS_COMPLETED:
            record_completion(seller)
        elif status == Transaction.STATUS_REJECTED:
            record_rejection(seller, now=now)

    return seller
