"""
Unit tests for the seller reputation policy.

These work on unsaved model instances, so no database is needed.

Test Coverage:
- Completion credits a star
- Rejection removes a star (floored at zero) and counts a rejection
- Ban at the rejection threshold, permanence of the ban
- apply_transition dispatch and book availability
- Replaying transaction history
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from core import reputation
from core.models import BAN_THRESHOLD, Book, Transaction, User


def make_seller(**kwargs):
    return User(email='seller@example.com', name='Seller', **kwargs)


# ============================================================================
# Completion and Rejection
# ============================================================================

class TestRecordCompletion:

    def test_completion_adds_one_star(self):
        seller = make_seller(stars=2)

        changed = reputation.record_completion(seller)

        assert seller.stars == 3
        assert changed == ['stars']

    def test_completion_does_not_touch_rejections(self):
        seller = make_seller(stars=0, rejections=3)

        reputation.record_completion(seller)

        assert seller.rejections == 3
        assert seller.is_banned is False


class TestRecordRejection:

    def test_rejection_removes_star_and_counts_rejection(self):
        seller = make_seller(stars=4, rejections=1)

        changed = reputation.record_rejection(seller)

        assert seller.stars == 3
        assert seller.rejections == 2
        assert changed == ['stars', 'rejections']

    def test_stars_never_go_below_zero(self):
        """A seller without stars stays at zero after a rejection."""
        seller = make_seller(stars=0, rejections=0)

        reputation.record_rejection(seller)

        assert seller.stars == 0
        assert seller.rejections == 1

    def test_ban_at_threshold(self):
        """The rejection that reaches the threshold bans the seller."""
        seller = make_seller(stars=0, rejections=BAN_THRESHOLD - 1)
        now = timezone.now()

        changed = reputation.record_rejection(seller, now=now)

        assert seller.rejections == BAN_THRESHOLD
        assert seller.is_banned is True
        assert seller.banned_at == now
        assert 'is_banned' in changed
        assert 'banned_at' in changed

    def test_no_ban_below_threshold(self):
        seller = make_seller(stars=0, rejections=BAN_THRESHOLD - 2)

        reputation.record_rejection(seller)

        assert seller.is_banned is False
        assert seller.banned_at is None

    def test_five_rejections_from_clean_slate(self):
        """S(0, 0) rejected five times ends with 5 rejections, banned, 0 stars."""
        seller = make_seller(stars=0, rejections=0)

        for _ in range(5):
            reputation.record_rejection(seller)

        assert seller.rejections == 5
        assert seller.is_banned is True
        assert seller.stars == 0

    def test_existing_ban_is_not_restamped(self):
        """Further rejections keep the original ban timestamp."""
        first_ban = timezone.now() - timedelta(days=3)
        seller = make_seller(stars=0, rejections=BAN_THRESHOLD, is_banned=True, banned_at=first_ban)

        changed = reputation.record_rejection(seller)

        assert seller.banned_at == first_ban
        assert seller.is_banned is True
        assert changed == ['stars', 'rejections']

    def test_completion_after_ban_keeps_ban(self):
        seller = make_seller(stars=0, rejections=BAN_THRESHOLD, is_banned=True)

        reputation.record_completion(seller)

        assert seller.is_banned is True


# ============================================================================
# Transition dispatch
# ============================================================================

class TestApplyTransition:

    def test_completed_marks_book_unavailable(self):
        seller = make_seller(stars=2)
        book = Book(seller=seller, name='Calculus', topic='Maths', language='English', price=0)

        seller_fields, book_fields = reputation.apply_transition(
            seller, book, Transaction.STATUS_COMPLETED
        )

        assert seller.stars == 3
        assert book.is_available is False
        assert seller_fields == ['stars']
        assert book_fields == ['is_available']

    def test_rejected_leaves_book_available(self):
        seller = make_seller(stars=1)
        book = Book(seller=seller, name='Calculus', topic='Maths', language='English', price=0)

        seller_fields, book_fields = reputation.apply_transition(
            seller, book, Transaction.STATUS_REJECTED
        )

        assert seller.stars == 0
        assert seller.rejections == 1
        assert book.is_available is True
        assert book_fields == []

    def test_pending_has_no_effect_defined(self):
        seller = make_seller()
        book = Book(seller=seller, name='Calculus', topic='Maths', language='English', price=0)

        with pytest.raises(ValueError):
            reputation.apply_transition(seller, book, Transaction.STATUS_PENDING)


class TestCanListBooks:

    def test_active_user_can_list(self):
        assert reputation.can_list_books(make_seller()) is True

    def test_banned_user_cannot_list(self):
        assert reputation.can_list_books(make_seller(is_banned=True)) is False


# ============================================================================
# Replay
# ============================================================================

class TestReplay:

    def test_replay_resets_before_applying(self):
        seller = make_seller(stars=10, rejections=2)

        reputation.replay(seller, ['completed', 'completed', 'rejected'])

        assert seller.stars == 1
        assert seller.rejections == 1

    def test_replay_order_matters_for_floor(self):
        """Rejections before any completion are floored at zero stars."""
        seller = make_seller()

        reputation.replay(seller, ['rejected', 'rejected', 'completed'])

        assert seller.stars == 1
        assert seller.rejections == 2

    def test_replay_applies_ban(self):
        seller = make_seller()

        reputation.replay(seller, ['rejected'] * BAN_THRESHOLD)

        assert seller.is_banned is True
        assert seller.banned_at is not None

    def test_replay_never_lifts_ban(self):
        seller = make_seller(stars=0, rejections=BAN_THRESHOLD, is_banned=True)

        reputation.replay(seller, ['completed'])

        assert seller.is_banned is True
        assert seller.stars == 1
        assert seller.rejections == 0

    def test_replay_ignores_pending(self):
        seller = make_seller()

        reputation.replay(seller, ['pending', 'completed'])

        assert seller.stars == 1
