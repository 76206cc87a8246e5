"""
Marketplace operations that touch more than one record.

Each operation runs inside one ``transaction.atomic()`` block and locks the
rows it writes with ``select_for_update()``. A failure anywhere in an
operation rolls back all of its writes, so a book can never end up sold
without the seller's star, or the other way round.
"""

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from . import reputation
from .exceptions import AccountBanned, Conflict
from .models import Book, BookImage, Transaction, User

logger = logging.getLogger(__name__)


def create_book(seller, images=(), **fields):
    """
    Create a listing owned by seller.

    Args:
        seller: User creating the listing
        images: Uploaded image files, stored in the given order
        **fields: Book field values

    Returns:
        Book: The created listing

    Raises:
        AccountBanned: If the seller is banned
    """
    if not reputation.can_list_books(seller):
        logger.warning(
            f"Banned seller attempted to create a listing. "
            f"User ID: {seller.id}, Email: {seller.email}"
        )
        raise AccountBanned('Banned sellers cannot create new listings.')

    with transaction.atomic():
        book = Book.objects.create(seller=seller, **fields)
        for order, image in enumerate(images):
            BookImage.objects.create(book=book, image=image, order=order)

    logger.info(
        f"Book listed. Book ID: {book.id}, Name: {book.name}, "
        f"Seller: {seller.email} (ID: {seller.id}), Price: {book.price}"
    )
    return book


def create_transaction(book_id, buyer_id, seller_id):
    """
    Open a purchase request for a book.

    The new transaction is pending and has no effect on the seller or the
    book until it is resolved.

    Raises:
        NotFound: If the book is missing, unavailable or listed by a banned
            seller, or if the buyer or seller does not exist
        ValidationError: If buyer and seller are the same user, or the
            seller does not own the book
        AccountBanned: If the buyer is banned
    """
    with transaction.atomic():
        book = (
            Book.objects.select_for_update()
            .select_related('seller')
            .filter(pk=book_id)
            .first()
        )
        if book is None or not book.is_available or book.seller.is_banned:
            raise NotFound('Book not found or not available.')

        buyer = User.objects.filter(pk=buyer_id).first()
        seller = User.objects.filter(pk=seller_id).first()
        if buyer is None or seller is None:
            raise NotFound('Buyer or seller not found.')

        if buyer.pk == seller.pk:
            raise ValidationError({'buyer_id': ['You cannot request your own book.']})

        if book.seller_id != seller.pk:
            raise ValidationError({'seller_id': ['Seller does not own this book.']})

        if buyer.is_banned:
            raise AccountBanned()

        purchase = Transaction.objects.create(book=book, buyer=buyer, seller=seller)

    logger.info(
        f"Purchase request created. Transaction ID: {purchase.id}, "
        f"Buyer: {buyer.email}, Seller: {seller.email}, Book: {book.name}"
    )
    return purchase


def get_transaction_for_update(transaction_id):
    """
    Fetch and lock a transaction. Must be called inside an atomic block.

    Raises:
        NotFound: If no transaction has this id
    """
    purchase = (
        Transaction.objects.select_for_update()
        .filter(pk=transaction_id)
        .first()
    )
    if purchase is None:
        raise NotFound(f'Transaction with ID {transaction_id} does not exist.')
    return purchase


def transition_transaction(transaction_id, new_status, now=None):
    """
    Resolve a pending transaction as completed or rejected.

    completed: seller.stars += 1, book.is_available = False
    rejected: seller.stars -= 1 (floor 0), seller.rejections += 1, ban at
    the threshold

    Args:
        transaction_id: Transaction primary key
        new_status: 'completed' or 'rejected'
        now: Resolution timestamp (defaults to timezone.now())

    Returns:
        Transaction: The updated transaction

    Raises:
        NotFound: If the transaction does not exist
        ValidationError: If new_status is not a terminal status
        Conflict: If the transaction is already completed or rejected, or
            it is being completed after the book was already sold
    """
    if now is None:
        now = timezone.now()

    with transaction.atomic():
        purchase = get_transaction_for_update(transaction_id)

        if new_status not in Transaction.TERMINAL_STATUSES:
            raise ValidationError({
                'status': [f'Status must be one of: {", ".join(Transaction.TERMINAL_STATUSES)}.']
            })

        is_valid, error_message = purchase.can_transition_to(new_status)
        if not is_valid:
            raise Conflict(error_message)

        seller = User.objects.select_for_update().get(pk=purchase.seller_id)
        book = Book.objects.select_for_update().get(pk=purchase.book_id)

        # Another request for the same book was completed first
        if new_status == Transaction.STATUS_COMPLETED and not book.is_available:
            raise Conflict('Book is no longer available.')

        seller_fields, book_fields = reputation.apply_transition(
            seller, book, new_status, now=now
        )
        seller.save(update_fields=seller_fields + ['updated_at'])
        if book_fields:
            book.save(update_fields=book_fields + ['updated_at'])

        old_status = purchase.status
        purchase.status = new_status
        purchase.resolved_at = now
        purchase.save(update_fields=['status', 'resolved_at', 'updated_at'])

    logger.info(
        f"Transaction status updated. Transaction ID: {purchase.id}, "
        f"Old Status: {old_status}, New Status: {new_status}, "
        f"Seller: {seller.email} (stars={seller.stars}, rejections={seller.rejections}, "
        f"banned={seller.is_banned})"
    )
    return purchase
