"""
Models for the BooksForAll community book marketplace.
"""

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from .validators import validate_phone_number, validate_book_image


# A seller with this many rejections is banned from the marketplace.
BAN_THRESHOLD = 5


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Additional fields:
    - id: UUID primary key
    - name: Display name
    - email: Required, unique email address (stored lowercase)
    - mobile, state, district: Contact details shown to buyers
    - stars: Seller reputation, +1 per completed sale, -1 per rejection (floored at 0)
    - rejections: Number of rejected purchase requests against this seller
    - is_banned: Set once rejections reach BAN_THRESHOLD, never cleared
    - banned_at: When the ban was applied
    - created_at / updated_at: Timestamps

    Reputation fields are written only by core.reputation.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    name = models.CharField(
        _('name'),
        max_length=150,
        blank=True,
        default='',
        help_text=_('Display name shown on listings.')
    )

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    mobile = models.CharField(
        _('mobile number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Contact number shown to buyers.')
    )

    state = models.CharField(
        _('state'),
        max_length=100,
        blank=True,
        default=''
    )

    district = models.CharField(
        _('district'),
        max_length=100,
        blank=True,
        default=''
    )

    stars = models.PositiveIntegerField(
        _('stars'),
        default=0,
        help_text=_('Seller reputation. Never negative.')
    )

    rejections = models.PositiveIntegerField(
        _('rejections'),
        default=0,
        help_text=_('Number of rejected purchase requests as a seller.')
    )

    is_banned = models.BooleanField(
        _('banned'),
        default=False,
        help_text=_('Banned sellers cannot log in or create listings.')
    )

    banned_at = models.DateTimeField(
        _('banned at'),
        null=True,
        blank=True
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
        help_text=_('Timestamp when the account was created.')
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True
    )

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='user_email_idx'),
            models.Index(fields=['is_banned'], name='user_is_banned_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(rejections__lt=BAN_THRESHOLD) | Q(is_banned=True),
                name='user_banned_at_rejection_threshold'
            ),
        ]

    def __str__(self):
        """Return email as string representation."""
        return self.email or self.username

    @property
    def display_name(self):
        return self.name or self.email

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Email is provided and lowercase
        - A user at the rejection threshold is banned
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

        if self.rejections >= BAN_THRESHOLD and not self.is_banned:
            raise ValidationError({
                'is_banned': _('A user with %(count)d or more rejections must be banned.') % {
                    'count': BAN_THRESHOLD
                }
            })

    def save(self, *args, **kwargs):
        """
        Normalize email and validate on full updates.

        Creation skips full_clean so duplicate emails surface as
        IntegrityError from the database, and targeted saves with
        update_fields skip it because the caller owns those fields.
        """
        if self.email:
            self.email = self.email.lower()

        if not self._state.adding and not kwargs.get('update_fields'):
            self.full_clean()

        super().save(*args, **kwargs)


class BookQuerySet(models.QuerySet):
    """Query helpers for book listings."""

    def available(self):
        return self.filter(is_available=True)

    def by_seller(self, seller_id):
        return self.filter(seller_id=seller_id)

    def marketplace(self, exclude_user=None):
        """
        Listings a buyer may browse.

        Only available books from sellers who are not banned. When
        exclude_user is given, that user's own listings are left out.
        """
        queryset = self.available().filter(seller__is_banned=False)
        if exclude_user is not None:
            queryset = queryset.exclude(seller_id=exclude_user)
        return queryset.select_related('seller')


class Book(models.Model):
    """
    A book offered by a seller, either for free (price 0) or for a small price.

    Fields:
    - seller: Foreign key to User
    - name: Book title
    - author, topic, language, category, condition, description, location
    - price: Whole-currency price, below MARKETPLACE_MAX_PRICE
    - is_available: True until a purchase request for it is completed
    """

    CONDITION_CHOICES = [
        ('new', 'New'),
        ('like_new', 'Like New'),
        ('good', 'Good'),
        ('fair', 'Fair'),
        ('poor', 'Poor'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='books',
        help_text=_('User offering this book')
    )

    name = models.CharField(
        _('title'),
        max_length=200,
        blank=False,
        null=False
    )

    author = models.CharField(
        _('author'),
        max_length=200,
        blank=True,
        default=''
    )

    topic = models.CharField(
        _('topic'),
        max_length=100,
        blank=False,
        null=False,
        help_text=_('Topic or genre of the book')
    )

    language = models.CharField(
        _('language'),
        max_length=50,
        blank=False,
        null=False
    )

    category = models.CharField(
        _('category'),
        max_length=100,
        blank=True,
        default=''
    )

    condition = models.CharField(
        _('condition'),
        max_length=20,
        choices=CONDITION_CHOICES,
        default='good'
    )

    description = models.TextField(
        _('description'),
        blank=True,
        default=''
    )

    price = models.PositiveIntegerField(
        _('price'),
        help_text=_('Price in whole currency units. 0 means a free donation.')
    )

    location = models.CharField(
        _('location'),
        max_length=200,
        blank=True,
        default=''
    )

    is_available = models.BooleanField(
        _('available'),
        default=True,
        help_text=_('Cleared when a purchase request for this book is completed')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True
    )

    objects = BookQuerySet.as_manager()

    class Meta:
        verbose_name = _('book')
        verbose_name_plural = _('books')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller'], name='book_seller_idx'),
            models.Index(fields=['is_available'], name='book_is_available_idx'),
            models.Index(fields=['language'], name='book_language_idx'),
            models.Index(fields=['topic'], name='book_topic_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Name, topic and language are not blank
        - Price is below the marketplace ceiling
        """
        super().clean()

        for field in ('name', 'topic', 'language'):
            value = getattr(self, field)
            if not value or not value.strip():
                raise ValidationError({
                    field: _('This field cannot be empty.')
                })

        max_price = settings.MARKETPLACE_MAX_PRICE
        if self.price is not None and self.price >= max_price:
            raise ValidationError({
                'price': _('Price must be less than %(max)d.') % {'max': max_price}
            })

    def save(self, *args, **kwargs):
        if not kwargs.get('update_fields'):
            self.full_clean()
        super().save(*args, **kwargs)


def book_image_upload_path(instance, filename):
    """
    Upload path for book images: book_images/{book_id}/{filename}
    """
    book_id = instance.book_id or 'temp'
    return f'book_images/{book_id}/{filename}'


class BookImage(models.Model):
    """Photo of a listed book (one-to-many)."""

    book = models.ForeignKey(
        Book,
        on_delete=models.CASCADE,
        related_name='images'
    )

    image = models.ImageField(
        _('image'),
        upload_to=book_image_upload_path,
        validators=[validate_book_image],
        help_text=_('Image file (max 5MB, formats: jpg, png, webp)')
    )

    order = models.PositiveIntegerField(
        _('order'),
        default=0
    )

    uploaded_at = models.DateTimeField(
        _('uploaded at'),
        auto_now_add=True
    )

    class Meta:
        verbose_name = _('book image')
        verbose_name_plural = _('book images')
        ordering = ['order', 'uploaded_at']

    def __str__(self):
        return f"Image for {self.book.name}"


class TransactionQuerySet(models.QuerySet):

    def involving(self, user_id):
        """Transactions where the user is the buyer or the seller."""
        return self.filter(Q(buyer_id=user_id) | Q(seller_id=user_id))

    def resolved(self):
        return self.exclude(status=Transaction.STATUS_PENDING)


class Transaction(models.Model):
    """
    A buyer's request to acquire a listed book.

    Lifecycle: pending -> completed | rejected. Both outcomes are terminal.
    Status changes go through core.services.transition_transaction, which
    applies the seller reputation effects in the same database transaction.
    """

    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_REJECTED)

    VALID_TRANSITIONS = {
        STATUS_PENDING: [STATUS_COMPLETED, STATUS_REJECTED],
        STATUS_COMPLETED: [],
        STATUS_REJECTED: [],
    }

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    book = models.ForeignKey(
        Book,
        on_delete=models.CASCADE,
        related_name='transactions'
    )

    buyer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='purchases'
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sales'
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True
    )

    resolved_at = models.DateTimeField(
        _('resolved at'),
        null=True,
        blank=True,
        help_text=_('When the transaction reached a terminal status')
    )

    objects = TransactionQuerySet.as_manager()

    class Meta:
        verbose_name = _('transaction')
        verbose_name_plural = _('transactions')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['buyer'], name='transaction_buyer_idx'),
            models.Index(fields=['seller'], name='transaction_seller_idx'),
            models.Index(fields=['book'], name='transaction_book_idx'),
            models.Index(fields=['status'], name='transaction_status_idx'),
        ]

    def __str__(self):
        return f"Transaction {self.id}: {self.buyer_id} <- {self.book_id} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        """
        Validate if the transaction can move to new_status.

        Returns:
            tuple: (is_valid: bool, error_message: str or None)
        """
        if new_status not in dict(self.STATUS_CHOICES):
            return False, f'Invalid status "{new_status}".'

        if self.is_terminal:
            return False, f'Transaction is already {self.status}.'

        if new_status not in self.VALID_TRANSITIONS[self.status]:
            return False, f'Invalid status transition from {self.status} to {new_status}.'

        return True, None

    def clean(self):
        """
        Validate parties and the book.

        Ensures:
        - Buyer and seller are different users
        - Seller owns the book
        """
        super().clean()

        if self.buyer_id and self.seller_id and self.buyer_id == self.seller_id:
            raise ValidationError({
                'buyer': _('Buyer and seller cannot be the same user.')
            })

        if self.book_id and self.seller_id and self.book.seller_id != self.seller_id:
            raise ValidationError({
                'seller': _('Transaction seller must match the book seller.')
            })

    def save(self, *args, **kwargs):
        if not kwargs.get('update_fields'):
            self.full_clean()
        super().save(*args, **kwargs)


class HelpRequest(models.Model):
    """Support request filed by a logged-in user."""

    ISSUE_TYPE_CHOICES = [
        ('payment', 'Payment Issue'),
        ('account', 'Account Problem'),
        ('book', 'Book Related'),
        ('technical', 'Technical Issue'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('open', 'Open'),
        ('in_progress', 'In Progress'),
        ('resolved', 'Resolved'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='help_requests'
    )

    issue_type = models.CharField(
        _('issue type'),
        max_length=20,
        choices=ISSUE_TYPE_CHOICES
    )

    subject = models.CharField(
        _('subject'),
        max_length=200
    )

    description = models.TextField(
        _('description')
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default='open'
    )

    user_agent = models.CharField(
        _('user agent'),
        max_length=300,
        blank=True,
        default=''
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True
    )

    class Meta:
        verbose_name = _('help request')
        verbose_name_plural = _('help requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='helprequest_status_idx'),
        ]

    def __str__(self):
        return f"[{self.issue_type}] {self.subject}"


class BookRequest(models.Model):
    """
    Contact request from a prospective reader to the donor of a book.

    Does not need an account and has no effect on availability or
    reputation; the donor follows up directly.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    book = models.ForeignKey(
        Book,
        on_delete=models.CASCADE,
        related_name='requests'
    )

    requestor_name = models.CharField(
        _('requestor name'),
        max_length=150
    )

    requestor_email = models.EmailField(
        _('requestor email')
    )

    requestor_phone = models.CharField(
        _('requestor phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number]
    )

    message = models.TextField(
        _('message'),
        blank=True,
        default=''
    )

    requested_on = models.DateTimeField(
        _('requested on'),
        auto_now_add=True
    )

    class Meta:
        verbose_name = _('book request')
        verbose_name_plural = _('book requests')
        ordering = ['-requested_on']

    def __str__(self):
        return f"{self.requestor_name} -> {self.book.name}"
