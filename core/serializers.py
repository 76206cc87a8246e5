"""
Serializers for accounts, listings, transactions and support requests.
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import serializers

from . import services
from .models import Book, BookImage, BookRequest, HelpRequest, Transaction

User = get_user_model()


# ============================================================================
# Account Serializers
# ============================================================================

class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.

    Fields:
    - name: Required display name
    - email: Required, unique (case-insensitive)
    - password: Required, must pass Django's password validators
    - confirm_password: Optional, must match password when given
    - mobile, state, district: Optional contact details

    Reputation fields are read-only and start at their defaults.
    """

    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )
    confirm_password = serializers.CharField(
        write_only=True,
        required=False,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'password', 'confirm_password', 'mobile',
                  'state', 'district', 'stars', 'rejections', 'is_banned', 'created_at']
        read_only_fields = ['id', 'stars', 'rejections', 'is_banned', 'created_at']
        extra_kwargs = {
            'name': {'required': True, 'allow_blank': False},
            'email': {'required': True},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be empty.")
        return value

    def validate_email(self, value):
        """Normalize the email and check it is not taken."""
        value = value.strip().lower()

        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "A user with that email already exists."
            )

        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

        return value

    def validate(self, attrs):
        confirm_password = attrs.get('confirm_password')

        if confirm_password is not None and attrs.get('password') != confirm_password:
            raise serializers.ValidationError({
                'confirm_password': 'Password confirmation does not match.'
            })

        return attrs

    def create(self, validated_data):
        """
        Create the user with a hashed password.

        The email doubles as the username required by AbstractUser; login
        goes through the email backend.
        """
        validated_data.pop('confirm_password', None)
        validated_data['password'] = make_password(validated_data.pop('password'))
        validated_data['username'] = validated_data['email'][:150]

        with transaction.atomic():
            user = User.objects.create(**validated_data)

        return user


class LoginSerializer(serializers.Serializer):
    """
    Email and password for login.

    Authentication itself happens in the view.
    """
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserProfileSerializer(serializers.ModelSerializer):
    """
    Public profile of a user, including seller reputation.

    Never includes the password hash or permission flags.
    """

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'mobile',
            'state',
            'district',
            'stars',
            'rejections',
            'is_banned',
            'created_at',
        ]
        read_only_fields = fields


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for profile updates (PUT/PATCH).

    Only the contact fields below can change. A payload carrying any other
    key (stars, rejections, is_banned, password, email, id, created_at, ...)
    is rejected as a whole.
    """

    class Meta:
        model = User
        fields = ['name', 'mobile', 'state', 'district']
        extra_kwargs = {
            'name': {'required': False, 'allow_blank': False},
            'mobile': {'required': False},
            'state': {'required': False},
            'district': {'required': False},
        }

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError({
                field: ['This field cannot be updated.'] for field in unknown
            })

        if 'name' in attrs:
            attrs['name'] = attrs['name'].strip()
            if not attrs['name']:
                raise serializers.ValidationError({'name': ['Name cannot be empty.']})

        return attrs

    def update(self, instance, validated_data):
        fields_to_update = []
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
            fields_to_update.append(attr)

        if fields_to_update:
            instance.save(update_fields=fields_to_update + ['updated_at'])

        return instance


class SellerSummarySerializer(serializers.ModelSerializer):
    """Seller details shown next to a listing."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'mobile', 'stars', 'is_banned']
        read_only_fields = fields


# ============================================================================
# Book Serializers
# ============================================================================

class BookImageSerializer(serializers.ModelSerializer):

    class Meta:
        model = BookImage
        fields = ['id', 'image', 'order']
        read_only_fields = fields


class BookSerializer(serializers.ModelSerializer):
    """
    Listing with nested seller summary and images.

    Use with select_related('seller') and prefetch_related('images').
    """

    seller = SellerSummarySerializer(read_only=True)
    images = BookImageSerializer(many=True, read_only=True)

    class Meta:
        model = Book
        fields = [
            'id',
            'name',
            'author',
            'topic',
            'language',
            'category',
            'condition',
            'description',
            'price',
            'location',
            'is_available',
            'created_at',
            'seller',
            'images',
        ]
        read_only_fields = fields


class BookCreateSerializer(serializers.ModelSerializer):
    """
    Serializer for listing a book.

    The seller is the authenticated user. Banned sellers are refused by
    services.create_book. Price must be below MARKETPLACE_MAX_PRICE.
    """

    images = serializers.ListField(
        child=serializers.ImageField(),
        write_only=True,
        required=False,
        max_length=5
    )

    class Meta:
        model = Book
        fields = ['name', 'author', 'topic', 'language', 'category', 'condition',
                  'description', 'price', 'location', 'images']
        extra_kwargs = {
            'name': {'required': True},
            'topic': {'required': True},
            'language': {'required': True},
            'price': {'required': True},
        }

    def _validate_not_blank(self, value, label):
        if not value or not value.strip():
            raise serializers.ValidationError(f"{label} cannot be empty or whitespace only.")
        return value.strip()

    def validate_name(self, value):
        return self._validate_not_blank(value, 'Name')

    def validate_topic(self, value):
        return self._validate_not_blank(value, 'Topic')

    def validate_language(self, value):
        return self._validate_not_blank(value, 'Language')

    def validate_price(self, value):
        max_price = settings.MARKETPLACE_MAX_PRICE
        if value >= max_price:
            raise serializers.ValidationError(f"Price must be less than {max_price}.")
        return value

    def validate_images(self, value):
        from .validators import validate_book_image

        for image in value:
            try:
                validate_book_image(image)
            except DjangoValidationError as e:
                raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        request = self.context['request']
        images = validated_data.pop('images', [])
        return services.create_book(request.user, images=images, **validated_data)

    def to_representation(self, instance):
        return BookSerializer(instance, context=self.context).data


# ============================================================================
# Transaction Serializers
# ============================================================================

class TransactionSerializer(serializers.ModelSerializer):

    book_id = serializers.UUIDField(read_only=True)
    book_name = serializers.CharField(source='book.name', read_only=True)
    buyer_id = serializers.UUIDField(read_only=True)
    seller_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Transaction
        fields = ['id', 'book_id', 'book_name', 'buyer_id', 'seller_id', 'status',
                  'created_at', 'updated_at', 'resolved_at']
        read_only_fields = fields


class TransactionCreateSerializer(serializers.Serializer):
    """
    Purchase request for a book.

    - book_id: Required
    - seller_id: Optional, defaults to the book's seller
    - buyer_id: Optional, defaults to the authenticated user; only staff
      may open a request on someone else's behalf
    """

    book_id = serializers.UUIDField()
    seller_id = serializers.UUIDField(required=False)
    buyer_id = serializers.UUIDField(required=False)

    def validate_buyer_id(self, value):
        user = self.context['request'].user
        if value != user.pk and not user.is_staff:
            raise serializers.ValidationError("You can only open purchase requests for yourself.")
        return value

    def create(self, validated_data):
        request = self.context['request']
        book_id = validated_data['book_id']
        buyer_id = validated_data.get('buyer_id', request.user.pk)
        seller_id = validated_data.get('seller_id')
        if seller_id is None:
            seller_id = Book.objects.filter(pk=book_id).values_list('seller_id', flat=True).first()

        return services.create_transaction(book_id, buyer_id, seller_id)

    def to_representation(self, instance):
        return TransactionSerializer(instance, context=self.context).data


class TransactionStatusSerializer(serializers.Serializer):
    """New status for a pending transaction: completed or rejected."""

    status = serializers.ChoiceField(
        choices=[
            (Transaction.STATUS_COMPLETED, 'Completed'),
            (Transaction.STATUS_REJECTED, 'Rejected'),
        ]
    )


# ============================================================================
# Support Serializers
# ============================================================================

class HelpRequestSerializer(serializers.ModelSerializer):
    """
    Help request filed by the authenticated user. Always created open.
    """

    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = HelpRequest
        fields = ['id', 'user_id', 'issue_type', 'subject', 'description', 'status', 'created_at']
        read_only_fields = ['id', 'user_id', 'status', 'created_at']

    def validate_subject(self, value):
        if not value.strip():
            raise serializers.ValidationError("Subject cannot be empty.")
        return value.strip()

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError("Description cannot be empty.")
        return value.strip()

    def create(self, validated_data):
        request = self.context['request']
        validated_data['user'] = request.user
        validated_data['user_agent'] = request.META.get('HTTP_USER_AGENT', '')[:300]
        return HelpRequest.objects.create(**validated_data)


class BookRequestSerializer(serializers.ModelSerializer):
    """Contact request for an available book. No account required."""

    book = serializers.PrimaryKeyRelatedField(
        queryset=Book.objects.available(),
        error_messages={'does_not_exist': 'Book not found or not available.'}
    )

    class Meta:
        model = BookRequest
        fields = ['id', 'book', 'requestor_name', 'requestor_email', 'requestor_phone',
                  'message', 'requested_on']
        read_only_fields = ['id', 'requested_on']

    def validate_requestor_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name cannot be empty.")
        return value.strip()

    def validate_requestor_email(self, value):
        return value.strip().lower()
