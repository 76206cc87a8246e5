"""
API views for the BooksForAll marketplace.

Successful responses carry ``"success": true`` and the resource under a
named key. Errors are rendered by core.exceptions.marketplace_exception_handler.
"""

import logging
import uuid

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from . import services
from .exceptions import AccountBanned
from .models import Book, Transaction
from .permissions import CanResolveTransaction, IsSelfOrStaff
from .serializers import (
    BookCreateSerializer,
    BookRequestSerializer,
    BookSerializer,
    HelpRequestSerializer,
    LoginSerializer,
    TransactionCreateSerializer,
    TransactionSerializer,
    TransactionStatusSerializer,
    UserProfileSerializer,
    UserProfileUpdateSerializer,
    UserRegistrationSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


class HealthView(APIView):
    """GET /api/health/"""
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({'success': True, 'message': 'BooksForAll API is running'})


# ============================================================================
# Authentication
# ============================================================================

class UserRegistrationView(APIView):
    """
    API endpoint for user registration.

    POST /api/auth/register/
    Request body: {
        "name": "Asha",
        "email": "asha@example.com",
        "password": "...",
        "mobile": "+91 98765 43210",
        "state": "Kerala",
        "district": "Ernakulam"
    }

    Success response (201): {"success": true, "user": {...}, "access": "...", "refresh": "..."}

    Error responses:
    - 400: Invalid data or email already registered
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'register'

    def post(self, request, *args, **kwargs):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            user = serializer.save()
        except IntegrityError:
            # Concurrent registration with the same email
            raise ValidationError({'email': ['A user with that email already exists.']})

        logger.info(
            f"User registered. User ID: {user.id}, Email: {user.email}, "
            f"IP: {get_client_ip(request)}"
        )

        return Response(
            {'success': True, 'user': serializer.data, **issue_tokens(user)},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    """
    API endpoint for login with JWT token generation.

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "password123"}

    Success response (200):
    {
        "success": true,
        "access": "<jwt_access_token>",
        "refresh": "<jwt_refresh_token>",
        "user": {...}
    }

    Error responses:
    - 400: Missing or malformed fields
    - 401: Invalid credentials (same message whether or not the email exists)
    - 403: Account banned
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email'].lower().strip()
        password = serializer.validated_data['password']
        client_ip = get_client_ip(request)

        user = authenticate(request, email=email, password=password)
        if user is None:
            logger.warning(f"Failed login attempt. Email: {email}, IP: {client_ip}")
            raise AuthenticationFailed('Invalid credentials')

        if user.is_banned:
            logger.warning(f"Login attempt by banned account. Email: {email}, IP: {client_ip}")
            raise AccountBanned()

        logger.info(f"Successful login. Email: {email}, IP: {client_ip}")

        return Response({
            'success': True,
            'user': UserProfileSerializer(user).data,
            **issue_tokens(user)
        }, status=status.HTTP_200_OK)


# ============================================================================
# Users
# ============================================================================

class UserDetailView(APIView):
    """
    GET /api/user/<id>/         public profile
    PUT|PATCH /api/user/<id>/   update own contact details

    Updates accept only name, mobile, state and district. Any other field
    in the payload is rejected with 400.
    """

    def get_permissions(self):
        if self.request.method in ('PUT', 'PATCH'):
            return [IsAuthenticated(), IsSelfOrStaff()]
        return [AllowAny()]

    def get(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        return Response({'success': True, 'user': UserProfileSerializer(user).data})

    def put(self, request, pk, *args, **kwargs):
        return self._update_profile(request, pk, partial=False)

    def patch(self, request, pk, *args, **kwargs):
        return self._update_profile(request, pk, partial=True)

    def _update_profile(self, request, pk, partial):
        user = get_object_or_404(User, pk=pk)
        self.check_object_permissions(request, user)

        serializer = UserProfileUpdateSerializer(user, data=request.data, partial=partial)
        if not serializer.is_valid():
            logger.warning(
                f"Profile update validation failed. "
                f"User ID: {user.id}, Errors: {serializer.errors}"
            )
            raise ValidationError(serializer.errors)

        serializer.save()

        logger.info(
            f"Profile updated. User ID: {user.id}, Fields: {sorted(serializer.validated_data)}"
        )
        return Response({'success': True, 'user': UserProfileSerializer(user).data})


# ============================================================================
# Books
# ============================================================================

class BookPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def parse_uuid_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValidationError({name: [f'Invalid value for "{name}". Must be a valid id.']})


def parse_int_param(request, name):
    value = request.query_params.get(name)
    if value is None or value == '':
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ValidationError({name: [f'Invalid value for "{name}". Must be a whole number.']})
    if parsed < 0:
        raise ValidationError({name: [f'"{name}" cannot be negative.']})
    return parsed


class BookListCreateView(APIView):
    """
    GET /api/books/     browse the marketplace
    POST /api/books/    list a book (authenticated, not banned)

    Browsing shows available books from sellers who are not banned, each
    with a seller summary.

    Query Parameters (GET):
    - exclude_user: Hide this user's own listings
    - language: Exact language match (case-insensitive)
    - topic: Partial topic match
    - search: Partial match on title or author
    - min_price / max_price: Whole-number price bounds
    - page / page_size: Pagination (default 20, max 100)

    Error responses (POST):
    - 400: Invalid data, price not below the ceiling
    - 401: Not authenticated
    - 403: Seller is banned
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [AllowAny()]

    def get(self, request, *args, **kwargs):
        exclude_user = parse_uuid_param(request, 'exclude_user')
        min_price = parse_int_param(request, 'min_price')
        max_price = parse_int_param(request, 'max_price')

        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError({'min_price': ['Minimum price cannot be greater than maximum price.']})

        queryset = Book.objects.marketplace(exclude_user=exclude_user).prefetch_related('images')

        language = request.query_params.get('language')
        if language:
            queryset = queryset.filter(language__iexact=language)

        topic = request.query_params.get('topic')
        if topic:
            queryset = queryset.filter(topic__icontains=topic)

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(author__icontains=search))

        if min_price is not None:
            queryset = queryset.filter(price__gte=min_price)
        if max_price is not None:
            queryset = queryset.filter(price__lte=max_price)

        paginator = BookPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = BookSerializer(page, many=True, context={'request': request})

        return Response({
            'success': True,
            'count': paginator.page.paginator.count,
            'next': paginator.get_next_link(),
            'previous': paginator.get_previous_link(),
            'books': serializer.data,
        })

    def post(self, request, *args, **kwargs):
        serializer = BookCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(
            {'success': True, 'message': 'Book donated successfully!', 'book': serializer.data},
            status=status.HTTP_201_CREATED
        )


class SellerBooksView(APIView):
    """
    GET /api/books/seller/<seller_id>/

    Every listing of one seller, sold or not.
    """
    permission_classes = [AllowAny]

    def get(self, request, seller_id, *args, **kwargs):
        seller = get_object_or_404(User, pk=seller_id)
        books = (
            Book.objects.by_seller(seller.pk)
            .select_related('seller')
            .prefetch_related('images')
        )
        serializer = BookSerializer(books, many=True, context={'request': request})
        return Response({'success': True, 'books': serializer.data})


# ============================================================================
# Transactions
# ============================================================================

class TransactionCreateView(APIView):
    """
    POST /api/transactions/

    Request body: {"book_id": "<uuid>", "seller_id": "<uuid>"}

    Opens a pending purchase request from the authenticated user.

    Error responses:
    - 400: Invalid data, buyer is the seller
    - 401: Not authenticated
    - 403: Buyer is banned
    - 404: Book missing or unavailable, buyer or seller missing
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = TransactionCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(
            {'success': True, 'transaction': serializer.data},
            status=status.HTTP_201_CREATED
        )


class TransactionDetailView(APIView):
    """
    GET /api/transactions/<id>/     view a transaction (parties or staff)
    PUT /api/transactions/<id>/     resolve it

    Request body (PUT): {"status": "completed"} or {"status": "rejected"}

    Error responses:
    - 400: Status is not completed or rejected
    - 401: Not authenticated
    - 403: Not allowed to resolve this transaction
    - 404: Transaction not found
    - 409: Transaction already completed or rejected
    """
    permission_classes = [IsAuthenticated, CanResolveTransaction]

    def get(self, request, pk, *args, **kwargs):
        purchase = get_object_or_404(Transaction.objects.select_related('book'), pk=pk)
        if not (request.user.is_staff or request.user.pk in (purchase.buyer_id, purchase.seller_id)):
            self.permission_denied(request, message='You do not have permission to view this transaction.')
        return Response({'success': True, 'transaction': TransactionSerializer(purchase).data})

    def put(self, request, pk, *args, **kwargs):
        with transaction.atomic():
            purchase = services.get_transaction_for_update(pk)

            self.check_object_permissions(request, purchase)

            serializer = TransactionStatusSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            purchase = services.transition_transaction(
                purchase.pk, serializer.validated_data['status']
            )

        logger.info(
            f"Transaction resolved via API. Transaction ID: {purchase.id}, "
            f"Status: {purchase.status}, User: {request.user.email}, "
            f"IP: {get_client_ip(request)}"
        )
        return Response({'success': True, 'transaction': TransactionSerializer(purchase).data})


class UserTransactionsView(APIView):
    """
    GET /api/transactions/user/<user_id>/

    Transactions where the user is the buyer or the seller. Users can only
    list their own; staff can list anyone's.
    """
    permission_classes = [IsAuthenticated, IsSelfOrStaff]

    def get(self, request, user_id, *args, **kwargs):
        user = get_object_or_404(User, pk=user_id)
        self.check_object_permissions(request, user)

        purchases = Transaction.objects.involving(user.pk).select_related('book')
        serializer = TransactionSerializer(purchases, many=True)
        return Response({'success': True, 'transactions': serializer.data})


# ============================================================================
# Support
# ============================================================================

class BookRequestCreateView(APIView):
    """
    POST /api/requests/

    Request body: {
        "book": "<uuid>",
        "requestor_name": "...",
        "requestor_email": "...",
        "requestor_phone": "...",   # optional
        "message": "..."            # optional
    }
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = BookRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        book_request = serializer.save()

        logger.info(
            f"Book request received. Book ID: {book_request.book_id}, "
            f"Requestor: {book_request.requestor_email}"
        )
        return Response(
            {'success': True, 'message': 'Request sent successfully!', 'request': serializer.data},
            status=status.HTTP_201_CREATED
        )


class HelpRequestCreateView(APIView):
    """
    POST /api/help/

    Request body: {"issue_type": "account", "subject": "...", "description": "..."}

    The request is tied to the authenticated user and created open.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = HelpRequestSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        help_request = serializer.save()

        logger.info(
            f"Help request submitted. ID: {help_request.id}, "
            f"Subject: {help_request.subject}, User: {request.user.email}"
        )
        return Response(
            {'success': True, 'help_request': serializer.data},
            status=status.HTTP_201_CREATED
        )
