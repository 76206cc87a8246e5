"""
URL configuration for the booksforall project.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenBlacklistView, TokenRefreshView

from core.views import (
    BookListCreateView,
    BookRequestCreateView,
    HealthView,
    HelpRequestCreateView,
    LoginView,
    SellerBooksView,
    TransactionCreateView,
    TransactionDetailView,
    UserDetailView,
    UserRegistrationView,
    UserTransactionsView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/health/', HealthView.as_view(), name='health'),

    # Authentication endpoints
    path('api/auth/register/', UserRegistrationView.as_view(), name='user_register'),
    path('api/auth/login/', LoginView.as_view(), name='user_login'),
    path('api/auth/logout/', TokenBlacklistView.as_view(), name='user_logout'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Users
    path('api/user/<uuid:pk>/', UserDetailView.as_view(), name='user_detail'),

    # Books
    path('api/books/', BookListCreateView.as_view(), name='book_list'),
    path('api/books/seller/<uuid:seller_id>/', SellerBooksView.as_view(), name='seller_books'),

    # Transactions
    path('api/transactions/', TransactionCreateView.as_view(), name='transaction_create'),
    path('api/transactions/user/<uuid:user_id>/', UserTransactionsView.as_view(), name='user_transactions'),
    path('api/transactions/<uuid:pk>/', TransactionDetailView.as_view(), name='transaction_detail'),

    # Support
    path('api/requests/', BookRequestCreateView.as_view(), name='book_request_create'),
    path('api/help/', HelpRequestCreateView.as_view(), name='help_request_create'),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
