"""
Django admin configuration for the marketplace models.

Reputation fields and transaction status are read-only here; they change
only through core.services so that stars, rejections and bans stay
consistent with transaction history.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Book, BookImage, BookRequest, HelpRequest, Transaction, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for the custom User model.

    Extends Django's UserAdmin with contact details and seller reputation.
    """

    list_display = [
        'email',
        'name',
        'stars',
        'rejections',
        'is_banned',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'is_banned',
        'is_staff',
        'is_superuser',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
        'username',
        'mobile',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': ('name', 'email', 'mobile', 'state', 'district')
        }),
        (_('Reputation'), {
            'fields': ('stars', 'rejections', 'is_banned', 'banned_at')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'email',
                'name',
                'password1',
                'password2',
            ),
        }),
    )

    readonly_fields = [
        'stars',
        'rejections',
        'is_banned',
        'banned_at',
        'created_at',
        'updated_at',
        'last_login',
        'date_joined',
    ]

    date_hierarchy = 'created_at'

    list_per_page = 25


class BookImageInline(admin.TabularInline):
    """Inline admin for book images."""
    model = BookImage
    extra = 1
    fields = ['image', 'order', 'uploaded_at']
    readonly_fields = ['uploaded_at']
    ordering = ['order']


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):

    list_display = [
        'name',
        'author',
        'seller',
        'language',
        'topic',
        'price',
        'is_available',
        'created_at',
    ]

    list_filter = [
        'is_available',
        'condition',
        'language',
        'created_at',
    ]

    search_fields = [
        'name',
        'author',
        'topic',
        'seller__email',
        'seller__name',
    ]

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [BookImageInline]

    fieldsets = (
        (None, {
            'fields': ('seller', 'name', 'author', 'description')
        }),
        (_('Details'), {
            'fields': ('topic', 'language', 'category', 'condition', 'location')
        }),
        (_('Pricing & Availability'), {
            'fields': ('price', 'is_available')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):

    list_display = [
        'id',
        'book',
        'buyer',
        'seller',
        'status',
        'created_at',
        'resolved_at',
    ]

    list_filter = [
        'status',
        'created_at',
        'resolved_at',
    ]

    search_fields = [
        'buyer__email',
        'seller__email',
        'book__name',
    ]

    readonly_fields = ['status', 'created_at', 'updated_at', 'resolved_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('book', 'buyer', 'seller')
        }),
        (_('Status'), {
            'fields': ('status', 'resolved_at')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(HelpRequest)
class HelpRequestAdmin(admin.ModelAdmin):

    list_display = [
        'subject',
        'user',
        'issue_type',
        'status',
        'created_at',
    ]

    list_filter = [
        'status',
        'issue_type',
        'created_at',
    ]

    search_fields = [
        'subject',
        'description',
        'user__email',
    ]

    readonly_fields = ['user', 'user_agent', 'created_at']

    ordering = ['-created_at']

    list_per_page = 25


@admin.register(BookRequest)
class BookRequestAdmin(admin.ModelAdmin):

    list_display = [
        'requestor_name',
        'requestor_email',
        'book',
        'requested_on',
    ]

    list_filter = [
        'requested_on',
    ]

    search_fields = [
        'requestor_name',
        'requestor_email',
        'book__name',
    ]

    readonly_fields = ['requested_on']

    ordering = ['-requested_on']

    list_per_page = 25
