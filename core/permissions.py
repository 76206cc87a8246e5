"""
Custom permission classes for the BooksForAll marketplace.
"""

from rest_framework import permissions


class IsSelfOrStaff(permissions.BasePermission):
    """
    Object-level permission: the object is the requesting user, or the
    requesting user is staff.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsSelfOrStaff]
    """

    message = 'You can only access your own account.'

    def has_object_permission(self, request, view, obj):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_staff or obj.pk == request.user.pk


class CanResolveTransaction(permissions.BasePermission):
    """
    Permission class for resolving a purchase request.

    Authorization rules:
    - The buyer can mark the request completed or rejected
    - The seller can only reject (decline) it; a seller cannot award
      themselves a star
    - Staff can do either
    - Nobody else can touch the transaction
    """

    message = 'You do not have permission to update this transaction.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.user.is_staff:
            return True

        is_buyer = obj.buyer_id == request.user.pk
        is_seller = obj.seller_id == request.user.pk

        if not is_buyer and not is_seller:
            self.message = 'You do not have permission to modify this transaction.'
            return False

        # Non-object bodies are rejected by TransactionStatusSerializer with 400
        new_status = request.data.get('status') if isinstance(request.data, dict) else None

        if new_status == 'completed' and not is_buyer:
            self.message = 'Only the buyer can mark a transaction as completed.'
            return False

        return True
