"""
Authentication backend that logs users in by email address.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Look users up by email (case-insensitive) instead of username.

    Banned users still authenticate here; the login view turns them away
    with a 403 so they get a clear message instead of "invalid credentials".
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        """
        Args:
            request: HTTP request object
            username: Email address (named username for compatibility)
            password: User password
            **kwargs: May carry ``email`` instead of ``username``

        Returns:
            User object if authentication succeeded, None otherwise
        """
        email = kwargs.get('email', username)

        if email is None or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            # Run the default password hasher once to reduce the timing
            # difference between an existing and a nonexistent user
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None
