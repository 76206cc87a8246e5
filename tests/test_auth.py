"""
Authentication tests: registration, login, token refresh and logout.

Covers:
- Registration returns the profile and a JWT pair, never the password
- Duplicate and malformed registrations are rejected
- Login by email with a generic message for bad credentials (401)
- Banned accounts are refused at login (403)
- Refresh tokens rotate and can be blacklisted
"""

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from core.models import BAN_THRESHOLD

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def member(db):
    """Create a regular marketplace user."""
    return User.objects.create_user(
        username='member@example.com',
        email='member@example.com',
        password='SecurePass123!',
        name='Member',
    )


@pytest.fixture
def banned_member(db):
    """Create a user banned for rejections."""
    return User.objects.create_user(
        username='banned@example.com',
        email='banned@example.com',
        password='SecurePass123!',
        name='Banned',
        rejections=BAN_THRESHOLD,
        is_banned=True,
    )


@pytest.fixture
def registration_data():
    return {
        'name': 'Asha Menon',
        'email': 'Asha@Example.com',
        'password': 'Kochi#Books2024',
        'confirm_password': 'Kochi#Books2024',
        'mobile': '+91 98765 43210',
        'state': 'Kerala',
        'district': 'Ernakulam',
    }


# ============================================================================
# Registration
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    url = '/api/auth/register/'

    def test_register_returns_user_and_tokens(self, api_client, registration_data):
        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert response.data['user']['email'] == 'asha@example.com'
        assert response.data['user']['stars'] == 0
        assert response.data['user']['rejections'] == 0
        assert response.data['user']['is_banned'] is False
        assert 'password' not in response.data['user']
        assert 'access' in response.data
        assert 'refresh' in response.data

        access = AccessToken(response.data['access'])
        assert access['user_id'] == response.data['user']['id']

    def test_password_is_hashed(self, api_client, registration_data):
        api_client.post(self.url, registration_data, format='json')

        user = User.objects.get(email='asha@example.com')
        assert user.password != registration_data['password']
        assert user.check_password(registration_data['password'])

    def test_duplicate_email_is_case_insensitive(self, api_client, registration_data, member):
        registration_data['email'] = 'MEMBER@example.com'

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['errors']

    def test_reputation_fields_cannot_be_set(self, api_client, registration_data):
        registration_data.update({'stars': 50, 'is_banned': True, 'rejections': 9})

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(email='asha@example.com')
        assert user.stars == 0
        assert user.rejections == 0
        assert user.is_banned is False

    def test_password_mismatch(self, api_client, registration_data):
        registration_data['confirm_password'] = 'Something#Else99'

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'confirm_password' in response.data['errors']

    def test_weak_password(self, api_client, registration_data):
        registration_data['password'] = registration_data['confirm_password'] = '12345'

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['errors']

    def test_name_required(self, api_client, registration_data):
        registration_data['name'] = '  '

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'name' in response.data['errors']

    def test_invalid_mobile(self, api_client, registration_data):
        registration_data['mobile'] = 'call me'

        response = api_client.post(self.url, registration_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'mobile' in response.data['errors']


# ============================================================================
# Login
# ============================================================================

@pytest.mark.django_db
class TestLogin:

    url = '/api/auth/login/'

    def test_login_with_valid_credentials(self, api_client, member):
        response = api_client.post(
            self.url, {'email': 'member@example.com', 'password': 'SecurePass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['user']['id'] == str(member.pk)
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_login_email_is_case_insensitive(self, api_client, member):
        response = api_client.post(
            self.url, {'email': 'MEMBER@Example.com', 'password': 'SecurePass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK

    def test_wrong_password_returns_401(self, api_client, member):
        response = api_client.post(
            self.url, {'email': 'member@example.com', 'password': 'wrong'}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data == {'success': False, 'message': 'Invalid credentials'}

    def test_unknown_email_gets_same_message(self, api_client, member):
        """No user enumeration: unknown emails look like wrong passwords."""
        response = api_client.post(
            self.url, {'email': 'ghost@example.com', 'password': 'SecurePass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['message'] == 'Invalid credentials'

    def test_banned_user_gets_403(self, api_client, banned_member):
        response = api_client.post(
            self.url, {'email': 'banned@example.com', 'password': 'SecurePass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['message'] == 'Account temporarily banned due to multiple rejections.'
        assert 'access' not in response.data

    def test_banned_user_with_wrong_password_gets_401(self, api_client, banned_member):
        response = api_client.post(
            self.url, {'email': 'banned@example.com', 'password': 'wrong'}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_inactive_user_cannot_login(self, api_client, member):
        member.is_active = False
        member.save(update_fields=['is_active'])

        response = api_client.post(
            self.url, {'email': 'member@example.com', 'password': 'SecurePass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_fields_returns_400(self, api_client):
        response = api_client.post(self.url, {'email': 'member@example.com'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['errors']


# ============================================================================
# Tokens
# ============================================================================

@pytest.mark.django_db
class TestTokens:

    def _login(self, api_client):
        response = api_client.post(
            reverse('user_login'),
            {'email': 'member@example.com', 'password': 'SecurePass123!'},
            format='json'
        )
        return response.data['refresh']

    def test_refresh_returns_new_pair(self, api_client, member):
        refresh = self._login(api_client)

        response = api_client.post(reverse('token_refresh'), {'refresh': refresh}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert response.data['refresh'] != refresh

    def test_rotated_refresh_token_is_blacklisted(self, api_client, member):
        refresh = self._login(api_client)
        api_client.post(reverse('token_refresh'), {'refresh': refresh}, format='json')

        response = api_client.post(reverse('token_refresh'), {'refresh': refresh}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_blacklists_refresh_token(self, api_client, member):
        refresh = self._login(api_client)

        response = api_client.post(reverse('user_logout'), {'refresh': refresh}, format='json')
        assert response.status_code == status.HTTP_200_OK

        response = api_client.post(reverse('token_refresh'), {'refresh': refresh}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_health_check(self, api_client):
        response = api_client.get(reverse('health'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
