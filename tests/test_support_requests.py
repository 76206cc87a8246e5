"""
Tests for help requests, book contact requests and their email notifications.

POST /api/help/
POST /api/requests/
"""

import uuid

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core import services
from core.models import Book, BookRequest, HelpRequest

User = get_user_model()


@override_settings(
    EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend',
    SUPPORT_EMAIL='support@test.local',
)
class HelpRequestTestCase(TestCase):
    """Test suite for POST /api/help/."""

    url = '/api/help/'

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='reader@example.com',
            email='reader@example.com',
            password='testpass123',
            name='Reader',
        )
        token = str(RefreshToken.for_user(self.user).access_token)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        self.valid_data = {
            'issue_type': 'account',
            'subject': 'Cannot change my district',
            'description': 'The district field keeps resetting.',
        }

    def test_create_help_request(self):
        """The request is tied to the user and created open."""
        response = self.client.post(
            self.url, self.valid_data, format='json', HTTP_USER_AGENT='TestBrowser/1.0'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['help_request']['status'], 'open')
        self.assertEqual(response.data['help_request']['user_id'], str(self.user.pk))

        help_request = HelpRequest.objects.get()
        self.assertEqual(help_request.user, self.user)
        self.assertEqual(help_request.user_agent, 'TestBrowser/1.0')

    def test_status_cannot_be_set_by_user(self):
        self.valid_data['status'] = 'resolved'

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(HelpRequest.objects.get().status, 'open')

    def test_requires_authentication(self):
        self.client.credentials()

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_issue_type(self):
        self.valid_data['issue_type'] = 'complaint'

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('issue_type', response.data['errors'])

    def test_blank_description(self):
        self.valid_data['description'] = '   '

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('description', response.data['errors'])

    def test_support_is_emailed(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['support@test.local'])
        self.assertIn('Cannot change my district', mail.outbox[0].subject)
        self.assertIn('reader@example.com', mail.outbox[0].body)


class BookRequestTestCase(TestCase):
    """Test suite for POST /api/requests/."""

    url = '/api/requests/'

    def setUp(self):
        self.client = APIClient()
        self.donor = User.objects.create_user(
            username='donor@example.com',
            email='donor@example.com',
            password='testpass123',
            name='Donor',
        )
        self.book = Book.objects.create(
            seller=self.donor, name='Malgudi Days', topic='Fiction', language='English', price=0
        )
        self.valid_data = {
            'book': str(self.book.pk),
            'requestor_name': 'Ravi',
            'requestor_email': 'Ravi@Example.com',
            'requestor_phone': '9123456780',
            'message': 'Can I pick it up on Sunday?',
        }

    def test_create_book_request_without_account(self):
        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])

        book_request = BookRequest.objects.get()
        self.assertEqual(book_request.book, self.book)
        self.assertEqual(book_request.requestor_email, 'ravi@example.com')

    def test_request_does_not_change_availability(self):
        self.client.post(self.url, self.valid_data, format='json')

        self.book.refresh_from_db()
        self.assertTrue(self.book.is_available)

    def test_unavailable_book(self):
        Book.objects.filter(pk=self.book.pk).update(is_available=False)

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('book', response.data['errors'])

    def test_unknown_book(self):
        self.valid_data['book'] = str(uuid.uuid4())

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_email(self):
        self.valid_data['requestor_email'] = 'not-an-email'

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('requestor_email', response.data['errors'])

    def test_phone_is_optional(self):
        del self.valid_data['requestor_phone']

        response = self.client.post(self.url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class PurchaseNotificationTestCase(TestCase):
    """The seller is emailed when a purchase request is opened."""

    def setUp(self):
        self.seller = User.objects.create_user(
            username='seller@example.com',
            email='seller@example.com',
            password='testpass123',
            name='Seller',
        )
        self.buyer = User.objects.create_user(
            username='buyer@example.com',
            email='buyer@example.com',
            password='testpass123',
            name='Buyer',
            mobile='9988776655',
        )
        self.book = Book.objects.create(
            seller=self.seller, name='The Guide', topic='Fiction', language='English', price=120
        )

    def test_seller_is_notified_of_new_request(self):
        with self.captureOnCommitCallbacks(execute=True):
            services.create_transaction(self.book.pk, self.buyer.pk, self.seller.pk)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['seller@example.com'])
        self.assertIn('The Guide', message.subject)
        self.assertIn('buyer@example.com', message.body)
        self.assertIn('9988776655', message.body)

    def test_status_change_sends_no_email(self):
        purchase = services.create_transaction(self.book.pk, self.buyer.pk, self.seller.pk)

        with self.captureOnCommitCallbacks(execute=True):
            services.transition_transaction(purchase.pk, 'completed')

        self.assertEqual(len(mail.outbox), 0)

    def test_no_email_when_request_fails(self):
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(ValidationError):
                services.create_transaction(self.book.pk, self.seller.pk, self.seller.pk)

        self.assertEqual(len(mail.outbox), 0)
