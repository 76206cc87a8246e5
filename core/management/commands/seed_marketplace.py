# Seed Marketplace Management Command
import random

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from faker import Faker

from core import services
from core.models import Book, Transaction, User

TOPICS = [
    'Mathematics', 'Physics', 'Chemistry', 'Biology', 'History',
    'Economics', 'Computer Science', 'Literature', 'Philosophy', 'Geography',
]
LANGUAGES = ['English', 'Hindi', 'Malayalam', 'Tamil', 'Bengali', 'Marathi']
CATEGORIES = ['Textbook', 'Novel', 'Reference', 'Exam Prep', 'Comics']
STATES = {
    'Kerala': ['Ernakulam', 'Thrissur', 'Kozhikode'],
    'Karnataka': ['Bengaluru Urban', 'Mysuru', 'Udupi'],
    'Maharashtra': ['Pune', 'Mumbai Suburban', 'Nagpur'],
    'West Bengal': ['Kolkata', 'Howrah', 'Darjeeling'],
}


class Command(BaseCommand):
    help = 'Populates the database with demo users, books and transactions.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=20,
            help='Number of users to create.',
        )
        parser.add_argument(
            '--books',
            type=int,
            default=60,
            help='Number of books to list.',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible data.',
        )
        parser.add_argument(
            '--password',
            default='password123',
            help='Password given to every generated user.',
        )

    def handle(self, *args, **options):
        num_users = options['users']
        num_books = options['books']

        if num_users < 2:
            raise CommandError('At least 2 users are needed to create transactions.')
        if num_books < 0:
            raise CommandError('Number of books cannot be negative.')

        self.rng = random.Random(options['seed'])
        self.fake = Faker('en_IN')
        if options['seed'] is not None:
            self.fake.seed_instance(options['seed'])

        self.stdout.write('Starting database population...')

        with transaction.atomic():
            users = self.create_users(num_users, options['password'])
            books = self.create_books(users, num_books)
            self.create_transactions(users, books)

        self.stdout.write(self.style.SUCCESS('Database population completed successfully!'))

    def create_users(self, count, password):
        self.stdout.write(f'Creating {count} users...')
        users = []

        for _ in range(count):
            email = self.fake.unique.email().lower()
            state = self.rng.choice(list(STATES))
            user = User.objects.create_user(
                username=email[:150],
                email=email,
                password=password,
                name=self.fake.name(),
                mobile=f'+91 {self.rng.randint(6000000000, 9999999999)}',
                state=state,
                district=self.rng.choice(STATES[state]),
            )
            users.append(user)

        self.stdout.write(f'Created {len(users)} users.')
        return users

    def create_books(self, users, count):
        self.stdout.write(f'Creating {count} books...')
        books = []

        for _ in range(count):
            seller = self.rng.choice(users)
            topic = self.rng.choice(TOPICS)
            book = services.create_book(
                seller,
                name=f'{topic}: {self.fake.catch_phrase()}'[:200],
                author=self.fake.name(),
                topic=topic,
                language=self.rng.choice(LANGUAGES),
                category=self.rng.choice(CATEGORIES),
                condition=self.rng.choice([choice for choice, _ in Book.CONDITION_CHOICES]),
                description=self.fake.paragraph(),
                # Roughly a third of the books are free donations
                price=0 if self.rng.random() < 0.3 else self.rng.randint(20, 399),
                location=f'{seller.district}, {seller.state}',
            )
            books.append(book)

        self.stdout.write(f'Created {len(books)} books.')
        return books

    def create_transactions(self, users, books):
        self.stdout.write('Creating transactions...')
        created = 0

        for book in books[: len(books) // 2]:
            # Earlier rejections may have banned a seller or a buyer
            if User.objects.filter(pk=book.seller_id, is_banned=True).exists():
                continue
            buyers = list(
                User.objects.filter(pk__in=[user.pk for user in users], is_banned=False)
                .exclude(pk=book.seller_id)
            )
            if not buyers:
                continue
            buyer = self.rng.choice(sorted(buyers, key=lambda user: user.email))
            purchase = services.create_transaction(book.pk, buyer.pk, book.seller_id)
            created += 1

            outcome = self.rng.choices(
                [None, Transaction.STATUS_COMPLETED, Transaction.STATUS_REJECTED],
                weights=[3, 5, 2],
            )[0]
            if outcome is not None:
                services.transition_transaction(purchase.pk, outcome)

        self.stdout.write(f'Created {created} transactions.')
