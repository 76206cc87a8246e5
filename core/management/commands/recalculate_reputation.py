# Recalculate Reputation Management Command
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from core import reputation
from core.models import Transaction, User

REPUTATION_FIELDS = ['stars', 'rejections', 'is_banned', 'banned_at']


class Command(BaseCommand):
    help = (
        'Recalculates seller stars and rejections from resolved transactions. '
        'Bans are applied where the history calls for one and are never lifted.'
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the command without saving changes to the database.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Batch size for bulk processing.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size <= 0:
            raise CommandError('Batch size must be a positive integer.')

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE: No changes will be saved.'))

        try:
            with transaction.atomic():
                changed = self.recalculate_users(dry_run, batch_size)
        except Exception as e:
            raise CommandError(f'Error during recalculation: {str(e)}')

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f'Dry run finished. {changed} user(s) would change.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Successfully recalculated reputation. {changed} user(s) updated.'))

    def recalculate_users(self, dry_run, batch_size):
        self.stdout.write('Recalculating seller reputation...')
        now = timezone.now()
        users = User.objects.order_by('pk').iterator(chunk_size=batch_size)
        updates = []
        count = 0
        changed = 0

        for user in users:
            before = {field: getattr(user, field) for field in REPUTATION_FIELDS}

            statuses = (
                Transaction.objects.resolved()
                .filter(seller_id=user.pk)
                .order_by('resolved_at', 'created_at')
                .values_list('status', flat=True)
            )
            reputation.replay(user, statuses, now=now)

            after = {field: getattr(user, field) for field in REPUTATION_FIELDS}
            if after != before:
                changed += 1
                updates.append(user)

                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] User {user.id} ({user.email}): '
                        f'Stars {before["stars"]} -> {after["stars"]}, '
                        f'Rejections {before["rejections"]} -> {after["rejections"]}, '
                        f'Banned {before["is_banned"]} -> {after["is_banned"]}'
                    )

            if len(updates) >= batch_size:
                if not dry_run:
                    User.objects.bulk_update(updates, REPUTATION_FIELDS)
                updates = []

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} users...')

        if updates and not dry_run:
            User.objects.bulk_update(updates, REPUTATION_FIELDS)

        self.stdout.write(f'Processed {count} users total.')
        return changed
