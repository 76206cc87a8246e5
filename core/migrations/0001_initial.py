import uuid

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import core.models
import core.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, default='', help_text='Display name shown on listings.', max_length=150, verbose_name='name')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('mobile', models.CharField(blank=True, default='', help_text='Contact number shown to buyers.', max_length=20, validators=[core.validators.validate_phone_number], verbose_name='mobile number')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='state')),
                ('district', models.CharField(blank=True, default='', max_length=100, verbose_name='district')),
                ('stars', models.PositiveIntegerField(default=0, help_text='Seller reputation. Never negative.', verbose_name='stars')),
                ('rejections', models.PositiveIntegerField(default=0, help_text='Number of rejected purchase requests as a seller.', verbose_name='rejections')),
                ('is_banned', models.BooleanField(default=False, help_text='Banned sellers cannot log in or create listings.', verbose_name='banned')),
                ('banned_at', models.DateTimeField(blank=True, null=True, verbose_name='banned at')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when the account was created.', verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['email'], name='user_email_idx'),
                    models.Index(fields=['is_banned'], name='user_is_banned_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('rejections__lt', 5), ('is_banned', True), _connector='OR'), name='user_banned_at_rejection_threshold'),
                ],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Book',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, verbose_name='title')),
                ('author', models.CharField(blank=True, default='', max_length=200, verbose_name='author')),
                ('topic', models.CharField(help_text='Topic or genre of the book', max_length=100, verbose_name='topic')),
                ('language', models.CharField(max_length=50, verbose_name='language')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='category')),
                ('condition', models.CharField(choices=[('new', 'New'), ('like_new', 'Like New'), ('good', 'Good'), ('fair', 'Fair'), ('poor', 'Poor')], default='good', max_length=20, verbose_name='condition')),
                ('description', models.TextField(blank=True, default='', verbose_name='description')),
                ('price', models.PositiveIntegerField(help_text='Price in whole currency units. 0 means a free donation.', verbose_name='price')),
                ('location', models.CharField(blank=True, default='', max_length=200, verbose_name='location')),
                ('is_available', models.BooleanField(default=True, help_text='Cleared when a purchase request for this book is completed', verbose_name='available')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('seller', models.ForeignKey(help_text='User offering this book', on_delete=django.db.models.deletion.CASCADE, related_name='books', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'book',
                'verbose_name_plural': 'books',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller'], name='book_seller_idx'),
                    models.Index(fields=['is_available'], name='book_is_available_idx'),
                    models.Index(fields=['language'], name='book_language_idx'),
                    models.Index(fields=['topic'], name='book_topic_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BookImage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image', models.ImageField(help_text='Image file (max 5MB, formats: jpg, png, webp)', upload_to=core.models.book_image_upload_path, validators=[core.validators.validate_book_image], verbose_name='image')),
                ('order', models.PositiveIntegerField(default=0, verbose_name='order')),
                ('uploaded_at', models.DateTimeField(auto_now_add=True, verbose_name='uploaded at')),
                ('book', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='images', to='core.book')),
            ],
            options={
                'verbose_name': 'book image',
                'verbose_name_plural': 'book images',
                'ordering': ['order', 'uploaded_at'],
            },
        ),
        migrations.CreateModel(
            name='BookRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('requestor_name', models.CharField(max_length=150, verbose_name='requestor name')),
                ('requestor_email', models.EmailField(max_length=254, verbose_name='requestor email')),
                ('requestor_phone', models.CharField(blank=True, default='', max_length=20, validators=[core.validators.validate_phone_number], verbose_name='requestor phone')),
                ('message', models.TextField(blank=True, default='', verbose_name='message')),
                ('requested_on', models.DateTimeField(auto_now_add=True, verbose_name='requested on')),
                ('book', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='requests', to='core.book')),
            ],
            options={
                'verbose_name': 'book request',
                'verbose_name_plural': 'book requests',
                'ordering': ['-requested_on'],
            },
        ),
        migrations.CreateModel(
            name='HelpRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('issue_type', models.CharField(choices=[('payment', 'Payment Issue'), ('account', 'Account Problem'), ('book', 'Book Related'), ('technical', 'Technical Issue'), ('other', 'Other')], max_length=20, verbose_name='issue type')),
                ('subject', models.CharField(max_length=200, verbose_name='subject')),
                ('description', models.TextField(verbose_name='description')),
                ('status', models.CharField(choices=[('open', 'Open'), ('in_progress', 'In Progress'), ('resolved', 'Resolved')], default='open', max_length=20, verbose_name='status')),
                ('user_agent', models.CharField(blank=True, default='', max_length=300, verbose_name='user agent')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='help_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'help request',
                'verbose_name_plural': 'help requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='helprequest_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('rejected', 'Rejected')], default='pending', max_length=20, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('resolved_at', models.DateTimeField(blank=True, help_text='When the transaction reached a terminal status', null=True, verbose_name='resolved at')),
                ('book', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='core.book')),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchases', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sales', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'transaction',
                'verbose_name_plural': 'transactions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['buyer'], name='transaction_buyer_idx'),
                    models.Index(fields=['seller'], name='transaction_seller_idx'),
                    models.Index(fields=['book'], name='transaction_book_idx'),
                    models.Index(fields=['status'], name='transaction_status_idx'),
                ],
            },
        ),
    ]
