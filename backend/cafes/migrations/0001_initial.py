import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Cafe',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Display name for the café (e.g., Corner Coffee)', max_length=255)),
                ('slug', models.SlugField(help_text='URL-safe identifier used in public menu links', unique=True)),
                ('owner_id', models.CharField(db_index=True, help_text='Subscriber id of the café owner, as issued by the identity provider', max_length=255)),
                ('is_active', models.BooleanField(default=True, help_text='Inactive cafés do not accept new orders')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'cafes',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active'], name='cafe_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Name of the menu item.', max_length=200)),
                ('price', models.DecimalField(decimal_places=2, help_text='Current selling price. Orders snapshot this at order time.', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('preparation_time', models.PositiveIntegerField(blank=True, help_text='Minutes to prepare one unit. Used for queue wait estimates.', null=True)),
                ('is_available', models.BooleanField(default=True, help_text='Unavailable items cannot be ordered.')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cafe', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_items', to='cafes.cafe')),
            ],
            options={
                'db_table': 'menu_items',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['cafe', 'is_available'], name='menu_item_cafe_avail_idx')],
            },
        ),
    ]
