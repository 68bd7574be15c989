import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cafes', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('customer_id', models.CharField(db_index=True, help_text='Subscriber id of the customer who placed the order', max_length=255)),
                ('customer_name', models.CharField(blank=True, default='', max_length=255)),
                ('customer_phone', models.CharField(blank=True, default='', max_length=30)),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254)),
                ('order_type', models.CharField(choices=[('PICKUP', 'Pickup'), ('DINE_IN', 'Dine In'), ('DELIVERY', 'Delivery')], default='PICKUP', max_length=20)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('ACCEPTED', 'Accepted'), ('IN_PROGRESS', 'In Progress'), ('READY', 'Ready'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='PENDING', max_length=20)),
                ('total_amount', models.DecimalField(decimal_places=2, default=0, help_text='Sum of unit_price x quantity over all items, fixed at creation', max_digits=10)),
                ('estimated_ready_time', models.DateTimeField(blank=True, null=True)),
                ('queue_position', models.PositiveIntegerField(blank=True, help_text='1-based rank in the café queue while ACCEPTED or IN_PROGRESS', null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('ready_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cafe', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='cafes.cafe')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['cafe', 'status', 'queue_position'], name='order_cafe_queue_idx'),
                    models.Index(fields=['cafe', 'created_at'], name='order_cafe_created_idx'),
                    models.Index(fields=['customer_id', 'created_at'], name='order_customer_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('total_amount__gte', 0)), name='order_total_amount_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('customizations', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('menu_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='cafes.menuitem')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.order')),
            ],
            options={
                'db_table': 'order_items',
                'ordering': ['created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='order_item_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(('unit_price__gt', 0)), name='order_item_unit_price_positive'),
                ],
            },
        ),
    ]
