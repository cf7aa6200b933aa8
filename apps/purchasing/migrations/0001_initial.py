import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


PURCHASE_UNIT_CHOICES = [
    ('weight', 'Weight (kg)'),
    ('bunch', 'Bunch'),
    ('piece', 'Piece'),
    ('tray', 'Tray'),
    ('bag', 'Bag'),
    ('box', 'Box'),
    ('bale', 'Bale'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PurchaseSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date_key', models.DateField(unique=True)),
                ('status', models.CharField(choices=[('planning', 'Planning'), ('open', 'Open'), ('closed', 'Closed')], default='planning', max_length=20)),
                ('opened_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchase_sessions_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'purchase_sessions',
                'ordering': ['-date_key'],
                'indexes': [models.Index(fields=['status'], name='purchase_session_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='SessionItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('origin', models.CharField(choices=[('planned', 'Planned'), ('unplanned', 'Unplanned')], default='planned', max_length=20)),
                ('planned_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, validators=[MinValueValidator(Decimal('0.001'))])),
                ('reference_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('reference_purchase_unit', models.CharField(blank=True, choices=PURCHASE_UNIT_CHOICES, default='', max_length=20)),
                ('state', models.CharField(choices=[('pending', 'Pending'), ('reserved', 'Reserved'), ('purchased', 'Purchased'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('reservation_expires_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('reserved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reserved_items', to=settings.AUTH_USER_MODEL)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='purchasing.purchasesession')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='session_items', to='catalog.variant')),
            ],
            options={
                'db_table': 'purchase_session_items',
                'ordering': ['created_at'],
                'unique_together': {('session', 'variant')},
                'indexes': [models.Index(fields=['session', 'state'], name='session_item_state_idx')],
            },
        ),
        migrations.CreateModel(
            name='PurchaseLot',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=10, validators=[MinValueValidator(Decimal('0.001'))])),
                ('unit_cost', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('purchase_unit', models.CharField(choices=PURCHASE_UNIT_CHOICES, max_length=20)),
                ('measured_weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, validators=[MinValueValidator(Decimal('0.001'))])),
                ('weighed_at', models.DateTimeField(blank=True, null=True)),
                ('purchased_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('purchased_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchase_lots', to=settings.AUTH_USER_MODEL)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='purchasing.purchasesession')),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='catalog.supplier')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='catalog.variant')),
            ],
            options={
                'db_table': 'purchase_lots',
                'ordering': ['purchased_at', 'created_at'],
                'indexes': [models.Index(fields=['session', 'variant'], name='purchase_lot_pair_idx'), models.Index(fields=['variant', 'purchased_at'], name='purchase_lot_history_idx')],
            },
        ),
    ]
