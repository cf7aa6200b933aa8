import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['category', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Supplier',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, unique=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'suppliers',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Variant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('sale_unit', models.CharField(choices=[('weight', 'Weight (kg)'), ('bunch', 'Bunch'), ('piece', 'Piece'), ('tray', 'Tray'), ('bag', 'Bag')], default='weight', max_length=20)),
                ('purchase_unit', models.CharField(blank=True, choices=[('weight', 'Weight (kg)'), ('bunch', 'Bunch'), ('piece', 'Piece'), ('tray', 'Tray'), ('bag', 'Bag'), ('box', 'Box'), ('bale', 'Bale')], default='', max_length=20)),
                ('conversion_factor', models.DecimalField(blank=True, decimal_places=4, max_digits=10, null=True, validators=[MinValueValidator(Decimal('0.0001'))])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='catalog.product')),
            ],
            options={
                'db_table': 'variants',
                'ordering': ['product__name', 'name'],
                'unique_together': {('product', 'name')},
                'constraints': [models.CheckConstraint(condition=models.Q(('conversion_factor__isnull', True), models.Q(('purchase_unit', ''), _negated=True), _connector='OR'), name='variant_conversion_requires_purchase_unit')],
            },
        ),
    ]
