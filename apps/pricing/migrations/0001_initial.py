import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('purchasing', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PricingSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(choices=[('margin_pct', 'Margin (fraction of cost)'), ('round_step', 'Rounding step')], max_length=50, unique=True)),
                ('value', models.DecimalField(decimal_places=4, max_digits=12)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'pricing_settings',
                'ordering': ['key'],
            },
        ),
        migrations.CreateModel(
            name='DailyPrice',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('sale_unit', models.CharField(choices=[('weight', 'Weight (kg)'), ('bunch', 'Bunch'), ('piece', 'Piece'), ('tray', 'Tray'), ('bag', 'Bag')], default='weight', max_length=20)),
                ('normalized_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('margin_pct', models.DecimalField(decimal_places=4, max_digits=6)),
                ('sale_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('pricing_mode', models.CharField(choices=[('auto', 'Automatic'), ('manual', 'Manual')], default='auto', max_length=20)),
                ('manual_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('manual_set_at', models.DateTimeField(blank=True, null=True)),
                ('manual_note', models.CharField(blank=True, max_length=300)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partial', 'Partial'), ('ready', 'Ready')], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('anchor_lot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='anchored_prices', to='purchasing.purchaselot')),
                ('manual_set_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='manual_prices', to=settings.AUTH_USER_MODEL)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='daily_prices', to='purchasing.purchasesession')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='daily_prices', to='catalog.variant')),
            ],
            options={
                'db_table': 'daily_prices',
                'ordering': ['-updated_at'],
                'unique_together': {('session', 'variant')},
                'indexes': [models.Index(fields=['variant', 'status'], name='daily_price_history_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(models.Q(('sale_price__isnull', False), ('status', 'ready')), models.Q(models.Q(('status', 'ready'), _negated=True), ('sale_price__isnull', True)), _connector='OR'), name='daily_price_ready_iff_priced')],
            },
        ),
    ]
