import django.core.validators
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PricingRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rule_name', models.CharField(max_length=200)),
                ('category', models.CharField(choices=[('session_pricing', 'Session pricing'), ('bundle_discount', 'Bundle discount'), ('mentor_commission', 'Mentor commission'), ('platform_fee', 'Platform fee')], default='session_pricing', max_length=30)),
                ('base_price', models.PositiveIntegerField(help_text='Price of a 60-minute session')),
                ('mentor_share', models.DecimalField(decimal_places=2, max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('platform_fee', models.DecimalField(decimal_places=2, default=0, max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('discount_tiers', models.JSONField(blank=True, default=list)),
                ('special_rates', models.JSONField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('effective_date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['effective_date', 'id'],
                'indexes': [models.Index(fields=['is_active'], name='pricingrule_active_idx'), models.Index(fields=['category'], name='pricingrule_category_idx')],
            },
        ),
        migrations.CreateModel(
            name='DiscountRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('percentage', 'Percentage'), ('fixed_amount', 'Fixed amount')], max_length=20)),
                ('value', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ('min_sessions', models.PositiveIntegerField(default=0)),
                ('max_sessions', models.PositiveIntegerField(blank=True, null=True)),
                ('min_amount', models.PositiveIntegerField(blank=True, null=True)),
                ('max_discount', models.PositiveIntegerField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('valid_from', models.DateTimeField(blank=True, null=True)),
                ('valid_until', models.DateTimeField(blank=True, null=True)),
                ('applicable_roles', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['id'],
                'indexes': [models.Index(fields=['is_active'], name='discountrule_active_idx'), models.Index(fields=['type'], name='discountrule_type_idx')],
            },
        ),
    ]
