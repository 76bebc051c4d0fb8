from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('address', models.CharField(max_length=128, unique=True)),
                ('payout_address', models.CharField(help_text='Address receiving the proceeds of every token purchase', max_length=128)),
                ('token_id', models.PositiveBigIntegerField(unique=True)),
                ('sale_mode', models.CharField(choices=[('fixed_price', 'Fixed Price'), ('fixed_quantity', 'Fixed Quantity (bonding curve)')], editable=False, max_length=20)),
                ('price_per_token', models.PositiveBigIntegerField(default=0, help_text='Micro units per token, only used by fixed price sales')),
                ('tokens_available', models.PositiveBigIntegerField(default=0)),
                ('tokens_sold', models.PositiveBigIntegerField(default=0)),
                ('next_votation_id', models.PositiveBigIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['token_id'],
            },
        ),
        migrations.CreateModel(
            name='OrganizationAdmin',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('address', models.CharField(max_length=128)),
                ('granted_by', models.CharField(blank=True, max_length=128)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='admins', to='organizations.organization')),
            ],
            options={
                'unique_together': {('organization', 'address')},
            },
        ),
        migrations.CreateModel(
            name='TokenPurchase',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('buyer', models.CharField(max_length=128)),
                ('amount', models.PositiveBigIntegerField()),
                ('total_price', models.PositiveBigIntegerField(help_text='Micro units paid')),
                ('tokens_sold_before', models.PositiveBigIntegerField(help_text='Cumulative units sold when this purchase was priced')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to='organizations.organization')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['organization', 'buyer'], name='org_purchase_org_buyer')],
            },
        ),
    ]
