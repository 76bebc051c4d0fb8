from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('organizations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Votation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('votation_id', models.PositiveBigIntegerField(help_text='Sequential id within the organization, starting at 1')),
                ('proposer', models.CharField(max_length=128)),
                ('topic', models.TextField()),
                ('quorum', models.PositiveBigIntegerField(help_text='Minimum votes for + against needed to pass')),
                ('state', models.CharField(choices=[('proposed', 'Proposed'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('finalized', 'Finalized')], default='proposed', max_length=20)),
                ('start_time', models.DateTimeField(blank=True, null=True)),
                ('end_time', models.DateTimeField(blank=True, null=True)),
                ('votes_for', models.PositiveBigIntegerField(default=0, help_text='Weight cast on option 0')),
                ('votes_against', models.PositiveBigIntegerField(default=0, help_text='Weight cast on option 1')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='votations', to='organizations.organization')),
            ],
            options={
                'ordering': ['organization', 'votation_id'],
                'unique_together': {('organization', 'votation_id')},
                'indexes': [models.Index(fields=['state', 'end_time'], name='votation_state_end')],
            },
        ),
        migrations.CreateModel(
            name='VotationOption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('index', models.PositiveSmallIntegerField()),
                ('label', models.TextField()),
                ('votes', models.PositiveBigIntegerField(default=0)),
                ('votation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='option_tallies', to='votations.votation')),
            ],
            options={
                'ordering': ['votation', 'index'],
                'unique_together': {('votation', 'index')},
            },
        ),
        migrations.CreateModel(
            name='VoterSpend',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('voter', models.CharField(max_length=128)),
                ('amount', models.PositiveBigIntegerField(default=0)),
                ('votation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='voter_spends', to='votations.votation')),
            ],
            options={
                'unique_together': {('votation', 'voter')},
            },
        ),
        migrations.CreateModel(
            name='Ballot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('voter', models.CharField(max_length=128)),
                ('option_index', models.PositiveSmallIntegerField()),
                ('amount', models.PositiveBigIntegerField()),
                ('cast_at', models.DateTimeField()),
                ('votation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ballots', to='votations.votation')),
            ],
            options={
                'ordering': ['cast_at', 'id'],
                'indexes': [models.Index(fields=['votation', 'voter'], name='ballot_votation_voter')],
            },
        ),
    ]
