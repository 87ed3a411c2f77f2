# Generated migration for recommendations app

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('moments', '0001_initial'),
        ('user', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='UserEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('event_type', models.CharField(choices=[('VIEW', 'View'), ('SAVE', 'Save'), ('UNSAVE', 'Unsave'), ('LIKE', 'Like'), ('UNLIKE', 'Unlike'), ('CLICK', 'Click'), ('SEARCH', 'Search'), ('FILTER_CHANGE', 'Filter Change'), ('SHARE', 'Share')], help_text='Type of user event: VIEW, SAVE, LIKE, ...', max_length=20)),
                ('target_type', models.CharField(blank=True, choices=[('MOMENT', 'Moment'), ('PLACE', 'Place'), ('TRIP', 'Trip'), ('USER', 'User')], max_length=10, null=True)),
                ('target_id', models.CharField(blank=True, max_length=64, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='user.userprofile')),
            ],
            options={
                'db_table': 'recommendations_user_event',
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='rec_event_user_created_idx'),
                    models.Index(fields=['user', 'target_type', 'event_type'], name='rec_event_user_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RecommendationScore',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('score', models.FloatField()),
                ('rank', models.PositiveIntegerField(help_text='Position within the generation (0 = best)')),
                ('factors', models.JSONField(default=dict, help_text='Per-signal breakdown: interest, social, behavioral, quality, freshness, discovery')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('moment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recommendation_scores', to='moments.moment')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recommendation_scores', to='user.userprofile')),
            ],
            options={
                'db_table': 'recommendations_score',
                'unique_together': {('user', 'moment')},
                'indexes': [
                    models.Index(fields=['user', '-score', 'rank'], name='rec_score_user_rank_idx'),
                ],
            },
        ),
    ]
