# Generated migration for moments app

import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
        ('user', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Moment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('content', models.TextField(blank=True, default='', max_length=5000)),
                ('image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('composite_score', models.FloatField(blank=True, help_text='Precomputed quality score from 0.0 to 10.0', null=True, validators=[django.core.validators.MinValueValidator(0.0), django.core.validators.MaxValueValidator(10.0)])),
                ('like_count', models.PositiveIntegerField(default=0)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='moments', to='user.userprofile')),
                ('place', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moments', to='locations.place')),
            ],
            options={
                'db_table': 'moments_moment',
                'indexes': [
                    models.Index(fields=['author', '-created_at'], name='moments_author_created_idx'),
                    models.Index(fields=['-composite_score'], name='moments_composite_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MomentSave',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('saved_at', models.DateTimeField(auto_now_add=True)),
                ('moment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saves', to='moments.moment')),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_moments', to='user.userprofile')),
            ],
            options={
                'db_table': 'moments_moment_save',
                'unique_together': {('profile', 'moment')},
            },
        ),
    ]
