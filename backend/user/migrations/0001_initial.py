# Generated migration for user app

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('avatar_url', models.URLField(blank=True, max_length=500, null=True)),
                ('bio', models.TextField(blank=True, default='', max_length=200)),
                ('followers_count', models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('following_count', models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('is_verified', models.BooleanField(default=False)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='FollowRelation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('follower', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='following_relation', to='user.userprofile')),
                ('following', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='follower_relation', to='user.userprofile')),
            ],
            options={
                'unique_together': {('follower', 'following')},
            },
        ),
        migrations.AddField(
            model_name='userprofile',
            name='following',
            field=models.ManyToManyField(related_name='followers', through='user.FollowRelation', to='user.userprofile'),
        ),
        migrations.CreateModel(
            name='UserInterest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=[('FOOD_DRINK', 'Food & Drink'), ('ART_CULTURE', 'Art & Culture'), ('OUTDOORS_NATURE', 'Outdoors & Nature'), ('NIGHTLIFE', 'Nightlife'), ('SHOPPING', 'Shopping'), ('HISTORY', 'History'), ('ADVENTURE', 'Adventure'), ('RELAXATION', 'Relaxation'), ('PHOTOGRAPHY', 'Photography'), ('LOCAL_EXPERIENCES', 'Local Experiences'), ('ARCHITECTURE', 'Architecture'), ('MUSIC', 'Music'), ('SPORTS', 'Sports'), ('WELLNESS', 'Wellness')], max_length=32)),
                ('weight', models.PositiveSmallIntegerField(default=5, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interests', to='user.userprofile')),
            ],
            options={
                'ordering': ['-weight', 'category'],
                'unique_together': {('profile', 'category')},
            },
        ),
    ]
