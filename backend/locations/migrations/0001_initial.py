# Generated migration for locations app

from django.db import migrations, models
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Place',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='The official name of the place', max_length=255)),
                ('address', models.CharField(blank=True, default='', help_text='Human readable physical address', max_length=512)),
                ('city', models.CharField(blank=True, default='', max_length=128)),
                ('country', models.CharField(blank=True, db_index=True, default='', max_length=128)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('category', models.CharField(choices=[('RESTAURANT', 'Restaurant'), ('CAFE', 'Cafe'), ('BAR', 'Bar'), ('NIGHTCLUB', 'Nightclub'), ('MUSEUM', 'Museum'), ('GALLERY', 'Gallery'), ('MONUMENT', 'Monument'), ('LANDMARK', 'Landmark'), ('PARK', 'Park'), ('BEACH', 'Beach'), ('VIEWPOINT', 'Viewpoint'), ('MARKET', 'Market'), ('SHOP', 'Shop'), ('HOTEL', 'Hotel'), ('HOSTEL', 'Hostel'), ('TOUR', 'Tour'), ('ACTIVITY', 'Activity'), ('HIDDEN_GEM', 'Hidden Gem'), ('OTHER', 'Other')], default='OTHER', help_text='Classification: RESTAURANT, MUSEUM, PARK etc.', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'locations_place',
                'indexes': [models.Index(fields=['category'], name='locations_place_category_idx')],
            },
        ),
    ]
