import uuid
from django.db import models


class Place(models.Model):
    """
    A physical place moments can be tagged with.
    The category drives topical affinity in the recommendation engine.
    """
    
    class Category(models.TextChoices):
        """Enumeration for place categories"""
        RESTAURANT = 'RESTAURANT', 'Restaurant'
        CAFE = 'CAFE', 'Cafe'
        BAR = 'BAR', 'Bar'
        NIGHTCLUB = 'NIGHTCLUB', 'Nightclub'
        MUSEUM = 'MUSEUM', 'Museum'
        GALLERY = 'GALLERY', 'Gallery'
        MONUMENT = 'MONUMENT', 'Monument'
        LANDMARK = 'LANDMARK', 'Landmark'
        PARK = 'PARK', 'Park'
        BEACH = 'BEACH', 'Beach'
        VIEWPOINT = 'VIEWPOINT', 'Viewpoint'
        MARKET = 'MARKET', 'Market'
        SHOP = 'SHOP', 'Shop'
        HOTEL = 'HOTEL', 'Hotel'
        HOSTEL = 'HOSTEL', 'Hostel'
        TOUR = 'TOUR', 'Tour'
        ACTIVITY = 'ACTIVITY', 'Activity'
        HIDDEN_GEM = 'HIDDEN_GEM', 'Hidden Gem'
        OTHER = 'OTHER', 'Other'
    
    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    # Basic Information
    name = models.CharField(max_length=255, help_text="The official name of the place")
    address = models.CharField(max_length=512, blank=True, default="", help_text="Human readable physical address")
    city = models.CharField(max_length=128, blank=True, default="")
    country = models.CharField(max_length=128, blank=True, default="", db_index=True)
    
    # Coordinates
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    
    # Classification
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.OTHER,
        help_text="Classification: RESTAURANT, MUSEUM, PARK etc."
    )
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'locations_place'
        indexes = [
            models.Index(fields=['category'], name='locations_place_category_idx'),
        ]
    
    def __str__(self):
        return self.name
    
    def save(self, *args, **kwargs):
        """Overridden save method to ensure coordinates are valid."""
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            raise ValueError("Invalid coordinates: latitude must be -90 to 90")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            raise ValueError("Invalid coordinates: longitude must be -180 to 180")
        
        super().save(*args, **kwargs)
