from django.test import TestCase
from .models import Place


class PlaceModelTests(TestCase):
    def setUp(self):
        self.place = Place.objects.create(
            name="Louvre",
            address="Rue de Rivoli",
            city="Paris",
            country="France",
            latitude=48.8606,
            longitude=2.3376,
            category=Place.Category.MUSEUM,
        )

    def test_create_place(self):
        """Test that a Place can be created successfully."""
        self.assertEqual(Place.objects.count(), 1)
        self.assertEqual((self.place.latitude, self.place.longitude), (48.8606, 2.3376))
        self.assertEqual(str(self.place), "Louvre")

    def test_invalid_coordinates(self):
        """Test that invalid coordinates raise a ValueError during save."""
        place = Place(name="Bad Location", latitude=100.0, longitude=200.0)
        with self.assertRaises(ValueError):
            place.save()

    def test_place_without_coordinates(self):
        place = Place.objects.create(name="Somewhere", category=Place.Category.HIDDEN_GEM)
        self.assertIsNone(place.latitude)
        self.assertEqual(place.category, Place.Category.HIDDEN_GEM)
