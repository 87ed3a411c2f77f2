"""
DRF Serializers for Place data embedded in moment responses.
"""
from rest_framework import serializers
from .models import Place


class PlaceSummarySerializer(serializers.ModelSerializer):
    """Compact place representation used inside moment payloads"""

    class Meta:
        model = Place
        fields = [
            'id',
            'name',
            'category',
            'city',
            'country',
            'latitude',
            'longitude',
        ]
        read_only_fields = fields
