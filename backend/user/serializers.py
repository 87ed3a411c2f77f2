from rest_framework import serializers
from .models import UserProfile, UserInterest, InterestCategory
class UserProfileSerializer(serializers.ModelSerializer):
    username= serializers.CharField(source="user.username",read_only=True)
    email = serializers.CharField(source="user.email",read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            "id",
            "username",
            "email",
            "avatar_url",
            "bio",
            "followers_count",
            "following_count",
            "is_verified",
        ]


class UserInterestSerializer(serializers.ModelSerializer):
    category = serializers.ChoiceField(choices=InterestCategory.choices)
    weight = serializers.IntegerField(min_value=1, max_value=10)

    class Meta:
        model = UserInterest
        fields = ["category", "weight", "created_at"]
        read_only_fields = ["created_at"]


class UpdateInterestsSerializer(serializers.Serializer):
    interests = UserInterestSerializer(many=True)

    def validate_interests(self, value):
        categories = [item["category"] for item in value]
        if len(categories) != len(set(categories)):
            raise serializers.ValidationError("Each interest category may only appear once")
        return value
