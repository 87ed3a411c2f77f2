from rest_framework import status
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import UserProfile
from .serializers import UserProfileSerializer, UserInterestSerializer, UpdateInterestsSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self,request):
        profile = request.user.profile
        serializer = UserProfileSerializer(profile)
        return Response(serializer.data)

class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self,request,id):
        profile = get_object_or_404(UserProfile,id=id)
        serializer = UserProfileSerializer(profile)
        return Response(serializer.data)

class FollowView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self,request,id):
        follower = request.user.profile
        followed_profile = get_object_or_404(UserProfile,id=id)

        if follower == followed_profile:
            return Response(
                {"success":False,"message":"An account can not follow itself"},
                status =status.HTTP_400_BAD_REQUEST,

            )
        if follower.is_following(followed_profile):
            return Response(
                {"success":False,"message":"Followed account is already followed"},
                status = status.HTTP_400_BAD_REQUEST,
            )

        follower.follow(followed_profile)
        return Response(
            {"success":True,"message":"Successfully followed"},
            status = status.HTTP_200_OK

        )

class UnfollowView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self,request,id):
        follower = request.user.profile
        followed = get_object_or_404(UserProfile,id=id)

        if follower == followed:
            return Response(
                {"success": False, "message": "An account can not unfollow itself"},
                status=status.HTTP_400_BAD_REQUEST,

            )
        if not follower.is_following(followed):
            return Response(
                {"success": False, "message": "Account is not followed"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        follower.unfollow(followed)
        return Response(
            {"success": True, "message": "Successfully unfollowed"},
            status=status.HTTP_200_OK

        )


class InterestsView(APIView):
    """
    GET /api/user/me/interests/ - declared onboarding interests
    PUT /api/user/me/interests/ - replace them
    Body: {"interests": [{"category": "HISTORY", "weight": 8}, ...]}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = request.user.profile
        serializer = UserInterestSerializer(profile.interests.all(), many=True)
        return Response({"interests": serializer.data})

    def put(self, request):
        profile = request.user.profile
        serializer = UpdateInterestsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        profile.replace_interests(
            (item["category"], item["weight"])
            for item in serializer.validated_data["interests"]
        )
        result = UserInterestSerializer(profile.interests.all(), many=True)
        return Response({"interests": result.data}, status=status.HTTP_200_OK)
