from django.test import TestCase
from django.urls import reverse
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase
from .models import UserProfile, FollowRelation, UserInterest, InterestCategory

User = get_user_model()

class UserProfileTests(TestCase):
    def setUp(self):
        # Create two users for testing interactions
        self.user1 = User.objects.create_user(username='user1', password='password123')
        self.user2 = User.objects.create_user(username='user2', password='password123')
        
        self.profile1 = UserProfile.objects.create(user=self.user1)
        self.profile2 = UserProfile.objects.create(user=self.user2)

    def test_follow_success(self):
        """Test that one user can successfully follow another."""
        self.profile1.follow(self.profile2)
        
        # Refresh from DB to get updated F() expression values
        self.profile1.refresh_from_db()
        self.profile2.refresh_from_db()
        
        self.assertEqual(self.profile1.following_count, 1)
        self.assertEqual(self.profile2.followers_count, 1)
        
        self.assertTrue(self.profile1.is_following(self.profile2))
        self.assertTrue(FollowRelation.objects.filter(follower=self.profile1, following=self.profile2).exists())

    def test_unfollow_success(self):
        """Test that one user can successfully unfollow another."""
        self.profile1.follow(self.profile2)
        self.profile1.unfollow(self.profile2)
        
        self.profile1.refresh_from_db()
        self.profile2.refresh_from_db()
        
        self.assertEqual(self.profile1.following_count, 0)
        self.assertEqual(self.profile2.followers_count, 0)
        self.assertFalse(self.profile1.is_following(self.profile2))

    def test_cannot_follow_self(self):
        """Test that a user cannot follow themselves."""
        self.profile1.follow(self.profile1)
        
        self.profile1.refresh_from_db()
        self.assertEqual(self.profile1.following_count, 0)

    def test_following_ids(self):
        """Following set contains only the followees, not the followers."""
        self.assertEqual(self.profile1.following_ids(), set())

        self.profile1.follow(self.profile2)
        self.assertEqual(self.profile1.following_ids(), {self.profile2.id})
        self.assertEqual(self.profile2.following_ids(), set())

    def test_replace_interests(self):
        """Declared interests are swapped as a whole."""
        self.profile1.replace_interests([(InterestCategory.HISTORY, 10), (InterestCategory.MUSIC, 3)])
        self.assertEqual(
            self.profile1.declared_interests(),
            {InterestCategory.HISTORY: 10, InterestCategory.MUSIC: 3},
        )

        self.profile1.replace_interests([(InterestCategory.SPORTS, 7)])
        self.assertEqual(self.profile1.declared_interests(), {InterestCategory.SPORTS: 7})
        self.assertEqual(UserInterest.objects.filter(profile=self.profile1).count(), 1)

class UserAPITests(APITestCase):
    def setUp(self):
        self.user1 = User.objects.create_user(username='api_user1', password='password123')
        self.profile1 = UserProfile.objects.create(user=self.user1)
        
        self.user2 = User.objects.create_user(username='api_user2', password='password123')
        self.profile2 = UserProfile.objects.create(user=self.user2)
        
        self.client.force_authenticate(user=self.user1)

    def test_get_me(self):
        """Test retrieving the current user's profile via API."""
        url = reverse('me')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], self.user1.username)

    def test_follow_endpoint(self):
        """Test the follow API endpoint."""
        url = reverse('follow', args=[self.profile2.id])
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(self.profile1.is_following(self.profile2))

    def test_unfollow_endpoint(self):
        """Test the unfollow API endpoint."""
        self.profile1.follow(self.profile2)
        
        url = reverse('unfollow', args=[self.profile2.id])
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(self.profile1.is_following(self.profile2))

    def test_cannot_follow_already_followed(self):
        """Following the same user twice does not create duplicate relations."""
        self.profile1.follow(self.profile2)
        self.profile1.follow(self.profile2)
        
        self.profile1.refresh_from_db()
        self.profile2.refresh_from_db()
        
        self.assertEqual(self.profile1.following_count, 1)
        self.assertEqual(self.profile2.followers_count, 1)
        self.assertEqual(FollowRelation.objects.count(), 1)

    def test_update_interests(self):
        """PUT replaces the declared interests."""
        url = reverse('interests')
        response = self.client.put(url, {
            'interests': [
                {'category': 'HISTORY', 'weight': 10},
                {'category': 'FOOD_DRINK', 'weight': 4},
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['interests']), 2)
        self.assertEqual(self.profile1.declared_interests(), {'HISTORY': 10, 'FOOD_DRINK': 4})

        response = self.client.get(url)
        self.assertEqual(response.data['interests'][0]['category'], 'HISTORY')

    def test_update_interests_rejects_bad_weight(self):
        url = reverse('interests')
        response = self.client.put(url, {'interests': [{'category': 'HISTORY', 'weight': 11}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.profile1.declared_interests(), {})

    def test_update_interests_rejects_duplicates(self):
        url = reverse('interests')
        response = self.client.put(url, {
            'interests': [
                {'category': 'HISTORY', 'weight': 3},
                {'category': 'HISTORY', 'weight': 5},
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
