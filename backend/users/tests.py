from django.contrib.auth import get_user_model
from django.test import override_settings
from rest_framework.test import APITestCase

from core.testing import make_user, authenticate


class TokenLoginTests(APITestCase):
    url = '/api/auth/token/'

    def test_admin_gets_tokens_and_profile(self):
        make_user('owner', role='ADMIN')
        response = self.client.post(self.url, {'username': 'owner', 'password': 'pass1234'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['role'], 'ADMIN')

    def test_staff_denied_by_default(self):
        make_user('counter', role='STAFF')
        response = self.client.post(self.url, {'username': 'counter', 'password': 'pass1234'}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(str(response.data['detail']), 'Access denied. Admin privileges required.')

    @override_settings(ERP_LOGIN_ROLES=['ADMIN', 'STAFF'])
    def test_staff_allowed_when_configured(self):
        make_user('counter', role='STAFF')
        response = self.client.post(self.url, {'username': 'counter', 'password': 'pass1234'}, format='json')
        self.assertEqual(response.status_code, 200)

    def test_inactive_account(self):
        make_user('former', role='ADMIN', is_active=False)
        response = self.client.post(self.url, {'username': 'former', 'password': 'pass1234'}, format='json')
        self.assertEqual(response.status_code, 401)
        self.assertIn('inactive', str(response.data['detail']))

    def test_wrong_password(self):
        make_user('owner', role='ADMIN')
        response = self.client.post(self.url, {'username': 'owner', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, 401)


class UserManagementTests(APITestCase):
    def test_admin_creates_staff_with_password(self):
        authenticate(self.client, make_user(role='ADMIN'))
        response = self.client.post('/api/users/management/', {
            'username': 'newstaff', 'password': 'Str0ngPass!', 'role': 'STAFF',
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)

        self.assertTrue(get_user_model().objects.get(username='newstaff').check_password('Str0ngPass!'))

    def test_staff_cannot_manage_users(self):
        authenticate(self.client, make_user(role='STAFF'))
        response = self.client.get('/api/users/management/')
        self.assertEqual(response.status_code, 403)

    def test_profile_cannot_change_role(self):
        user = make_user(role='STAFF')
        authenticate(self.client, user)
        response = self.client.patch('/api/users/me/', {'role': 'ADMIN', 'display_name': 'Till 1'}, format='json')
        self.assertEqual(response.status_code, 200)
        user.refresh_from_db()
        self.assertEqual(user.role, 'STAFF')
        self.assertEqual(user.display_name, 'Till 1')
