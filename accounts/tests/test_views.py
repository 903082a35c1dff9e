from django.test import Client, TestCase, override_settings
from django.urls import reverse

from accounts.models import CustomUser


class PageViewTests(TestCase):

    def setUp(self):
        self.client = Client()

    def test_login_page(self):
        response = self.client.get(reverse('accounts:login'))
        self.assertEqual(response.status_code, 200)

    def test_login_redirects_to_calculator(self):
        CustomUser.objects.create_user(
            username='staff', email='staff@fenntechltd.com', password='testpass123'
        )
        response = self.client.post(
            reverse('accounts:login'), {'username': 'staff', 'password': 'testpass123'}
        )
        self.assertRedirects(response, reverse('pricing:index'))

    def test_inactive_user_cannot_log_in(self):
        CustomUser.objects.create_user(
            username='gone', email='gone@fenntechltd.com', password='testpass123', is_active=False
        )
        self.assertFalse(self.client.login(username='gone', password='testpass123'))

    @override_settings(ALLOWED_REGISTRATION_DOMAINS=['@fenntechltd.com'])
    def test_register_logs_in(self):
        response = self.client.post(reverse('accounts:register'), {
            'username': 'newhire',
            'email': 'newhire@fenntechltd.com',
            'password1': 'S3cure-pass!',
            'password2': 'S3cure-pass!',
        })
        self.assertRedirects(response, reverse('pricing:index'))
        user = CustomUser.objects.get(username='newhire')
        self.assertEqual(user.role, CustomUser.USER)

    @override_settings(ALLOWED_REGISTRATION_DOMAINS=['@fenntechltd.com'])
    def test_register_rejects_outside_domain(self):
        response = self.client.post(reverse('accounts:register'), {
            'username': 'outsider',
            'email': 'outsider@example.com',
            'password1': 'S3cure-pass!',
            'password2': 'S3cure-pass!',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Email must be from @fenntechltd.com domain.')
        self.assertFalse(CustomUser.objects.filter(username='outsider').exists())

    def test_logout(self):
        CustomUser.objects.create_user(
            username='staff', email='staff@fenntechltd.com', password='testpass123'
        )
        self.client.login(username='staff', password='testpass123')
        response = self.client.post(reverse('accounts:logout'))
        self.assertRedirects(response, reverse('accounts:login'))


class UserApiTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.admin = CustomUser.objects.create_user(
            username='admin', email='admin@fenntechltd.com', password='adminpass123',
            role=CustomUser.ADMINISTRATOR,
        )
        self.user = CustomUser.objects.create_user(
            username='staff', email='staff@fenntechltd.com', password='testpass123'
        )

    def test_me(self):
        self.client.login(username='staff', password='testpass123')
        response = self.client.get(reverse('api:me'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['username'], 'staff')
        self.assertNotIn('password', response.json())

    def test_me_anonymous(self):
        response = self.client.get(reverse('api:me'))
        self.assertEqual(response.status_code, 401)

    def test_user_list_requires_admin(self):
        self.client.login(username='staff', password='testpass123')
        response = self.client.get(reverse('api:user_list'))
        self.assertEqual(response.status_code, 403)

    def test_admin_lists_users(self):
        self.client.login(username='admin', password='adminpass123')
        response = self.client.get(reverse('api:user_list'))
        self.assertEqual([u['username'] for u in response.json()], ['admin', 'staff'])

    def test_admin_creates_user(self):
        self.client.login(username='admin', password='adminpass123')
        response = self.client.post(reverse('api:user_list'), {
            'username': 'tech', 'email': 'tech@partner.com', 'password': 'longenough', 'role': 'user',
        }, content_type='application/json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['email'], 'tech@partner.com')

    def test_admin_creates_user_duplicate_email(self):
        self.client.login(username='admin', password='adminpass123')
        response = self.client.post(reverse('api:user_list'), {
            'username': 'other', 'email': 'staff@fenntechltd.com', 'password': 'longenough', 'role': 'user',
        }, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('email', response.json()['errors'])

    def test_admin_promotes_and_deactivates(self):
        self.client.login(username='admin', password='adminpass123')
        url = reverse('api:user_detail', args=[self.user.pk])
        response = self.client.patch(url, {'role': 'administrator'}, content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['role'], 'administrator')
        self.assertTrue(response.json()['is_active'])

        response = self.client.patch(url, {'is_active': False}, content_type='application/json')
        self.assertFalse(response.json()['is_active'])
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

    def test_admin_cannot_deactivate_self(self):
        self.client.login(username='admin', password='adminpass123')
        url = reverse('api:user_detail', args=[self.admin.pk])
        response = self.client.patch(url, {'is_active': False}, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_active)

    def test_deactivated_session_rejected(self):
        self.client.login(username='staff', password='testpass123')
        CustomUser.objects.filter(pk=self.user.pk).update(is_active=False)
        response = self.client.get(reverse('api:me'))
        self.assertEqual(response.status_code, 401)
