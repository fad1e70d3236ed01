import re

import pytest
from django.core import mail
from django.urls import reverse
from rest_framework import status

from apps.accounts.models import User


def _code_from_outbox(index=-1):
    return re.search(r'\b(\d{6})\b', mail.outbox[index].body).group(1)


# =============================================================================
# OTP Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestSendOtp:
    """Tests for POST /api/auth/send-otp/"""

    def test_send_otp_success(self, api_client, registration_data):
        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert response.status_code == status.HTTP_200_OK
        assert 'message' in response.data
        assert len(mail.outbox) == 1
        assert not User.objects.filter(email='new.customer@example.com').exists()

    def test_code_not_leaked_in_response(self, api_client, registration_data):
        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert _code_from_outbox() not in str(response.data)

    def test_duplicate_email(self, api_client, user, registration_data):
        registration_data['email'] = user.email

        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Email already exists'

    def test_password_mismatch(self, api_client, registration_data):
        registration_data['password_confirm'] = 'Different123!'

        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data

    def test_weak_password(self, api_client, registration_data):
        registration_data['password'] = registration_data['password_confirm'] = '123'

        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert mail.outbox == []

    def test_first_name_required(self, api_client, registration_data):
        del registration_data['first_name']

        response = api_client.post(reverse('users:send-otp'), registration_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestVerifyOtp:
    """Tests for POST /api/auth/verify-otp/"""

    def test_full_registration_flow(self, api_client, registration_data):
        api_client.post(reverse('users:send-otp'), registration_data)

        response = api_client.post(reverse('users:verify-otp'), {
            'email': 'new.customer@example.com',
            'otp': _code_from_outbox(),
        })

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['email'] == 'new.customer@example.com'
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        user = User.objects.get(email='new.customer@example.com')
        assert user.check_password('SecurePass123!')

    def test_wrong_code(self, api_client, registration_data):
        api_client.post(reverse('users:send-otp'), registration_data)
        code = _code_from_outbox()
        wrong = '000000' if code != '000000' else '000001'

        response = api_client.post(reverse('users:verify-otp'), {
            'email': 'new.customer@example.com',
            'otp': wrong,
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'Invalid OTP' in response.data['error']

    def test_no_pending_registration(self, api_client):
        response = api_client.post(reverse('users:verify-otp'), {
            'email': 'nobody@example.com',
            'otp': '123456',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_code_reuse_rejected(self, api_client, registration_data):
        api_client.post(reverse('users:send-otp'), registration_data)
        payload = {'email': 'new.customer@example.com', 'otp': _code_from_outbox()}
        api_client.post(reverse('users:verify-otp'), payload)

        response = api_client.post(reverse('users:verify-otp'), payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestResendOtp:
    """Tests for POST /api/auth/resend-otp/"""

    def test_resend(self, api_client, registration_data):
        api_client.post(reverse('users:send-otp'), registration_data)

        response = api_client.post(reverse('users:resend-otp'), {'email': 'new.customer@example.com'})

        assert response.status_code == status.HTTP_200_OK
        assert len(mail.outbox) == 2

        verify = api_client.post(reverse('users:verify-otp'), {
            'email': 'new.customer@example.com',
            'otp': _code_from_outbox(),
        })
        assert verify.status_code == status.HTTP_201_CREATED

    def test_resend_without_pending(self, api_client):
        response = api_client.post(reverse('users:resend-otp'), {'email': 'ghost@example.com'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        response = api_client.post(reverse('users:login'), {
            'email': user.email,
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        user.refresh_from_db()
        assert user.last_login is not None

    def test_login_email_case_insensitive(self, api_client, user):
        response = api_client.post(reverse('users:login'), {
            'email': user.email.upper(),
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_200_OK

    def test_login_wrong_password(self, api_client, user):
        response = api_client.post(reverse('users:login'), {
            'email': user.email,
            'password': 'WrongPass123!',
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive(self, api_client, user_inactive):
        response = api_client.post(reverse('users:login'), {
            'email': user_inactive.email,
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_missing_fields(self, api_client):
        response = api_client.post(reverse('users:login'), {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        response = authenticated_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['first_name'] == 'Test'

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
