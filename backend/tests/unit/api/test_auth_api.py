"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from app.core.enums import AccountRole, ApprovalStatus

fake = Faker()

API = '/api/v1/auth'


def registration(**overrides) -> dict:
    data = {
        'email': fake.unique.email(),
        'password': 'securePassword123',
        'full_name': fake.name(),
        'phone_number': '9876543210',
        'role': 'student',
        'batch_type': 'Remote',
        'batch_number': 'B7',
        'course': 'B.Tech',
        'student_number': 'S-100',
    }
    data.update(overrides)
    return data


class TestRegistration:
    """Test registration endpoint"""

    async def test_register_student(self, client: AsyncClient):
        """Registration answers 201 with a pending account"""
        data = registration()

        response = await client.post(f'{API}/register', json=data)

        assert response.status_code == 201
        body = response.json()
        assert body['message'] == 'Registration submitted. Please wait for admin approval.'
        assert body['account']['email'] == data['email'].lower()
        assert body['account']['approval_status'] == 'pending'
        assert body['account']['role'] == 'student'
        assert body['account']['batch_type'] == 'Remote'
        assert 'hashed_password' not in body['account']

    async def test_register_staff(self, client: AsyncClient):
        data = registration(role='staff', category='technical', specialization='Networks')

        response = await client.post(f'{API}/register', json=data)

        assert response.status_code == 201
        assert response.json()['account']['role'] == 'staff'
        assert response.json()['account']['specialization'] == 'Networks'

    async def test_register_admin_refused(self, client: AsyncClient):
        response = await client.post(f'{API}/register', json=registration(role='admin'))

        assert response.status_code == 400
        assert response.json()['error']['details'] == {'field': 'role'}

    @pytest.mark.parametrize('overrides, field', [
        ({'email': 'not-an-email'}, 'email'),
        ({'phone_number': '12345'}, 'phone_number'),
        ({'password': '123'}, 'password'),
        ({'full_name': ''}, 'full_name'),
        ({'batch_type': None}, 'batch_type'),
        ({'batch_number': ''}, 'batch_number'),
        ({'course': '  '}, 'course'),
        ({'role': 'staff'}, 'category'),
    ])
    async def test_register_validation(self, client: AsyncClient, overrides, field):
        response = await client.post(f'{API}/register', json=registration(**overrides))

        assert response.status_code == 400
        error = response.json()['error']
        assert error['code'] == 'VALIDATION_ERROR'
        assert error['details'] == {'field': field}

    async def test_register_duplicate_email(self, client: AsyncClient, student_account):
        response = await client.post(f'{API}/register', json=registration(email=student_account.email))

        assert response.status_code == 409
        assert response.json()['error']['message'] == 'Email already registered'


class TestLogin:
    """Test login endpoint"""

    async def test_login_approved(self, client: AsyncClient, student_account):
        response = await client.post(f'{API}/login', json={
            'email': student_account.email,
            'password': 'password123',
        })

        assert response.status_code == 200
        body = response.json()
        assert body['token_type'] == 'bearer'
        assert body['access_token'] and body['refresh_token'] and body['session_id']
        assert body['user']['id'] == student_account.id
        assert body['user']['role'] == 'student'
        assert body['user']['last_login'] is not None

    async def test_login_pending(self, client: AsyncClient, make_account):
        account = await make_account(AccountRole.STAFF, status=ApprovalStatus.PENDING)

        response = await client.post(f'{API}/login', json={'email': account.email, 'password': 'password123'})

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'ACCOUNT_PENDING'

    async def test_login_rejected(self, client: AsyncClient, make_account):
        account = await make_account(AccountRole.STUDENT, status=ApprovalStatus.REJECTED)

        response = await client.post(f'{API}/login', json={'email': account.email, 'password': 'password123'})

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'ACCOUNT_REJECTED'

    async def test_login_wrong_password(self, client: AsyncClient, student_account):
        response = await client.post(f'{API}/login', json={
            'email': student_account.email,
            'password': 'wrong-password',
        })

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'AUTH_FAILED'

    async def test_login_fresh_registration_is_pending(self, client: AsyncClient):
        data = registration()
        await client.post(f'{API}/register', json=data)

        response = await client.post(f'{API}/login', json={'email': data['email'], 'password': data['password']})

        assert response.status_code == 403


class TestSession:
    """Test me / refresh / logout"""

    async def test_me(self, client: AsyncClient, staff_account, staff_headers):
        response = await client.get(f'{API}/me', headers=staff_headers)

        assert response.status_code == 200
        assert response.json()['email'] == staff_account.email
        assert response.json()['role'] == 'staff'

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get(f'{API}/me')

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'INVALID_TOKEN'

    async def test_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get(f'{API}/me', headers={'Authorization': 'Bearer not-a-token'})

        assert response.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, student_headers):
        response = await client.post(f'{API}/logout', headers=student_headers)
        assert response.status_code == 200
        assert response.json()['success'] is True

        response = await client.get(f'{API}/me', headers=student_headers)
        assert response.status_code == 401

    async def test_refresh(self, client: AsyncClient, student_account):
        login = (await client.post(f'{API}/login', json={
            'email': student_account.email,
            'password': 'password123',
        })).json()

        response = await client.post(f'{API}/refresh', json={'refresh_token': login['refresh_token']})

        assert response.status_code == 200
        refreshed = response.json()
        assert refreshed['session_id'] == login['session_id']
        me = await client.get(f'{API}/me', headers={'Authorization': f"Bearer {refreshed['access_token']}"})
        assert me.status_code == 200

    async def test_refresh_with_access_token(self, client: AsyncClient, student_account):
        login = (await client.post(f'{API}/login', json={
            'email': student_account.email,
            'password': 'password123',
        })).json()

        response = await client.post(f'{API}/refresh', json={'refresh_token': login['access_token']})

        assert response.status_code == 401

    async def test_token_stops_working_after_rejection(self, client: AsyncClient, make_account,
                                                       headers_for, db_session):
        account = await make_account(AccountRole.STUDENT)
        headers = await headers_for(account)

        account.approval_status = ApprovalStatus.REJECTED
        await db_session.commit()

        response = await client.get(f'{API}/me', headers=headers)
        assert response.status_code == 401
