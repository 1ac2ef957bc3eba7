"""
Unit Tests for complaint, category and notification endpoints
"""
import pytest
from httpx import AsyncClient

from app.core.enums import AccountRole

API = '/api/v1'


def complaint_payload(**overrides) -> dict:
    data = {
        'title': 'Broken fan',
        'description': 'Ceiling fan in room 204 is not working',
        'category': 'infrastructure',
        'priority': 'medium',
    }
    data.update(overrides)
    return data


@pytest.fixture
async def submitted(client: AsyncClient, categories, student_headers) -> dict:
    response = await client.post(f'{API}/complaints', json=complaint_payload(), headers=student_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def assigned(client: AsyncClient, submitted, staff_account, admin_headers) -> dict:
    response = await client.put(
        f"{API}/admin/complaints/{submitted['id']}/assignment",
        json={'staff_id': staff_account.id},
        headers=admin_headers,
    )
    assert response.status_code == 200
    return response.json()


class TestSubmitComplaint:

    async def test_student_submits(self, client: AsyncClient, submitted, student_account):
        assert submitted['status'] == 'pending'
        assert submitted['assigned_to'] is None
        assert submitted['student_id'] == student_account.id
        assert submitted['student_name'] == 'Sam Student'

    async def test_blank_title(self, client: AsyncClient, categories, student_headers):
        response = await client.post(
            f'{API}/complaints', json=complaint_payload(title='   '), headers=student_headers
        )

        assert response.status_code == 400
        assert response.json()['error']['message'] == 'Title is required'

    async def test_missing_priority(self, client: AsyncClient, categories, student_headers):
        payload = complaint_payload()
        del payload['priority']

        response = await client.post(f'{API}/complaints', json=payload, headers=student_headers)

        assert response.status_code == 400

    @pytest.mark.parametrize('role', [AccountRole.STAFF, AccountRole.ADMIN])
    async def test_only_students(self, client: AsyncClient, categories, make_account, headers_for, role):
        headers = await headers_for(await make_account(role))

        response = await client.post(f'{API}/complaints', json=complaint_payload(), headers=headers)

        assert response.status_code == 403
        assert response.json()['error']['message'] == 'Student access required'

    async def test_anonymous(self, client: AsyncClient, categories):
        response = await client.post(f'{API}/complaints', json=complaint_payload())

        assert response.status_code == 401


class TestStudentViews:

    async def test_my_complaints(self, client: AsyncClient, submitted, student_headers):
        response = await client.get(f'{API}/complaints/mine', headers=student_headers)

        assert response.status_code == 200
        assert [c['id'] for c in response.json()] == [submitted['id']]

    async def test_my_complaints_show_assignee(self, client: AsyncClient, assigned, student_headers):
        response = await client.get(f'{API}/complaints/mine', headers=student_headers)

        assert response.json()[0]['assignee_name'] == 'Stella Staff'

    async def test_get_own_complaint(self, client: AsyncClient, submitted, student_headers):
        response = await client.get(f"{API}/complaints/{submitted['id']}", headers=student_headers)

        assert response.status_code == 200
        assert response.json()['title'] == 'Broken fan'

    async def test_get_other_students_complaint(self, client: AsyncClient, submitted, make_account, headers_for):
        other = await make_account(AccountRole.STUDENT)

        response = await client.get(f"{API}/complaints/{submitted['id']}", headers=await headers_for(other))

        assert response.status_code == 403

    async def test_get_missing_complaint(self, client: AsyncClient, student_headers):
        response = await client.get(f'{API}/complaints/does-not-exist', headers=student_headers)

        assert response.status_code == 404
        assert response.json()['error']['code'] == 'COMPLAINT_NOT_FOUND'


class TestStaffViews:

    async def test_assigned_list_and_stats(self, client: AsyncClient, assigned, staff_headers):
        listing = await client.get(f'{API}/complaints/assigned', headers=staff_headers)
        stats = await client.get(f'{API}/complaints/assigned/stats', headers=staff_headers)

        assert [c['id'] for c in listing.json()] == [assigned['id']]
        assert listing.json()[0]['student_name'] == 'Sam Student'
        assert stats.json() == {'total': 1, 'pending': 1, 'in_progress': 0, 'resolved': 0}

    async def test_assigned_requires_staff(self, client: AsyncClient, student_headers):
        response = await client.get(f'{API}/complaints/assigned', headers=student_headers)

        assert response.status_code == 403

    async def test_status_progression(self, client: AsyncClient, assigned, staff_headers, student_headers):
        url = f"{API}/complaints/{assigned['id']}/status"

        response = await client.patch(url, json={'status': 'in_progress'}, headers=staff_headers)
        assert response.status_code == 200
        assert response.json()['status'] == 'in_progress'

        response = await client.patch(url, json={'status': 'pending'}, headers=staff_headers)
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'INVALID_TRANSITION'

        response = await client.patch(url, json={'status': 'resolved'}, headers=staff_headers)
        assert response.json()['resolved_at'] is not None

        notes = (await client.get(f'{API}/notifications', headers=student_headers)).json()
        assert [n['title'] for n in notes] == ['Complaint Status Updated'] * 2

    async def test_unassigned_staff_cannot_update(self, client: AsyncClient, submitted, staff_headers):
        response = await client.patch(
            f"{API}/complaints/{submitted['id']}/status", json={'status': 'resolved'}, headers=staff_headers
        )

        assert response.status_code == 403

    async def test_student_cannot_update(self, client: AsyncClient, submitted, student_headers):
        response = await client.patch(
            f"{API}/complaints/{submitted['id']}/status", json={'status': 'resolved'}, headers=student_headers
        )

        assert response.status_code == 403
        assert response.json()['error']['message'] == 'Staff or Admin access required'


class TestSharedViews:

    async def test_categories(self, client: AsyncClient, categories, staff_headers):
        response = await client.get(f'{API}/categories', headers=staff_headers)

        assert response.status_code == 200
        assert 'academic' in [c['name'] for c in response.json()]

    async def test_categories_require_login(self, client: AsyncClient, categories):
        response = await client.get(f'{API}/categories')

        assert response.status_code == 401

    async def test_notifications_only_own(self, client: AsyncClient, assigned, staff_headers, student_headers):
        staff_notes = (await client.get(f'{API}/notifications', headers=staff_headers)).json()
        student_notes = (await client.get(f'{API}/notifications', headers=student_headers)).json()

        assert [n['title'] for n in staff_notes] == ['New Complaint Assigned']
        assert student_notes == []
