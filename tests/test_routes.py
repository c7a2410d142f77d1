import pytest
from datetime import date, timedelta
from app.main import create_app
from app.models.user import UserRole
from app.utils.security import generate_token


def auth_header(user):
    token = generate_token({'user_id': user.id, 'email': user.email, 'role': user.role.value})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def client(database):
    app = create_app('testing')
    with app.test_client() as client:
        yield client


@pytest.fixture
def target_day():
    """The day after tomorrow is always inside the booking window at 09:00"""
    return (date.today() + timedelta(days=2)).isoformat()


class TestMentorshipApi:
    """Test the mentorship HTTP surface end to end"""

    def test_health(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'ok'}

    def test_requires_token(self, client):
        response = client.get('/api/mentorship/sessions/my')
        assert response.status_code == 401

    def test_rejects_bad_token(self, client):
        response = client.get('/api/mentorship/sessions/my',
                              headers={'Authorization': 'Bearer not-a-token'})
        assert response.status_code == 401

    def test_role_checks(self, client, mentorship_setup, target_day):
        student, instructor = mentorship_setup['student'], mentorship_setup['instructor']

        response = client.post('/api/mentorship/availability', headers=auth_header(student),
                               json={'date': target_day, 'timeRanges': []})
        assert response.status_code == 403

        response = client.get('/api/mentorship/available-slots', headers=auth_header(instructor),
                              query_string={'courseId': mentorship_setup['course'].id,
                                            'date': target_day})
        assert response.status_code == 403

        response = client.get('/api/mentorship/sessions/today', headers=auth_header(student))
        assert response.status_code == 403

    def test_booking_flow(self, client, mentorship_setup, target_day):
        instructor, student = mentorship_setup['instructor'], mentorship_setup['student']
        course_id = mentorship_setup['course'].id

        response = client.post('/api/mentorship/availability', headers=auth_header(instructor), json={
            'date': target_day,
            'timeRanges': [{'startTime': '09:00', 'endTime': '10:00', 'note': 'Zoom'}],
            'dayNote': 'Bring questions'
        })
        assert response.status_code == 200
        availability = response.get_json()
        assert availability['isBlocked'] is False

        response = client.get('/api/mentorship/availability/my', headers=auth_header(instructor),
                              query_string={'from': target_day, 'to': target_day})
        assert [d['id'] for d in response.get_json()] == [availability['id']]

        response = client.get('/api/mentorship/available-slots', headers=auth_header(student),
                              query_string={'courseId': course_id, 'date': target_day})
        assert response.status_code == 200
        slots = response.get_json()
        assert slots['dayNote'] == 'Bring questions'
        assert slots['slots'][0]['timeLabel'] == '09:00'
        assert slots['slots'][0]['maxDurationMinutes'] == 30

        booking = {'courseId': course_id, 'date': target_day, 'startTime': '09:00',
                   'durationMinutes': 30, 'studentNote': 'Career advice'}
        response = client.post('/api/mentorship/sessions', headers=auth_header(student), json=booking)
        assert response.status_code == 201
        session = response.get_json()
        assert session['status'] == 'booked'

        response = client.post('/api/mentorship/sessions',
                               headers=auth_header(mentorship_setup['other_student']),
                               json=dict(booking, startTime='09:15', durationMinutes=15))
        assert response.status_code == 409
        assert response.get_json() == {'error': 'This time slot has already been booked'}

        response = client.get('/api/mentorship/sessions/my', headers=auth_header(student))
        assert [s['id'] for s in response.get_json()] == [session['id']]

        response = client.delete(f"/api/mentorship/sessions/{session['id']}", headers=auth_header(student))
        assert response.status_code == 200
        assert response.get_json()['status'] == 'cancelledByStudent'

        response = client.get('/api/notifications', headers=auth_header(instructor))
        types = [n['type'] for n in response.get_json()['notifications']]
        assert types == ['consultation_cancelled', 'consultation_booked']

    def test_booking_validation_errors(self, client, mentorship_setup, target_day):
        student = mentorship_setup['student']

        response = client.post('/api/mentorship/sessions', headers=auth_header(student),
                               data='not json', content_type='application/json')
        assert response.status_code == 400

        response = client.post('/api/mentorship/sessions', headers=auth_header(student), json={
            'courseId': mentorship_setup['course'].id, 'date': target_day,
            'startTime': '09:00', 'durationMinutes': 30
        })
        assert response.status_code == 400
        assert response.get_json() == {'error': 'Instructor is not available on this date'}

        response = client.post('/api/mentorship/sessions',
                               headers=auth_header(mentorship_setup['outsider']), json={
                                   'courseId': mentorship_setup['course'].id, 'date': target_day,
                                   'startTime': '09:00', 'durationMinutes': 30
                               })
        assert response.status_code == 403

    def test_delete_day_notifies_students(self, client, mentorship_setup, target_day):
        instructor, student = mentorship_setup['instructor'], mentorship_setup['student']
        response = client.post('/api/mentorship/availability', headers=auth_header(instructor), json={
            'date': target_day,
            'timeRanges': [{'startTime': '09:00', 'endTime': '10:00'}]
        })
        availability_id = response.get_json()['id']

        response = client.delete(f'/api/mentorship/availability/{availability_id}',
                                 headers=auth_header(instructor))
        assert response.status_code == 200

        response = client.get('/api/notifications/unread-count', headers=auth_header(student))
        assert response.get_json() == {'count': 1}

        response = client.delete(f'/api/mentorship/availability/{availability_id}',
                                 headers=auth_header(instructor))
        assert response.status_code == 404

    def test_today_sessions_empty(self, client, mentorship_setup):
        response = client.get('/api/mentorship/sessions/today',
                              headers=auth_header(mentorship_setup['instructor']))
        assert response.status_code == 200
        assert response.get_json() == []


class TestAccountApi:
    """Test registration, login and course endpoints"""

    def test_register_login_me(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Ada Instructor', 'email': 'ada@example.com',
            'password': 'SecurePass123', 'role': 'instructor'
        })
        assert response.status_code == 201

        response = client.post('/api/auth/login', json={
            'email': 'ada@example.com', 'password': 'SecurePass123'
        })
        assert response.status_code == 200
        token = response.get_json()['access_token']

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert response.get_json()['email'] == 'ada@example.com'

    def test_register_rejects_weak_password(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Sam', 'email': 'sam@example.com', 'password': 'short', 'role': 'student'
        })
        assert response.status_code == 400

    def test_register_rejects_admin_role(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Root', 'email': 'root@example.com', 'password': 'SecurePass123', 'role': 'admin'
        })
        assert response.status_code == 400

    def test_course_create_and_enroll(self, client, make_user):
        instructor = make_user(UserRole.INSTRUCTOR)
        student = make_user(UserRole.STUDENT)

        response = client.post('/api/courses', headers=auth_header(instructor),
                               json={'title': 'Data Structures'})
        assert response.status_code == 201
        course_id = response.get_json()['id']

        response = client.post(f'/api/courses/{course_id}/enroll', headers=auth_header(student))
        assert response.status_code == 201

        response = client.get(f'/api/courses/{course_id}', headers=auth_header(student))
        assert response.get_json()['studentCount'] == 1

        response = client.get('/api/courses/my', headers=auth_header(instructor))
        assert [c['id'] for c in response.get_json()] == [course_id]

    def test_unknown_route(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Resource not found'}
