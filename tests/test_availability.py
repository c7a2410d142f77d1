import pytest
from datetime import datetime
from app.database import DatabaseManager
from app.models import MentorshipSession
from app.models.mentorship_session import SessionStatus
from app.models.user import UserRole

DAY = '2025-06-10'


def day_payload(date=DAY, ranges=(('09:00', '10:00'), ('14:00', '15:00')), **extra):
    payload = {
        'date': date,
        'timeRanges': [{'startTime': start, 'endTime': end} for start, end in ranges]
    }
    payload.update(extra)
    return payload


def book(services, student, course, start, duration=30):
    return services.mentorship.book_session(student.id, {
        'courseId': course.id,
        'date': DAY,
        'startTime': start,
        'durationMinutes': duration
    })


def session_status(session_id):
    return DatabaseManager(MentorshipSession).get(session_id).status


def blocked_notifications(services, user_id):
    notifications = services.notifications.get_notifications(user_id)['notifications']
    return [n for n in notifications if n['type'] == 'consultation_blocked']


class TestAvailabilityStore:
    """Test instructor availability records"""

    def test_create_day(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        result = services.availability.upsert_availability(
            instructor.id, day_payload(dayNote=' Remote only ')
        )
        assert result['date'] == DAY
        assert result['instructor'] == instructor.id
        assert result['isBlocked'] is False
        assert result['dayNote'] == 'Remote only'
        assert [r['startTime'] for r in result['timeRanges']] == ['09:00', '14:00']

    def test_upsert_overwrites_same_date(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        first = services.availability.upsert_availability(instructor.id, day_payload())
        second = services.availability.upsert_availability(
            instructor.id, day_payload(ranges=(('11:00', '12:00'),))
        )
        assert second['id'] == first['id']
        assert second['timeRanges'] == [{'startTime': '11:00', 'endTime': '12:00', 'note': ''}]

        listed = services.availability.get_availability(instructor.id)['availability']
        assert len(listed) == 1

    def test_list_with_inclusive_bounds(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        for date in ('2025-06-12', '2025-06-10', '2025-06-11', '2025-06-13'):
            services.availability.upsert_availability(instructor.id, day_payload(date=date))

        everything = services.availability.get_availability(instructor.id)['availability']
        assert [d['date'] for d in everything] == ['2025-06-10', '2025-06-11', '2025-06-12', '2025-06-13']

        bounded = services.availability.get_availability(instructor.id, '2025-06-11', '2025-06-12')
        assert [d['date'] for d in bounded['availability']] == ['2025-06-11', '2025-06-12']

    def test_list_is_per_instructor(self, services, mentorship_setup, make_user):
        other = make_user(UserRole.INSTRUCTOR)
        services.availability.upsert_availability(other.id, day_payload())
        assert services.availability.get_availability(
            mentorship_setup['instructor'].id
        )['availability'] == []

    def test_list_rejects_bad_bound(self, services, mentorship_setup):
        result = services.availability.get_availability(mentorship_setup['instructor'].id, '06/10/2025')
        assert result == {'error': 'from must be in YYYY-MM-DD format', 'status': 400}

    @pytest.mark.parametrize('payload', [
        {'timeRanges': []},
        {'date': '2025-06-31', 'timeRanges': []},
        {'date': DAY, 'timeRanges': 'morning'},
        {'date': DAY, 'timeRanges': [{'startTime': '10:00', 'endTime': '09:00'}]},
        {'date': DAY, 'timeRanges': [{'startTime': '9:00', 'endTime': '10:00'}]},
        {'date': DAY, 'timeRanges': [], 'dayNote': 42},
    ])
    def test_invalid_payloads(self, services, mentorship_setup, payload):
        result = services.availability.upsert_availability(mentorship_setup['instructor'].id, payload)
        assert result['status'] == 400

    def test_empty_ranges_allowed(self, services, mentorship_setup):
        result = services.availability.upsert_availability(
            mentorship_setup['instructor'].id, {'date': DAY}
        )
        assert result['timeRanges'] == []

    def test_delete_own_day(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        created = services.availability.upsert_availability(instructor.id, day_payload())

        result = services.availability.delete_availability(instructor.id, created['id'])
        assert result == {'message': 'Availability deleted successfully'}
        assert services.availability.get_availability(instructor.id)['availability'] == []

    def test_concurrent_first_write_becomes_update(self, services, mentorship_setup,
                                                   make_availability, monkeypatch):
        """A write that lost the race to create the date overwrites the winner's row"""
        instructor = mentorship_setup['instructor']
        existing = make_availability(instructor, DAY, [('09:00', '10:00', '')])

        find_day = services.availability._find_day
        lookups = []

        def stale_then_fresh(db, instructor_id, date_str):
            lookups.append(date_str)
            if len(lookups) == 1:
                return None
            return find_day(db, instructor_id, date_str)

        monkeypatch.setattr(services.availability, '_find_day', stale_then_fresh)

        result = services.availability.upsert_availability(
            instructor.id, day_payload(ranges=(('11:00', '12:00'),))
        )
        assert result['id'] == existing.id
        assert result['timeRanges'] == [{'startTime': '11:00', 'endTime': '12:00', 'note': ''}]
        assert len(lookups) == 2
        assert len(services.availability.get_availability(instructor.id)['availability']) == 1

    def test_day_ending_at_midnight(self, services, mentorship_setup):
        result = services.availability.upsert_availability(
            mentorship_setup['instructor'].id, day_payload(ranges=(('23:30', '24:00'),))
        )
        assert result['timeRanges'] == [{'startTime': '23:30', 'endTime': '24:00', 'note': ''}]

    def test_delete_other_instructors_day(self, services, mentorship_setup, make_user):
        created = services.availability.upsert_availability(
            mentorship_setup['instructor'].id, day_payload()
        )
        stranger = make_user(UserRole.INSTRUCTOR)

        result = services.availability.delete_availability(stranger.id, created['id'])
        assert result == {'error': 'Availability not found', 'status': 404}


class TestDayClosureCascade:
    """Test cancellations and announcements when a day is blocked or removed"""

    @pytest.fixture
    def booked_day(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        services.availability.upsert_availability(instructor.id, day_payload())
        morning = book(services, mentorship_setup['student'], mentorship_setup['course'], '09:00')
        afternoon = book(services, mentorship_setup['student'], mentorship_setup['course'], '14:00')
        return dict(mentorship_setup, morning=morning, afternoon=afternoon)

    def test_blocking_cancels_and_announces(self, services, booked_day):
        instructor = booked_day['instructor']
        services.availability.upsert_availability(
            instructor.id, day_payload(isBlocked=True, dayNote='Conference')
        )

        assert session_status(booked_day['morning']['id']) == SessionStatus.CANCELLED_BY_INSTRUCTOR
        assert session_status(booked_day['afternoon']['id']) == SessionStatus.CANCELLED_BY_INSTRUCTOR

        affected = blocked_notifications(services, booked_day['student'].id)
        assert len(affected) == 1
        assert 'Conference' in affected[0]['message']
        assert 'Your session(s) at 09:00, 14:00 on 2025-06-10 have been cancelled.' in affected[0]['message']
        assert affected[0]['course'] == booked_day['course'].id

        bystander = blocked_notifications(services, booked_day['other_student'].id)
        assert len(bystander) == 1
        assert 'Your session' not in bystander[0]['message']
        assert bystander[0]['title'] == 'Consultations unavailable'

        assert blocked_notifications(services, booked_day['outsider'].id) == []

    def test_blocked_day_has_no_slots(self, services, booked_day):
        instructor = booked_day['instructor']
        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))

        slots = services.slots.get_available_slots(
            booked_day['other_student'].id, booked_day['course'].id, DAY
        )
        assert slots['isBlocked'] is True
        assert slots['slots'] == []

    def test_reblocking_does_not_announce_again(self, services, booked_day):
        instructor = booked_day['instructor']
        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))
        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))

        assert len(blocked_notifications(services, booked_day['other_student'].id)) == 1

    def test_unblocking_frees_cancelled_time(self, services, booked_day):
        instructor = booked_day['instructor']
        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))
        services.availability.upsert_availability(instructor.id, day_payload())

        result = book(services, booked_day['other_student'], booked_day['course'], '09:00')
        assert result['status'] == 'booked'

    def test_deleting_day_cancels_and_announces(self, services, booked_day):
        instructor = booked_day['instructor']
        day_id = services.availability.get_availability(instructor.id)['availability'][0]['id']

        services.availability.delete_availability(instructor.id, day_id)

        assert session_status(booked_day['morning']['id']) == SessionStatus.CANCELLED_BY_INSTRUCTOR
        assert len(blocked_notifications(services, booked_day['student'].id)) == 1
        assert len(blocked_notifications(services, booked_day['other_student'].id)) == 1

    def test_same_day_block_keeps_started_sessions(self, services, booked_day, clock):
        instructor = booked_day['instructor']
        clock.now = datetime(2025, 6, 10, 9, 10)

        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))

        assert session_status(booked_day['morning']['id']) == SessionStatus.BOOKED
        assert session_status(booked_day['afternoon']['id']) == SessionStatus.CANCELLED_BY_INSTRUCTOR

        affected = blocked_notifications(services, booked_day['student'].id)
        assert 'at 14:00 on' in affected[0]['message']
        assert '09:00' not in affected[0]['message']

    def test_past_day_is_left_alone(self, services, booked_day, clock):
        instructor = booked_day['instructor']
        clock.now = datetime(2025, 6, 11, 0, 0)

        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))

        assert session_status(booked_day['afternoon']['id']) == SessionStatus.BOOKED
        assert blocked_notifications(services, booked_day['student'].id) == []
        assert blocked_notifications(services, booked_day['other_student'].id) == []

    def test_block_without_sessions_still_announces(self, services, mentorship_setup):
        instructor = mentorship_setup['instructor']
        services.availability.upsert_availability(instructor.id, day_payload(isBlocked=True))

        assert len(blocked_notifications(services, mentorship_setup['student'].id)) == 1
        assert len(blocked_notifications(services, mentorship_setup['other_student'].id)) == 1

    def test_failed_cancellation_rolls_back_block(self, services, booked_day, monkeypatch):
        """The block and its cancellations commit together or not at all"""
        def refuse(session, new_status):
            raise RuntimeError('cannot change session status')

        monkeypatch.setattr(MentorshipSession, 'transition_to', refuse)
        instructor = booked_day['instructor']

        result = services.availability.upsert_availability(
            instructor.id, day_payload(isBlocked=True, dayNote='Conference')
        )
        assert result == {'error': 'Server error updating availability', 'status': 500}

        day = services.availability.get_availability(instructor.id)['availability'][0]
        assert day['isBlocked'] is False
        assert day['dayNote'] == ''
        assert session_status(booked_day['morning']['id']) == SessionStatus.BOOKED
        assert blocked_notifications(services, booked_day['student'].id) == []
        assert blocked_notifications(services, booked_day['other_student'].id) == []

    def test_failed_cancellation_keeps_deleted_day(self, services, booked_day, monkeypatch):
        def refuse(session, new_status):
            raise RuntimeError('cannot change session status')

        monkeypatch.setattr(MentorshipSession, 'transition_to', refuse)
        instructor = booked_day['instructor']
        day_id = services.availability.get_availability(instructor.id)['availability'][0]['id']

        result = services.availability.delete_availability(instructor.id, day_id)
        assert result == {'error': 'Server error deleting availability', 'status': 500}

        days = services.availability.get_availability(instructor.id)['availability']
        assert [d['id'] for d in days] == [day_id]
        assert session_status(booked_day['afternoon']['id']) == SessionStatus.BOOKED
        assert blocked_notifications(services, booked_day['student'].id) == []
