from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from monitoring.models import AdminAlert, AlertKind
from services.matching import assign_ride
from services.tests.factories import BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user
from .models import Ride, RideStatus, can_transition, source_statuses
from .tasks import check_emergency_assignment_task, dispatch_event_task
from .views import (
	cancel_ride_view,
	complete_ride_view,
	create_ride_request,
	event_queue,
	event_queue_stats,
	get_current_ride,
	ride_position,
	start_ride_enroute,
)


class RiderApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.rider = make_user('rider', self.chapter, class_year=2)

	def _post(self, view, user, data=None, **kwargs):
		request = self.factory.post('/api/rides/', data or {}, format='json')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def _get(self, view, user, **kwargs):
		request = self.factory.get('/api/rides/')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def test_request_ride_joins_queue(self):
		response = self._post(create_ride_request, self.rider, {
			'event_id': self.event.id,
			'pickup_address': 'Library steps',
		})

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['status'], RideStatus.QUEUED)
		self.assertEqual(response.data['queue_position'], 1)
		self.assertEqual(response.data['message'], 'You are in the queue.')
		self.assertEqual(Ride.objects.filter(rider=self.rider).count(), 1)

	def test_second_request_is_rejected(self):
		make_ride(self.rider, self.event)
		response = self._post(create_ride_request, self.rider, {
			'event_id': self.event.id,
			'pickup_address': 'Library steps',
		})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'active_ride_exists')

	def test_request_for_inactive_event(self):
		finished = make_event(self.chapter, status='completed', name='Last Week')
		response = self._post(create_ride_request, self.rider, {
			'event_id': finished.id,
			'pickup_address': 'Library steps',
		})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'event_not_active')

	def test_emergency_without_a_reason_is_accepted(self):
		response = self._post(create_ride_request, self.rider, {
			'event_id': self.event.id,
			'pickup_address': 'Library steps',
			'is_emergency': True,
		})

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['queue_position'], 1)
		alert = AdminAlert.objects.get(kind=AlertKind.EMERGENCY_REQUEST, ride_id=response.data['id'])
		self.assertIn('Reason: Not specified', alert.message)

	def test_emergency_request_alerts_admins(self):
		response = self._post(create_ride_request, self.rider, {
			'event_id': self.event.id,
			'pickup_address': 'Library steps',
			'is_emergency': True,
			'emergency_reason': 'Lost my group',
		})

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['message'], 'Emergency ride requested. Admins have been alerted.')
		self.assertTrue(AdminAlert.objects.filter(kind=AlertKind.EMERGENCY_REQUEST,
												  ride_id=response.data['id']).exists())

	def test_current_ride_and_position(self):
		senior = make_user('senior', self.chapter, class_year=4)
		make_ride(senior, self.event, requested_at=BASE_TIME)
		ride = make_ride(self.rider, self.event, requested_at=BASE_TIME)

		current = self._get(get_current_ride, self.rider)
		self.assertEqual(current.data['ride']['id'], ride.id)
		self.assertEqual(current.data['queue_position'], 2)

		position = self._get(ride_position, self.rider, ride_id=ride.id)
		self.assertEqual(position.data['queue_position'], 2)

		# another rider cannot peek at this ride
		other = self._get(ride_position, senior, ride_id=ride.id)
		self.assertEqual(other.status_code, 404)

	def test_no_current_ride(self):
		response = self._get(get_current_ride, self.rider)
		self.assertIsNone(response.data['ride'])

	def test_cancel_ride(self):
		ride = make_ride(self.rider, self.event)
		response = self._post(cancel_ride_view, self.rider, {'reason': 'Walking instead'}, ride_id=ride.id)

		self.assertEqual(response.status_code, 200)
		self.assertFalse(response.data['was_assigned'])
		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.CANCELLED)
		self.assertEqual(ride.cancellation_reason, 'Walking instead')

	def test_cancel_someone_elses_ride(self):
		ride = make_ride(self.rider, self.event)
		stranger = make_user('stranger', self.chapter)
		response = self._post(cancel_ride_view, stranger, ride_id=ride.id)

		self.assertEqual(response.status_code, 404)
		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.QUEUED)

	def test_cancel_twice(self):
		ride = make_ride(self.rider, self.event)
		self._post(cancel_ride_view, self.rider, ride_id=ride.id)
		response = self._post(cancel_ride_view, self.rider, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'ride_not_available')


class DriverRideActionTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.rider = make_user('rider', self.chapter, class_year=1)
		self.driver = make_user('dd', self.chapter, class_year=4)
		self.assignment = make_assignment(self.driver, self.event)
		self.ride = make_ride(self.rider, self.event, requested_at=BASE_TIME)
		assign_ride(self.ride.id, self.driver.id, now=BASE_TIME + minutes(1))

	def _post(self, view, user, **kwargs):
		request = self.factory.post('/api/rides/driver/', {}, format='json')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def test_enroute_then_complete(self):
		enroute = self._post(start_ride_enroute, self.driver, ride_id=self.ride.id)
		self.assertEqual(enroute.status_code, 200)
		self.assertEqual(enroute.data['ride']['status'], RideStatus.ENROUTE)

		done = self._post(complete_ride_view, self.driver, ride_id=self.ride.id)
		self.assertEqual(done.status_code, 200)
		self.assertEqual(done.data['ride']['status'], RideStatus.COMPLETED)

		self.assignment.refresh_from_db()
		self.assertEqual(self.assignment.total_rides_completed, 1)

	def test_complete_before_pickup(self):
		response = self._post(complete_ride_view, self.driver, ride_id=self.ride.id)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'ride_not_available')

	def test_rider_cannot_drive_their_own_ride(self):
		response = self._post(start_ride_enroute, self.rider, ride_id=self.ride.id)
		self.assertEqual(response.status_code, 404)


class EventQueueApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.admin = make_user('chair', self.chapter, role='admin')
		self.driver = make_user('dd', self.chapter, class_year=4)
		self.member = make_user('member', self.chapter, class_year=3)
		make_assignment(self.driver, self.event)
		self.junior = make_ride(self.member, self.event, requested_at=BASE_TIME)
		self.freshman = make_ride(make_user('fresh', self.chapter, class_year=1), self.event,
								  requested_at=BASE_TIME)

	def _get(self, view, user, **kwargs):
		request = self.factory.get('/api/rides/events/')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def test_admin_sees_ranked_queue(self):
		response = self._get(event_queue, self.admin, event_id=self.event.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 2)
		self.assertEqual([entry['ride_id'] for entry in response.data['queue']],
						 [self.junior.id, self.freshman.id])
		self.assertEqual(response.data['queue'][0]['position'], 1)

	def test_driver_can_view_queue(self):
		response = self._get(event_queue, self.driver, event_id=self.event.id)
		self.assertEqual(response.status_code, 200)

	def test_member_cannot_view_queue(self):
		response = self._get(event_queue, self.member, event_id=self.event.id)
		self.assertEqual(response.status_code, 403)

	def test_admin_of_other_chapter_cannot_view_queue(self):
		outsider = make_user('outsider', make_chapter('Gamma Chapter'), role='admin')
		response = self._get(event_queue, outsider, event_id=self.event.id)
		self.assertEqual(response.status_code, 403)

	def test_unknown_event(self):
		response = self._get(event_queue, self.admin, event_id=9999)
		self.assertEqual(response.status_code, 404)

	def test_stats(self):
		response = self._get(event_queue_stats, self.admin, event_id=self.event.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['queued'], 2)
		self.assertEqual(response.data['assigned'], 0)
		self.assertEqual(response.data['active_drivers'], 1)
		self.assertEqual(response.data['total_drivers'], 1)


class DispatchTaskTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user('dd', self.chapter, class_year=4)
		make_assignment(self.driver, self.event)
		self.ride = make_ride(make_user('rider', self.chapter, class_year=2), self.event)

	@patch('realtime.notifications.notify_queue_changed')
	def test_dispatch_event_task(self, mock_notify):
		result = dispatch_event_task(self.event.id)

		self.assertEqual(result['event_id'], self.event.id)
		self.assertEqual(result['assigned'], [self.ride.id])
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.ASSIGNED)
		self.assertEqual(self.ride.driver_id, self.driver.id)
		mock_notify.assert_called_once()

	@patch('realtime.notifications.notify_queue_changed')
	def test_run_dispatch_cycle_command(self, mock_notify):
		out = StringIO()
		call_command('run_dispatch_cycle', stdout=out)

		self.assertIn('Dispatched 1 event(s); assigned 1 ride(s).', out.getvalue())
		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.ASSIGNED)

	def test_run_dispatch_cycle_unknown_event(self):
		with self.assertRaises(CommandError):
			call_command('run_dispatch_cycle', '--event', '9999', stdout=StringIO())

	def test_emergency_check_task_ignores_regular_rides(self):
		self.assertIsNone(check_emergency_assignment_task(self.ride.id))


class RideStateMachineTests(SimpleTestCase):
	def test_allowed_moves(self):
		self.assertTrue(can_transition(RideStatus.QUEUED, RideStatus.ASSIGNED))
		self.assertTrue(can_transition(RideStatus.ASSIGNED, RideStatus.CANCELLED))
		self.assertFalse(can_transition(RideStatus.ENROUTE, RideStatus.CANCELLED))
		self.assertFalse(can_transition(RideStatus.COMPLETED, RideStatus.QUEUED))

	def test_source_statuses(self):
		self.assertEqual(set(source_statuses(RideStatus.CANCELLED)), {RideStatus.QUEUED, RideStatus.ASSIGNED})
		self.assertEqual(source_statuses(RideStatus.COMPLETED), [RideStatus.ENROUTE])

	def test_terminal_rides(self):
		self.assertTrue(Ride(status=RideStatus.COMPLETED).is_terminal)
		self.assertTrue(Ride(status=RideStatus.CANCELLED).is_terminal)
		self.assertFalse(Ride(status=RideStatus.ENROUTE).is_terminal)
