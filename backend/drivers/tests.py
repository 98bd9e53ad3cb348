from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from monitoring.models import AdminAlert, AlertKind
from rides.models import RideStatus
from services.matching import assign_ride
from services.tests.factories import BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user
from .models import DriverAssignment
from .views import DriverRidesView, DriverStatusView


class DriverStatusApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user('dd', self.chapter, class_year=4)
		self.assignment = make_assignment(self.driver, self.event)
		self.status_view = DriverStatusView.as_view()

	def _put(self, user, is_active):
		request = self.factory.put(f'/api/driver/events/{self.event.id}/status/', {'is_active': is_active}, format='json')
		force_authenticate(request, user=user)
		return self.status_view(request, event_id=self.event.id)

	def test_get_status(self):
		request = self.factory.get(f'/api/driver/events/{self.event.id}/status/')
		force_authenticate(request, user=self.driver)
		response = self.status_view(request, event_id=self.event.id)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['is_active'])
		self.assertEqual(response.data['inactive_toggles'], 0)

	def test_go_inactive(self):
		response = self._put(self.driver, False)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['changed'])
		self.assertEqual(response.data['message'], 'Status updated to inactive')
		self.assertFalse(response.data['assignment']['is_active'])
		self.assertEqual(response.data['assignment']['inactive_toggles'], 1)

	def test_same_status_is_a_no_op(self):
		response = self._put(self.driver, True)

		self.assertFalse(response.data['changed'])
		self.assertEqual(response.data['message'], 'Already active')

	def test_going_active_schedules_dispatch(self):
		self._put(self.driver, False)
		with patch('services.matching.schedule_dispatch') as mock_schedule:
			response = self._put(self.driver, True)

		self.assertTrue(response.data['changed'])
		mock_schedule.assert_called_once_with(self.event.id)

	def test_repeated_toggling_alerts_admins(self):
		for _ in range(6):
			self._put(self.driver, False)
			self._put(self.driver, True)

		alerts = AdminAlert.objects.filter(kind=AlertKind.DD_TOGGLE_ABUSE, driver=self.driver)
		self.assertEqual(alerts.count(), 1)
		self.assertEqual(alerts.first().chapter_id, self.chapter.id)

	def test_non_driver_gets_404(self):
		rider = make_user('rider', self.chapter)
		response = self._put(rider, False)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'assignment_not_found')

	def test_missing_flag_is_rejected(self):
		request = self.factory.put(f'/api/driver/events/{self.event.id}/status/', {}, format='json')
		force_authenticate(request, user=self.driver)
		response = self.status_view(request, event_id=self.event.id)

		self.assertEqual(response.status_code, 400)
		self.assertTrue(DriverAssignment.objects.get(pk=self.assignment.pk).is_active)


class DriverRidesApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user('dd', self.chapter, class_year=4)
		make_assignment(self.driver, self.event)
		self.ride = make_ride(make_user('rider', self.chapter, class_year=2), self.event)
		make_ride(make_user('waiting', self.chapter, class_year=1), self.event)
		assign_ride(self.ride.id, self.driver.id, now=BASE_TIME + minutes(1))

	def test_lists_only_held_rides(self):
		request = self.factory.get(f'/api/driver/events/{self.event.id}/rides/')
		force_authenticate(request, user=self.driver)
		response = DriverRidesView.as_view()(request, event_id=self.event.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		self.assertEqual(response.data['rides'][0]['id'], self.ride.id)
		self.assertEqual(response.data['rides'][0]['status'], RideStatus.ASSIGNED)
