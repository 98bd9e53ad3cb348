from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from services.monitoring import create_admin_alert
from services.tests.factories import BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_user
from .models import AdminAlert, AlertKind
from .tasks import monitor_driver_activity_task
from .views import mark_read, unread_alerts


class AdminAlertApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.chapter = make_chapter()
		self.other_chapter = make_chapter('Beta Chapter')
		self.admin = make_user('chair', self.chapter, role='admin')
		self.member = make_user('member', self.chapter)
		self.driver = make_user('dd', self.chapter, first_name='Jordan', last_name='Reyes')

		self.older = create_admin_alert(
			kind=AlertKind.DD_TOGGLE_ABUSE, chapter_id=self.chapter.id, driver_id=self.driver.id,
			message='Jordan Reyes has toggled inactive 6 times in 30 minutes.', now=BASE_TIME,
		)
		self.newer = create_admin_alert(
			kind=AlertKind.DD_PROLONGED_INACTIVITY, chapter_id=self.chapter.id, driver_id=self.driver.id,
			message='Jordan Reyes has been inactive for 16 minutes during an active shift.',
			now=BASE_TIME + minutes(5),
		)
		self.foreign = create_admin_alert(
			kind=AlertKind.DD_TOGGLE_ABUSE, chapter_id=self.other_chapter.id,
			message='Not ours', now=BASE_TIME,
		)

	def _get(self, user):
		request = self.factory.get('/api/alerts/')
		force_authenticate(request, user=user)
		return unread_alerts(request)

	def _mark(self, user, alert_id):
		request = self.factory.post(f'/api/alerts/{alert_id}/read/', {}, format='json')
		force_authenticate(request, user=user)
		return mark_read(request, alert_id=alert_id)

	def test_admin_sees_own_chapter_newest_first(self):
		response = self._get(self.admin)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 2)
		self.assertEqual([a['id'] for a in response.data['alerts']], [self.newer.id, self.older.id])
		self.assertEqual(response.data['alerts'][0]['driver_name'], 'Jordan Reyes')

	def test_members_are_forbidden(self):
		self.assertEqual(self._get(self.member).status_code, 403)
		self.assertEqual(self._mark(self.member, self.older.id).status_code, 403)

	def test_mark_read(self):
		response = self._mark(self.admin, self.older.id)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['is_read'])
		self.assertEqual(self._get(self.admin).data['count'], 1)

	def test_mark_read_keeps_first_timestamp(self):
		self._mark(self.admin, self.older.id)
		first_read_at = AdminAlert.objects.get(pk=self.older.id).read_at

		self._mark(self.admin, self.older.id)
		self.assertEqual(AdminAlert.objects.get(pk=self.older.id).read_at, first_read_at)

	def test_cannot_mark_other_chapters_alert(self):
		response = self._mark(self.admin, self.foreign.id)

		self.assertEqual(response.status_code, 404)
		self.assertFalse(AdminAlert.objects.get(pk=self.foreign.id).is_read)


class ActivityCheckTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.driver = make_user('dd', self.chapter)
		self.assignment = make_assignment(self.driver, self.event, is_active=False, last_inactive_at=BASE_TIME)

	def test_command_raises_inactivity_alert_once(self):
		out = StringIO()
		call_command('check_driver_activity', stdout=out)
		self.assertIn('raised 1 alert(s)', out.getvalue())

		out = StringIO()
		call_command('check_driver_activity', '--event', str(self.event.id), stdout=out)
		self.assertIn('raised 0 alert(s)', out.getvalue())

		self.assertEqual(AdminAlert.objects.filter(kind=AlertKind.DD_PROLONGED_INACTIVITY).count(), 1)

	def test_task_reports_alert_ids(self):
		result = monitor_driver_activity_task()

		alert = AdminAlert.objects.get(kind=AlertKind.DD_PROLONGED_INACTIVITY)
		self.assertEqual(result['alerts'], [alert.id])
		self.assertEqual(alert.driver_id, self.driver.id)
		self.assertEqual(alert.chapter_id, self.chapter.id)

	def test_inactive_events_are_skipped(self):
		self.event.status = 'completed'
		self.event.save()

		self.assertEqual(monitor_driver_activity_task()['alerts'], [])
