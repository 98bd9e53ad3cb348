from django.test import SimpleTestCase

from drivers.models import DriverAssignment
from rides.models import Ride, RideStatus
from services.config import DispatchConfig
from services.matching.driver_selection import select_best_driver
from services.matching.load_estimator import estimate_driver_loads, estimated_wait_minutes

CONFIG = DispatchConfig()
EVENT_ID = 10


def assignment(driver_id, is_active=True, event_id=EVENT_ID):
	return DriverAssignment(driver_id=driver_id, event_id=event_id, is_active=is_active)


def held_ride(pk, driver_id, status=RideStatus.ASSIGNED):
	return Ride(pk=pk, driver_id=driver_id, event_id=EVENT_ID, status=status)


class LoadEstimatorTests(SimpleTestCase):
	def test_no_rides_means_no_wait(self):
		self.assertEqual(estimated_wait_minutes(assignment(1), [], CONFIG), 0)

	def test_counts_only_outstanding_rides_of_that_driver(self):
		rides = [
			held_ride(1, 1, RideStatus.ASSIGNED),
			held_ride(2, 1, RideStatus.ENROUTE),
			held_ride(3, 1, RideStatus.COMPLETED),
			held_ride(4, 1, RideStatus.CANCELLED),
			held_ride(5, 2, RideStatus.ASSIGNED),
		]
		self.assertEqual(estimated_wait_minutes(assignment(1), rides, CONFIG), 30.0)
		self.assertEqual(estimated_wait_minutes(assignment(2), rides, CONFIG), 15.0)

	def test_monotone_in_ride_count(self):
		rides = []
		previous = estimated_wait_minutes(assignment(1), rides, CONFIG)
		for pk in range(1, 6):
			rides.append(held_ride(pk, 1))
			current = estimated_wait_minutes(assignment(1), rides, CONFIG)
			self.assertGreater(current, previous)
			previous = current

	def test_bulk_estimate_matches_single(self):
		assignments = [assignment(1), assignment(2), assignment(3)]
		rides = [held_ride(1, 1), held_ride(2, 1), held_ride(3, 3, RideStatus.ENROUTE)]
		loads = estimate_driver_loads(assignments, rides, CONFIG)
		self.assertEqual(loads, {1: 30.0, 2: 0.0, 3: 15.0})
		for a in assignments:
			self.assertEqual(loads[a.driver_id], estimated_wait_minutes(a, rides, CONFIG))


class SelectBestDriverTests(SimpleTestCase):
	def test_picks_least_loaded(self):
		rides = [held_ride(1, 1), held_ride(2, 1), held_ride(3, 2)]
		candidate = select_best_driver(EVENT_ID, [assignment(1), assignment(2), assignment(3)], rides, CONFIG)
		self.assertEqual(candidate.driver_id, 3)
		self.assertEqual(candidate.estimated_wait_minutes, 0)

	def test_tie_goes_to_lower_driver_id(self):
		candidate = select_best_driver(EVENT_ID, [assignment(8), assignment(4), assignment(6)], [], CONFIG)
		self.assertEqual(candidate.driver_id, 4)

	def test_never_returns_inactive_driver(self):
		rides = [held_ride(1, 1), held_ride(2, 1)]
		candidate = select_best_driver(
			EVENT_ID, [assignment(1), assignment(2, is_active=False)], rides, CONFIG
		)
		self.assertEqual(candidate.driver_id, 1)
		self.assertEqual(candidate.estimated_wait_minutes, 30.0)

	def test_ignores_other_events(self):
		candidate = select_best_driver(EVENT_ID, [assignment(1, event_id=EVENT_ID + 1)], [], CONFIG)
		self.assertIsNone(candidate)

	def test_no_active_driver(self):
		self.assertIsNone(select_best_driver(EVENT_ID, [], [], CONFIG))
		self.assertIsNone(select_best_driver(EVENT_ID, [assignment(1, is_active=False)], [], CONFIG))
