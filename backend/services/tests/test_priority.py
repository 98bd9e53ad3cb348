from datetime import timedelta

from django.test import SimpleTestCase, override_settings

from rides.models import Ride, RideStatus
from services.config import DispatchConfig
from services.queue.priority import (
	InvalidPriorityInputError,
	calculate_priority,
	priority_for_ride,
	wait_minutes_since,
)
from .factories import BASE_TIME

CONFIG = DispatchConfig()


class CalculatePriorityTests(SimpleTestCase):
	def test_same_chapter_uses_class_rank_and_wait(self):
		self.assertEqual(calculate_priority(4, 5, False, True, config=CONFIG), 42.5)
		self.assertEqual(calculate_priority(1, 15, False, True, config=CONFIG), 17.5)

	def test_cross_chapter_uses_wait_only(self):
		self.assertEqual(calculate_priority(4, 5, False, False, config=CONFIG), 2.5)

	def test_emergency_ignores_other_inputs(self):
		self.assertEqual(calculate_priority(1, 0, True, False, config=CONFIG), 9999.0)
		self.assertEqual(calculate_priority(4, 600, True, True, config=CONFIG), 9999.0)

	def test_negative_wait_is_clamped(self):
		self.assertEqual(calculate_priority(2, -3, False, True, config=CONFIG), 20.0)
		self.assertEqual(calculate_priority(2, -3, False, False, config=CONFIG), 0.0)

	def test_invalid_class_rank_raises(self):
		with self.assertRaises(InvalidPriorityInputError):
			calculate_priority(-1, 5, False, True, config=CONFIG)
		with self.assertRaises(InvalidPriorityInputError):
			calculate_priority(2.5, 5, False, True, config=CONFIG)
		# It is still a ValueError for generic callers
		with self.assertRaises(ValueError):
			calculate_priority("3", 5, False, True, config=CONFIG)

	def test_custom_weights(self):
		config = DispatchConfig(class_weight=1.0, wait_weight=2.0)
		self.assertEqual(calculate_priority(3, 4, False, True, config=config), 11.0)


class WaitMinutesTests(SimpleTestCase):
	def test_elapsed_minutes(self):
		self.assertEqual(wait_minutes_since(BASE_TIME, BASE_TIME + timedelta(minutes=7, seconds=30)), 7.5)

	def test_clock_skew_never_negative(self):
		self.assertEqual(wait_minutes_since(BASE_TIME, BASE_TIME - timedelta(minutes=2)), 0.0)

	def test_priority_for_ride_grows_with_wait(self):
		ride = Ride(pk=1, status=RideStatus.QUEUED, class_rank=3, is_same_chapter=True, requested_at=BASE_TIME)
		early = priority_for_ride(ride, BASE_TIME + timedelta(minutes=2), CONFIG)
		late = priority_for_ride(ride, BASE_TIME + timedelta(minutes=20), CONFIG)
		self.assertEqual(early, 31.0)
		self.assertEqual(late, 40.0)


class DispatchConfigTests(SimpleTestCase):
	@override_settings(RIDE_DISPATCH={"CLASS_WEIGHT": "12", "TOGGLE_THRESHOLD": "3"})
	def test_from_settings_overrides_and_coerces(self):
		config = DispatchConfig.from_settings()
		self.assertEqual(config.class_weight, 12.0)
		self.assertEqual(config.toggle_threshold, 3)
		self.assertEqual(config.wait_weight, 0.5)

	@override_settings(RIDE_DISPATCH={})
	def test_defaults(self):
		config = DispatchConfig.from_settings()
		self.assertEqual(config.emergency_priority, 9999.0)
		self.assertEqual(config.max_batch_size, 500)
		self.assertEqual(config.toggle_window, timedelta(minutes=30))
		self.assertEqual(config.prolonged_inactivity, timedelta(minutes=15))
