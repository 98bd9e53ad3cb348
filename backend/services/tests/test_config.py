from datetime import timedelta

from django.test import SimpleTestCase, override_settings

from services.config import DispatchConfig, get_dispatch_config


class DispatchConfigTests(SimpleTestCase):
	def test_defaults(self):
		config = DispatchConfig()
		self.assertEqual(config.toggle_window, timedelta(minutes=30))
		self.assertEqual(config.prolonged_inactivity, timedelta(minutes=15))

	@override_settings(RIDE_DISPATCH={"CLASS_WEIGHT": "12", "TOGGLE_THRESHOLD": "3", "UNKNOWN": 1})
	def test_settings_override_and_coerce(self):
		config = get_dispatch_config()
		self.assertEqual(config.class_weight, 12.0)
		self.assertEqual(config.toggle_threshold, 3)
		self.assertEqual(config.wait_weight, 0.5)

	@override_settings(RIDE_DISPATCH={})
	def test_empty_settings_fall_back_to_defaults(self):
		self.assertEqual(get_dispatch_config(), DispatchConfig())
