from datetime import timedelta

from django.test import SimpleTestCase, TestCase

from rides.models import Ride, RideStatus
from services.config import DispatchConfig
from services.queue.ranking import (
	get_event_queue,
	get_queue_position,
	queue_position,
	queue_stats,
	rank_rides,
	refresh_priorities,
)
from .factories import (
	BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user,
)

CONFIG = DispatchConfig()
NOW = BASE_TIME + timedelta(minutes=40)


def ride(pk, waited, class_rank=1, same=True, emergency=False, status=RideStatus.QUEUED):
	return Ride(
		pk=pk,
		status=status,
		class_rank=class_rank,
		is_same_chapter=same,
		is_emergency=emergency,
		requested_at=NOW - timedelta(minutes=waited),
	)


class RankRidesTests(SimpleTestCase):
	def test_mixed_queue_ordering(self):
		rides = [
			ride(1, 15, class_rank=1),              # 17.5
			ride(2, 11, class_rank=2),              # 25.5
			ride(3, 5, class_rank=4),               # 42.5
			ride(4, 1, emergency=True),             # 9999
			ride(5, 10, class_rank=3),              # 35.0
		]
		ranked = rank_rides(rides, NOW, CONFIG)

		self.assertEqual([r.ride.pk for r in ranked], [4, 3, 5, 2, 1])
		self.assertEqual([r.position for r in ranked], [1, 2, 3, 4, 5])
		self.assertEqual([r.priority for r in ranked], [9999.0, 42.5, 35.0, 25.5, 17.5])

	def test_long_wait_cross_chapter_beats_fresh_freshman(self):
		rides = [
			ride(1, 5, class_rank=1, same=True),    # 12.5
			ride(2, 40, class_rank=4, same=False),  # 20.0
		]
		ranked = rank_rides(rides, NOW, CONFIG)
		self.assertEqual([r.ride.pk for r in ranked], [2, 1])

	def test_equal_priority_is_first_come_first_served(self):
		rides = [ride(1, 2, emergency=True), ride(2, 9, emergency=True)]
		ranked = rank_rides(rides, NOW, CONFIG)
		self.assertEqual([r.ride.pk for r in ranked], [2, 1])

	def test_emergency_outranks_a_stale_ride_with_higher_score(self):
		rides = [
			ride(1, 20000, class_rank=4),           # 10040.0
			ride(2, 3, emergency=True),             # 9999
		]
		ranked = rank_rides(rides, NOW, CONFIG)

		self.assertEqual([r.ride.pk for r in ranked], [2, 1])
		self.assertGreater(ranked[1].priority, ranked[0].priority)

	def test_identical_timestamps_still_get_distinct_positions(self):
		rides = [ride(7, 3, class_rank=2), ride(3, 3, class_rank=2), ride(5, 3, class_rank=2)]
		ranked = rank_rides(rides, NOW, CONFIG)
		self.assertEqual([r.ride.pk for r in ranked], [3, 5, 7])
		self.assertEqual(len({r.position for r in ranked}), 3)

	def test_only_queued_and_assigned_are_ranked(self):
		rides = [
			ride(1, 5, status=RideStatus.ASSIGNED),
			ride(2, 5, status=RideStatus.ENROUTE),
			ride(3, 5, status=RideStatus.COMPLETED),
			ride(4, 5, status=RideStatus.CANCELLED),
			ride(5, 6),
		]
		ranked = rank_rides(rides, NOW, CONFIG)
		self.assertEqual([r.ride.pk for r in ranked], [5, 1])

	def test_ranking_is_idempotent(self):
		rides = [ride(1, 3), ride(2, 8, class_rank=2), ride(3, 1, emergency=True)]
		first = [r.ride.pk for r in rank_rides(rides, NOW, CONFIG)]
		second = [r.ride.pk for r in rank_rides(list(reversed(rides)), NOW, CONFIG)]
		self.assertEqual(first, second)

	def test_queue_position(self):
		rides = [ride(1, 3), ride(2, 8, class_rank=2), ride(3, 1, status=RideStatus.ENROUTE)]
		self.assertEqual(queue_position(2, rides, NOW, CONFIG), 1)
		self.assertEqual(queue_position(1, rides, NOW, CONFIG), 2)
		self.assertIsNone(queue_position(3, rides, NOW, CONFIG))
		self.assertIsNone(queue_position(99, rides, NOW, CONFIG))


class StoreBackedQueueTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.other_chapter = make_chapter("Beta Chapter")
		self.event = make_event(self.chapter)
		self.senior = make_user("senior", self.chapter, class_year=4)
		self.freshman = make_user("freshman", self.chapter, class_year=1)
		self.guest = make_user("guest", self.other_chapter, class_year=4)
		self.driver = make_user("dd", self.chapter, class_year=3)

		self.senior_ride = make_ride(self.senior, self.event, requested_at=BASE_TIME)
		self.freshman_ride = make_ride(self.freshman, self.event, requested_at=BASE_TIME - minutes(10))
		self.guest_ride = make_ride(self.guest, self.event, requested_at=BASE_TIME - minutes(20))

	def test_event_queue_is_ranked_live(self):
		now = BASE_TIME + minutes(2)
		queue = get_event_queue(self.event.id, now=now, config=CONFIG)
		# senior 41.0, freshman 16.0, guest 11.0
		self.assertEqual(
			[r.ride.pk for r in queue],
			[self.senior_ride.pk, self.freshman_ride.pk, self.guest_ride.pk],
		)

	def test_get_queue_position(self):
		now = BASE_TIME + minutes(2)
		self.assertEqual(get_queue_position(self.guest_ride.pk, now=now, config=CONFIG), 3)
		self.assertIsNone(get_queue_position(987654, now=now, config=CONFIG))

		self.guest_ride.status = RideStatus.ENROUTE
		self.guest_ride.driver = self.driver
		self.guest_ride.save()
		self.assertIsNone(get_queue_position(self.guest_ride.pk, now=now, config=CONFIG))

	def test_refresh_priorities_persists_snapshot(self):
		now = BASE_TIME + minutes(2)
		changed = refresh_priorities(self.event.id, now=now, config=CONFIG)
		self.assertEqual(changed, 3)

		self.senior_ride.refresh_from_db()
		self.guest_ride.refresh_from_db()
		self.assertEqual(self.senior_ride.priority, 41.0)
		self.assertEqual(self.guest_ride.priority, 11.0)

		# Nothing moved, nothing written
		self.assertEqual(refresh_priorities(self.event.id, now=now, config=CONFIG), 0)

	def test_queue_stats(self):
		make_assignment(self.driver, self.event, is_active=True)
		make_ride(self.driver, self.event, status=RideStatus.COMPLETED, requested_at=BASE_TIME - minutes(60))

		stats = queue_stats(self.event.id, now=BASE_TIME + minutes(10))

		self.assertEqual(stats["queued"], 3)
		self.assertEqual(stats["completed"], 1)
		self.assertEqual(stats["assigned"], 0)
		self.assertEqual(stats["emergencies"], 0)
		self.assertEqual(stats["active_drivers"], 1)
		self.assertEqual(stats["total_drivers"], 1)
		# waits: 10, 20, 30
		self.assertEqual(stats["average_wait_minutes"], 20.0)
