from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase, TestCase, TransactionTestCase

from rides.models import Ride, RideStatus
from services.queue import RankedRide
from services.tests.factories import (
	BASE_TIME, minutes, make_assignment, make_chapter, make_event, make_ride, make_user,
)
from .consumers import QueueConsumer
from .feed import QueueSnapshot, queue_fingerprint, queue_snapshots, ride_position_updates
from .notifications import admin_group_name, notify_queue_changed, queue_group_name, serialize_queue


def _snapshot(event_id, ride_ids):
	rides = [RankedRide(ride=Ride(pk=pk, status=RideStatus.QUEUED), priority=0.0, position=i + 1)
			 for i, pk in enumerate(ride_ids)]
	return QueueSnapshot(event_id=event_id, taken_at=BASE_TIME, rides=rides, fingerprint=queue_fingerprint(rides))


class RidePositionUpdatesTests(SimpleTestCase):
	def test_drops_repeats_and_stops_when_ride_leaves(self):
		snapshots = [
			_snapshot(1, [10, 11, 12]),
			_snapshot(1, [10, 11, 12, 13]),
			_snapshot(1, [11, 12]),
			_snapshot(1, [12]),
			_snapshot(1, []),
			_snapshot(1, [12]),
		]
		self.assertEqual(list(ride_position_updates(12, snapshots)), [3, 2, 1, None])

	def test_unknown_ride_ends_immediately(self):
		self.assertEqual(list(ride_position_updates(99, [_snapshot(1, [10])])), [None])

	def test_group_names(self):
		self.assertEqual(queue_group_name(7), "event_7_queue")
		self.assertEqual(admin_group_name(3), "chapter_3_admins")


class QueueSnapshotsTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.first = make_ride(make_user("rider1", self.chapter, class_year=2), self.event, requested_at=BASE_TIME)

	def test_yields_only_on_change(self):
		sleeps = []

		def fake_sleep(interval):
			sleeps.append(interval)
			if len(sleeps) == 2:
				make_ride(make_user("rider2", self.chapter, class_year=4), self.event,
						  requested_at=BASE_TIME + minutes(1))

		feed = queue_snapshots(
			self.event.id, poll_interval=0.5, sleep=fake_sleep, max_snapshots=2,
			clock=lambda: BASE_TIME + minutes(2),
		)
		snapshots = list(feed)

		self.assertEqual(len(snapshots), 2)
		self.assertEqual(sleeps, [0.5, 0.5])
		self.assertEqual([r.ride.pk for r in snapshots[0].rides], [self.first.pk])
		self.assertEqual(len(snapshots[1].rides), 2)
		# the senior who just arrived outranks the sophomore
		self.assertEqual(snapshots[1].position_of(self.first.pk), 2)

	def test_single_snapshot_does_not_sleep(self):
		def fail_sleep(interval):
			raise AssertionError("should not sleep")

		snapshots = list(queue_snapshots(self.event.id, sleep=fail_sleep, max_snapshots=1,
										 clock=lambda: BASE_TIME))
		self.assertEqual(snapshots[0].event_id, self.event.id)
		self.assertEqual(snapshots[0].taken_at, BASE_TIME)


class QueueNotificationTests(TestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.ride = make_ride(make_user("rider", self.chapter, class_year=3), self.event, requested_at=BASE_TIME)

	def test_queue_update_reaches_subscribers(self):
		layer = get_channel_layer()
		channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(queue_group_name(self.event.id), channel)

		self.assertTrue(notify_queue_changed(self.event.id, now=BASE_TIME + minutes(4)))
		message = async_to_sync(layer.receive)(channel)

		self.assertEqual(message["type"], "queue_updated")
		self.assertEqual(message["event_id"], self.event.id)
		self.assertEqual(message["queue"][0]["ride_id"], self.ride.pk)
		self.assertEqual(message["queue"][0]["position"], 1)
		self.assertEqual(message["queue"][0]["priority"], 32.0)

		async_to_sync(layer.group_discard)(queue_group_name(self.event.id), channel)

	def test_serialize_queue_is_plain_data(self):
		ranked = [RankedRide(ride=self.ride, priority=12.345, position=1)]
		self.assertEqual(serialize_queue(ranked), [{
			"ride_id": self.ride.pk,
			"rider_id": self.ride.rider_id,
			"position": 1,
			"priority": 12.35,
			"status": RideStatus.QUEUED,
			"driver_id": None,
			"is_emergency": False,
		}])


class QueueConsumerTests(TransactionTestCase):
	def setUp(self):
		self.chapter = make_chapter()
		self.event = make_event(self.chapter)
		self.rider = make_user("rider", self.chapter, class_year=3)
		self.ride = make_ride(self.rider, self.event, requested_at=BASE_TIME)
		self.admin = make_user("chair", self.chapter, role="admin")
		self.driver = make_user("dd", self.chapter, class_year=4)
		make_assignment(self.driver, self.event)
		self.outsider = make_user("outsider", make_chapter("Beta Chapter"))

	async def _connect(self, user):
		communicator = WebsocketCommunicator(QueueConsumer.as_asgi(), "/ws/queue/")
		communicator.scope["user"] = user
		connected, _ = await communicator.connect()
		self.assertTrue(connected)
		greeting = await communicator.receive_json_from()
		self.assertEqual(greeting["type"], "connection_established")
		return communicator

	async def _subscribe(self, communicator):
		await communicator.send_json_to({"type": "subscribe_queue", "event_id": self.event.id})
		return await communicator.receive_json_from()

	async def test_member_of_another_chapter_never_sees_the_queue(self):
		communicator = await self._connect(self.outsider)
		response = await self._subscribe(communicator)

		self.assertEqual(response["type"], "queue_subscribed")
		self.assertNotIn("queue", response)
		self.assertIsNone(response["your_position"])
		await communicator.disconnect()

	async def test_rider_only_gets_own_position_from_pushes(self):
		communicator = await self._connect(self.rider)
		response = await self._subscribe(communicator)
		self.assertNotIn("queue", response)
		self.assertEqual(response["your_position"], 1)

		await get_channel_layer().group_send(queue_group_name(self.event.id), {
			"type": "queue_updated",
			"event_id": self.event.id,
			"queue": [
				{"ride_id": self.ride.id + 100, "rider_id": self.outsider.id, "position": 1},
				{"ride_id": self.ride.id, "rider_id": self.rider.id, "position": 2},
			],
		})
		update = await communicator.receive_json_from()

		self.assertEqual(update["type"], "queue_updated")
		self.assertNotIn("queue", update)
		self.assertEqual(update["your_position"], 2)
		await communicator.disconnect()

	async def test_chapter_admin_and_driver_get_full_queue(self):
		for user in (self.admin, self.driver):
			communicator = await self._connect(user)
			response = await self._subscribe(communicator)

			self.assertEqual([entry["ride_id"] for entry in response["queue"]], [self.ride.id])
			self.assertEqual(response["queue"][0]["rider_id"], self.rider.id)
			await communicator.disconnect()
