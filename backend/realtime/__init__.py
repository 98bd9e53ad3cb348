"""
Realtime package for WebSocket communication.

Key Components:
    - consumers/: WebSocket consumers (queue subscriptions, ride events, admin alerts)
    - notifications.py: Channels group push helpers
    - feed.py: Pull-based queue change feed

Usage:
    from realtime.notifications import notify_queue_changed, notify_rider_event
    from realtime.feed import queue_snapshots, ride_position_updates
"""
