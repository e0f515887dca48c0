import asyncio
import threading
import unittest
from unittest.mock import MagicMock

from artisign.backend.realtime.notifier import Notifier, TopicHub, session_topic


class TestNotifier(unittest.TestCase):
    def test_uninitialized_transport_drops_and_logs(self):
        notifier = Notifier()
        with self.assertLogs("artisign.notifier", level="ERROR"):
            notifier.publish("u1", {"type": "letter"})

    def test_stamps_timestamp_and_routes_to_topic(self):
        hub = MagicMock()
        Notifier(hub).publish("u1", {"type": "word", "word": "Halo"})

        topic, payload = hub.publish.call_args.args
        self.assertEqual(topic, "/realtime/sign/u1")
        self.assertEqual(payload["type"], "word")
        self.assertEqual(payload["word"], "Halo")
        self.assertIsInstance(payload["timestamp"], int)

    def test_transport_errors_are_swallowed(self):
        hub = MagicMock()
        hub.publish.side_effect = RuntimeError("socket closed")
        with self.assertLogs("artisign.notifier", level="ERROR"):
            Notifier(hub).publish("u1", {"type": "correction"})


class TestTopicHub(unittest.IsolatedAsyncioTestCase):
    async def test_publish_reaches_topic_subscribers_only(self):
        hub = TopicHub()
        mine = hub.subscribe(session_topic("u1"))
        other = hub.subscribe(session_topic("u2"))

        delivered = hub.publish(session_topic("u1"), {"type": "letter"})

        self.assertEqual(delivered, 1)
        self.assertEqual(await mine.get(), {"type": "letter"})
        self.assertTrue(other.queue.empty())

    async def test_publish_without_subscribers(self):
        self.assertEqual(TopicHub().publish("/realtime/sign/x", {"type": "word"}), 0)

    async def test_full_queue_drops_oldest(self):
        hub = TopicHub(maxsize=2)
        sub = hub.subscribe("t")
        for i in range(3):
            hub.publish("t", {"n": i})

        self.assertEqual(sub.dropped, 1)
        self.assertEqual((await sub.get())["n"], 1)
        self.assertEqual((await sub.get())["n"], 2)

    async def test_unsubscribe(self):
        hub = TopicHub()
        sub = hub.subscribe("t")
        hub.unsubscribe(sub)
        hub.unsubscribe(sub)
        self.assertEqual(hub.subscriber_count("t"), 0)

    async def test_publish_from_another_thread(self):
        hub = TopicHub()
        sub = hub.subscribe("t")

        t = threading.Thread(target=hub.publish, args=("t", {"type": "word"}))
        t.start()
        t.join()

        self.assertEqual(await asyncio.wait_for(sub.get(), timeout=1.0), {"type": "word"})


if __name__ == "__main__":
    unittest.main()
