import asyncio
import threading
import unittest

from artisign.backend.config import RealtimeConfig
from artisign.backend.realtime.errors import SessionNotFound
from artisign.backend.realtime.session import SessionStore, SessionSweeper


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


class TestSessionStore(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cfg = RealtimeConfig()
        self.store = SessionStore(self.cfg, clock=self.clock)

    def test_get_or_create_creates_empty_session(self):
        s = self.store.get_or_create("u1")

        self.assertEqual(s.id, "u1")
        self.assertEqual(s.current_word, "")
        self.assertEqual(s.full_text, "")
        self.assertEqual(s.stable_frame_count, 0)
        self.assertTrue(s.static_window.is_empty)
        self.assertEqual(s.static_window.capacity, self.cfg.static_window)
        self.assertEqual(s.dynamic_window.capacity, self.cfg.dynamic_window)
        self.assertEqual(s.last_activity, 1000.0)

    def test_get_or_create_returns_existing_and_touches(self):
        s = self.store.get_or_create("u1")
        s.current_word = "AB"
        self.clock.t = 1500.0

        again = self.store.get_or_create("u1")
        self.assertIs(again, s)
        self.assertEqual(again.last_activity, 1500.0)
        self.assertEqual(len(self.store), 1)

    def test_create_replaces_existing(self):
        s = self.store.get_or_create("u1")
        s.full_text = "HALO"

        fresh = self.store.create("u1", user_id="u1")
        self.assertIsNot(fresh, s)
        self.assertEqual(fresh.full_text, "")
        self.assertEqual(fresh.user_id, "u1")

    def test_get_unknown_raises_and_does_not_create(self):
        with self.assertRaises(SessionNotFound):
            self.store.get("nope")
        self.assertNotIn("nope", self.store)

    def test_status_does_not_touch(self):
        self.store.get_or_create("u1")
        self.clock.t = 2000.0

        snap = self.store.status("u1")
        self.assertEqual(snap["sessionId"], "u1")
        self.assertEqual(self.store.get("u1", touch=False).last_activity, 1000.0)

    def test_remove(self):
        self.store.get_or_create("u1")
        self.store.remove("u1")
        self.assertNotIn("u1", self.store)
        with self.assertRaises(SessionNotFound):
            self.store.remove("u1")

    def test_remove_expected_leaves_newer_session(self):
        old = self.store.get_or_create("u1")
        new = self.store.create("u1")
        self.assertTrue(old.closed)

        self.assertIsNone(self.store.remove("u1", expected=old))
        self.assertIs(self.store.get("u1"), new)
        self.assertFalse(new.closed)

        self.assertIs(self.store.remove("u1", expected=new), new)
        self.assertNotIn("u1", self.store)
        self.assertTrue(new.closed)

    def test_sweep_closes_sessions(self):
        s = self.store.get_or_create("u1")
        self.store.sweep(now=s.last_activity + 10, timeout=1)
        self.assertTrue(s.closed)

    def test_concurrent_create_sweep_remove(self):
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    sid = f"s{n}-{i % 5}"
                    self.store.get_or_create(sid)
                    if i % 3 == 0:
                        self.store.create(sid)
                    if i % 7 == 0:
                        self.store.sweep(now=self.clock.t, timeout=-1)
                    try:
                        self.store.remove(sid)
                    except SessionNotFound:
                        pass
                    self.store.get_or_create(sid)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.store.sweep(now=self.clock.t, timeout=-1)
        self.assertEqual(len(self.store), 0)

    def test_sweep_removes_only_expired(self):
        old = self.store.get_or_create("old")
        self.clock.t = 1000.0 + 50
        self.store.get_or_create("fresh")

        timeout = 100.0
        with self.assertLogs("artisign.sessions", level="INFO"):
            removed = self.store.sweep(now=old.last_activity + timeout + 1, timeout=timeout)

        self.assertEqual(removed, ["old"])
        self.assertNotIn("old", self.store)
        self.assertIn("fresh", self.store)

    def test_sweep_keeps_session_exactly_at_timeout(self):
        s = self.store.get_or_create("u1")
        removed = self.store.sweep(now=s.last_activity + 100.0, timeout=100.0)
        self.assertEqual(removed, [])

    def test_sweep_uses_configured_timeout(self):
        self.store.get_or_create("u1")
        self.clock.t += self.cfg.session_timeout_s + 1
        self.assertEqual(self.store.sweep(), ["u1"])


class TestSessionSweeper(unittest.IsolatedAsyncioTestCase):
    async def test_sweeps_periodically(self):
        clock = FakeClock()
        store = SessionStore(RealtimeConfig(session_timeout_s=10), clock=clock)
        store.get_or_create("u1")
        clock.t += 11

        sweeper = SessionSweeper(store, interval_s=0.01)
        sweeper.start()
        self.assertTrue(sweeper.running)
        try:
            for _ in range(100):
                if "u1" not in store:
                    break
                await asyncio.sleep(0.01)
        finally:
            await sweeper.stop()

        self.assertNotIn("u1", store)
        self.assertFalse(sweeper.running)


if __name__ == "__main__":
    unittest.main()
