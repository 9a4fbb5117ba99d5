from __future__ import annotations

import unittest
from datetime import datetime, timezone

from controller.action_log import ActionLog


class ActionLogTests(unittest.TestCase):
    def test_record_captures_outcome(self):
        log = ActionLog()
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        rec = log.record("Boss", "hi", success=False, error_detail="user not found", timestamp=ts)
        self.assertEqual(rec.outcome, "failure")
        self.assertEqual(rec.timestamp, ts)
        self.assertEqual(rec.error_detail, "user not found")
        self.assertEqual(len(log), 1)

    def test_storage_is_capped(self):
        log = ActionLog(cap=3)
        for i in range(10):
            log.record(f"user{i}", "x", success=True)
        self.assertEqual(len(log), 3)
        self.assertEqual([r.recipient for r in log.recent(10)], ["user7", "user8", "user9"])

    def test_digest_reads_last_entries_only(self):
        log = ActionLog()
        for i in range(7):
            log.record(f"user{i}", f"msg {i}", success=True)
        log.record("Tun", "ignored", success=False)
        digest = log.digest(5)
        self.assertTrue(digest.startswith("Recent DMs: "))
        self.assertNotIn("user2", digest)
        self.assertIn('sent DM to user6: "msg 6"', digest)
        self.assertTrue(digest.endswith("failed to DM Tun"))

    def test_empty_digest(self):
        self.assertEqual(ActionLog().digest(), "")
        self.assertEqual(ActionLog().recent(0), [])


if __name__ == "__main__":
    unittest.main()
