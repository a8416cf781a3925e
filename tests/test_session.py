"""Tests for the tracking session: creation, the single running timer, rows, screens.

Covers: tt.core.session (backed by an in-memory tt.core.storage.TimerStore)
"""

import os
import tempfile
import unittest
from datetime import datetime, timedelta

os.environ.setdefault("TERMTIMER_HOME", tempfile.mkdtemp(prefix="termtimer_test_"))

from tt.core.storage import StorageError, TimerStore


class FlakyStore(TimerStore):
    """In-memory store that can be told to reject counts or writes."""

    def __init__(self):
        super().__init__(":memory:")
        self.fail_count = False
        self.fail_persist_ids = set()

    def count_timers(self):
        if self.fail_count:
            raise StorageError("database is locked")
        return super().count_timers()

    def persist_timer(self, record):
        if record["id"] in self.fail_persist_ids:
            raise StorageError("disk I/O error")
        super().persist_timer(record)


def _make_session(store=None, date_headers=True):
    from tt.core.session import TrackingSession
    store = store or FlakyStore()
    return TrackingSession(store.open(), date_headers=date_headers)


def _add(session, name, description=""):
    session.begin_add_screen()
    session.name_input = name
    session.description_input = description
    return session.commit_new_timer()


# ──────────────────────────────────────────────────────────────────────────
# Timer creation
# ──────────────────────────────────────────────────────────────────────────

class TestCommitNewTimer(unittest.TestCase):

    def setUp(self):
        self.store = FlakyStore()
        self.session = _make_session(self.store)

    def tearDown(self):
        self.store.close()

    def test_scenario_two_timers_then_ticks(self):
        """A then B: only B runs, and only B accumulates ticks."""
        a = _add(self.session, "A", "first")
        self.assertEqual(a.id, 1)
        self.assertTrue(a.running)

        b = _add(self.session, "B", "second")
        self.assertEqual(b.id, 2)
        self.assertFalse(a.running)
        self.assertTrue(b.running)
        self.assertEqual(list(self.session.timers), [a, b])

        for _ in range(5):
            self.session.tick()
        self.assertEqual(b.elapsed, 5)
        self.assertEqual(a.elapsed, 0)

    def test_single_running_after_every_commit(self):
        for i in range(6):
            _add(self.session, f"T{i}")
            running = [t for t in self.session.timers if t.running]
            self.assertEqual(len(running), 1)
            self.assertIs(running[0], self.session.timers[-1])

    def test_ids_increase_by_one(self):
        ids = [_add(self.session, f"T{i}").id for i in range(4)]
        self.assertEqual(ids, [1, 2, 3, 4])

    def test_commit_clears_form_and_returns_to_main(self):
        from tt.core.session import Screen
        _add(self.session, "Emails", "Inbox zero")
        self.assertEqual(self.session.name_input, "")
        self.assertEqual(self.session.description_input, "")
        self.assertIsNone(self.session.editing)
        self.assertIs(self.session.screen, Screen.MAIN)

    def test_commit_persists_new_and_stopped_predecessor(self):
        _add(self.session, "A")
        _add(self.session, "B")
        records = {r["id"]: r for r in self.store.load_timers()}
        self.assertFalse(records[1]["running"])
        self.assertTrue(records[2]["running"])
        self.assertEqual(records[2]["name"], "B")

    def test_stops_whichever_timer_is_running(self):
        """The running timer is stopped even when it isn't last in the list."""
        a = _add(self.session, "A")
        b = _add(self.session, "B")
        b.stop()
        a.start()
        c = _add(self.session, "C")
        self.assertFalse(a.running)
        self.assertFalse(b.running)
        self.assertTrue(c.running)

    def test_count_failure_keeps_everything(self):
        from tt.core.session import Screen
        a = _add(self.session, "A")
        self.session.begin_add_screen()
        self.session.name_input = "B"
        self.session.description_input = "typed text"
        self.store.fail_count = True

        with self.assertRaises(StorageError):
            self.session.commit_new_timer()
        self.assertEqual(len(self.session.timers), 1)
        self.assertTrue(a.running)
        self.assertEqual(self.session.name_input, "B")
        self.assertEqual(self.session.description_input, "typed text")
        self.assertIs(self.session.screen, Screen.ADD_TIMER)

    def test_persist_failure_is_atomic(self):
        """A rejected write leaves memory and storage exactly as they were."""
        a = _add(self.session, "A")
        for _ in range(3):
            self.session.tick()
        self.session.begin_add_screen()
        self.session.name_input = "B"
        self.store.fail_persist_ids = {2}

        with self.assertRaises(StorageError):
            self.session.commit_new_timer()
        self.assertEqual(len(self.session.timers), 1)
        self.assertTrue(a.running)
        self.assertEqual(self.session.name_input, "B")

        # The predecessor's stop was rolled back along with the failed insert
        records = self.store.load_timers()
        self.assertEqual(len(records), 1)
        self.assertTrue(records[0]["running"])

    def test_failed_creation_does_not_consume_id(self):
        _add(self.session, "A")
        self.session.begin_add_screen()
        self.session.name_input = "B"
        self.store.fail_persist_ids = {2}
        with self.assertRaises(StorageError):
            self.session.commit_new_timer()

        self.store.fail_persist_ids = set()
        b = self.session.commit_new_timer()
        self.assertEqual(b.id, 2)
        self.assertEqual(b.name, "B")

    def test_commit_outside_add_screen_is_noop(self):
        self.session.name_input = "stray"
        self.assertIsNone(self.session.commit_new_timer())
        self.assertEqual(self.session.timers, ())
        self.assertEqual(self.store.count_timers(), 0)


# ──────────────────────────────────────────────────────────────────────────
# Ticks
# ──────────────────────────────────────────────────────────────────────────

class TestTick(unittest.TestCase):

    def test_tick_without_timers_is_noop(self):
        session = _make_session()
        session.tick()
        self.assertEqual(session.timers, ())

    def test_tick_with_nothing_running(self):
        session = _make_session()
        a = _add(session, "A")
        a.stop()
        session.tick()
        self.assertEqual(a.elapsed, 0)


# ──────────────────────────────────────────────────────────────────────────
# Rows and navigation
# ──────────────────────────────────────────────────────────────────────────

class TestRowsAndNavigation(unittest.TestCase):

    def test_empty_session_has_no_selection(self):
        session = _make_session()
        self.assertEqual(session.rows, [])
        self.assertIsNone(session.selected)
        session.select_next()
        session.select_previous()
        self.assertIsNone(session.selected)

    def test_date_header_precedes_timers(self):
        session = _make_session()
        a = _add(session, "A")
        b = _add(session, "B")
        self.assertEqual([r.kind for r in session.rows], ["header", "timer", "timer"])
        self.assertEqual(session.rows[0].label, a.formatted_date())
        self.assertEqual(session.selectable_rows, [False, True, True])
        self.assertIs(session.rows[2].timer, b)

    def test_cursor_starts_on_first_timer(self):
        session = _make_session()
        a = _add(session, "A")
        self.assertEqual(session.selected, 1)
        self.assertIs(session.selected_timer, a)

    def test_navigation_skips_header_and_wraps(self):
        session = _make_session()
        a = _add(session, "A")
        b = _add(session, "B")
        session.select_next()
        self.assertIs(session.selected_timer, b)
        session.select_next()
        self.assertIs(session.selected_timer, a)
        session.select_previous()
        self.assertIs(session.selected_timer, b)

    def test_cursor_stays_put_when_timers_are_added(self):
        session = _make_session()
        a = _add(session, "A")
        _add(session, "B")
        _add(session, "C")
        self.assertIs(session.selected_timer, a)

    def test_headers_per_start_date(self):
        from tt.core.timer import Timer
        store = FlakyStore().open()
        yesterday = datetime.now().astimezone() - timedelta(days=1)
        store.persist_timer(Timer(1, "Old", "", start_time=yesterday, running=False).to_record())
        store.persist_timer(Timer(2, "New", "").to_record())

        session = _make_session(store)
        session.restore()
        self.assertEqual([r.kind for r in session.rows], ["header", "timer", "header", "timer"])
        self.assertEqual(session.selected, 1)
        session.select_next()
        self.assertEqual(session.selected, 3)
        session.select_next()
        self.assertEqual(session.selected, 1)

    def test_without_date_headers_every_row_selectable(self):
        session = _make_session(date_headers=False)
        _add(session, "A")
        _add(session, "B")
        self.assertEqual(session.selectable_rows, [True, True])
        self.assertEqual(session.selected, 0)

    def test_navigation_ignored_off_main_screen(self):
        session = _make_session()
        _add(session, "A")
        _add(session, "B")
        session.begin_add_screen()
        session.select_next()
        self.assertEqual(session.selected, 1)


# ──────────────────────────────────────────────────────────────────────────
# Screens and the add-timer form
# ──────────────────────────────────────────────────────────────────────────

class TestScreensAndForm(unittest.TestCase):

    def test_edit_field_cycle(self):
        from tt.core.session import EditField
        self.assertIs(EditField.NAME.advance(), EditField.DESCRIPTION)
        self.assertIs(EditField.DESCRIPTION.advance(), EditField.NAME)

    def test_begin_add_starts_on_name(self):
        from tt.core.session import EditField, Screen
        session = _make_session()
        session.begin_add_screen()
        self.assertIs(session.screen, Screen.ADD_TIMER)
        self.assertIs(session.editing, EditField.NAME)

    def test_toggle_edit_field_alternates(self):
        from tt.core.session import EditField
        session = _make_session()
        session.begin_add_screen()
        session.toggle_edit_field()
        self.assertIs(session.editing, EditField.DESCRIPTION)
        session.toggle_edit_field()
        self.assertIs(session.editing, EditField.NAME)

    def test_toggle_on_main_screen_is_noop(self):
        session = _make_session()
        session.toggle_edit_field()
        self.assertIsNone(session.editing)

    def test_append_and_backspace_per_field(self):
        from tt.core.session import EditField
        session = _make_session()
        session.begin_add_screen()
        for ch in "Dev":
            session.append_char(EditField.NAME, ch)
        for ch in "PR #12":
            session.append_char(EditField.DESCRIPTION, ch)
        session.backspace(EditField.NAME)
        self.assertEqual(session.name_input, "De")
        self.assertEqual(session.description_input, "PR #12")
        session.backspace(EditField.DESCRIPTION)
        self.assertEqual(session.description_input, "PR #1")

    def test_backspace_on_empty_buffer(self):
        from tt.core.session import EditField
        session = _make_session()
        session.begin_add_screen()
        session.backspace(EditField.NAME)
        self.assertEqual(session.name_input, "")

    def test_buffer_edits_ignored_outside_form(self):
        from tt.core.session import EditField
        session = _make_session()
        session.append_char(EditField.NAME, "x")
        self.assertEqual(session.name_input, "")
        session.begin_add_screen()
        session.append_char(None, "x")
        self.assertEqual(session.name_input, "")

    def test_cancel_discards_form(self):
        from tt.core.session import Screen
        session = _make_session()
        session.begin_add_screen()
        session.name_input = "half typed"
        session.cancel_add_screen()
        self.assertIs(session.screen, Screen.MAIN)
        self.assertEqual(session.name_input, "")
        self.assertIsNone(session.editing)

    def test_exit_flow(self):
        from tt.core.session import Screen
        session = _make_session()
        session.confirm_exit_yes()
        self.assertFalse(session.should_exit)

        session.request_exit()
        self.assertIs(session.screen, Screen.CONFIRM_EXIT)
        session.confirm_exit_no()
        self.assertIs(session.screen, Screen.MAIN)
        self.assertFalse(session.should_exit)

        session.request_exit()
        session.confirm_exit_yes()
        self.assertTrue(session.should_exit)

    def test_request_exit_ignored_in_form(self):
        from tt.core.session import Screen
        session = _make_session()
        session.begin_add_screen()
        session.request_exit()
        self.assertIs(session.screen, Screen.ADD_TIMER)


# ──────────────────────────────────────────────────────────────────────────
# Restore and checkpoint
# ──────────────────────────────────────────────────────────────────────────

class TestRestoreAndCheckpoint(unittest.TestCase):

    def setUp(self):
        self.store = FlakyStore().open()

    def tearDown(self):
        self.store.close()

    def test_restore_loads_in_id_order(self):
        first = _make_session(self.store)
        _add(first, "A")
        _add(first, "B")

        second = _make_session(self.store)
        second.restore()
        self.assertEqual([t.name for t in second.timers], ["A", "B"])
        self.assertTrue(second.timers[1].running)
        self.assertFalse(second.timers[0].running)
        # Continues numbering from what's stored
        self.assertEqual(_add(second, "C").id, 3)

    def test_restore_keeps_only_newest_running(self):
        from tt.core.timer import Timer
        for i in (1, 2, 3):
            self.store.persist_timer(Timer(i, f"T{i}", "").to_record())

        session = _make_session(self.store)
        session.restore()
        self.assertEqual([t.running for t in session.timers], [False, False, True])
        self.assertEqual([r["running"] for r in self.store.load_timers()], [False, False, True])

    def test_checkpoint_saves_running_elapsed(self):
        session = _make_session(self.store)
        _add(session, "A")
        for _ in range(4):
            session.tick()
        saved = session.checkpoint()
        self.assertEqual(saved.id, 1)
        self.assertEqual(self.store.load_timers()[0]["elapsed"], 4)

    def test_checkpoint_with_nothing_running(self):
        session = _make_session(self.store)
        self.assertIsNone(session.checkpoint())


if __name__ == "__main__":
    unittest.main()
