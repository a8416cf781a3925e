"""Tracking session: the timer collection, selection and screen state, no UI.

The host feeds decoded commands in and reads the public attributes back out
to render. Every command is tied to the screen it makes sense on; anywhere
else it does nothing.
"""

from dataclasses import dataclass
from enum import Enum
from tt.common.logger import log
from tt.core import navigation
from tt.core.storage import StorageError
from tt.core.timer import Timer


class Screen(Enum):
    MAIN = "main"
    ADD_TIMER = "add_timer"
    CONFIRM_EXIT = "confirm_exit"


class EditField(Enum):
    NAME = "name"
    DESCRIPTION = "description"

    def advance(self):
        """Name and description take turns."""
        if self is EditField.NAME:
            return EditField.DESCRIPTION
        return EditField.NAME


@dataclass
class Row:
    """One line of the timer list. Header rows are shown but never focused."""
    kind: str                 # "header" or "timer"
    label: str = ""
    timer: Timer | None = None

    @property
    def is_selectable(self):
        return self.kind == "timer"


class TrackingSession:
    """Owns every timer for this run, plus the cursor and the add-timer form.

    ``store`` is anything offering ``count_timers()``, ``persist_timer(record)``,
    ``transaction()`` and ``load_timers()``; see ``tt.core.storage.TimerStore``.
    """

    def __init__(self, store, date_headers=True):
        self.store = store
        self.date_headers = date_headers
        self._timers = []
        self.rows = []
        self.selected = None
        self.screen = Screen.MAIN
        self.editing = None
        self.name_input = ""
        self.description_input = ""
        self.should_exit = False

    #region === Read accessors ===

    @property
    def timers(self):
        return tuple(self._timers)

    @property
    def selectable_rows(self):
        return [row.is_selectable for row in self.rows]

    @property
    def running_timer(self):
        return next((t for t in self._timers if t.running), None)

    @property
    def selected_timer(self):
        if self.selected is None or not 0 <= self.selected < len(self.rows):
            return None
        return self.rows[self.selected].timer

    #endregion === Read accessors ===

    #region === Rows and navigation ===

    # Rebuilds the row layout from the timers. Timers only ever get appended, so existing rows keep their
    # indices and the cursor only needs placing the first time rows show up.
    def _rebuild_rows(self):
        rows = []
        last_date = None
        for timer in self._timers:
            if self.date_headers:
                date = timer.formatted_date()
                if date != last_date:
                    rows.append(Row("header", label=date))
                    last_date = date
            rows.append(Row("timer", label=timer.name, timer=timer))
        self.rows = rows

        if not rows:
            self.selected = None
        elif self.selected is None or self.selected >= len(rows):
            mask = self.selectable_rows
            self.selected = mask.index(True) if True in mask else 0

    def select_next(self):
        if self.screen is not Screen.MAIN:
            return
        self.selected = navigation.select_next(self.selectable_rows, self.selected)
        log.debug(f"Selected row {self.selected}")

    def select_previous(self):
        if self.screen is not Screen.MAIN:
            return
        self.selected = navigation.select_previous(self.selectable_rows, self.selected)
        log.debug(f"Selected row {self.selected}")

    #endregion === Rows and navigation ===

    #region === Add timer form ===

    def begin_add_screen(self):
        if self.screen is not Screen.MAIN:
            return
        self.screen = Screen.ADD_TIMER
        self.editing = None
        self.toggle_edit_field()

    # Leaves the form and throws away whatever was typed.
    def cancel_add_screen(self):
        if self.screen is not Screen.ADD_TIMER:
            return
        self._reset_form()
        self.screen = Screen.MAIN

    def toggle_edit_field(self):
        if self.screen is not Screen.ADD_TIMER:
            return
        self.editing = EditField.NAME if self.editing is None else self.editing.advance()

    def append_char(self, field, ch):
        if self.screen is not Screen.ADD_TIMER or field is None:
            return
        if field is EditField.NAME:
            self.name_input += ch
        else:
            self.description_input += ch

    def backspace(self, field):
        if self.screen is not Screen.ADD_TIMER or field is None:
            return
        if field is EditField.NAME:
            self.name_input = self.name_input[:-1]
        else:
            self.description_input = self.description_input[:-1]

    def _reset_form(self):
        self.name_input = ""
        self.description_input = ""
        self.editing = None

    # Creates, starts and persists a timer from the form. Whatever was running gets stopped first, and the stop
    # is written in the same transaction as the new row so storage never shows two running timers. If any of
    # the storage calls fail nothing in memory changes (the form keeps its text) and the StorageError goes up
    # to the host.
    def commit_new_timer(self):
        if self.screen is not Screen.ADD_TIMER:
            return None

        count = self.store.count_timers()
        timer = Timer(count + 1, self.name_input, self.description_input)

        predecessor = self.running_timer
        if predecessor is not None:
            predecessor.stop()
        try:
            with self.store.transaction():
                if predecessor is not None:
                    self.store.persist_timer(predecessor.to_record())
                self.store.persist_timer(timer.to_record())
        except StorageError:
            if predecessor is not None:
                predecessor.start()
            log.warning(f"Could not save new timer '{timer.name}', nothing was changed")
            raise

        self._timers.append(timer)
        self._rebuild_rows()
        self._reset_form()
        self.screen = Screen.MAIN
        log.info(f"Created timer {timer.id} '{timer.name}'")
        return timer

    #endregion === Add timer form ===

    #region === Exit ===

    def request_exit(self):
        if self.screen is Screen.MAIN:
            self.screen = Screen.CONFIRM_EXIT

    def confirm_exit_yes(self):
        if self.screen is Screen.CONFIRM_EXIT:
            self.should_exit = True
            log.info("Exit confirmed")

    def confirm_exit_no(self):
        if self.screen is Screen.CONFIRM_EXIT:
            self.screen = Screen.MAIN

    #endregion === Exit ===

    #region === Ticks and persistence ===

    def tick(self):
        running = self.running_timer
        if running is not None:
            running.tick()

    # Loads every stored timer. Should storage somehow hold more than one running row, only the newest keeps
    # running and the others are written back as stopped.
    def restore(self):
        timers = [Timer.from_record(record) for record in self.store.load_timers()]
        running = [t for t in timers if t.running]
        if len(running) > 1:
            with self.store.transaction():
                for stale in running[:-1]:
                    log.warning(f"Timer {stale.id} was also stored as running, stopping it")
                    stale.stop()
                    self.store.persist_timer(stale.to_record())

        self._timers = timers
        self.selected = None
        self._rebuild_rows()
        log.info(f"Restored {len(timers)} timers from storage")
        return self.timers

    # Writes the running timer's elapsed time to storage. Returns the timer that was saved, if any.
    def checkpoint(self):
        running = self.running_timer
        if running is None:
            return None
        self.store.persist_timer(running.to_record())
        return running

    #endregion === Ticks and persistence ===
