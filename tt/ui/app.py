from rich import box
from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Header, Static
from tt.common.logger import log
from tt.core.session import EditField, Screen
from tt.core.storage import StorageError
from tt.ui.keymap import handle_key

_HELP = {
    Screen.MAIN: "j/k move   a add timer   q quit",
    Screen.ADD_TIMER: "tab switch field   enter save   esc cancel",
    Screen.CONFIRM_EXIT: "y quit   n stay",
}


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# The terminal front end. Everything it shows is read back from the tracking session after each key press or
# tick; it holds no timer state of its own.
class TimerApp(App):

    TITLE = "TermTimer"
    CSS = """
    #timers {
        height: 1fr;
    }
    #form, #prompt {
        height: auto;
        border: round $accent;
        padding: 0 1;
    }
    #help {
        height: 1;
        color: $text-muted;
    }
    """
    # These would otherwise be eaten by focus handling before on_key sees them.
    BINDINGS = [
        Binding(key, f"press('{key}')", show=False, priority=True)
        for key in ("tab", "enter", "escape", "backspace", "up", "down")
    ]

    # Timer.tick adds exactly one second, so the host has to tick once a second.
    TICK_SECONDS = 1.0

    def __init__(self, session, settings):
        super().__init__()
        self.session = session
        self.settings = settings
        self._tick_n = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(id="timers")
        yield Static(id="form")
        yield Static(id="prompt")
        yield Static(id="help")

    def on_mount(self):
        self.refresh_view()
        self.set_interval(self.TICK_SECONDS, self._tick)
        log.info(f"TermTimer UI started, ticking every {self.TICK_SECONDS}s")

    # ------------------------------------------------------------------ #
    #  Input                                                               #
    # ------------------------------------------------------------------ #

    def on_key(self, event: events.Key):
        if self._press(event.key, event.character):
            event.stop()
            event.prevent_default()

    def action_press(self, key):
        self._press(key)

    def _press(self, key, character=None):
        try:
            handled = handle_key(self.session, key, character)
        except StorageError as e:
            log.exception("Creating a timer failed")
            self.notify(str(e), title="Could not save timer", severity="error")
            handled = True

        if self.session.should_exit:
            self._save_and_exit()
        else:
            self.refresh_view()
        return handled

    def _save_and_exit(self):
        self._checkpoint("app_exit")
        self.exit()

    # ctrl+q goes through the same confirmation as q, so the running timer is saved before leaving.
    async def action_quit(self):
        self.session.request_exit()
        self.refresh_view()

    # ------------------------------------------------------------------ #
    #  Tick / autosave                                                     #
    # ------------------------------------------------------------------ #

    def _tick(self):
        self.session.tick()
        self._tick_n += 1
        if self._tick_n % self.settings["autosave_ticks"] == 0:
            self._checkpoint("autosave")
        self.refresh_view()

    def _checkpoint(self, reason):
        try:
            saved = self.session.checkpoint()
        except StorageError:
            log.exception(f"Checkpoint for reason '{reason}' failed")
            return
        if saved is not None:
            log.debug(f"Checkpointed timer {saved.id} for reason '{reason}'")

    # ------------------------------------------------------------------ #
    #  Display helpers                                                     #
    # ------------------------------------------------------------------ #

    def refresh_view(self):
        session = self.session
        self.query_one("#timers", Static).update(self._build_table())

        form = self.query_one("#form", Static)
        form.display = session.screen is Screen.ADD_TIMER
        if form.display:
            form.update(self._build_form())

        prompt = self.query_one("#prompt", Static)
        prompt.display = session.screen is Screen.CONFIRM_EXIT
        if prompt.display:
            prompt.update(Text("Quit TermTimer? (y/n)", style="bold"))

        self.query_one("#help", Static).update(_HELP[session.screen])

    def _build_table(self):
        session = self.session
        if not session.rows:
            return Text("No timers yet, press 'a' to add one.", style="italic")

        table = Table(expand=True, box=box.SIMPLE_HEAD)
        table.add_column("ID", justify="right", width=4)
        table.add_column("Name", ratio=2)
        table.add_column("Description", ratio=3)
        table.add_column("Date", width=10)
        table.add_column("Duration", justify="right", width=10)

        for index, row in enumerate(session.rows):
            timer = row.timer
            if timer is None:
                table.add_row("", Text(row.label, style="dim italic"), "", "", "")
                continue
            styles = []
            if timer.running:
                styles.append("bold")
            if index == session.selected:
                styles.append("reverse")
            table.add_row(
                str(timer.id),
                timer.name,
                timer.description,
                timer.formatted_date(),
                timer.formatted_duration(),
                style=" ".join(styles) or None,
            )
        return table

    def _build_form(self):
        session = self.session
        text = Text()
        for label, field, value in (
            ("Name", EditField.NAME, session.name_input),
            ("Description", EditField.DESCRIPTION, session.description_input),
        ):
            active = session.editing is field
            text.append(f"{label:<12} ", style="bold" if active else "dim")
            text.append(value)
            if active:
                text.append("_", style="blink")
            if field is EditField.NAME:
                text.append("\n")
        return text
