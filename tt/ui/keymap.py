"""Turns terminal key presses into tracking session commands.

Key names follow Textual's (``"down"``, ``"tab"``, ``"enter"``, ...);
``character`` is the printable character for the press, if any.
"""

from tt.core.session import Screen


def _handle_main(session, key, character):
    if key in ("j", "down"):
        session.select_next()
    elif key in ("k", "up"):
        session.select_previous()
    elif key == "a":
        session.begin_add_screen()
    elif key == "q":
        session.request_exit()
    else:
        return False
    return True


def _handle_add_timer(session, key, character):
    if key == "tab":
        session.toggle_edit_field()
    elif key == "enter":
        # A timer needs at least a name, blank names just keep the form open.
        if session.name_input.strip():
            session.commit_new_timer()
    elif key == "escape":
        session.cancel_add_screen()
    elif key == "backspace":
        session.backspace(session.editing)
    elif character and character.isprintable():
        session.append_char(session.editing, character)
    else:
        return False
    return True


def _handle_confirm_exit(session, key, character):
    if key == "y":
        session.confirm_exit_yes()
    elif key in ("n", "q", "escape"):
        session.confirm_exit_no()
    else:
        return False
    return True


_HANDLERS = {
    Screen.MAIN: _handle_main,
    Screen.ADD_TIMER: _handle_add_timer,
    Screen.CONFIRM_EXIT: _handle_confirm_exit,
}


def handle_key(session, key, character=None):
    """Apply the command bound to ``key`` on the session's current screen.

    Returns True when the key meant something there. A StorageError from
    creating a timer is left for the caller to report.
    """
    return _HANDLERS[session.screen](session, key, character)
