"""Skip-over row navigation: pure logic, no UI.

Rows stay visible whether or not they can take focus; stepping simply
passes over the disabled ones.
"""


def step_selection(selectable, current, step):
    """Return the row the cursor lands on after moving ``step`` (+1 or -1).

    Wraps at both ends. Disabled rows are skipped; if nothing other than
    ``current`` is selectable the cursor stays where it is. An empty mask
    leaves ``current`` untouched.
    """
    if not selectable:
        return current

    n = len(selectable)
    start = current % n if current is not None else 0
    candidate = start
    while True:
        candidate = (candidate + step) % n
        if selectable[candidate] or candidate == start:
            return candidate


def select_next(selectable, current):
    return step_selection(selectable, current, 1)


def select_previous(selectable, current):
    return step_selection(selectable, current, -1)
