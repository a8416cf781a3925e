# Format elapsed seconds as HH:MM:SS. Hours are unbounded, negative values clamp to zero.
def format_time(seconds):
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


# Day-first calendar date, like 19-10-2026.
def format_date(dt):
    return dt.strftime("%d-%m-%Y")
