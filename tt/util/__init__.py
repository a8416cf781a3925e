from tt.util.misc import format_time, format_date
