import json
from pathlib import Path
from tt.common.logger import log
from tt.common.setup import PATHS


#region === Helpers and Paths ===

SETTINGS_PATH = PATHS.data / "settings.json"

# Default values for every setting, along with the types each one is allowed to hold.
_SETTINGS_DEFAULTS = {
    "autosave_ticks": 30,
    "database": "timers.db",
    "date_headers": True,
}
_SETTINGS_TYPES = {
    "autosave_ticks": int,
    "database": str,
    "date_headers": bool,
}

# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

# Checks a single value against its allowed type. bool is a subclass of int, so it has to be ruled out for the
# numeric settings by hand.
def _valid_value(key, value):
    expected = _SETTINGS_TYPES[key]
    if isinstance(value, bool) and expected is not bool:
        return False
    if not isinstance(value, expected):
        return False
    if key == "autosave_ticks" and value <= 0:
        return False
    if key == "database" and not value.strip():
        return False
    return True

# Resolves the configured database name to a full path. Relative names live in the data folder.
def database_path(settings):
    path = Path(settings["database"]).expanduser()
    if not path.is_absolute():
        path = SETTINGS_PATH.parent / path
    return path

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings.json, filling in defaults for anything missing or invalid. A missing file gets written out with
# the defaults so there's something to edit.
def load_settings():
    try:
        if not SETTINGS_PATH.exists():
            settings = build_default_settings()
            save_settings(settings)
            log.info(f"No existing settings.json found, wrote fresh defaults to '{SETTINGS_PATH}'.")
            return settings

        with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise TypeError(f"settings.json must hold an object, got {type(loaded).__name__}")

        settings = {}
        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            if key in loaded and _valid_value(key, loaded[key]):
                settings[key] = loaded[key]
            else:
                defaulted_values.add(key)
                settings[key] = default

        if defaulted_values:
            log.warning(f"Loaded settings from '{SETTINGS_PATH}', but with missing or invalid values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{SETTINGS_PATH}'.")
        return settings
    # Fall back to fresh defaults in case of error, but warn in log
    except (json.JSONDecodeError, OSError, TypeError):
        log.warning("Ran into an error while trying to load settings.json, falling back to default settings.",exc_info=True)
        return build_default_settings()

# Write the given settings to disk under the data folder.
def save_settings(settings):
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{SETTINGS_PATH}'")

#endregion === Saving and Loading Settings ===
