import os
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create a directory (and its parents) if it's missing.
def ensure_directory(path: Path):
    path.mkdir(parents=True,exist_ok=True)
    return path

# Resolves where termtimer keeps its user data. TERMTIMER_HOME wins, then the XDG data dir, then the usual
# ~/.local/share fallback.
def resolve_data_root():
    override = os.getenv("TERMTIMER_HOME")
    if override:
        return Path(override).expanduser()
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data).expanduser() / "termtimer"
    return Path.home() / ".local" / "share" / "termtimer"

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    data: Path
    logs: Path

    @staticmethod
    def build():
        # Folder for all termtimer user-specific stuff (settings, database)
        data = ensure_directory(resolve_data_root())

        # Folders within the data folder
        logs = ensure_directory(data / "logs")

        return ProjectPaths(
            data = data,
            logs = logs,
        )
PATHS = ProjectPaths.build()
