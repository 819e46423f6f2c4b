import os
import sys
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create missing directories if missing, and optionally error out when a path
# doesn't exist.
def ensure_directory(path: Path,must_exist=False):
    if must_exist:
        if not path.exists():
            raise FileNotFoundError(f"Required directory is missing: {path}")
        if not path.is_dir():
            raise NotADirectoryError(f"Expected a directory, got a file: {path}")
    else:
        path.mkdir(parents=True,exist_ok=True)
    return path

# Picks the folder all user-specific race data lives under. RACETIMER_HOME always wins, then the usual per-platform
# spot for app data.
def resolve_data_root() -> Path:
    override = os.getenv("RACETIMER_HOME")
    if override:
        return Path(override)
    appdata = os.getenv("APPDATA")
    if sys.platform == "win32" and appdata:
        return Path(appdata) / "RaceTimer"
    return Path.home() / ".racetimer"

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    root: Path
    data: Path

    logs: Path
    current: Path
    exports: Path
    races: Path

    @staticmethod
    def build():
        # Folder for the source tree itself, nothing user-specific
        root = Path(__file__).resolve().parents[2]

        # Folder for all racetimer user-specific and race related stuff
        data = ensure_directory(resolve_data_root())

        # Folders within the data folder
        logs = ensure_directory(data / "logs")
        current = ensure_directory(data / "current")
        exports = ensure_directory(data / "exports")
        races = ensure_directory(data / "completed_races")

        return ProjectPaths(
            root = root,
            data = data,
            logs = logs,
            current = current,
            exports = exports,
            races = races
        )
PATHS = ProjectPaths.build()
