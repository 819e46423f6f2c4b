import copy
import json
from datetime import datetime
from rt.common.logger import log
from rt.common.setup import PATHS
from rt.core.models import Runner
from rt.core.session import RaceSession
from rt.util import now_iso


_SCHEMA_VERSION = 1

#region === Helpers and Paths ===

STATE_PATH = PATHS.current / "state.json"
RACES_DIR = PATHS.races

# Default values just for the settings section of the state dict.
_SETTINGS_DEFAULTS = {
    "theme": "Track Light",
    "font": "Segoe UI",
    "confirm_delete": True,
    "confirm_reset": True,
    "analysis_api_key": "",
    "analysis_model": "gemini-2.5-flash-preview-09-2025",
    "tick_ms": 10,
}

# The one runner a brand-new race starts with.
def default_runners():
    return [Runner(id=1, name="Runner 1").to_dict()]

# Helper to return a truly fresh, default state.
def build_default_state():
    return {
        "meta": {
            "schema_version": _SCHEMA_VERSION,
            "saved_at": now_iso(),
            "is_completed_race": False,
        },
        "settings": dict(_SETTINGS_DEFAULTS),
        "race": {
            "runners": default_runners(),
            "master_time": 0,
            "target_pace": "",
        },
    }

# Converts the runner list in a state dict into Runner objects. Entries that don't parse are dropped and logged rather
# than sinking the whole load.
def runners_from_dicts(raw_runners):
    runners = []
    for entry in raw_runners:
        try:
            runners.append(Runner.from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError):
            log.warning(f"Dropping unreadable runner entry from state: {entry!r}", exc_info=True)
    return runners

def runners_to_dicts(runners):
    return [r.to_dict() for r in runners]

# The latest clock reading any runner has recorded, either as a split total or a final time. The clock must never
# restart below this or the next split would get a negative lap.
def latest_recorded_ms(runners):
    latest = 0
    for runner in runners:
        if runner.splits:
            latest = max(latest, runner.splits[-1].total)
        if runner.final_time is not None:
            latest = max(latest, runner.final_time)
    return latest

# Builds the persisted "race" section from a live session. The clock value is frozen first so a running clock saves
# its current reading.
def race_section(session, target_pace=""):
    return {
        "runners": runners_to_dicts(session.runners),
        "master_time": session.clock.freeze(),
        "target_pace": target_pace,
    }

# Rebuilds a (paused) RaceSession from a loaded state dict.
def session_from_state(state, **kwargs):
    race = state["race"]
    runners = runners_from_dicts(race["runners"])
    return RaceSession(
        runners=runners,
        elapsed_ms=max(race["master_time"], latest_recorded_ms(runners)),
        **kwargs,
    )

#endregion === Helpers and Paths ===

#region === Saving and Loading State ===

# Loads the current state from PATHS.current / state.json, validating every section and defaulting whatever is
# missing or malformed.
def load_state():
    try:
        if not STATE_PATH.exists():
            log.info("No existing state.json found in `current`, loading fresh state dict.")
            return build_default_state()

        with open(STATE_PATH, "r", encoding="utf-8") as f:
            state = json.load(f)
        if not isinstance(state, dict):
            raise TypeError(f"state.json holds a {type(state).__name__}, expected an object")
        defaulted_values = set()

        # Validate the meta dict
        if "meta" not in state or not isinstance(state["meta"], dict):
            defaulted_values.add("meta")
            state["meta"] = {}
        if "schema_version" not in state["meta"] or not isinstance(state["meta"]["schema_version"], int):
            defaulted_values.add("meta.schema_version")
            state["meta"]["schema_version"] = _SCHEMA_VERSION
        if "is_completed_race" not in state["meta"] or not isinstance(state["meta"]["is_completed_race"], bool):
            defaulted_values.add("meta.is_completed_race")
            state["meta"]["is_completed_race"] = False

        # Validate the settings dict, fill in any necessary defaults
        if "settings" not in state or not isinstance(state["settings"],dict):
            defaulted_values.add("settings")
            state["settings"] = dict(_SETTINGS_DEFAULTS)
        else:
            for key, default in _SETTINGS_DEFAULTS.items():
                if key not in state["settings"] or type(state["settings"][key]) is not type(default):
                    defaulted_values.add(f"settings.{key}")
                    state["settings"][key] = default

        # Validate the race dict
        if "race" not in state or not isinstance(state["race"],dict):
            defaulted_values.add("race")
            state["race"] = build_default_state()["race"]
        else:
            race = state["race"]
            parsed = []
            if "runners" not in race or not isinstance(race["runners"],list):
                defaulted_values.add("race.runners")
                race["runners"] = default_runners()
            else:
                parsed = runners_from_dicts(race["runners"])
                if len(parsed) != len(race["runners"]):
                    defaulted_values.add("race.runners[dropped]")
                race["runners"] = runners_to_dicts(parsed)
            master_time = race.get("master_time")
            if isinstance(master_time, bool) or not isinstance(master_time, int) or master_time < 0:
                defaulted_values.add("race.master_time")
                race["master_time"] = 0
            # A clock behind the recorded splits is raised to the latest one
            latest = latest_recorded_ms(parsed)
            if race["master_time"] < latest:
                defaulted_values.add("race.master_time[behind splits]")
                race["master_time"] = latest
            if not isinstance(race.get("target_pace"), str):
                defaulted_values.add("race.target_pace")
                race["target_pace"] = ""

        # Log results
        if defaulted_values:
            log.warning(f"Successfully loaded current state dict from '{STATE_PATH}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded current state dict from '{STATE_PATH}'.")
        return state
    # Fall back to a fresh state dict in case of error, but warn in log
    except (FileNotFoundError, json.JSONDecodeError, OSError, TypeError):
        log.warning("Ran into an error while trying to load state.json, falling back to loading a fresh state dict.",exc_info=True)
        return build_default_state()
# Write the given state to disk under PATHS.current / state.json
def save_state(state):
    state["meta"]["saved_at"] = now_iso()
    STATE_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(STATE_PATH, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)
    log.debug(f"Successfully saved state to '{STATE_PATH}'")

# Archives the given state dict as a completed race in the PATHS.races folder, once every runner has finished.
def save_completed_race(state):
    completed = copy.deepcopy(state)
    completed["meta"]["is_completed_race"] = True
    completed["meta"]["saved_at"] = now_iso()
    # Never archive credentials along with results
    completed.get("settings", {}).pop("analysis_api_key", None)

    RACES_DIR.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    final_path = RACES_DIR / f"race_{ts}.json"
    with open(final_path, "w", encoding="utf-8") as f:
        json.dump(completed, f, indent=2)
    log.info(f"Saved completed race to '{final_path}'")
    return str(final_path)

#endregion === Saving and Loading State ===
