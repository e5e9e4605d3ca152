import json
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "extrato"
SETTINGS_PATH = CONFIG_DIR / "settings.json"

DEFAULTS = {
    "default_bank": "AUTO",  # bank code, or AUTO to detect
    "encoding": "utf-8-sig",  # tried before the utf-8/cp1252 fallbacks
    "log_level": "ERROR",
}

# stored upper-case to match bank codes and logging level names
_UPPERCASE_KEYS = ("default_bank", "log_level")


def load_settings() -> dict:
    settings = dict(DEFAULTS)
    if SETTINGS_PATH.exists():
        settings.update(json.loads(SETTINGS_PATH.read_text(encoding="utf-8")))
    return settings


def save_settings(settings: dict) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(json.dumps(settings, indent=2) + "\n", encoding="utf-8")


def update_settings(**changes) -> dict:
    """Persist the changes that are not None and return the merged settings."""
    settings = load_settings()
    for key, value in changes.items():
        if value is None:
            continue
        if key not in DEFAULTS:
            raise KeyError(f"Unknown setting: {key}")
        settings[key] = value.upper() if key in _UPPERCASE_KEYS else value
    save_settings(settings)
    return settings


def get_default_bank() -> str:
    return load_settings()["default_bank"].upper()
