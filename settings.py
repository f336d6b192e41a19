import os
import json
import logging

SETTINGS_FILE = "settings.json"

DEFAULT_SETTINGS = {
    "theme": "dark_cyan.xml",
    "elevation_command": "pkexec",
    "log_file": "toolfront.log",
    "log_level": "INFO",
}


def load_settings(settings_file=SETTINGS_FILE):
    """Loads settings from the JSON file, falling back to defaults for anything missing."""
    settings = dict(DEFAULT_SETTINGS)
    if not os.path.exists(settings_file):
        return settings
    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if isinstance(stored, dict):
            settings.update({key: value for key, value in stored.items() if key in DEFAULT_SETTINGS})
        else:
            logging.warning(f"Ignoring settings file {settings_file}: expected a JSON object.")
    except (IOError, json.JSONDecodeError) as e:
        logging.error(f"Could not load settings: {e}")
    return settings


def save_settings(settings, settings_file=SETTINGS_FILE):
    """Saves the settings dictionary to the JSON file."""
    with open(settings_file, 'w', encoding='utf-8') as f:
        json.dump(settings, f, indent=4)
    logging.info(f"Settings saved to {settings_file}.")
