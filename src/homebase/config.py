import json
import logging
import os

from homebase.data import DEFAULT_SITTER_COLORS

_DEFAULTS = {
    'db_path': None,
    'log_level': 'INFO',
    'sitter_colors': DEFAULT_SITTER_COLORS,
}


def _config_path():
    base = os.path.join(os.path.expanduser('~'), '.homebase')
    return os.path.join(base, 'homebase_config.json')


def _defaults() -> dict:
    return {k: (list(v) if isinstance(v, list) else v) for k, v in _DEFAULTS.items()}


def load_config(path: str = None) -> dict:
    path = path or _config_path()
    cfg = _defaults()
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logging.warning(f"Konfiguration {path} nicht lesbar, nutze Standardwerte: {e}")
        return cfg
    if isinstance(stored, dict):
        cfg.update(stored)
    return cfg


def save_config(cfg: dict, path: str = None):
    path = path or _config_path()
    # Verzeichnis erst beim Schreiben anlegen
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)
