import json
from pathlib import Path
from typing import Dict, Optional

from ..core.config import settings
from ..core.log import log_event

DEFAULTS: Dict[str, str] = {"mode": "dark", "theme": "indigo", "font": ""}


class Preferences:
    """Flat key-value preferences, read once at load and written on every change."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else settings.PREFS_PATH
        self._values: Dict[str, str] = dict(DEFAULTS)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # unreadable prefs are not worth failing over; defaults apply
            log_event("prefs.load.ignored", path=str(self.path), error=str(e))
            return
        if isinstance(stored, dict):
            self._values.update({str(k): str(v) for k, v in stored.items()})

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._values, indent=2, ensure_ascii=False), encoding="utf-8")

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)
