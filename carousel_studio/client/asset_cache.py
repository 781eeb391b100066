import hashlib
import json
import shutil
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests

from ..core.config import settings
from ..core.log import log_event
from .poller import ClientError

APP_SHELL = (
    "/",
    "/index.html",
    "/styles.css",
    "/manifest.json",
    "/icons/icon-192.svg",
    "/icons/icon-512.svg",
)


@dataclass
class CachedAsset:
    path: str
    content: bytes
    content_type: str
    from_cache: bool = False


class AssetCache:
    """Best-effort offline copy of the app shell, one directory per cache version.

    * ``/api/*``: network only.
    * navigations: network first, then the cached copy, then ``/index.html``.
    * everything else: cached copy first, refreshed in the background.
    """

    def __init__(self, base_url: Optional[str] = None, *, cache_dir: Optional[Path] = None,
                 version: Optional[str] = None, session=None, shell=APP_SHELL):
        self.base_url = (settings.API_BASE_URL if base_url is None else base_url).rstrip("/")
        self.root = Path(cache_dir) if cache_dir is not None else settings.ASSET_CACHE_DIR
        self.version = version or settings.ASSET_CACHE_VERSION
        self.session = session if session is not None else requests.Session()
        self.shell = tuple(shell)
        self._refresher = ThreadPoolExecutor(max_workers=1, thread_name_prefix="asset-refresh")

    @property
    def dir(self) -> Path:
        return self.root / self.version

    def _entry(self, path: str) -> Path:
        return self.dir / hashlib.sha1(path.encode("utf-8")).hexdigest()

    def put(self, asset: CachedAsset) -> None:
        entry = self._entry(asset.path)
        entry.parent.mkdir(parents=True, exist_ok=True)
        entry.with_suffix(".body").write_bytes(asset.content)
        entry.with_suffix(".json").write_text(
            json.dumps({"path": asset.path, "contentType": asset.content_type}), encoding="utf-8"
        )

    def match(self, path: str) -> Optional[CachedAsset]:
        entry = self._entry(path)
        body, meta = entry.with_suffix(".body"), entry.with_suffix(".json")
        if not body.exists() or not meta.exists():
            return None
        info = json.loads(meta.read_text(encoding="utf-8"))
        return CachedAsset(path=path, content=body.read_bytes(),
                           content_type=info.get("contentType", "application/octet-stream"),
                           from_cache=True)

    def _network(self, path: str) -> CachedAsset:
        try:
            r = self.session.get(f"{self.base_url}{path}", timeout=settings.HTTP_TIMEOUT_SEC)
        except requests.RequestException as e:
            raise ClientError(f"Network error: {e}") from e
        if not (200 <= r.status_code < 300):
            raise ClientError(f"Unexpected status {r.status_code} for {path}")
        return CachedAsset(path=path, content=r.content,
                           content_type=r.headers.get("content-type", "application/octet-stream"))

    def _refresh(self, path: str) -> Optional[CachedAsset]:
        try:
            asset = self._network(path)
        except ClientError as e:
            log_event("asset_cache.refresh.failed", path=path, error=str(e))
            return None
        self.put(asset)
        return asset

    def install(self) -> int:
        stored = 0
        for path in self.shell:
            if self._refresh(path) is not None:
                stored += 1
        log_event("asset_cache.install", version=self.version, stored=stored, manifest=len(self.shell))
        return stored

    def activate(self) -> List[str]:
        removed = []
        if self.root.exists():
            for child in self.root.iterdir():
                if child.is_dir() and child.name != self.version:
                    shutil.rmtree(child, ignore_errors=True)
                    removed.append(child.name)
        if removed:
            log_event("asset_cache.activate", version=self.version, removed=removed)
        return removed

    def _fallback(self, path: str) -> CachedAsset:
        fallback = self.match("/index.html")
        if fallback is None:
            raise ClientError(f"{path} is not available offline.")
        return fallback

    def fetch(self, path: str, navigate: bool = False) -> CachedAsset:
        if path.startswith("/api/"):
            return self._network(path)

        if navigate:
            try:
                asset = self._network(path)
            except ClientError:
                return self.match(path) or self._fallback(path)
            self.put(asset)
            return asset

        cached = self.match(path)
        pending: Future = self._refresher.submit(self._refresh, path)
        if cached is not None:
            return cached
        return pending.result() or self._fallback(path)

    def close(self) -> None:
        self._refresher.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
