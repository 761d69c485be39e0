"""Album art cache.

Covers live in ``album_covers/`` under the cache dir, named after the song.
``current_song_art`` is a symlink to the cover of whatever was last emitted,
so the bar config (or anything else) can point at a fixed path.
"""

import hashlib
import os
import re
import shutil
from urllib.parse import unquote, urlparse

import requests

from .log import CACHE_BASE_DIR, debug_log

ALBUM_COVERS_DIR_NAME = "album_covers"
CURRENT_ART_SYMLINK_NAME = "current_song_art"
ART_FETCH_TIMEOUT_SECONDS = 10
USER_AGENT = "lystra/0.2 (Waybar media module)"


def sanitize_filename(name_str, replacement_char='_'):
    if not name_str: return ""
    sanitized = re.sub(r'[\x00-\x1f<>:"/\\|?*]', replacement_char, name_str)
    sanitized = re.sub(f'{re.escape(replacement_char)}+', replacement_char, sanitized)
    sanitized = sanitized.strip(f' .{replacement_char}')
    byte_limit = 200
    while len(sanitized.encode('utf-8', 'ignore')) > byte_limit:
        sanitized = sanitized[:-1]
    if not sanitized:
        return hashlib.sha1(name_str.encode('utf-8')).hexdigest()[:16]
    return sanitized


def _song_basename(session):
    if session.title and session.artist:
        return f"{session.title} - {session.artist}"
    return session.title or session.artist or ""


class ArtCache:
    def __init__(self, base_dir=None):
        self.covers_dir = os.path.join(base_dir or CACHE_BASE_DIR, ALBUM_COVERS_DIR_NAME)
        self.symlink_path = os.path.join(self.covers_dir, CURRENT_ART_SYMLINK_NAME)

    @property
    def available(self):
        return os.path.exists(self.symlink_path)

    def clear(self):
        if os.path.lexists(self.symlink_path):
            try:
                os.remove(self.symlink_path)
            except OSError as e:
                debug_log(f"[Art] Error removing symlink: {e}")

    def update(self, session):
        """Point the symlink at the cover of `session`, fetching it if needed.

        Returns the cached file path, or None when no cover is available.
        """
        base = sanitize_filename(_song_basename(session))
        if not base or not session.art_url:
            debug_log(f"[Art] No cover for '{base or 'unknown track'}'. Clearing symlink.")
            self.clear()
            return None

        try:
            os.makedirs(self.covers_dir, exist_ok=True)
        except OSError as e:
            debug_log(f"[Art] Cannot create cover directory {self.covers_dir}: {e}")
            self.clear()
            return None
        target = os.path.join(self.covers_dir, base)
        if not os.path.exists(target) or os.path.getsize(target) == 0:
            if not self._fetch(session.art_url, target):
                self.clear()
                return None

        self.clear()
        try:
            os.symlink(base, self.symlink_path)
        except OSError as e:
            debug_log(f"[Art] Error creating symlink to '{base}': {e}")
            return None
        return target

    def _fetch(self, art_url, target):
        debug_log(f"[Art] Fetching '{art_url}' into {target}")
        try:
            if art_url.startswith(("http://", "https://")):
                response = requests.get(
                    art_url,
                    stream=True,
                    timeout=ART_FETCH_TIMEOUT_SECONDS,
                    headers={"User-Agent": USER_AGENT},
                )
                response.raise_for_status()
                with open(target, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        f.write(chunk)
            elif art_url.startswith("file://"):
                source = unquote(urlparse(art_url).path)
                if not os.path.exists(source):
                    debug_log(f"[Art] Local art file not found: {source}")
                    return False
                shutil.copyfile(source, target)
            else:
                debug_log(f"[Art] Unsupported art URL scheme: {art_url}")
                return False
        except (requests.RequestException, OSError) as e:
            debug_log(f"[Art] Failed to fetch '{art_url}': {e}")
            self._remove(target)
            return False

        if os.path.getsize(target) == 0:
            debug_log(f"[Art] Fetched empty file from '{art_url}'")
            self._remove(target)
            return False
        return True

    def _remove(self, path):
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                debug_log(f"[Art] Error removing bad art file {path}: {e}")
