"""Session cookies for the target site.

Cookies arrive as Netscape cookie-file text (the format exported by browser
cookie extensions)::

    .google.com	TRUE	/	TRUE	1767225600	SID	abc123

Only lines for the target site are kept. The text itself comes from one of
three places, checked in order: an override set through the admin form, the
``GOOGLE_COOKIES`` environment variable, then the cookie file on disk.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Tuple

from . import config
from .utils import log_line

HTTPONLY_PREFIX = "#HttpOnly_"

SOURCE_OVERRIDE = "web form (memory)"
SOURCE_ENV = "environment variable"
SOURCE_FILE = "cookie file"


@dataclass(frozen=True)
class Credential:
    name: str
    value: str
    domain: str
    path: str = "/"
    expires: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    same_site: str = "Lax"

    def to_playwright(self) -> Dict[str, Any]:
        """Return the cookie dict accepted by ``BrowserContext.add_cookies``."""

        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path or "/",
            "expires": self.expires if self.expires is not None else -1,
            "httpOnly": self.http_only,
            "secure": self.secure,
            "sameSite": self.same_site,
        }


def domain_matches(domain: str, target_domain: str) -> bool:
    """Return True when cookie ``domain`` belongs to ``target_domain``."""

    host = domain.strip().lower().lstrip(".")
    target = target_domain.strip().lower().lstrip(".")
    if not host or not target:
        return False
    return host == target or host.endswith("." + target)


def _parse_expiry(raw: str) -> Optional[int]:
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def parse_cookie_text(
    text: str, target_domain: str = config.TARGET_SITE_DOMAIN
) -> Tuple[Credential, ...]:
    """Parse Netscape cookie-file text into credentials for ``target_domain``.

    Comments, blank lines, lines with fewer than seven tab-separated fields and
    cookies for other sites are skipped silently.
    """

    credentials = []
    for raw_line in (text or "").splitlines():
        line = raw_line.rstrip("\r")
        http_only = False
        if line.startswith(HTTPONLY_PREFIX):
            line = line[len(HTTPONLY_PREFIX):]
            http_only = True
        elif not line.strip() or line.startswith("#"):
            continue

        parts = line.split("\t")
        if len(parts) < 7:
            continue

        domain, _subdomains, path, secure, expires, name = parts[:6]
        # Values may legitimately contain tabs.
        value = "\t".join(parts[6:])

        if not domain_matches(domain, target_domain):
            continue
        name = name.strip()
        if not name:
            continue

        credentials.append(
            Credential(
                name=name,
                value=value.strip(),
                domain=domain.strip(),
                path=path.strip() or "/",
                expires=_parse_expiry(expires),
                secure=secure.strip().upper() == "TRUE",
                http_only=http_only,
            )
        )
    return tuple(credentials)


class CredentialSource:
    """Resolve the active cookie text with a fixed precedence.

    The override is the only mutable piece and is guarded by a lock; jobs call
    :meth:`load_credentials` once at start and keep the returned snapshot.
    """

    def __init__(
        self,
        *,
        cookies_file: Optional[Path] = None,
        env_var: str = config.COOKIES_ENV_VAR,
        target_domain: str = config.TARGET_SITE_DOMAIN,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.cookies_file = Path(cookies_file) if cookies_file else config.COOKIES_FILE
        self.env_var = env_var
        self.target_domain = target_domain
        self._environ = environ
        self._override: Optional[str] = None
        self._lock = Lock()

    def set_override(self, text: str) -> None:
        with self._lock:
            self._override = text

    def clear_override(self) -> None:
        with self._lock:
            self._override = None

    def _env(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def resolve(self) -> Tuple[str, str]:
        """Return ``(source_label, cookie_text)`` for the active source."""

        with self._lock:
            override = self._override
        if override:
            return SOURCE_OVERRIDE, override

        env_value = self._env().get(self.env_var)
        if env_value:
            return SOURCE_ENV, env_value

        try:
            return SOURCE_FILE, self.cookies_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            log_line(f"[CREDENTIALS][WARN] Cookie file not found: {self.cookies_file}")
            return SOURCE_FILE, ""

    def describe(self) -> str:
        label, _ = self.resolve()
        if label == SOURCE_ENV:
            return f"{SOURCE_ENV} ({self.env_var})"
        if label == SOURCE_FILE:
            return f"{SOURCE_FILE} ({self.cookies_file})"
        return label

    def load_credentials(self) -> Tuple[Credential, ...]:
        label, text = self.resolve()
        credentials = parse_cookie_text(text, self.target_domain)
        log_line(f"[CREDENTIALS] Using {len(credentials)} cookies from {label}")
        return credentials


__all__ = [
    "Credential",
    "CredentialSource",
    "domain_matches",
    "parse_cookie_text",
]
