from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Callable
from urllib.parse import quote

import requests

from extrinsic_ranker.data.market_types import RelayExhaustedError

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]
RelayBuilder = Callable[[str], str]

DEFAULT_TIMEOUT_SECONDS = 12.0
DEFAULT_MAX_ROUNDS = 3
DEFAULT_BACKOFF_SECONDS = 1.5
MIN_BODY_BYTES = 30

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def _encoded(url: str) -> str:
    return quote(url, safe="")


# Ordered; "direct" is the last resort.
RELAY_BUILDERS: dict[str, RelayBuilder] = {
    "corsproxy": lambda u: f"https://corsproxy.io/?{_encoded(u)}",
    "allorigins": lambda u: f"https://api.allorigins.win/raw?url={_encoded(u)}",
    "codetabs": lambda u: f"https://api.codetabs.com/v1/proxy?quest={_encoded(u)}",
    "thingproxy": lambda u: f"https://thingproxy.freeboard.io/fetch/{u}",
    "direct": lambda u: u,
}


def available_relays() -> list[str]:
    return list(RELAY_BUILDERS.keys())


def _clean_env(value: str | None) -> str:
    return (value or "").strip()


def _coerce_int(value: str | None, default: int) -> int:
    raw = _clean_env(value)
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _coerce_float(value: str | None, default: float) -> float:
    raw = _clean_env(value)
    if not raw:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def resolve_relay_names(names: list[str] | tuple[str, ...] | str | None) -> tuple[str, ...]:
    if names is None:
        names = _clean_env(os.getenv("ER_RELAYS"))
    if isinstance(names, str):
        names = names.split(",")
    cleaned = [str(n).strip().lower() for n in names if str(n).strip()]
    if not cleaned:
        return tuple(RELAY_BUILDERS.keys())
    unknown = [n for n in cleaned if n not in RELAY_BUILDERS]
    if unknown:
        raise ValueError(f"Unknown relay: {', '.join(unknown)}. Available: {', '.join(available_relays())}")
    return tuple(dict.fromkeys(cleaned))


def rotated(items: list[Any] | tuple[Any, ...], offset: int) -> list[Any]:
    """Return `items` starting at `offset` (mod len), wrapping around."""
    if not items:
        return []
    start = offset % len(items)
    return list(items[start:]) + list(items[:start])


class RelayFetchClient:
    """
    GET a JSON document through a rotating list of public relays.

    Notes:
    - Attempts are sequential; round `r` starts at relay `r` and wraps around.
    - Bad status, short bodies, non-JSON bodies and transport errors are soft
      failures: the next relay is tried and only the last error is kept.
    - `on_status` is a progress hook; it never changes the outcome.
    """

    def __init__(
        self,
        *,
        relays: list[str] | tuple[str, ...] | str | None = None,
        timeout_seconds: float | None = None,
        max_rounds: int | None = None,
        backoff_seconds: float | None = None,
        min_body_bytes: int = MIN_BODY_BYTES,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.relay_names = resolve_relay_names(relays)
        self.timeout_seconds = (
            float(timeout_seconds)
            if timeout_seconds is not None
            else _coerce_float(os.getenv("ER_RELAY_TIMEOUT_SECONDS"), DEFAULT_TIMEOUT_SECONDS)
        )
        self.max_rounds = (
            max(1, int(max_rounds))
            if max_rounds is not None
            else _coerce_int(os.getenv("ER_RELAY_MAX_ROUNDS"), DEFAULT_MAX_ROUNDS)
        )
        self.backoff_seconds = (
            float(backoff_seconds)
            if backoff_seconds is not None
            else _coerce_float(os.getenv("ER_RELAY_BACKOFF_SECONDS"), DEFAULT_BACKOFF_SECONDS)
        )
        self.min_body_bytes = int(min_body_bytes)
        self._session = session if session is not None else _build_session()
        self._sleep = sleep

    @property
    def builders(self) -> list[tuple[str, RelayBuilder]]:
        return [(name, RELAY_BUILDERS[name]) for name in self.relay_names]

    def fetch_json(self, url: str, label: str, *, on_status: StatusCallback | None = None) -> Any:
        builders = self.builders
        total = len(builders)
        last_error: str | None = None

        for round_idx in range(self.max_rounds):
            for pos, (name, build) in enumerate(rotated(builders, round_idx)):
                _notify(on_status, f"{label} (attempt {round_idx + 1}, relay {pos + 1}/{total})")
                request_url = build(url)
                try:
                    resp = self._session.get(request_url, timeout=self.timeout_seconds)
                except requests.RequestException as exc:
                    last_error = f"{name}: {exc}"
                    logger.debug("Relay %s transport error for %s: %s", name, label, exc)
                    continue

                if not resp.ok:
                    last_error = f"{name}: HTTP {resp.status_code}"
                    logger.debug("Relay %s returned HTTP %s for %s", name, resp.status_code, label)
                    continue

                # Raw bytes: skips requests' charset sniffing on large chain bodies.
                body = resp.content or b""
                if len(body) < self.min_body_bytes:
                    last_error = f"{name}: response body too short ({len(body)} bytes)"
                    logger.debug("Relay %s returned a short body for %s", name, label)
                    continue

                try:
                    payload = json.loads(body)
                except ValueError as exc:
                    last_error = f"{name}: invalid JSON ({exc})"
                    logger.debug("Relay %s returned non-JSON for %s", name, label)
                    continue

                logger.info("Fetched %s via %s (round %d)", label, name, round_idx + 1)
                return payload

            if round_idx < self.max_rounds - 1:
                delay = self.backoff_seconds * (round_idx + 1)
                logger.warning(
                    "All relays failed for %s; retrying in %.1fs (%d/%d)",
                    label,
                    delay,
                    round_idx + 1,
                    self.max_rounds,
                )
                self._sleep(delay)

        logger.warning("Giving up on %s after %d rounds: %s", label, self.max_rounds, last_error)
        raise RelayExhaustedError(label, last_error)


def _build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"})
    return session


def _notify(on_status: StatusCallback | None, message: str) -> None:
    if on_status is None:
        return
    try:
        on_status(message)
    except Exception:  # noqa: BLE001
        logger.debug("Status callback raised; ignoring", exc_info=True)
