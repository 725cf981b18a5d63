"""Observability helpers (Sentry init & scrubbing).

Keeps Sentry initialisation a no-op when no DSN is configured and
scrubs credentials from events before they leave the process.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from receipt_keeper.core.config import Settings, settings

logger = logging.getLogger(__name__)

_SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie", "x-api-key")
_SENSITIVE_FIELDS = ("password", "password_hash", "token")


def _before_send(event: Dict[str, Any], hint: Dict[str, Any] | None = None) -> Dict[str, Any]:
	"""Scrub credentials before sending to Sentry.

	- Drop Authorization & Cookie headers
	- Remove request bodies (login and register carry passwords)
	- Blank out password/token values captured in frame locals
	"""
	req = event.get("request") or {}
	headers = req.get("headers") or {}
	for k in list(headers.keys()):
		if k.lower() in _SENSITIVE_HEADERS:
			headers.pop(k, None)
	req.pop("data", None)
	if req:
		event["request"] = req
	for exc in (event.get("exception") or {}).get("values") or []:
		for frame in (exc.get("stacktrace") or {}).get("frames") or []:
			local_vars = frame.get("vars") or {}
			for name in list(local_vars.keys()):
				if any(s in name.lower() for s in _SENSITIVE_FIELDS):
					local_vars[name] = "[Filtered]"
	return event


def init_sentry(service: str, cfg: Settings = settings) -> bool:
	"""Initialise Sentry once for a given process.

	Returns True if Sentry was initialised; False otherwise.
	"""
	if not cfg.SENTRY_DSN:
		return False
	if getattr(init_sentry, "_done", False):
		return True
	sentry_sdk.init(
		dsn=cfg.SENTRY_DSN,
		integrations=[FastApiIntegration(), SqlalchemyIntegration()],
		traces_sample_rate=float(cfg.SENTRY_TRACES_SAMPLE_RATE or 0),
		environment=cfg.ENVIRONMENT,
		release=cfg.SENTRY_RELEASE,
		send_default_pii=False,
		before_send=_before_send,
	)
	sentry_sdk.set_tag("service", service)
	init_sentry._done = True  # type: ignore[attr-defined]
	logger.info("Sentry SDK initialized (%s)", service)
	return True


def capture_exception(exc: BaseException, cfg: Settings = settings) -> Optional[str]:
	"""Report ``exc`` to Sentry when configured; returns the event id."""
	if not cfg.SENTRY_DSN:
		return None
	return sentry_sdk.capture_exception(exc)


__all__ = ["init_sentry", "capture_exception"]
