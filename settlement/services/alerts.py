from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from settlement.core.config import get_settings

logger = structlog.get_logger(__name__)

AlertSender = Callable[..., Awaitable[bool]]

DEFAULT_PAGERDUTY_EVENTS_URL = "https://events.pagerduty.com/v2/enqueue"
ALERT_TIMEOUT_SECONDS = 5.0
VALID_CHANNELS = ("generic", "slack", "pagerduty")
VALID_SEVERITIES = ("critical", "error", "warning", "info")
SEVERITY_COLOR = {
    "critical": "#B42318",
    "error": "#F04438",
    "warning": "#F79009",
    "info": "#1570EF",
}


@dataclass(frozen=True)
class AlertRoute:
    channels: tuple[str, ...]
    severity: str
    escalation_tier: str


DEFAULT_ALERT_ROUTE = AlertRoute(channels=("generic",), severity="warning", escalation_tier="ops_l3")
EVENT_ALERT_ROUTES = {
    "payouts_failed": AlertRoute(
        channels=("pagerduty", "slack", "generic"),
        severity="error",
        escalation_tier="ops_l1",
    ),
    "ticket_capacity_overflow": AlertRoute(
        channels=("slack", "generic"),
        severity="warning",
        escalation_tier="ops_l2",
    ),
    "purchase_authorization_orphaned": AlertRoute(
        channels=("slack", "generic"),
        severity="error",
        escalation_tier="ops_l2",
    ),
}


def _setting_str(settings: object, attr: str) -> str:
    value = getattr(settings, attr, "")
    return value.strip() if isinstance(value, str) else ""


def _load_policy_override(*, event: str, raw_policy: str) -> dict[str, Any] | None:
    if not raw_policy:
        return None
    try:
        policy = json.loads(raw_policy)
    except json.JSONDecodeError:
        logger.warning("ops_alert_policy_parse_failed")
        return None
    if not isinstance(policy, dict):
        logger.warning("ops_alert_policy_invalid_shape")
        return None

    override = policy.get(event) or policy.get("*")
    return override if isinstance(override, dict) else None


def resolve_alert_route(*, event: str, raw_policy: str) -> AlertRoute:
    route = EVENT_ALERT_ROUTES.get(event, DEFAULT_ALERT_ROUTE)
    override = _load_policy_override(event=event, raw_policy=raw_policy)
    if override is None:
        return route

    channels: list[str] = []
    raw_channels = override.get("channels")
    for channel in raw_channels if isinstance(raw_channels, list) else []:
        name = channel.strip().lower() if isinstance(channel, str) else ""
        if name in VALID_CHANNELS and name not in channels:
            channels.append(name)

    severity = str(override.get("severity") or "").strip().lower()
    escalation_tier = str(override.get("escalation_tier") or "").strip()
    return AlertRoute(
        channels=tuple(channels) or route.channels,
        severity=severity if severity in VALID_SEVERITIES else route.severity,
        escalation_tier=escalation_tier or route.escalation_tier,
    )


def _channel_urls(settings: object) -> dict[str, str]:
    urls = {
        "generic": _setting_str(settings, "ops_alert_webhook_url"),
        "slack": _setting_str(settings, "ops_alert_slack_webhook_url"),
    }
    if _setting_str(settings, "ops_alert_pagerduty_routing_key"):
        urls["pagerduty"] = (
            _setting_str(settings, "ops_alert_pagerduty_events_url") or DEFAULT_PAGERDUTY_EVENTS_URL
        )
    return urls


def _build_body(
    *,
    channel: str,
    event: str,
    payload: dict[str, object],
    route: AlertRoute,
    sent_at: datetime,
    settings: object,
) -> dict[str, Any]:
    app_env = _setting_str(settings, "app_env") or "dev"
    payload_text = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)

    if channel == "slack":
        return {
            "text": f"[{route.severity.upper()}][{route.escalation_tier}] {event}",
            "attachments": [
                {
                    "color": SEVERITY_COLOR.get(route.severity, SEVERITY_COLOR["warning"]),
                    "fields": [
                        {"title": "Environment", "value": app_env, "short": True},
                        {"title": "Sent At", "value": sent_at.isoformat(), "short": True},
                        {"title": "Payload", "value": payload_text, "short": False},
                    ],
                }
            ],
        }
    if channel == "pagerduty":
        return {
            "routing_key": _setting_str(settings, "ops_alert_pagerduty_routing_key"),
            "event_action": "trigger",
            "dedup_key": f"{event}:{route.escalation_tier}",
            "payload": {
                "summary": f"[{app_env}] {event}",
                "source": f"concert-settlement/{app_env}",
                "severity": route.severity,
                "timestamp": sent_at.isoformat(),
                "component": "settlement",
                "group": route.escalation_tier,
                "custom_details": {"event": event, "payload": payload},
            },
        }
    return {
        "event": event,
        "payload": payload,
        "sent_at": sent_at.isoformat(),
        "severity": route.severity,
        "escalation_tier": route.escalation_tier,
    }


async def send_ops_alert(*, event: str, payload: dict[str, object]) -> bool:
    """Delivers an operator alert to every configured channel on the event's route.

    Delivery problems are logged and reported through the return value; they never
    propagate, since alerts are sent after the money-moving work has committed.
    """
    settings = get_settings()
    route = resolve_alert_route(
        event=event,
        raw_policy=_setting_str(settings, "ops_alert_escalation_policy_json"),
    )
    urls = _channel_urls(settings)
    targets = [(channel, urls[channel]) for channel in route.channels if urls.get(channel)]
    if not targets and urls["generic"]:
        targets = [("generic", urls["generic"])]
    if not targets:
        logger.info("ops_alert_not_configured", alert_event=event)
        return False

    sent_at = datetime.now(timezone.utc)
    delivered_to: list[str] = []
    failed_to: list[str] = []
    async with httpx.AsyncClient(timeout=ALERT_TIMEOUT_SECONDS) as client:
        for channel, url in targets:
            body = _build_body(
                channel=channel,
                event=event,
                payload=payload,
                route=route,
                sent_at=sent_at,
                settings=settings,
            )
            try:
                response = await client.post(url, json=body)
                response.raise_for_status()
            except httpx.HTTPError:
                logger.exception("ops_alert_delivery_failed", alert_event=event, provider=channel)
                failed_to.append(channel)
                continue
            delivered_to.append(channel)

    log = logger.info if delivered_to else logger.error
    log(
        "ops_alert_delivered" if delivered_to else "ops_alert_delivery_exhausted",
        alert_event=event,
        severity=route.severity,
        escalation_tier=route.escalation_tier,
        delivered_to=delivered_to,
        failed_to=failed_to,
    )
    return bool(delivered_to)
