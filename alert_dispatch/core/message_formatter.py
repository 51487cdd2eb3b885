from __future__ import annotations

import math
import secrets
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from jinja2 import Environment, StrictUndefined

from alert_dispatch.core.time_provider import TimeProvider
from alert_dispatch.models import Priority

PRIORITY_EMOJI = {
    Priority.low: "🔵",
    Priority.normal: "🟡",
    Priority.high: "🟠",
    Priority.critical: "🔴",
    Priority.urgent: "⚠️",
}

METRIC_EMOJI = {
    "total": "📊",
    "success": "✅",
    "successful": "✅",
    "failed": "❌",
    "failures": "❌",
    "pending": "⏳",
    "errors": "💥",
    "error": "💥",
    "users": "👥",
    "sales": "💰",
    "revenue": "💵",
    "time": "⏱️",
    "speed": "🚀",
    "memory": "🧠",
    "cpu": "⚙️",
    "disk": "💾",
}

TEMPLATES = {
    "alert": "{{ message }}",
    "critical_error": """🚨 *CRITICAL ERROR*
{% if context %}
📍 *Context:* {{ context }}
{% endif %}
❌ *Error:* {{ error }}
⏰ *Timestamp:* {{ timestamp }}
🆔 *ID:* {{ ref_id }}

⚠️ Requires immediate attention""",
    "report": """📊 *{{ title }}*
📅 {{ today }}

{% if items is mapping %}
{% for key, value in items.items() %}
{{ key | metric_emoji }} *{{ key }}:* {{ value }}
{% endfor %}
{% else %}
{% for item in items %}
{{ loop.index }}. {{ item }}
{% endfor %}
{% endif %}""",
    "metrics": """📊 *{{ title }}*
📅 {{ today }}

{% for key, value in metrics.items() %}
{{ key | metric_emoji }} *{{ key }}:* {{ value }}
{% endfor %}
{% if comparison %}

📈 *Comparison:*
{% for key, value in comparison.items() %}
{{ value | trend }} {{ key }}: {{ value | signed }}
{% endfor %}
{% endif %}""",
    "reminder": """🔔 *REMINDER*
📋 *{{ title }}*

{{ description }}
{% if days_left is not none %}
⏰ *Due in:* {{ days_left }} days
{% endif %}""",
    "process_completed": """✅ *PROCESS COMPLETED*
🔄 *Process:* {{ process }}
⏱️ *Duration:* {{ duration }}
⏰ *Finished:* {{ clock }}
{% if result %}
📊 *Result:* {{ result }}
{% endif %}""",
    "daily_summary": """📅 *DAILY SUMMARY*
📆 {{ long_date }}

{% if metrics %}
📊 *Today's metrics:*
{% for key, value in metrics.items() %}
• {{ key }}: {{ value }}
{% endfor %}

{% endif %}
{% if events %}
🎯 *Key events:*
{% for event in events %}
• {{ event }}
{% endfor %}

{% endif %}
{% if alerts %}
⚠️ *Today's alerts:*
{% for alert in alerts %}
• {{ alert }}
{% endfor %}
{% endif %}""",
}

# Optional fields per template kind; everything else must be supplied.
TEMPLATE_DEFAULTS: dict[str, dict[str, Any]] = {
    "critical_error": {"context": ""},
    "metrics": {"comparison": None},
    "reminder": {"days_left": None},
    "process_completed": {"result": None},
    "daily_summary": {"metrics": None, "events": None, "alerts": None},
}


def metric_emoji(key: object) -> str:
    return METRIC_EMOJI.get(str(key).lower(), "📈")


def _trend(value: float) -> str:
    if value > 0:
        return "📈"
    if value < 0:
        return "📉"
    return "➡️"


def _signed(value: float) -> str:
    return f"+{value}" if value > 0 else str(value)


def _new_ref_id() -> str:
    return secrets.token_hex(5)[:9].upper()


class MessageFormatter:
    """Renders alert kinds into WhatsApp-flavoured text."""

    def __init__(
        self,
        time_provider: TimeProvider | None = None,
        id_factory: Callable[[], str] = _new_ref_id,
    ) -> None:
        self.time_provider = time_provider or TimeProvider()
        self.id_factory = id_factory
        self.env = Environment(undefined=StrictUndefined, autoescape=False, trim_blocks=True, lstrip_blocks=True)
        self.env.filters["metric_emoji"] = metric_emoji
        self.env.filters["trend"] = _trend
        self.env.filters["signed"] = _signed

    @property
    def kinds(self) -> list[str]:
        return sorted(TEMPLATES)

    def format(self, template_kind: str, data: Mapping[str, Any]) -> str:
        if template_kind not in TEMPLATES:
            raise ValueError(f"Unknown template kind '{template_kind}' (known: {', '.join(self.kinds)})")
        now = self.time_provider.now()
        context: dict[str, Any] = {
            "timestamp": now.strftime("%d/%m/%Y %H:%M:%S"),
            "today": now.strftime("%d/%m/%Y"),
            "long_date": now.strftime("%A, %d %B %Y"),
            "clock": now.strftime("%H:%M:%S"),
            "ref_id": self.id_factory(),
            **TEMPLATE_DEFAULTS.get(template_kind, {}),
            **data,
        }
        if template_kind == "reminder" and context.get("due_date") is not None:
            context["days_left"] = self._days_until(context["due_date"], now)
        tpl = self.env.from_string(TEMPLATES[template_kind])
        return tpl.render(**context).rstrip()

    def decorate(
        self,
        text: str,
        priority: Priority | None = None,
        *,
        timestamp: bool = False,
        include_id: bool = False,
    ) -> str:
        decorated = text
        if priority is not None:
            decorated = f"{PRIORITY_EMOJI[Priority(priority)]} {decorated}"
        if timestamp:
            decorated += f"\n\n⏰ {self.time_provider.now().strftime('%d/%m/%Y %H:%M:%S')}"
        if include_id:
            decorated += f"\n🆔 {self.id_factory()}"
        return decorated

    def _days_until(self, due: datetime | str, now: datetime) -> int:
        if isinstance(due, str):
            due = datetime.fromisoformat(due)
        if due.tzinfo is None:
            due = due.replace(tzinfo=now.tzinfo)
        return math.ceil((due - now).total_seconds() / 86400)
