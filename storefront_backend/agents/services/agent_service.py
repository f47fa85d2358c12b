# agents/services/agent_service.py

"""
AGENT MASTER DATA

Create / update / delete delivery agents.

Rules:
- serial_number is unique (operator-facing code)
- cached totals are never written here (see settlement.services.agent_totals)
- an agent with ledger history cannot be deleted; deactivate it instead
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from agents.models import Agent
from settlement.services.exceptions import AgentInUseError

logger = logging.getLogger("agents")

EDITABLE_FIELDS = ("name", "phone", "serial_number", "is_active")


def _clean_text(value, *, field_name: str, required: bool = True) -> str:
    text = str(value or "").strip()
    if required and not text:
        raise ValidationError({field_name: f"{field_name} is required"})
    return text


@transaction.atomic
def create_agent(*, name, phone, serial_number, is_active: bool = True) -> Agent:
    serial = _clean_text(serial_number, field_name="serial_number")
    if Agent.objects.filter(serial_number=serial).exists():
        raise ValidationError({"serial_number": "An agent with this serial number already exists"})

    agent = Agent.objects.create(
        name=_clean_text(name, field_name="name"),
        phone=_clean_text(phone, field_name="phone"),
        serial_number=serial,
        is_active=bool(is_active),
    )
    logger.info("Agent created", extra={"agent_id": str(agent.id), "serial_number": serial})
    return agent


@transaction.atomic
def update_agent(*, agent: Agent, **changes) -> Agent:
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")

    for field, value in changes.items():
        if field == "is_active":
            value = bool(value)
        else:
            value = _clean_text(value, field_name=field)
        setattr(agent, field, value)

    if (
        "serial_number" in changes
        and Agent.objects.filter(serial_number=agent.serial_number).exclude(pk=agent.pk).exists()
    ):
        raise ValidationError({"serial_number": "An agent with this serial number already exists"})

    agent.save(update_fields=[*changes.keys(), "updated_at"])
    return agent


@transaction.atomic
def delete_agent(*, agent: Agent) -> None:
    if agent.ledger_entries.exists() or agent.return_records.exists():
        raise AgentInUseError(
            f"Agent {agent.serial_number} has ledger history and cannot be deleted; deactivate it instead"
        )

    agent_id = str(agent.id)
    agent.delete()
    logger.info("Agent deleted", extra={"agent_id": agent_id})
