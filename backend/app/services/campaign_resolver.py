"""Human-readable audience descriptions for notification campaigns."""
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.models.campaign import CampaignMode
from app.services.normalizers import parse_id_list, safe_string, unique_strings

EM_DASH = "—"

MODE_LABELS = {
    CampaignMode.ALL_USERS: "All users",
    CampaignMode.RAFFLE_USERS: "Raffle participants",
    CampaignMode.SELECTED_CUSTOMERS: "Selected customers",
    CampaignMode.ATTEMPT_STATUS: "Attempt status",
    CampaignMode.MULTI_RAFFLE_UNION: "Union of multiple raffles",
}

# Summary lines list more raffle names than the compact chips do
SUMMARY_RAFFLE_NAMES = 4
CHIP_RAFFLE_NAMES = 2


@dataclass(frozen=True)
class Chip:
    label: str
    value: str
    tone: str = "neutral"  # neutral, info, good, warn, bad

    def __str__(self) -> str:
        return f"{self.label}: {self.value}"


def mode_label(mode: str) -> str:
    key = CampaignMode.parse(mode)
    if key is CampaignMode.UNKNOWN:
        return mode or "Unknown"
    return MODE_LABELS[key]


def format_short_id(value: str) -> str:
    """Shorten long ids (UUIDs) to ``first10…last4``."""
    if len(value) > 14:
        return f"{value[:10]}…{value[-4:]}"
    return value


def ticket_scope_text(only_completed: Any) -> str:
    # Raffle targeting counts completed tickets unless told otherwise
    if isinstance(only_completed, bool) and not only_completed:
        return "All tickets"
    return "Completed tickets only"


def attempt_text(attempt_passed: Any) -> str:
    if isinstance(attempt_passed, bool):
        return "Passed" if attempt_passed else "Failed"
    return "Passed/Failed"


def extract_raffle_ids(criteria: Mapping[str, Any]) -> list[str]:
    """Every raffle id a campaign's criteria refers to, de-duplicated."""
    return unique_strings([safe_string(criteria.get("raffle_id")), *parse_id_list(criteria.get("raffle_ids"))])


def _raffle_label(raffle_id: str, raffle_names: Mapping[str, str], fallback: str) -> str:
    if raffle_id and raffle_names.get(raffle_id):
        return raffle_names[raffle_id]
    if raffle_id:
        return format_short_id(raffle_id)
    return fallback


def _raffle_names_text(
    raffle_ids: list[str],
    raffle_names: Mapping[str, str],
    shown: int,
    more_suffix: str,
) -> str:
    names = [raffle_names[rid] for rid in raffle_ids if raffle_names.get(rid)][:shown]
    if not names:
        return f"{len(raffle_ids) or EM_DASH} raffles"
    remainder = max(len(raffle_ids) - len(names), 0)
    text = ", ".join(names)
    if remainder:
        text += f" +{remainder}{more_suffix}"
    return text


def summarize_audience(
    mode: str,
    criteria: Mapping[str, Any],
    raffle_names: Mapping[str, str],
) -> str:
    """One-line audience description; fields unrelated to the mode are ignored."""
    key = CampaignMode.parse(mode)
    raffle_id = safe_string(criteria.get("raffle_id"))

    if key is CampaignMode.ALL_USERS:
        return "Everyone"

    if key is CampaignMode.RAFFLE_USERS:
        label = _raffle_label(raffle_id, raffle_names, EM_DASH)
        return f"Raffle: {label} • {ticket_scope_text(criteria.get('only_completed_tickets'))}"

    if key is CampaignMode.MULTI_RAFFLE_UNION:
        names = _raffle_names_text(
            parse_id_list(criteria.get("raffle_ids")),
            raffle_names,
            SUMMARY_RAFFLE_NAMES,
            " more",
        )
        return f"Raffles: {names} • {ticket_scope_text(criteria.get('only_completed_tickets'))}"

    if key is CampaignMode.SELECTED_CUSTOMERS:
        count = len(parse_id_list(criteria.get("customer_ids")))
        return f"Selected customers: {count or EM_DASH}"

    if key is CampaignMode.ATTEMPT_STATUS:
        scope = _raffle_label(raffle_id, raffle_names, "All raffles")
        return f"{attempt_text(criteria.get('attempt_passed'))} • Scope: {scope}"

    return EM_DASH


def audience_chips(
    mode: str,
    criteria: Mapping[str, Any],
    raffle_names: Mapping[str, str],
) -> list[Chip]:
    """Compact labels for list views; unknown modes get none."""
    key = CampaignMode.parse(mode)
    if key is CampaignMode.UNKNOWN:
        return []

    raffle_id = safe_string(criteria.get("raffle_id"))
    only_completed = criteria.get("only_completed_tickets")
    chips = [Chip("Target", mode_label(mode), "info")]

    if key is CampaignMode.RAFFLE_USERS:
        chips.append(Chip("Raffle", _raffle_label(raffle_id, raffle_names, EM_DASH)))
        chips.append(Chip("Tickets", ticket_scope_text(only_completed)))

    elif key is CampaignMode.MULTI_RAFFLE_UNION:
        names = _raffle_names_text(
            parse_id_list(criteria.get("raffle_ids")),
            raffle_names,
            CHIP_RAFFLE_NAMES,
            "",
        )
        chips.append(Chip("Raffles", names))
        chips.append(Chip("Tickets", ticket_scope_text(only_completed)))

    elif key is CampaignMode.SELECTED_CUSTOMERS:
        count = len(parse_id_list(criteria.get("customer_ids")))
        chips.append(Chip("Customers", str(count) if count else EM_DASH))

    elif key is CampaignMode.ATTEMPT_STATUS:
        chips.append(Chip("Attempt", attempt_text(criteria.get("attempt_passed"))))
        chips.append(Chip("Scope", _raffle_label(raffle_id, raffle_names, "All raffles")))

    return chips
