from app.services.campaign_resolver import (
    Chip,
    audience_chips,
    extract_raffle_ids,
    format_short_id,
    mode_label,
    summarize_audience,
)

LONG_ID = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"


def chip_values(chips):
    return {chip.label: chip.value for chip in chips}


def test_union_chip_lists_two_names_and_remainder():
    criteria = {"raffle_ids": ["a", "b", "c", "d", "e"], "only_completed_tickets": False}
    chips = audience_chips("multi_raffle_union", criteria, {"a": "Foo", "b": "Bar"})

    values = chip_values(chips)
    assert values["Raffles"] == "Foo, Bar +3"
    assert values["Tickets"] == "All tickets"
    assert chips[0] == Chip("Target", "Union of multiple raffles", "info")


def test_attempt_status_chips_with_unresolved_scope():
    chips = audience_chips("attempt_status", {"attempt_passed": True, "raffle_id": LONG_ID}, {})

    rendered = [str(chip) for chip in chips]
    assert "Attempt: Passed" in rendered
    assert f"Scope: {format_short_id(LONG_ID)}" in rendered
    assert format_short_id(LONG_ID) == "0f1e2d3c-4…e1f0"


def test_short_ids_are_not_truncated():
    assert format_short_id("abc") == "abc"
    assert format_short_id("12345678901234") == "12345678901234"


def test_summaries_per_mode():
    names = {"r1": "Tesla Model 3"}
    assert summarize_audience("all_users", {}, names) == "Everyone"
    assert summarize_audience("raffle_users", {"raffle_id": "r1"}, names) == "Raffle: Tesla Model 3 • Completed tickets only"
    assert summarize_audience("raffle_users", {}, names) == "Raffle: — • Completed tickets only"
    assert summarize_audience("selected_customers", {"customer_ids": ["a", "b"]}, names) == "Selected customers: 2"
    assert summarize_audience("selected_customers", {}, names) == "Selected customers: —"
    assert summarize_audience("attempt_status", {}, names) == "Passed/Failed • Scope: All raffles"
    assert summarize_audience("attempt_status", {"attempt_passed": False, "raffle_id": "r1"}, names) == (
        "Failed • Scope: Tesla Model 3"
    )


def test_union_summary_shows_four_names_then_more():
    names = {rid: rid.upper() for rid in "abcdef"}
    criteria = {"raffle_ids": list("abcdef")}
    assert summarize_audience("multi_raffle_union", criteria, names) == (
        "Raffles: A, B, C, D +2 more • Completed tickets only"
    )


def test_union_summary_falls_back_to_count():
    assert summarize_audience("multi_raffle_union", {"raffle_ids": ["x", "y"]}, {}) == (
        "Raffles: 2 raffles • Completed tickets only"
    )
    assert summarize_audience("multi_raffle_union", {}, {}) == "Raffles: — raffles • Completed tickets only"


def test_unrelated_criteria_are_ignored():
    criteria = {"raffle_id": "r1", "customer_ids": ["a"], "attempt_passed": False}
    assert summarize_audience("all_users", criteria, {"r1": "Prize"}) == "Everyone"
    assert chip_values(audience_chips("all_users", criteria, {})) == {"Target": "All users"}


def test_unknown_mode():
    assert summarize_audience("weekly_digest", {}, {}) == "—"
    assert audience_chips("weekly_digest", {}, {}) == []
    assert mode_label("weekly_digest") == "weekly_digest"
    assert mode_label("") == "Unknown"


def test_extract_raffle_ids_dedupes():
    assert extract_raffle_ids({"raffle_id": "a", "raffle_ids": "a, b\nc"}) == ["a", "b", "c"]
    assert extract_raffle_ids({}) == []
