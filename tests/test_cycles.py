from pathlib import Path

from screenbook.graph.cycles import cycle_summary, detect_cycles, format_cycle_warnings
from screenbook.schemas import Screen
from screenbook.utils import read_json

FIXTURES = Path(__file__).parent / "fixtures"


def screen(screen_id: str, *next_ids: str, allow_cycles: bool = False) -> Screen:
    return Screen(id=screen_id, next=list(next_ids), allow_cycles=allow_cycles)


def test_acyclic_graph() -> None:
    result = detect_cycles([screen("a", "b", "c"), screen("b", "c"), screen("c")])

    assert not result.has_cycles
    assert cycle_summary(result) == "No circular navigation detected"


def test_cycle_is_reported_as_closed_walk() -> None:
    result = detect_cycles([screen("a", "b"), screen("b", "c"), screen("c", "a")])

    assert [item.cycle for item in result.cycles] == [["a", "b", "c", "a"]]
    assert result.disallowed_cycles == result.cycles
    assert cycle_summary(result) == "1 circular navigation detected"
    assert format_cycle_warnings(result.cycles) == "  Cycle 1: a → b → c → a"


def test_self_loop_and_unknown_targets() -> None:
    result = detect_cycles([screen("a", "a", "ghost")])

    assert [item.cycle for item in result.cycles] == [["a", "a"]]


def test_allow_cycles_on_any_member_allows_the_cycle() -> None:
    result = detect_cycles(
        [
            screen("a", "b"),
            screen("b", "a", allow_cycles=True),
            screen("c", "d"),
            screen("d", "c"),
        ]
    )

    assert [(item.cycle, item.allowed) for item in result.cycles] == [
        (["a", "b", "a"], True),
        (["c", "d", "c"], False),
    ]
    assert cycle_summary(result) == "2 circular navigations detected (1 not allowed, 1 allowed)"
    assert format_cycle_warnings(result.cycles).splitlines() == [
        "  Cycle 1 (allowed): a → b → a",
        "  Cycle 2: c → d → c",
    ]


def test_duplicate_ids_use_last_definition() -> None:
    result = detect_cycles([screen("a", "b"), screen("b"), screen("a")])

    assert result.duplicate_ids == ["a"]
    assert not result.has_cycles


def test_catalog_fixture() -> None:
    catalog = [Screen.from_dict(item) for item in read_json(FIXTURES / "screens.json")]

    result = detect_cycles(catalog)

    assert [(item.cycle, item.allowed) for item in result.cycles] == [
        (["billing.invoices", "billing.invoice.detail", "billing.invoices"], True),
        (["settings", "profile", "settings"], False),
    ]
