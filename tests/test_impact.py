import json
from pathlib import Path

from screenbook.graph.impact import analyze_impact, format_impact_json, format_impact_text, matches_dependency
from screenbook.schemas import Screen
from screenbook.utils import read_json

FIXTURES = Path(__file__).parent / "fixtures"


def load_catalog() -> list[Screen]:
    return [Screen.from_dict(item) for item in read_json(FIXTURES / "screens.json")]


def test_matches_dependency() -> None:
    assert matches_dependency("InvoiceAPI.getDetail", "InvoiceAPI")
    assert matches_dependency("InvoiceAPI", "InvoiceAPI.getDetail")
    assert matches_dependency("InvoiceAPI.getDetail", "InvoiceAPI.getDetail")
    assert not matches_dependency("InvoiceAPIv2.getDetail", "InvoiceAPI")


def test_service_prefix_finds_direct_and_transitive_screens() -> None:
    result = analyze_impact(load_catalog(), "InvoiceAPI")

    assert [item.id for item in result.direct] == ["billing.invoices", "billing.invoice.detail"]
    assert [(item.screen.id, item.path) for item in result.transitive] == [("home", ["home", "billing.invoices"])]
    assert result.total_count == 3


def test_max_depth_limits_transitive_paths() -> None:
    catalog = load_catalog()

    deep = analyze_impact(catalog, "InvoiceAPI.getDetail")
    shallow = analyze_impact(catalog, "InvoiceAPI.getDetail", max_depth=1)

    assert [item.id for item in deep.direct] == ["billing.invoice.detail"]
    assert [(item.screen.id, item.path) for item in deep.transitive] == [
        ("home", ["home", "billing.invoices", "billing.invoice.detail"]),
        ("billing.invoices", ["billing.invoices", "billing.invoice.detail"]),
    ]
    assert [item.screen.id for item in shallow.transitive] == ["billing.invoices"]


def test_format_impact_text() -> None:
    text = format_impact_text(analyze_impact(load_catalog(), "InvoiceAPI"))

    assert text.splitlines() == [
        "Impact Analysis: InvoiceAPI",
        "",
        "Direct (2 screens):",
        "  - billing.invoices  /billing/invoices [billing]",
        "  - billing.invoice.detail  /billing/invoices/:id [billing]",
        "",
        "Transitive (1 screen):",
        "  - home -> billing.invoices",
        "",
        "Total: 3 screens affected",
    ]


def test_format_impact_without_dependents() -> None:
    result = analyze_impact(load_catalog(), "BillingAPI")

    assert result.total_count == 0
    assert "No screens depend on this API." in format_impact_text(result)


def test_format_impact_json() -> None:
    payload = json.loads(format_impact_json(analyze_impact(load_catalog(), "InvoiceAPI")))

    assert payload["api"] == "InvoiceAPI"
    assert payload["summary"] == {"directCount": 2, "transitiveCount": 1, "totalCount": 3}
    assert payload["direct"][0]["owner"] == ["billing"]
    assert payload["transitive"][0] == {
        "id": "home",
        "title": "Home",
        "route": "/",
        "path": ["home", "billing.invoices"],
    }
