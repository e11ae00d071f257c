from pathlib import Path

from screenbook.graph.validation import (
    format_depends_on_errors,
    format_validation_errors,
    validate_depends_on,
    validate_screen_references,
)
from screenbook.schemas import OpenApiSpec, Screen
from screenbook.utils import read_document, read_json

FIXTURES = Path(__file__).parent / "fixtures"


def load_catalog() -> list[Screen]:
    return [Screen.from_dict(item) for item in read_json(FIXTURES / "screens.json")]


def load_spec() -> OpenApiSpec:
    path = FIXTURES / "openapi.yaml"
    return OpenApiSpec.from_document(read_document(path), source=str(path))


def test_openapi_spec_collects_operations_and_endpoints() -> None:
    spec = load_spec()

    assert spec.operation_ids == {"listInvoices", "getInvoice", "getUser", "getSettings", "updateSettings"}
    assert "PUT /settings" in spec.http_endpoints
    assert spec.normalized_to_original["get /invoices/{id}"] == "GET /invoices/{id}"


def test_screen_references_with_suggestion() -> None:
    result = validate_screen_references(load_catalog())

    assert not result.valid
    assert [(item.screen_id, item.field, item.invalid_ref, item.suggestion) for item in result.errors] == [
        ("profile", "entryPoints", "settngs", "settings"),
    ]
    assert format_validation_errors(result.errors).splitlines() == [
        '  Screen "profile"',
        '    → entryPoints references non-existent screen "settngs"',
        '    Did you mean "settings"?',
    ]


def test_screen_references_without_close_match() -> None:
    result = validate_screen_references([Screen(id="home", next=["zzz"])])

    assert [(item.invalid_ref, item.suggestion) for item in result.errors] == [("zzz", None)]


def test_depends_on_matches_operation_ids_and_http_endpoints() -> None:
    result = validate_depends_on(load_catalog(), [load_spec()])

    assert [(item.screen_id, item.invalid_api) for item in result.errors] == [
        ("billing.invoices", "InvoiceAPI.listInvoices"),
        ("billing.invoice.detail", "InvoiceAPI.getDetail"),
    ]
    assert result.errors[0].suggestion == "listInvoices"
    text = format_depends_on_errors(result.errors)
    assert '    → dependsOn references unknown API "InvoiceAPI.listInvoices"' in text
    assert '    Did you mean "listInvoices"?' in text


def test_depends_on_is_case_insensitive_for_operation_ids() -> None:
    screens = [Screen(id="settings", depends_on=["GETSETTINGS", "delete /settings"])]

    result = validate_depends_on(screens, [load_spec()])

    assert [item.invalid_api for item in result.errors] == ["delete /settings"]
