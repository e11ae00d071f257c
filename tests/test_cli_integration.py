import json
from pathlib import Path

from typer.testing import CliRunner

from screenbook.cli import app

runner = CliRunner()

FIXTURES = Path(__file__).resolve().parent / "fixtures"
ROUTES = FIXTURES / "routes"


def test_cli_init_writes_default_config(tmp_path) -> None:
    result = runner.invoke(app, ["init", "--root", str(tmp_path)])

    assert result.exit_code == 0
    config = tmp_path / ".screenbook" / "config.yaml"
    assert config.exists()
    assert "spread_operator: warn" in config.read_text(encoding="utf-8")


def test_cli_routes_text_output(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["routes", str(ROUTES / "react_routes.tsx")])

    assert result.exit_code == 0
    assert "[screenbook] 5 routes in" in result.output
    assert "  - users.userId  /users/:userId" in result.output
    assert "! [spread]" in result.output


def test_cli_routes_json_output(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["routes", str(ROUTES / "vue_routes.ts"), "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [item["screenId"] for item in payload["routes"]] == [
        "home",
        "about",
        "users.id",
        "users.id.posts",
        "not-found",
    ]
    assert payload["warnings"] == []


def test_cli_routes_fails_on_spread_when_configured(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCREENBOOK_SPREAD_OPERATOR", "error")

    result = runner.invoke(app, ["routes", str(ROUTES / "react_routes.tsx")])

    assert result.exit_code == 1


def test_cli_routes_rejects_broken_files_and_unknown_kinds(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    broken = tmp_path / "routes.tsx"
    broken.write_text(
        'import { createBrowserRouter } from "react-router-dom"\nexport const router = createBrowserRouter([{ path: "/a" \n',
        encoding="utf-8",
    )

    assert runner.invoke(app, ["routes", str(broken)]).exit_code == 2
    assert runner.invoke(app, ["routes", str(ROUTES / "vue_routes.ts"), "--kind", "ember"]).exit_code == 2


def test_cli_routes_writes_payload_file(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out" / "routes.json"

    result = runner.invoke(app, ["routes", str(ROUTES / "angular_routes.ts"), "--kind", "angular-router", "--out", str(out)])

    assert result.exit_code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert [item["fullPath"] for item in payload["routes"]] == ["/", "/admin", "/profile", "/**"]
    assert payload["routes"][0]["screenTitle"] == "Home"


def test_cli_pages_infers_file_routes(tmp_path) -> None:
    pages = tmp_path / "src" / "pages"
    for rel in ["index.tsx", "users/[id].tsx", "users/[id].test.tsx", "(marketing)/about/page.tsx"]:
        path = pages / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("export default function Page() { return null }\n", encoding="utf-8")

    result = runner.invoke(app, ["pages", str(tmp_path)])

    assert result.exit_code == 0
    assert "[screenbook] 3 file routes" in result.output
    assert "  - about  /about  ((marketing)/about/page.tsx)" in result.output
    assert "  - home  /  (index.tsx)" in result.output
    assert "  - users.id  /users/:id  (users/[id].tsx)" in result.output


def test_cli_lint_reports_references_apis_and_cycles(tmp_path) -> None:
    config = tmp_path / ".screenbook" / "config.yaml"
    config.parent.mkdir(parents=True)
    config.write_text(f"openapi:\n  - {(FIXTURES / 'openapi.yaml').as_posix()}\n", encoding="utf-8")

    result = runner.invoke(app, ["lint", "--screens", str(FIXTURES / "screens.json"), "--root", str(tmp_path)])

    assert result.exit_code == 1
    assert 'Did you mean "settings"?' in result.output
    assert "[screenbook] 2 unknown dependsOn APIs" in result.output
    assert "2 circular navigations detected (1 not allowed, 1 allowed)" in result.output
    assert "  Cycle 2: settings → profile → settings" in result.output
    assert "[screenbook] lint failed" in result.output


def test_cli_lint_passes_clean_catalog(tmp_path) -> None:
    screens = tmp_path / "screens.json"
    screens.write_text(json.dumps({"screens": [{"id": "home", "next": ["about"]}, {"id": "about"}]}), encoding="utf-8")

    result = runner.invoke(app, ["lint", "--screens", str(screens), "--root", str(tmp_path)])

    assert result.exit_code == 0
    assert "No circular navigation detected" in result.output
    assert "[screenbook] lint passed" in result.output


def test_cli_impact_json(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    screens = str(FIXTURES / "screens.json")

    result = runner.invoke(app, ["impact", "InvoiceAPI", "--screens", screens, "--format", "json"])
    shallow = runner.invoke(app, ["impact", "InvoiceAPI.getDetail", "--screens", screens, "--depth", "1"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["summary"] == {"directCount": 2, "transitiveCount": 1, "totalCount": 3}
    assert shallow.exit_code == 0
    assert "  - billing.invoices -> billing.invoice.detail" in shallow.output
    assert "Total: 2 screens affected" in shallow.output


def test_cli_nav_merges_next(tmp_path) -> None:
    page = tmp_path / "Home.tsx"
    page.write_text(
        'import Link from "next/link"\n'
        "export default function Home() {\n"
        '  return <Link href="/profile">Profile</Link>\n'
        "}\n",
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        ["nav", str(page), "--screen", "home", "--screens", str(FIXTURES / "screens.json")],
    )

    assert result.exit_code == 0
    assert "  - profile  /profile  (link, line 3)" in result.output
    assert '[screenbook] next for home: ["billing.invoices", "profile", "settings"]' in result.output


REACT_SOURCE = (
    'import { createBrowserRouter } from "react-router-dom"\n'
    'export const router = createBrowserRouter([{ path: "/", element: <Home /> }, ...extraRoutes])\n'
)


def test_cli_init_detects_framework(tmp_path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"next": "14.2.0"}}), encoding="utf-8")
    (tmp_path / "next.config.js").write_text("module.exports = {}\n", encoding="utf-8")
    (tmp_path / "app").mkdir()

    result = runner.invoke(app, ["init", "--root", str(tmp_path)])

    assert result.exit_code == 0
    assert "[screenbook] detected Next.js (App Router): routes_pattern app/**/page.tsx" in result.output
    text = (tmp_path / ".screenbook" / "config.yaml").read_text(encoding="utf-8")
    assert 'routes_pattern: "app/**/page.tsx"' in text

    again = runner.invoke(app, ["init", "--root", str(tmp_path)])
    assert "use --force to overwrite" in again.output


def test_cli_malformed_config_exits_with_usage_error(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    routes_file = tmp_path / "r.tsx"
    routes_file.write_text(REACT_SOURCE, encoding="utf-8")
    (tmp_path / "broken.yaml").write_text("naming: [unclosed\n", encoding="utf-8")
    (tmp_path / "list.yaml").write_text("naming:\n  parameter_mapping: [a, b]\n", encoding="utf-8")

    broken = runner.invoke(app, ["routes", str(routes_file), "--config", "broken.yaml"])
    listed = runner.invoke(app, ["routes", str(routes_file), "--config", "list.yaml"])

    assert broken.exit_code == 2
    assert "invalid config" in broken.output
    assert listed.exit_code == 2
    assert "naming.parameter_mapping must be a mapping" in listed.output


def test_cli_routes_uses_routes_file_and_config_under_root(tmp_path, monkeypatch) -> None:
    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "routes.tsx").write_text(REACT_SOURCE, encoding="utf-8")
    (project / "screenbook.yaml").write_text(
        "routes_file: src/routes.tsx\nlint:\n  spread_operator: error\n",
        encoding="utf-8",
    )
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    result = runner.invoke(app, ["routes", "--root", str(project), "--config", "screenbook.yaml"])

    assert f"[screenbook] 1 routes in {(project / 'src' / 'routes.tsx').resolve()}" in result.output
    assert "Variable 'extraRoutes' not found in local scope or imports" in result.output
    assert result.exit_code == 1


def test_cli_routes_without_file_or_routes_file_fails(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "empty.yaml").write_text("out_dir: .screenbook\n", encoding="utf-8")

    result = runner.invoke(app, ["routes", "--config", "empty.yaml"])

    assert result.exit_code == 2
    assert "no routes file" in result.output


def test_cli_lint_and_impact_default_to_out_dir_catalog(tmp_path, monkeypatch) -> None:
    catalog = tmp_path / "build" / "screens.json"
    catalog.parent.mkdir()
    catalog.write_text((FIXTURES / "screens.json").read_text(encoding="utf-8"), encoding="utf-8")
    (tmp_path / "cfg.yaml").write_text("out_dir: build\n", encoding="utf-8")
    monkeypatch.chdir(FIXTURES)

    impact = runner.invoke(
        app, ["impact", "InvoiceAPI", "--root", str(tmp_path), "--config", "cfg.yaml", "--format", "json"]
    )
    lint = runner.invoke(app, ["lint", "--root", str(tmp_path), "--config", "cfg.yaml"])

    assert impact.exit_code == 0
    assert json.loads(impact.stdout)["summary"]["totalCount"] == 3
    assert "circular navigations detected" in lint.output


def test_cli_deps_lists_client_imports_and_merges(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    page = tmp_path / "Invoices.tsx"
    page.write_text(
        'import { getInvoice, type Invoice } from "@api/client"\n'
        'import usersApi from "@api/client/users"\n'
        'import { useState } from "react"\n',
        encoding="utf-8",
    )

    missing = runner.invoke(app, ["deps", str(page)])
    result = runner.invoke(
        app,
        [
            "deps",
            str(page),
            "--client-package",
            "@api/client",
            "--screen",
            "billing.invoices",
            "--screens",
            str(FIXTURES / "screens.json"),
        ],
    )

    assert missing.exit_code == 2
    assert result.exit_code == 0
    assert "[screenbook] 1 API imports in" in result.output
    assert "  - @api/client/getInvoice  (line 1)" in result.output
    assert 'Default import from "@api/client/users" at line 2' in result.output
    assert '[screenbook] dependsOn for billing.invoices: ["@api/client/getInvoice", "InvoiceAPI.listInvoices"]' in result.output


def test_cli_pr_impact_from_changed_files(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    screens = str(FIXTURES / "screens.json")
    args = ["pr-impact", "--changed", "src/api/InvoiceAPI.ts", "--changed", "README.md", "--screens", screens]

    markdown = runner.invoke(app, args)
    as_json = runner.invoke(app, [*args, "--format", "json", "--out", str(tmp_path / "impact.json")])

    assert markdown.exit_code == 0
    assert markdown.output.startswith("## Screenbook Impact Analysis")
    assert "**3 screens affected** by changes to 1 API" in markdown.output
    assert "| billing.invoices | `/billing/invoices` | billing |" in markdown.output
    assert as_json.exit_code == 0
    payload = json.loads((tmp_path / "impact.json").read_text(encoding="utf-8"))
    assert payload["changedFiles"] == ["src/api/InvoiceAPI.ts", "README.md"]
    assert payload["detectedApis"] == ["InvoiceAPI"]
    assert payload["results"][0]["summary"]["totalCount"] == 3


def test_cli_pr_impact_outside_git_repository(tmp_path) -> None:
    result = runner.invoke(app, ["pr-impact", "--root", str(tmp_path), "--screens", str(FIXTURES / "screens.json")])

    assert result.exit_code == 2
    assert "cannot list changed files" in result.output
