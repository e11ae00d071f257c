import json
import subprocess
from pathlib import Path

import pytest

from screenbook.git_utils import GitError, changed_files
from screenbook.graph.pr_impact import analyze_pr_impact, extract_api_names, format_pr_markdown
from screenbook.schemas import Screen

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _run(cmd: list[str], cwd: Path) -> None:
    subprocess.run(cmd, cwd=cwd, check=True)


def _init_git(repo: Path) -> None:
    _run(["git", "init", "-b", "main"], repo)
    _run(["git", "config", "user.name", "tester"], repo)
    _run(["git", "config", "user.email", "tester@example.com"], repo)


def _commit_all(repo: Path, msg: str) -> None:
    _run(["git", "add", "."], repo)
    _run(["git", "commit", "-m", msg], repo)


def _screens() -> list[Screen]:
    data = json.loads((FIXTURES / "screens.json").read_text(encoding="utf-8"))
    return [Screen.from_dict(item) for item in data]


def test_extract_api_names_from_paths() -> None:
    assert extract_api_names(["src/api/InvoiceAPI.ts"]) == ["InvoiceAPI"]
    assert extract_api_names(["src/api/invoice.ts"]) == ["InvoiceAPI"]
    assert extract_api_names(["src/services/invoice/index.ts"]) == ["InvoiceService"]
    assert extract_api_names(
        [
            "src/services/billingService.ts",
            "lib/paymentApi.ts",
            "src\\api\\InvoiceAPI.ts",
            "src/components/Button.tsx",
            "README.md",
        ]
    ) == ["InvoiceAPI", "billingService", "paymentApi"]


def test_analyze_pr_impact_keeps_only_apis_with_screens() -> None:
    apis, results = analyze_pr_impact(_screens(), ["src/api/InvoiceAPI.ts", "src/api/UserAPI.ts"])

    assert apis == ["InvoiceAPI", "UserAPI"]
    assert [(item.api, item.total_count) for item in results] == [("InvoiceAPI", 3)]


def test_markdown_report_with_impacts() -> None:
    files = ["src/api/InvoiceAPI.ts"]
    apis, results = analyze_pr_impact(_screens(), files)

    report = format_pr_markdown(files, apis, results)

    assert report.startswith("## Screenbook Impact Analysis\n")
    assert "**3 screens affected** by changes to 1 API" in report
    assert "### InvoiceAPI" in report
    assert "**Direct dependencies** (2):" in report
    assert "| billing.invoice.detail | `/billing/invoices/:id` | billing |" in report
    assert "**Transitive dependencies** (1):" in report
    assert "<summary>Changed files (1)</summary>" in report


def test_markdown_report_without_impacts_lists_detected_apis() -> None:
    report = format_pr_markdown(["src/api/UserAPI.ts"], ["UserAPI"], [])

    assert "No screen impacts detected from the API changes in this PR." in report
    assert "- `UserAPI`" in report
    assert "Changed files" not in report


def test_markdown_report_caps_changed_files() -> None:
    files = ["src/api/InvoiceAPI.ts", *[f"src/pages/Page{index}.tsx" for index in range(24)]]
    apis, results = analyze_pr_impact(_screens(), files)

    report = format_pr_markdown(files, apis, results)

    assert "<summary>Changed files (25)</summary>" in report
    assert "- `src/pages/Page18.tsx`" in report
    assert "- `src/pages/Page19.tsx`" not in report
    assert "- ... and 5 more" in report


def test_changed_files_between_refs(tmp_path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _init_git(repo)
    (repo / "README.md").write_text("# demo\n", encoding="utf-8")
    _commit_all(repo, "init")

    _run(["git", "checkout", "-b", "feature"], repo)
    api = repo / "src" / "api" / "InvoiceAPI.ts"
    api.parent.mkdir(parents=True)
    api.write_text("export const getDetail = () => null\n", encoding="utf-8")
    _commit_all(repo, "add invoice api")

    assert changed_files(repo, "main", "feature") == ["src/api/InvoiceAPI.ts"]
    assert changed_files(repo, "main", "main") == []


def test_changed_files_unknown_ref_raises(tmp_path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _init_git(repo)
    (repo / "README.md").write_text("# demo\n", encoding="utf-8")
    _commit_all(repo, "init")

    with pytest.raises(GitError):
        changed_files(repo, "main", "no-such-branch")
