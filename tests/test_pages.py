"""Tests for the page index and page execution adapters."""

import sys
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from wiki_autoupdate.adapters.pages import (
    CommandPageExecutor,
    CommandValidator,
    FrontmatterPageIndex,
    parse_frontmatter,
)
from wiki_autoupdate.core import PageTier, PageUpdate, RunStatus


def write_page(root: Path, relative: str, frontmatter: str, body: str = "Body text.") -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{frontmatter}\n---\n\n{body}\n", encoding="utf-8")


def test_parse_frontmatter() -> None:
    """Test front matter extraction."""
    assert parse_frontmatter("---\ntitle: OpenAI\nreaderImportance: 90\n---\nBody") == {
        "title": "OpenAI",
        "readerImportance": 90,
    }
    assert parse_frontmatter("No front matter here") == {}
    assert parse_frontmatter("---\ntitle: [unclosed\n---\nBody") == {}


def test_load_pages_filters_and_reads_fields() -> None:
    """Test index skips stubs, internal and non-evergreen pages."""
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_page(
            root,
            "organizations/openai.mdx",
            "title: OpenAI\nentityType: organization\nreaderImportance: 92\n"
            "update_frequency: 14\nlastEdited: '2026-09-30'\nsubcategory: labs",
        )
        write_page(root, "concepts/compute/index.md", "title: Compute")
        write_page(root, "drafts/stub.md", "title: Stub\npageType: stub")
        write_page(root, "internal/notes.md", "title: Notes\nentityType: internal")
        write_page(root, "news/weekly.md", "title: Weekly\nevergreen: false")
        (root / "assets").mkdir()
        (root / "assets" / "diagram.svg").write_text("<svg/>", encoding="utf-8")

        pages = FrontmatterPageIndex(root).load_pages()

    by_id = {page.id: page for page in pages}
    assert set(by_id) == {"openai", "compute"}

    openai = by_id["openai"]
    assert openai.title == "OpenAI"
    assert openai.entity_type == "organization"
    assert openai.reader_importance == 92
    assert openai.update_frequency == 14
    assert openai.last_edited == "2026-09-30"
    assert openai.categories == ("labs", "organization")

    compute = by_id["compute"]
    assert compute.entity_type == "unknown"
    assert compute.reader_importance == 50
    assert compute.update_frequency == 90


def test_load_pages_missing_dir() -> None:
    with TemporaryDirectory() as tmpdir:
        assert FrontmatterPageIndex(Path(tmpdir) / "missing").load_pages() == []


def test_load_pages_skips_non_utf8_page() -> None:
    """Test a page that is not valid UTF-8 is skipped, not fatal."""
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_page(root, "openai.md", "title: OpenAI\nreaderImportance: 90")
        (root / "broken.md").write_bytes(b"---\ntitle: Caf\xe9 \xff\xfe\n---\n\nBody\n")

        pages = FrontmatterPageIndex(root).load_pages()

    assert [p.id for p in pages] == ["openai"]


@pytest.fixture
def update() -> PageUpdate:
    return PageUpdate(
        page_id="openai",
        page_title="OpenAI",
        reason="news",
        suggested_tier=PageTier.STANDARD,
        directions="Add the new model",
    )


def test_build_args(update: PageUpdate) -> None:
    """Test command line for one page update."""
    executor = CommandPageExecutor(["page-improve", "--quiet"])

    assert executor.build_args(update) == [
        "page-improve", "--quiet", "openai", "--tier", "standard", "--apply",
        "--directions", "Add the new model",
    ]


def test_empty_command_rejected() -> None:
    with pytest.raises(ValueError):
        CommandPageExecutor([])


@pytest.mark.asyncio
async def test_execute_success(update: PageUpdate) -> None:
    executor = CommandPageExecutor([sys.executable, "-c", "import sys; sys.exit(0)"])
    result = await executor.execute(update)

    assert result.status == RunStatus.SUCCESS
    assert result.page_id == "openai"
    assert result.tier == PageTier.STANDARD
    assert result.duration_ms is not None


@pytest.mark.asyncio
async def test_execute_failure_is_captured(update: PageUpdate) -> None:
    """Test a failing command becomes a failed result, not an exception."""
    script = "import sys; sys.stderr.write('page not found'); sys.exit(3)"
    executor = CommandPageExecutor([sys.executable, "-c", script])
    result = await executor.execute(update)

    assert result.status == RunStatus.FAILED
    assert "Exit code 3" in result.error
    assert "page not found" in result.error


@pytest.mark.asyncio
async def test_execute_timeout(update: PageUpdate) -> None:
    executor = CommandPageExecutor(
        [sys.executable, "-c", "import time; time.sleep(10)"],
        timeout_seconds=0.2,
    )
    result = await executor.execute(update)

    assert result.status == RunStatus.FAILED
    assert "Timed out" in result.error


@pytest.mark.asyncio
async def test_execute_missing_binary(update: PageUpdate) -> None:
    executor = CommandPageExecutor(["definitely-not-a-real-command-xyz"])
    result = await executor.execute(update)

    assert result.status == RunStatus.FAILED
    assert result.error


@pytest.mark.asyncio
async def test_validator_passes() -> None:
    validator = CommandValidator([sys.executable, "-c", "import sys; sys.exit(0)"])

    assert await validator.validate() is True
    assert validator.last_error is None


@pytest.mark.asyncio
async def test_validator_failure_returns_false() -> None:
    """Test failing, hanging and missing validation commands report False."""
    script = "import sys; sys.stderr.write('2 broken links'); sys.exit(1)"
    failing = CommandValidator([sys.executable, "-c", script])
    assert await failing.validate() is False
    assert "2 broken links" in failing.last_error

    hanging = CommandValidator([sys.executable, "-c", "import time; time.sleep(10)"], timeout_seconds=0.2)
    assert await hanging.validate() is False
    assert "Timed out" in hanging.last_error

    missing = CommandValidator(["definitely-not-a-real-command-xyz"])
    assert await missing.validate() is False


def test_empty_validation_command_rejected() -> None:
    with pytest.raises(ValueError):
        CommandValidator([])
