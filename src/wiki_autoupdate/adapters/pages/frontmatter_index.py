"""Page index built from Markdown / MDX front matter."""

from pathlib import Path
from typing import Any

import yaml

from wiki_autoupdate.core import PageIndex, PageIndexEntry

PAGE_SUFFIXES = (".md", ".mdx")
EXCLUDED_PAGE_TYPES = ("stub", "documentation")


def parse_frontmatter(content: str) -> dict[str, Any]:
    """Return the YAML front matter of a document, or an empty dict."""
    if not content.startswith("---"):
        return {}

    parts = content.split("\n---", 1)
    if len(parts) < 2:
        return {}

    try:
        data = yaml.safe_load(parts[0][3:])
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def _number(value: Any, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


class FrontmatterPageIndex(PageIndex):
    """Scan a content directory and index every evergreen page."""

    def __init__(self, content_dir: Path) -> None:
        self.content_dir = content_dir

    def load_pages(self) -> list[PageIndexEntry]:
        if not self.content_dir.exists():
            return []

        pages = []
        for path in sorted(self.content_dir.rglob("*")):
            if path.suffix not in PAGE_SUFFIXES or not path.is_file():
                continue

            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                print(f"⚠️  Warning: Skipping unreadable page {path}: {e}")
                continue

            fm = parse_frontmatter(text)
            if fm.get("pageType") in EXCLUDED_PAGE_TYPES or fm.get("entityType") == "internal":
                continue
            if fm.get("evergreen") is False:
                continue

            pages.append(self._entry(path, fm))

        return pages

    def _entry(self, path: Path, fm: dict[str, Any]) -> PageIndexEntry:
        # Section index files are named after their directory
        page_id = path.stem
        if page_id == "index" and path.parent != self.content_dir:
            page_id = path.parent.name

        entity_type = fm.get("entityType") if isinstance(fm.get("entityType"), str) else "unknown"
        categories = [c for c in (fm.get("subcategory"), fm.get("entityType")) if isinstance(c, str)]
        last_edited = fm.get("lastEdited")

        return PageIndexEntry(
            id=page_id,
            title=fm["title"] if isinstance(fm.get("title"), str) else page_id,
            entity_type=entity_type,
            reader_importance=_number(fm.get("readerImportance"), 50) or 50,
            update_frequency=int(_number(fm.get("update_frequency"), 90) or 90),
            last_edited=str(last_edited) if last_edited else "",
            categories=tuple(categories),
        )
