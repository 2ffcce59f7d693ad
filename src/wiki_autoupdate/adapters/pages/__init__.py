"""Page index, page execution and validation adapters."""

from wiki_autoupdate.adapters.pages.command_executor import CommandPageExecutor, CommandValidator
from wiki_autoupdate.adapters.pages.frontmatter_index import FrontmatterPageIndex, parse_frontmatter

__all__ = ["CommandPageExecutor", "CommandValidator", "FrontmatterPageIndex", "parse_frontmatter"]
