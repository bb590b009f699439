"""Prompt templates advertised by the server."""
from dataclasses import dataclass

from .errors import NotFoundError


@dataclass(frozen=True)
class Prompt:
    name: str
    description: str
    instructions: str


PROMPTS = [
    Prompt(
        name="organize_by_topic",
        description="Suggest a collection structure for unsorted bookmarks",
        instructions=(
            "You help organize Raindrop.io bookmarks. Use bookmark_search with "
            "collection=-1 to list unsorted bookmarks, group them by topic, and "
            "propose collections. Create them with collection_manage and move "
            "bookmarks with bulk_edit_raindrops only after I confirm."
        ),
    ),
    Prompt(
        name="find_duplicates",
        description="Find duplicate and broken bookmarks",
        instructions=(
            "Check user_stats for duplicate and broken link counts, then use "
            "bookmark_search with duplicates=true or broken=true to list them. "
            "Summarize what you found and suggest which bookmarks to delete."
        ),
    ),
    Prompt(
        name="export_markdown",
        description="Render a collection as a Markdown reading list",
        instructions=(
            "Use listRaindrops for the collection I name and produce a Markdown "
            "list with one line per bookmark: title, link, and tags. Read "
            "mcp://raindrop/{id} when you need the excerpt or note."
        ),
    ),
]


def get_prompt(name: str) -> Prompt:
    for prompt in PROMPTS:
        if prompt.name == name:
            return prompt
    raise NotFoundError(f"Prompt '{name}' not found")
