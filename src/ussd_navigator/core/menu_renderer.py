"""Menu renderer for USSD pages."""

import logging

from .menu import Option, Page
from .pagination import paginate, paginate_options

logger = logging.getLogger(__name__)


class MenuRenderer:
    """Renders a page as title plus numbered option listing."""

    def __init__(
        self,
        enable_pagination: bool = False,
        items_per_page: int = 5,
        next_page_command: str = "#",
        previous_page_command: str = "*",
        next_label: str = "Next",
        previous_label: str = "Previous",
    ):
        self.enable_pagination = enable_pagination
        self.items_per_page = items_per_page
        self.next_page_command = next_page_command
        self.previous_page_command = previous_page_command
        self.next_label = next_label
        self.previous_label = previous_label

    def render(self, page: Page, part: int = 1, prefix: str | None = None) -> str:
        """
        Render a page.

        When pagination is enabled and the page lists more options than
        items_per_page, only the slice for `part` is listed, followed by
        next/previous controls for the directions that exist. Otherwise
        every option is listed.

        Args:
            page: The page to render.
            part: 1-based slice number (clamped).
            prefix: Optional line(s) shown above the title.

        Returns:
            Formatted reply text.
        """
        lines = []

        if prefix:
            lines.append(prefix)

        if page.title:
            lines.append(page.title)

        options = page.listed_options()
        if self.enable_pagination and len(options) > self.items_per_page:
            logger.debug(f"Paginating page {page.id}: part {part}, {len(options)} options")
            options = paginate_options(
                options,
                part,
                self.items_per_page,
                next_command=self.next_page_command,
                previous_command=self.previous_page_command,
                next_label=self.next_label,
                previous_label=self.previous_label,
            )
            lines.extend(self._format_option(o) for o in options)
        else:
            lines.extend(self._format_option(o) for o in options)

        return "\n".join(lines).rstrip()

    def current_part(self, page: Page, part: int) -> int:
        """Clamp a part number into the page's valid range."""
        options = page.listed_options()
        if not self.enable_pagination or len(options) <= self.items_per_page:
            return 1
        return paginate(options, part, self.items_per_page).current_page

    @staticmethod
    def _format_option(option: Option) -> str:
        return f"{option.input}. {option.label}"
