import markdown

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


class MarkupError(ValueError):
    """Raised when a description cannot be rendered as markup."""


def render_markup(text) -> str:
    """
    Render Markdown source to HTML.
    Raises MarkupError for non-string input or if the renderer fails.
    """
    if not isinstance(text, str):
        raise MarkupError(f"expected text, got {type(text).__name__}")
    try:
        return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="html")
    except Exception as e:
        raise MarkupError(str(e)) from e


def is_valid_markup(text) -> bool:
    try:
        render_markup(text)
        return True
    except MarkupError:
        return False
