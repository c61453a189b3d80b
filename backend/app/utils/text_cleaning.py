"""
Text cleaning utilities for catalog content and ingredient names.
"""
import re
from bs4 import BeautifulSoup


def clean_html(html_content: str) -> str:
    """
    Extract plain text from catalog instruction markup.
    List items and paragraphs become separate lines.

    Args:
        html_content: Raw HTML (or plain text) string

    Returns:
        Cleaned text content
    """
    if not html_content:
        return ""

    if "<" not in html_content:
        return clean_recipe_text(html_content)

    soup = BeautifulSoup(html_content, 'lxml')

    for element in soup(["script", "style", "iframe", "noscript"]):
        element.decompose()

    text = soup.get_text(separator="\n")

    lines = (clean_recipe_text(line) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def clean_recipe_text(text: str) -> str:
    """
    Collapse whitespace. Preserves Unicode characters for international recipes.
    """
    return re.sub(r'\s+', ' ', text or "").strip()


def normalize_name(name: str) -> str:
    """Comparison form of an ingredient name: trimmed and lowercased."""
    return (name or "").strip().lower()


def slugify(value: str) -> str:
    """Catalog tag form: lowercased with whitespace runs turned into hyphens."""
    return re.sub(r'\s+', '-', (value or "").strip().lower())
