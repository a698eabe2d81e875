"""
Extractors turn fetched content into the single value reported for a URL.
"""

from abc import ABC, abstractmethod
from typing import Callable

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from .errors import ExtractError


class Extractor(ABC):
    """Derives one string value from raw page content."""

    @abstractmethod
    def extract(self, content: bytes) -> str:
        """
        Extract a value from ``content``.

        Returns an empty string when there is nothing to extract; raises
        ``ExtractError`` only when the content cannot be processed at all.
        """


class FunctionExtractor(Extractor):
    """Adapts a plain ``bytes -> str`` callable to the Extractor interface."""

    def __init__(self, func: Callable[[bytes], str]):
        self.func = func

    def extract(self, content: bytes) -> str:
        return self.func(content)


class TitleExtractor(Extractor):
    """
    Returns the text of the first ``tag`` element in document order.

    Markup is parsed with lxml through BeautifulSoup, which recovers from
    malformed documents; only real element nodes match, never raw text that
    merely looks like a tag. The text is returned exactly as written.
    """

    def __init__(self, tag: str = 'title', parser: str = 'lxml'):
        self.tag = tag
        self.parser = parser

    def extract(self, content: bytes) -> str:
        try:
            soup = BeautifulSoup(content, self.parser)
        except ParserRejectedMarkup as e:
            raise ExtractError(f"error parsing document: {e}") from e

        element = soup.find(self.tag)
        if element is None:
            return ""

        return element.get_text()
