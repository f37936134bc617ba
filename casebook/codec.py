"""
Markdown codec for Casebook.
Splits a document into its YAML frontmatter and body, and joins them back.
"""

import re
from typing import Union

import yaml

from casebook.errors import FormatError

DELIMITER = "---"


class MarkdownCodec:
    """Reads and writes markdown documents with a YAML frontmatter block."""

    # Regex patterns
    OPENING_PATTERN = re.compile(r'\A---[ \t]*(?:\r?\n|\Z)')
    FRONTMATTER_PATTERN = re.compile(
        r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)',
        re.DOTALL | re.MULTILINE,
    )

    def decode(self, raw: Union[bytes, str]) -> tuple[dict, str]:
        """
        Parse a document into its metadata and body.

        Args:
            raw: Document text, or UTF-8 bytes.

        Returns:
            (metadata, body). A document without a frontmatter block
            yields empty metadata and the whole text as body.

        Raises:
            FormatError: If the frontmatter is unterminated, is not valid
                YAML, or is not a mapping.
        """
        text = self._to_text(raw)

        if not self.OPENING_PATTERN.match(text):
            return {}, text

        match = self.FRONTMATTER_PATTERN.match(text)
        if not match:
            raise FormatError("Unterminated frontmatter block")

        try:
            metadata = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FormatError(f"Invalid frontmatter: {e}") from e

        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise FormatError(
                f"Frontmatter must be a mapping, got {type(metadata).__name__}"
            )

        return metadata, text[match.end():]

    def encode(self, metadata: dict, body: str) -> str:
        """
        Serialize metadata and body into a document.

        Keys are written in insertion order and the body is kept verbatim,
        so decode(encode(m, b)) == (m, b).
        """
        header = ""
        if metadata:
            try:
                header = yaml.safe_dump(
                    metadata,
                    sort_keys=False,
                    allow_unicode=True,
                    default_flow_style=False,
                )
            except yaml.YAMLError as e:
                raise FormatError(f"Metadata can't be written as YAML: {e}") from e
        return f"{DELIMITER}\n{header}{DELIMITER}\n{body}"

    def _to_text(self, raw: Union[bytes, str]) -> str:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise FormatError(f"Document is not valid UTF-8: {e}") from e
        return raw.lstrip("\ufeff")


# Singleton codec instance
codec = MarkdownCodec()


def decode(raw: Union[bytes, str]) -> tuple[dict, str]:
    """Parse a document with the shared codec."""
    return codec.decode(raw)


def encode(metadata: dict, body: str) -> str:
    """Serialize a document with the shared codec."""
    return codec.encode(metadata, body)
