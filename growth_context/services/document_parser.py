"""
Document parsing for imports: validates uploads and turns them into plain text.

Text formats (txt, md, json, rtf) are decoded here. PDF and DOCX need a binary
extractor, which is injected as a ``TextExtractor``.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..utils.config import DocumentConfig
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

# Extension -> parsed file type
FILE_TYPES = {
    'pdf': 'pdf',
    'docx': 'docx',
    'doc': 'docx',
    'txt': 'txt',
    'md': 'md',
    'markdown': 'md',
    'json': 'json',
    'rtf': 'rtf',
}
BINARY_TYPES = ('pdf', 'docx')
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024

# Header destinations carry no document text
_RTF_GROUP = re.compile(r'\{\\(?:\*|fonttbl|colortbl|stylesheet|info)[^{}]*\}')
_RTF_CONTROL_WORD = re.compile(r'\\[a-z]+\d*\s?')
_RTF_BRACE = re.compile(r'[{}]')
_BLANK_LINES = re.compile(r'\n\s*\n')
_SENTENCE_SPLIT = re.compile(r'[.!?]+')


class DocumentImportError(Exception):
    """Custom exception for document import errors."""
    pass


@dataclass
class DocumentMetadata:
    title: str
    size_bytes: int
    type: str
    word_count: int
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ParsedDocument:
    content: str
    metadata: DocumentMetadata


@dataclass
class ExtractedText:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class TextExtractor(Protocol):
    """Pulls text out of binary formats such as PDF and DOCX."""

    def extract_text(self, data: bytes, file_name: str) -> ExtractedText:
        ...


def count_words(text: str) -> int:
    return len(text.split())


def file_type_for(file_name: str) -> Optional[str]:
    """Parsed file type for a file name, or None when the extension is unsupported."""
    if '.' not in file_name:
        return None
    return FILE_TYPES.get(file_name.rsplit('.', 1)[-1].lower())


def quick_summary(content: str, max_length: int = 200) -> str:
    """
    Short preview made of the leading meaningful sentences.

    Args:
        content: Document text
        max_length: Maximum summary length

    Returns:
        Whole sentences longer than 20 characters that fit in ``max_length``,
        or the truncated text when none fit
    """
    if not content:
        return ''

    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(content)]
    summary = ''
    for sentence in (s for s in sentences if len(s) > 20):
        if len(summary + sentence) > max_length:
            break
        summary += sentence + '. '

    return summary.strip() or content[:max_length] + '...'


def strip_rtf(text: str) -> str:
    text = _RTF_GROUP.sub('', text)
    text = _RTF_CONTROL_WORD.sub('', text)
    text = _RTF_BRACE.sub('', text)
    return _BLANK_LINES.sub('\n', text).strip()


def flatten_json_export(data: Any) -> str:
    """Pull readable text out of common chat, journal, notes and highlight exports."""
    if not isinstance(data, dict):
        return json.dumps(data, indent=2)

    parts: List[str] = []

    for conversation in data.get('conversations') or []:
        user = conversation.get('userInput') or conversation.get('user') or ''
        assistant = conversation.get('aiResponse') or conversation.get('assistant') or ''
        parts.append(f'{user}\n{assistant}\n')

    for entry in data.get('journalEntries') or data.get('entries') or []:
        text = entry.get('content') or entry.get('text') or entry.get('entry') or ''
        parts.append(f"{entry.get('date', '')}\n{text}\n")

    if isinstance(data.get('content'), str):
        parts.append(data['content'])

    notes = data.get('notes') or []
    if notes:
        parts.append('\n'.join(note.get('text') or note.get('content') or '' for note in notes))

    highlights = data.get('highlights') or []
    if highlights:
        parts.append('\n'.join(f"\"{h.get('text') or h.get('content') or ''}\" - {h.get('note', '')}"
                               for h in highlights))

    content = '\n'.join(parts)
    if not content.strip():
        # Unrecognized structure, keep the raw JSON
        content = json.dumps(data, indent=2)
    return content


class DocumentParser:
    """Validates and parses uploaded documents."""

    def __init__(self, extractor: Optional[TextExtractor] = None, max_file_bytes: int = DEFAULT_MAX_FILE_BYTES):
        self.extractor = extractor
        self.max_file_bytes = max_file_bytes

    @classmethod
    def from_config(cls, document_config: DocumentConfig, extractor: Optional[TextExtractor] = None) -> 'DocumentParser':
        return cls(extractor=extractor, max_file_bytes=document_config.max_file_bytes)

    def validate(self, file_name: str, size_bytes: int) -> str:
        """
        Check size and extension before reading anything.

        Returns:
            Parsed file type

        Raises:
            DocumentImportError: If the file is too large or unsupported
        """
        if size_bytes > self.max_file_bytes:
            raise DocumentImportError(f'File too large. Maximum size is {self.max_file_bytes // (1024 * 1024)}MB.')

        file_type = file_type_for(file_name)
        if file_type is None:
            supported = ', '.join(sorted(set(FILE_TYPES))).upper()
            raise DocumentImportError(f'Unsupported file type: {file_name}. Supported formats: {supported}')
        return file_type

    def parse(self, file_name: str, data: bytes) -> ParsedDocument:
        """
        Parse an uploaded file into text plus metadata.

        Args:
            file_name: Original file name; its extension selects the parser
            data: Raw file bytes

        Returns:
            ParsedDocument with non-empty content

        Raises:
            DocumentImportError: If validation, extraction or decoding fails
        """
        file_type = self.validate(file_name, len(data))

        if file_type in BINARY_TYPES:
            document = self._parse_binary(file_name, data, file_type)
        elif file_type == 'json':
            document = self._parse_json(file_name, data)
        elif file_type == 'rtf':
            document = self._parse_rtf(file_name, data)
        else:
            document = self._parse_text(file_name, data, file_type)

        logger.info(f'Parsed {file_type} document {file_name} ({document.metadata.word_count} words)')
        return document

    def _decode(self, file_name: str, data: bytes) -> str:
        try:
            return data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            logger.error(f'Failed to decode {file_name}: {e}')
            raise DocumentImportError(f'Failed to read {file_name}. Please check the file encoding.')

    def _parse_text(self, file_name: str, data: bytes, file_type: str) -> ParsedDocument:
        text = self._decode(file_name, data)
        if not text.strip():
            raise DocumentImportError(f'{file_name} appears to be empty')

        metadata = DocumentMetadata(title=file_name,
                                    size_bytes=len(data),
                                    type='markdown' if file_type == 'md' else 'text',
                                    word_count=count_words(text),
                                    extra={'line_count': len(text.split('\n'))})
        return ParsedDocument(content=text, metadata=metadata)

    def _parse_json(self, file_name: str, data: bytes) -> ParsedDocument:
        try:
            payload = json.loads(self._decode(file_name, data))
        except json.JSONDecodeError as e:
            logger.error(f'Invalid JSON in {file_name}: {e}')
            raise DocumentImportError('Invalid JSON file format. Please check the file structure.')

        content = flatten_json_export(payload)
        structure = list(payload.keys()) if isinstance(payload, dict) else []
        metadata = DocumentMetadata(title=file_name,
                                    size_bytes=len(data),
                                    type='json',
                                    word_count=count_words(content),
                                    extra={'data_structure': structure})
        return ParsedDocument(content=content, metadata=metadata)

    def _parse_rtf(self, file_name: str, data: bytes) -> ParsedDocument:
        text = strip_rtf(self._decode(file_name, data))
        if not text:
            raise DocumentImportError(f'No readable text found in {file_name}')

        metadata = DocumentMetadata(title=file_name, size_bytes=len(data), type='rtf', word_count=count_words(text))
        return ParsedDocument(content=text, metadata=metadata)

    def _parse_binary(self, file_name: str, data: bytes, file_type: str) -> ParsedDocument:
        if self.extractor is None:
            raise DocumentImportError(f'No text extractor configured for {file_type.upper()} files. '
                                      'Please save as a text file and import that instead.')
        try:
            extracted = self.extractor.extract_text(data, file_name)
        except DocumentImportError:
            raise
        except Exception as e:
            logger.error(f'{file_type.upper()} extraction failed for {file_name}: {e}')
            raise DocumentImportError(f'{file_type.upper()} parsing failed. '
                                      'Please save as a text file and import that instead.')

        if not extracted.text or not extracted.text.strip():
            raise DocumentImportError(f'No text content found in {file_name}')

        metadata = DocumentMetadata(title=file_name,
                                    size_bytes=len(data),
                                    type=file_type,
                                    word_count=count_words(extracted.text),
                                    extra=dict(extracted.metadata))
        return ParsedDocument(content=extracted.text, metadata=metadata)
