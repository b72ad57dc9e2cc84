import html
import re
from typing import Any, Dict

import bleach
from bleach.sanitizer import Cleaner


class InputSanitizer:
    """Input sanitization for names, SEO fields and rich text content"""

    # Tags kept in rich text bodies (topic and subtopic content)
    ALLOWED_TAGS = {
        'p', 'br', 'strong', 'em', 'u', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
        'ul', 'ol', 'li', 'blockquote', 'code', 'pre', 'a', 'span', 'sub', 'sup',
        'table', 'thead', 'tbody', 'tr', 'th', 'td', 'img',
    }

    ALLOWED_ATTRIBUTES = {
        '*': ['class', 'id'],
        'a': ['href', 'title'],
        'img': ['src', 'alt'],
    }

    HTML_FIELDS = {'content'}
    TEXT_FIELDS = {'name', 'title', 'meta_description', 'keywords'}

    def __init__(self):
        """Initialize the HTML cleaner"""
        self.cleaner = Cleaner(
            tags=self.ALLOWED_TAGS,
            attributes=self.ALLOWED_ATTRIBUTES,
            strip=True,
            strip_comments=True,
        )

    def sanitize_html(self, html_content: str) -> str:
        """Sanitize HTML content while preserving safe tags"""
        if not isinstance(html_content, str):
            return ""
        return self.cleaner.clean(html_content)

    @staticmethod
    def _unescape_fully(text: str) -> str:
        previous = None
        while text != previous:
            previous, text = text, html.unescape(text)
        return text

    @staticmethod
    def sanitize_text(text: str) -> str:
        """Plain text only: decode entities, strip every tag, drop stray angle brackets"""
        if not isinstance(text, str):
            return ""
        decoded = InputSanitizer._unescape_fully(text)
        stripped = bleach.clean(decoded, tags=set(), strip=True, strip_comments=True)
        plain = re.sub(r'[<>]', '', html.unescape(stripped))
        return re.sub(r'\s+', ' ', plain).strip()

    def sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize the text fields of a create/update payload; other values pass through"""
        sanitized = {}
        for key, value in data.items():
            if isinstance(value, str) and key in self.HTML_FIELDS:
                sanitized[key] = self.sanitize_html(value)
            elif isinstance(value, str) and key in self.TEXT_FIELDS:
                sanitized[key] = self.sanitize_text(value)
            else:
                sanitized[key] = value
        return sanitized


# Global sanitizer instance
sanitizer = InputSanitizer()
