"""
Contact Detail Redaction Tests
==============================
"""

import pytest

from assist_runtime.redaction import mask_secret, preview, redact_headers, sanitize_content


class TestSanitizeContent:
    """Tests for contact-detail placeholders."""

    @pytest.mark.parametrize("text,expected", [
        ("Mail me at jane.doe@example.co.uk", "Mail me at [EMAIL]"),
        ("Call +1 415-555-0134 tomorrow", "Call [PHONE] tomorrow"),
        ("Call (415) 555-0134", "Call [PHONE]"),
        ("Deck: https://example.com/deck?id=1 thanks", "Deck: [LINK] thanks"),
        ("  plain text  ", "plain text"),
        ("", ""),
    ])
    def test_placeholders(self, text, expected):
        assert sanitize_content(text) == expected

    def test_all_kinds_together(self):
        text = "jane@example.com / 415.555.0134 / http://x.io/a"
        assert sanitize_content(text) == "[EMAIL] / [PHONE] / [LINK]"


class TestSecrets:
    def test_mask_secret(self):
        assert mask_secret("sk-ant-abcdef123456") == "[REDACTED]...3456"
        assert mask_secret("short") == "[REDACTED]"
        assert mask_secret("") == ""

    def test_redact_headers(self):
        headers = {"x-api-key": "sk-ant-abcdef123456", "content-type": "application/json"}
        assert redact_headers(headers) == {
            "x-api-key": "[REDACTED]...3456",
            "content-type": "application/json",
        }

    def test_preview(self):
        text = "Write to me at a@b.com " + "word " * 40
        result = preview(text, limit=40)
        assert result.startswith("Write to me at [EMAIL]")
        assert len(result) == 40
        assert result.endswith("...")
