"""
Configuration and logger setup tests.
"""

import logging
import os
from unittest.mock import patch

from outreach_crm.core.config import get_reply_rate_placeholder, validate_config
from outreach_crm.util.logging import StructuredLogger


def test_default_config_has_no_issues():
    with patch.dict(os.environ, {'LOG_LEVEL': 'INFO', 'REPLY_RATE_PLACEHOLDER': '12.5'}):
        assert validate_config() == []
        assert get_reply_rate_placeholder() == 12.5


def test_unknown_log_level_falls_back_to_info():
    with patch.dict(os.environ, {'LOG_LEVEL': 'LOUD'}):
        structured = StructuredLogger("outreach_crm.test_fallback")

        assert structured.logger.level == logging.INFO
        assert "Invalid LOG_LEVEL: LOUD" in validate_config()


def test_log_level_is_honoured():
    with patch.dict(os.environ, {'LOG_LEVEL': 'debug'}):
        structured = StructuredLogger("outreach_crm.test_debug")
        assert structured.logger.level == logging.DEBUG


def test_bad_reply_rate_is_reported():
    with patch.dict(os.environ, {'REPLY_RATE_PLACEHOLDER': 'lots'}):
        assert "Invalid REPLY_RATE_PLACEHOLDER: lots" in validate_config()

    with patch.dict(os.environ, {'REPLY_RATE_PLACEHOLDER': '250'}):
        assert "REPLY_RATE_PLACEHOLDER must be between 0 and 100" in validate_config()
