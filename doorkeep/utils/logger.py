"""Secure logging utilities for doorkeep.

Provides sanitized logging that removes sensitive information like API keys,
webhook URLs and emails before outputting to logs.
"""
import json
import logging
import re
from typing import Any

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger('doorkeep')


def configure_logging(level: str = "INFO", fmt: str = None) -> None:
    """Apply the configured level (and optionally format) to the doorkeep logger."""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S'))


def sanitize_text(text: str) -> str:
    """Remove sensitive information from text.

    Args:
        text: Input text that may contain sensitive data

    Returns:
        Sanitized text with sensitive patterns replaced
    """
    if not text:
        return text

    # Slack incoming webhooks embed their secret in the path
    text = re.sub(r'https://hooks\.slack\.com/services/[^\s"]+', '<slack-webhook>', text)

    # api_key query parameters (SerpAPI)
    text = re.sub(r'(api_key=)[^&\s"]+', r'\1<api-key>', text)

    # Email addresses
    text = re.sub(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}', '<email>', text)

    # AWS access key ids
    text = re.sub(r'\b(AKIA|ASIA)[A-Z0-9]{16}\b', '<aws-key>', text)

    # Long opaque tokens (SerpAPI keys are 64 hex chars)
    text = re.sub(r'\b[a-zA-Z0-9/+]{40,}\b', '<token>', text)

    return text


def safe_json(obj: Any, max_length: int = 1000) -> str:
    """Safely serialize object to JSON with sensitive data sanitized.

    Args:
        obj: Object to serialize
        max_length: Maximum length of output string

    Returns:
        Sanitized JSON string
    """
    try:
        json_str = json.dumps(obj, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return "<unable to serialize>"

    sanitized = sanitize_text(json_str)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "... [truncated]"
    return sanitized


def log_info(message: str, **kwargs) -> None:
    """Log info message with optional sanitized context."""
    if kwargs:
        logger.info(f"{message} | Context: {safe_json(kwargs)}")
    else:
        logger.info(message)


def log_warning(message: str, **kwargs) -> None:
    """Log warning message with optional sanitized context."""
    if kwargs:
        logger.warning(f"{message} | Context: {safe_json(kwargs)}")
    else:
        logger.warning(message)


def log_error(message: str, **kwargs) -> None:
    """Log error message with optional sanitized context."""
    if kwargs:
        logger.error(f"{message} | Context: {safe_json(kwargs)}")
    else:
        logger.error(message)


def log_debug(message: str, **kwargs) -> None:
    """Log debug message with optional sanitized context."""
    if kwargs:
        logger.debug(f"{message} | Context: {safe_json(kwargs)}")
    else:
        logger.debug(message)


def log_api_response(operation: str, status_code: int) -> None:
    """Log a completed outbound API call."""
    log_info(f"API {operation} completed", status_code=status_code)


def log_result_classification(classification: str, title: str, link: str, **kwargs) -> None:
    """Log the NEW/SEEN decision for a single search result.

    Args:
        classification: ``"new"`` or ``"seen"``
        title: Result title
        link: Result link
        **kwargs: Additional context
    """
    log_debug(f"Result classified as {classification}", title=title, link=link, **kwargs)


def log_run_progress(stage: str, **kwargs) -> None:
    """Log orchestrator progress through different stages.

    Args:
        stage: Current stage of processing
        **kwargs: Additional context
    """
    log_info(f"Run progress: {stage}", **kwargs)
