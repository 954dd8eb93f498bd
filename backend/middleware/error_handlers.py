#!/usr/bin/env python3
"""
Error Handlers for the Ration Audit API
Turns ration calculation errors into user-friendly HTTP responses
"""

from typing import Dict, Any
from fastapi import HTTPException

from core.ration.exceptions import (
    InvalidCapacity,
    InvalidFeedInput,
    InvalidProfile,
    MissingFeedData,
    RationCalculationError,
)


def categorize_ration_error(error: Exception, audit_id: str = "unknown") -> Dict[str, Any]:
    """
    Categorize ration audit errors and provide user-friendly messages

    Args:
        error (Exception): The error raised by the audit engine
        audit_id (str): Audit identifier for logging

    Returns:
        Dict containing categorized error information
    """
    field = getattr(error, "field", None)
    field_hint = f" (field: {field})" if field else ""

    if isinstance(error, InvalidProfile):
        return {
            "error_type": "INVALID_PROFILE",
            "user_message": f"The animal profile contains an impossible value{field_hint}.",
            "technical_message": f"Invalid profile: {error}",
            "suggested_action": "Check body weight, parity, days in milk, days pregnant and milk production values.",
            "severity": "LOW",
            "category": "INPUT_VALIDATION",
            "http_status": 422
        }

    elif isinstance(error, MissingFeedData):
        return {
            "error_type": "MISSING_FEED_DATA",
            "user_message": f"A selected feed is missing VEM, DVE or OEB values{field_hint}.",
            "technical_message": f"Missing feed data: {error}",
            "suggested_action": "Complete the feed's nutritional values in the feed catalog or remove it from the ration.",
            "severity": "MEDIUM",
            "category": "FEED_DATA",
            "http_status": 422
        }

    elif isinstance(error, InvalidFeedInput):
        return {
            "error_type": "INVALID_FEED_INPUT",
            "user_message": f"A feed line has an invalid amount, dry matter percentage or basis{field_hint}.",
            "technical_message": f"Invalid feed input: {error}",
            "suggested_action": "Enter a dry matter percentage between 0 and 100 and a numeric amount.",
            "severity": "LOW",
            "category": "INPUT_VALIDATION",
            "http_status": 422
        }

    elif isinstance(error, InvalidCapacity):
        return {
            "error_type": "INVALID_CAPACITY",
            "user_message": "The intake capacity for this animal could not be calculated.",
            "technical_message": f"Invalid capacity: {error}",
            "suggested_action": "Check parity, days in milk and days pregnant for this animal.",
            "severity": "MEDIUM",
            "category": "CALCULATION",
            "http_status": 422
        }

    elif isinstance(error, RationCalculationError):
        return {
            "error_type": "CALCULATION_ERROR",
            "user_message": "The ration could not be calculated with the given inputs.",
            "technical_message": f"Calculation error: {error}",
            "suggested_action": "Review the animal profile and feed lines and try again.",
            "severity": "MEDIUM",
            "category": "CALCULATION",
            "http_status": 422
        }

    else:
        return {
            "error_type": "UNKNOWN_ERROR",
            "user_message": "An unexpected error occurred during the ration audit.",
            "technical_message": f"Unknown error: {type(error).__name__}: {error}",
            "suggested_action": "Please try again. If the problem persists, contact support with audit ID: " + audit_id,
            "severity": "HIGH",
            "category": "UNKNOWN",
            "http_status": 500
        }


def create_user_friendly_error_response(error_info: Dict[str, Any], audit_id: str = "unknown",
                                        error: Exception = None) -> Dict[str, Any]:
    """
    Create a user-friendly error response for the API

    Args:
        error_info (Dict): Categorized error information
        audit_id (str): Audit identifier
        error (Exception): Original error, for field/value context

    Returns:
        Dict containing the error response
    """
    return {
        "status": "ERROR",
        "audit_id": audit_id,
        "error": {
            "type": error_info["error_type"],
            "message": error_info["user_message"],
            "suggested_action": error_info["suggested_action"],
            "severity": error_info["severity"],
            "category": error_info["category"],
            "field": getattr(error, "field", None),
            "support_reference": f"REF-{audit_id}-{error_info['error_type']}"
        }
    }


def log_error_details(error_info: Dict[str, Any], audit_id: str, original_error: str, logger):
    """
    Log detailed error information for debugging

    Args:
        error_info (Dict): Categorized error information
        audit_id (str): Audit identifier
        original_error (str): Original error message
        logger: Logger instance
    """
    log_message = (
        f"ERROR ANALYSIS for AUDIT_{audit_id}: "
        f"Type: {error_info['error_type']} | "
        f"Category: {error_info['category']} | "
        f"Severity: {error_info['severity']} | "
        f"Technical: {error_info['technical_message']} | "
        f"Original: {original_error}"
    )
    if error_info["http_status"] >= 500:
        logger.error(log_message)
    else:
        logger.warning(log_message)


def raise_user_friendly_http_exception(error: Exception, audit_id: str, logger):
    """
    Raise a user-friendly HTTP exception with proper error categorization

    Args:
        error (Exception): The error raised by the audit engine
        audit_id (str): Audit identifier
        logger: Logger instance

    Raises:
        HTTPException: User-friendly error response
    """
    error_info = categorize_ration_error(error, audit_id)
    log_error_details(error_info, audit_id, str(error), logger)
    raise HTTPException(
        status_code=error_info["http_status"],
        detail=create_user_friendly_error_response(error_info, audit_id, error)
    )
