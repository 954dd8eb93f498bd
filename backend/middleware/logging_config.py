import logging
import logging.handlers
import os
from pathlib import Path

# Logs directory, overridable for deployments and test runs
LOGS_DIR = Path(os.getenv("RATION_LOG_DIR", "logs"))

_HANDLERS = None


# Logging configuration
def setup_logging():
    """Setup logging handlers for the ration audit service"""
    LOGS_DIR.mkdir(parents=True, exist_ok=True)

    # Create formatters
    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(funcName)s | %(message)s'
    )

    simple_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s'
    )

    handlers = {}

    # 1. General application log
    app_handler = logging.handlers.RotatingFileHandler(
        LOGS_DIR / "app.log",
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    app_handler.setLevel(logging.INFO)
    app_handler.setFormatter(detailed_formatter)
    handlers['app'] = app_handler

    # 2. API request/response log
    api_handler = logging.handlers.RotatingFileHandler(
        LOGS_DIR / "api.log",
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    api_handler.setLevel(logging.INFO)
    api_handler.setFormatter(detailed_formatter)
    handlers['api'] = api_handler

    # 3. Calculation log (requirement, supply and balance steps)
    calc_handler = logging.handlers.RotatingFileHandler(
        LOGS_DIR / "calculation.log",
        maxBytes=20*1024*1024,  # 20MB, audit steps are logged at DEBUG
        backupCount=3
    )
    calc_handler.setLevel(logging.DEBUG)
    calc_handler.setFormatter(detailed_formatter)
    handlers['calculation'] = calc_handler

    # 4. Error log (all errors from all modules)
    error_handler = logging.handlers.RotatingFileHandler(
        LOGS_DIR / "error.log",
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)
    handlers['error'] = error_handler

    # 5. Console handler for development
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    handlers['console'] = console_handler

    return handlers


def get_handlers():
    """Return the process-wide handlers, creating them on first use"""
    global _HANDLERS
    if _HANDLERS is None:
        _HANDLERS = setup_logging()
    return _HANDLERS


def get_logger(name, handlers=None):
    """Get a logger with handlers chosen from its name"""
    if handlers is None:
        handlers = get_handlers()

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if 'api' in name.lower() or 'router' in name.lower():
        logger.addHandler(handlers['api'])
        logger.addHandler(handlers['error'])
    elif 'calculation' in name.lower() or 'ration' in name.lower():
        logger.addHandler(handlers['calculation'])
        logger.addHandler(handlers['error'])
    else:
        # Default: general application log
        logger.addHandler(handlers['app'])
        logger.addHandler(handlers['error'])

    logger.addHandler(handlers['console'])

    return logger


# Convenience functions for common logging patterns
def log_api_request(logger, method, endpoint, **kwargs):
    """Log API request details"""
    logger.info(f"API Request: {method} {endpoint} | {kwargs}")


def log_api_response(logger, method, endpoint, status_code, response_time=None, **kwargs):
    """Log API response details"""
    timing = f" | Time: {response_time}ms" if response_time else ""
    logger.info(f"API Response: {method} {endpoint} | Status: {status_code}{timing} | {kwargs}")


def log_calculation_start(logger, profile, feed_count):
    """Log the start of a ration audit"""
    logger.info(
        f"Starting ration audit | Animal: {profile.name} | "
        f"Weight: {profile.weight_kg}kg | Feeds: {feed_count}"
    )


def log_calculation_step(logger, step_name, details=None):
    """Log a calculation step"""
    details_str = f" | {details}" if details else ""
    logger.debug(f"Calculation Step: {step_name}{details_str}")


def log_calculation_complete(logger, elapsed_seconds, step_count, statuses):
    """Log completion of a ration audit"""
    logger.info(
        f"Audit Complete | Time: {elapsed_seconds:.3f}s | Steps: {step_count} | Statuses: {statuses}"
    )


def log_error(logger, error, context=None):
    """Log errors with context"""
    context_str = f" | Context: {context}" if context else ""
    logger.error(f"Error: {str(error)}{context_str}", exc_info=True)
