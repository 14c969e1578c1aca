"""
Terminal Logging Utility for Proctorwatch

Colored console output for the service process: startup banner,
per-request lines, and errors.
"""
import logging
import sys
from datetime import datetime
from typing import Optional


# ============================================================================
# ANSI Colors for Terminal
# ============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BG_RED = "\033[41m"


# ============================================================================
# Logger Configuration
# ============================================================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for terminal output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM + Colors.WHITE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BG_RED + Colors.WHITE,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        level_str = f"{color}{record.levelname:8}{Colors.RESET}"
        time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
        name_str = f"{Colors.CYAN}{record.name}{Colors.RESET}"

        message = f"{time_str} {level_str} [{name_str}] {record.getMessage()}"

        if hasattr(record, "extra_data") and record.extra_data:
            for key, value in record.extra_data.items():
                message += f"\n    {Colors.DIM}|- {key}: {Colors.RESET}{value}"

        return message


def setup_logger(name: str = "proctorwatch", level: int = logging.DEBUG) -> logging.Logger:
    """Configure colored logger for terminal output."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)

    return logger


api_logger = setup_logger("API", logging.INFO)


def log_error(error_type: str, message: str, request_id: Optional[str] = None):
    """Log error."""
    print(f"\n{Colors.BG_RED}{Colors.WHITE}{Colors.BOLD} ERROR {Colors.RESET}")
    api_logger.error(f"{error_type}: {message}")
    if request_id:
        api_logger.error(f"  Request ID: {request_id}")


def log_startup(service_name: str, port: int):
    """Log service startup."""
    print(f"\n{Colors.BOLD}{Colors.GREEN}{'='*60}{Colors.RESET}")
    print(f"{Colors.BOLD}{Colors.GREEN}  {service_name} STARTED{Colors.RESET}")
    print(f"{Colors.BOLD}{Colors.GREEN}{'='*60}{Colors.RESET}")
    print(f"  Running on: {Colors.CYAN}http://localhost:{port}{Colors.RESET}")
    print(f"  Docs: {Colors.CYAN}http://localhost:{port}/docs{Colors.RESET}")
    print(f"\n{Colors.DIM}Waiting for frames...{Colors.RESET}\n")
