# config/validation.py

"""
Environment variable validation for the venue CRM application.
Validates required environment variables and importer settings at startup.
"""

import os
import sys
from typing import List, Tuple

KNOWN_IMPORT_KINDS = ("venues", "contacts")


def _validate_importer_settings(errors: List[str]) -> None:
    raw_kinds = os.environ.get("IMPORTER_KINDS")
    if raw_kinds is not None:
        kinds = [item.strip().lower() for item in raw_kinds.split(",") if item.strip()]
        unknown = sorted(set(kinds) - set(KNOWN_IMPORT_KINDS))
        if unknown:
            errors.append(
                "IMPORTER_KINDS contains unknown import kinds: "
                + ", ".join(unknown)
                + f". Supported kinds: {', '.join(KNOWN_IMPORT_KINDS)}."
            )

    raw_interval = os.environ.get("IMPORTER_CHECKPOINT_INTERVAL")
    if raw_interval is not None:
        try:
            interval = int(raw_interval)
        except ValueError:
            interval = 0
        if interval < 1:
            errors.append("IMPORTER_CHECKPOINT_INTERVAL must be a positive integer.")

    if os.environ.get("IMPORTER_WORKER_ENABLED", "false").lower() == "true":
        if not os.environ.get("CELERY_BROKER_URL"):
            errors.append("CELERY_BROKER_URL is required in production when IMPORTER_WORKER_ENABLED=true")


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Validate required environment variables.

    Args:
        flask_env: Flask environment (development, production, testing)
                  If None, reads from FLASK_ENV environment variable

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    if flask_env is None:
        flask_env = os.environ.get("FLASK_ENV", "development")

    errors = []

    # Only validate in production
    if flask_env != "production":
        return True, []

    secret_key = os.environ.get("SECRET_KEY", "")
    if not secret_key or secret_key in ("your-secret-key", "your_secret_key"):
        errors.append(
            "SECRET_KEY is required in production and must not be the default value. "
            'Generate a secure key: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    if not os.environ.get("DATABASE_URL"):
        errors.append("DATABASE_URL is required in production. Set it to your PostgreSQL connection string.")

    _validate_importer_settings(errors)

    return len(errors) == 0, errors


def validate_and_exit(flask_env: str = None) -> None:
    """
    Validate environment variables and exit with error if validation fails.
    Intended to be called at application startup.
    """
    is_valid, errors = validate_environment(flask_env)

    if not is_valid:
        print("=" * 80, file=sys.stderr)
        print("ENVIRONMENT VALIDATION FAILED", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print("\nThe following environment variables are missing or invalid:\n", file=sys.stderr)

        for i, error in enumerate(errors, 1):
            print(f"{i}. {error}", file=sys.stderr)

        print("\n" + "=" * 80, file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        print("=" * 80, file=sys.stderr)

        sys.exit(1)
