"""Pytest configuration and fixtures for tests."""

import os
import sys
from pathlib import Path

import pytest

FAKE_NATIVE_ZIP = Path(__file__).parent / "fake_native_zip.py"


@pytest.fixture
def plumbing_skill() -> dict:
    """Skill description with a prerequisite and one workflow."""
    return {
        "skillName": "plumbing",
        "description": "Fix pipes.",
        "triggers": ["fix leak"],
        "strategies": [
            {"title": "Prerequisites", "content": "Need wrench"},
            {"title": "Leak Repair", "content": "Step 1..."},
        ],
    }


@pytest.fixture
def full_skill() -> dict:
    """Skill description using every optional field."""
    return {
        "skillName": "crypto-trading",
        "description": 'Automate "crypto" trading tasks.',
        "triggers": ["crypto trading", "trade crypto"],
        "researchSummary": "Exchanges expose REST APIs.",
        "strategies": [
            {"title": "Prerequisites", "content": "API keys for your exchange."},
            {"title": "Setup", "content": "1. Get API keys\n2. Configure bot"},
            {"title": "Monitor Market Trends", "content": "Track price movements."},
            {"title": "Execute Orders", "content": "Always set a stop-loss."},
        ],
        "promptTemplates": [
            {"id": "analyze", "name": "Analyze market", "template": "Analyze {symbol}"},
            {"id": "report", "name": "Daily report", "template": "Summarize {day}"},
        ],
        "scriptLogic": {"language": "python", "code": "print('trade')\n"},
    }


@pytest.fixture
def fake_native_command() -> list[str]:
    """Command running a Python stand-in for the native compressor."""
    return [sys.executable, str(FAKE_NATIVE_ZIP)]


@pytest.fixture
def failing_native_command() -> list[str]:
    """Command for a native compressor that always exits with code 1."""
    return [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"]


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test.

    This fixture ensures tests are not affected by environment variables
    set in the shell or by .env file. Sets TESTING=true to prevent
    load_dotenv() from running in config.py.
    Tests can set their own environment variables as needed.
    """
    # Set TESTING flag to prevent .env file loading
    os.environ["TESTING"] = "true"

    # Environment variables to clean for isolated testing
    env_vars_to_clean = [
        # Skill pack configuration
        "SKILL_PACK_VERSION",
        "COMPRESSION_LEVEL",
        "NATIVE_COMPRESSOR_COMMAND",
        "NATIVE_COMPRESSOR_THRESHOLD_BYTES",
        "NATIVE_COMPRESSOR_TIMEOUT",
        # Storage configuration
        "STORAGE_BACKEND",
        "STORAGE_DIRECTORY",
        "R2_ENDPOINT",
        "R2_ACCESS_KEY_ID",
        "R2_SECRET_ACCESS_KEY",
        "R2_BUCKET",
        "R2_REGION",
        "DOWNLOAD_URL_EXPIRY_SECONDS",
        "LOG_LEVEL",
    ]

    # Store original values
    original_env = {}
    for var in env_vars_to_clean:
        if var in os.environ:
            original_env[var] = os.environ.pop(var)

    yield

    # Restore original values
    for var, value in original_env.items():
        os.environ[var] = value

    # Clean up TESTING flag
    if "TESTING" in os.environ:
        del os.environ["TESTING"]
