#!/usr/bin/env python3
"""
Health Tracker Agent Setup Wizard

Interactive setup: validates the Telegram bot, checks storage, creates the
Modal secret, deploys, and registers the Telegram webhook.
Run with: python scripts/setup.py
"""

import argparse
import os
import re
import secrets
import subprocess
import sys
from getpass import getpass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import dotenv_values
from sqlalchemy.exc import SQLAlchemyError

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

sys.path.insert(0, str(PROJECT_ROOT))

from health_agent.storage.database import Database  # noqa: E402
from health_agent.telegram.client import (  # noqa: E402
    delete_webhook,
    get_bot_info,
    get_webhook_info,
    set_webhook,
)

MODAL_SECRET_NAME = "health-agent"
ENV_KEYS = ["TELEGRAM_BOT_TOKEN", "TELEGRAM_WEBHOOK_SECRET", "DATABASE_URL", "HEALTH_AGENT_TZ", "ROLLOVER_MODE"]

# Terminal colors (disabled if not a TTY or NO_COLOR is set)
COLORS_ENABLED = sys.stdout.isatty() and os.environ.get("NO_COLOR") is None
GREEN = "\033[92m" if COLORS_ENABLED else ""
RED = "\033[91m" if COLORS_ENABLED else ""
YELLOW = "\033[93m" if COLORS_ENABLED else ""
BLUE = "\033[94m" if COLORS_ENABLED else ""
BOLD = "\033[1m" if COLORS_ENABLED else ""
DIM = "\033[2m" if COLORS_ENABLED else ""
RESET = "\033[0m" if COLORS_ENABLED else ""


# ============================================================================
# UI HELPERS
# ============================================================================


def print_stage(num: int, title: str):
    print(f"\n{BLUE}{BOLD}[Stage {num}] {title}{RESET}")
    print("-" * 50)


def print_success(msg: str):
    print(f"{GREEN}[OK]{RESET} {msg}")


def print_error(msg: str):
    print(f"{RED}[X]{RESET} {msg}")


def print_info(msg: str):
    print(f"{YELLOW}[i]{RESET} {msg}")


def print_dim(msg: str):
    print(f"{DIM}{msg}{RESET}")


def prompt_input(prompt: str, default: str = None) -> str:
    """Prompt for regular input with optional default."""
    if default:
        result = input(f"{prompt} [{default}]: ").strip()
        return result if result else default
    return input(f"{prompt}: ").strip()


def confirm(prompt: str, default: bool = True) -> bool:
    """Ask for yes/no confirmation."""
    suffix = "[Y/n]" if default else "[y/N]"
    result = input(f"{prompt} {suffix}: ").strip().lower()
    if not result:
        return default
    return result in ("y", "yes")


# ============================================================================
# VALIDATION
# ============================================================================


def validate_bot_token(token: str) -> Tuple[bool, str]:
    """Validate the bot token via getMe."""
    try:
        bot = get_bot_info(token)
        return True, f"Bot validated: @{bot.get('username', 'unknown')}"
    except Exception as e:
        return False, f"Could not validate bot token: {e}"


def validate_storage(url: str) -> Tuple[bool, str]:
    """Open the database and create the tables."""
    try:
        db = Database(url)
        db.create_schema()
        db.dispose()
        return True, "Storage opened and schema created"
    except (SQLAlchemyError, OSError) as e:
        return False, f"Could not open storage: {e}"


# ============================================================================
# CONFIGURATION
# ============================================================================


def save_env_file(config: dict, filepath: Path = ENV_FILE):
    """Save configuration to .env file."""
    with open(filepath, "w") as f:
        f.write("# Health Tracker Agent Configuration\n")
        f.write("# Generated by setup wizard\n\n")
        for key in ENV_KEYS:
            if config.get(key):
                f.write(f"{key}={config[key]}\n")
    print_success(f"Saved configuration to {filepath}")


def generate_webhook_secret() -> str:
    """Generate cryptographically secure webhook secret (64 hex chars)."""
    return secrets.token_hex(32)


# ============================================================================
# MODAL INTEGRATION
# ============================================================================


def create_modal_secret(config: dict) -> bool:
    """Create the Modal secret holding every configured key."""
    args = ["modal", "secret", "create", MODAL_SECRET_NAME, "--force"]
    for key in ENV_KEYS:
        if config.get(key):
            args.append(f"{key}={config[key]}")

    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=30)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        print_error(f"Could not run modal CLI: {e}")
        return False

    if result.returncode != 0:
        print_error(f"Failed to create secret '{MODAL_SECRET_NAME}'")
        if result.stderr:
            print_dim(f"   {result.stderr.strip()}")
        return False

    print_success(f"Created Modal secret: {MODAL_SECRET_NAME}")
    return True


def deploy_to_modal() -> Tuple[bool, Optional[str]]:
    """
    Run modal deploy and extract the webhook URL.

    Returns: (success, webhook_url or None)
    """
    print_info("Deploying to Modal (this may take a minute)...")

    try:
        result = subprocess.run(
            ["modal", "deploy", str(PROJECT_ROOT / "modal_agent.py")],
            capture_output=True,
            text=True,
            timeout=300,
            cwd=PROJECT_ROOT,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        print_error(f"Deployment failed: {e}")
        return False, None

    if result.returncode != 0:
        print_error("Deployment failed")
        if result.stderr:
            print_dim(f"   {result.stderr.strip()}")
        return False, None

    print_success("Deployed to Modal")

    # e.g. "Created web function telegram_webhook => https://user--health-agent-telegram-webhook.modal.run"
    webhook_url = None
    for line in result.stdout.splitlines():
        urls = re.findall(r"https?://[^\s]+modal\.run[^\s]*", line)
        if urls and "telegram" in line.lower():
            webhook_url = urls[0]
            break

    if webhook_url:
        print_info(f"Webhook URL: {webhook_url}")
    return True, webhook_url


def register_webhook(bot_token: str, webhook_url: str, secret: str) -> bool:
    try:
        set_webhook(bot_token, webhook_url, secret)
    except Exception as e:
        print_error(f"Failed to register webhook: {e}")
        return False

    info = get_webhook_info(bot_token)
    print_success(f"Telegram webhook registered: {info.get('url', webhook_url)}")
    return True


# ============================================================================
# MAIN WIZARD
# ============================================================================


def main():
    parser = argparse.ArgumentParser(description="Health Tracker Agent setup wizard")
    parser.add_argument("--webhook-url", help="Register this URL instead of deploying")
    parser.add_argument("--remove-webhook", action="store_true", help="Delete the Telegram webhook and exit")
    parser.add_argument("--skip-deploy", action="store_true", help="Only write .env and the Modal secret")
    args = parser.parse_args()

    config = {k: v for k, v in dotenv_values(ENV_FILE).items() if v} if ENV_FILE.exists() else {}

    print_stage(1, "Telegram Bot Token")
    bot_token = config.get("TELEGRAM_BOT_TOKEN") or getpass("Bot token from @BotFather: ").strip()
    ok, message = validate_bot_token(bot_token)
    if not ok:
        print_error(message)
        sys.exit(1)
    print_success(message)
    config["TELEGRAM_BOT_TOKEN"] = bot_token

    if args.remove_webhook:
        delete_webhook(bot_token)
        print_success("Webhook removed")
        return

    print_stage(2, "Webhook Secret")
    if config.get("TELEGRAM_WEBHOOK_SECRET") and confirm("Keep existing webhook secret?"):
        print_success("Keeping existing secret")
    else:
        config["TELEGRAM_WEBHOOK_SECRET"] = generate_webhook_secret()
        print_success(f"Generated secret: {config['TELEGRAM_WEBHOOK_SECRET'][:16]}...")

    print_stage(3, "Storage")
    print_dim("Leave empty to use SQLite on the Modal volume.")
    database_url = prompt_input("DATABASE_URL", config.get("DATABASE_URL"))
    if database_url:
        ok, message = validate_storage(database_url)
        if not ok:
            print_error(message)
            sys.exit(1)
        print_success(message)
        config["DATABASE_URL"] = database_url

    print_stage(4, "Save Configuration")
    save_env_file(config)

    print_stage(5, "Deploy to Modal")
    if not create_modal_secret(config):
        sys.exit(1)
    if args.skip_deploy:
        return

    webhook_url = args.webhook_url
    if not webhook_url:
        deployed, webhook_url = deploy_to_modal()
        if not deployed:
            sys.exit(1)

    if webhook_url:
        register_webhook(bot_token, webhook_url, config["TELEGRAM_WEBHOOK_SECRET"])
    else:
        print_info("Deployment succeeded but webhook URL not detected")
        print("Register it with: python scripts/setup.py --webhook-url <url>")


if __name__ == "__main__":
    main()
