"""
Health Tracker Agent
Telegram bot for logging water, steps and weight, with a daily Modal cron
that archives each user's totals and resets the counters.

This is the Modal entrypoint. All logic is in the health_agent package.
"""

import os

import modal

# ============================================================================
# MODAL CONFIGURATION
# ============================================================================

image = (
    modal.Image.debian_slim(python_version="3.11")
    .pip_install(
        "requests>=2.28.0",
        "fastapi>=0.100.0",
        "tenacity>=8.2.0",
        "sqlalchemy>=2.0",
        "python-dotenv>=1.0.0",
    )
    .add_local_dir("health_agent", "/root/health_agent")
)

app = modal.App("health-agent", image=image)

# Persistent volume holding the SQLite database. Only LedgerWorker mounts it.
volume = modal.Volume.from_name("health-agent-data", create_if_missing=True)

from health_agent.config import ROLLOVER_CRON, logger
from health_agent.service import LedgerService
from health_agent.telegram.client import send_telegram
from health_agent.telegram.commands import parse_update


# ============================================================================
# LEDGER WORKER (sole owner of the database)
# ============================================================================

@app.cls(
    secrets=[modal.Secret.from_name("health-agent")],
    volumes={"/data": volume},
    timeout=300,
    max_containers=1,
)
class LedgerWorker:
    """Every storage read and write runs here, one input at a time.

    The webhook and the cron call into this class instead of mounting the
    volume themselves, so no two containers ever commit the SQLite file.
    """

    @modal.enter()
    def start(self):
        self.service = LedgerService(volume)

    @modal.method()
    def handle_command(self, user_id: int, text: str):
        return self.service.handle_command(user_id, text)

    @modal.method()
    def run_rollover(self, date: str = None, force: bool = False):
        return self.service.run_rollover(date=date, force=force)


# ============================================================================
# DAILY ROLLOVER
# ============================================================================

@app.function(timeout=300, schedule=modal.Cron(ROLLOVER_CRON))
def daily_rollover():
    """Archive today's water/steps for every user, then reset the counters.

    Runs once a day. A day missed while the app is down is not caught up.
    """
    return LedgerWorker().run_rollover.remote()


@app.function(timeout=300)
def run_rollover_now(date: str = None, force: bool = False):
    """Manual trigger for testing or re-running a day."""
    return LedgerWorker().run_rollover.remote(date=date, force=force)


# ============================================================================
# TELEGRAM BOT WEBHOOK
# ============================================================================

from fastapi import Request
from fastapi.responses import JSONResponse


@app.function(
    secrets=[modal.Secret.from_name("health-agent")],
    timeout=60,
)
@modal.fastapi_endpoint(method="POST")
async def telegram_webhook(request: Request):
    """Telegram webhook endpoint for receiving messages."""
    # Validate webhook secret - MANDATORY for security
    webhook_secret = os.environ.get("TELEGRAM_WEBHOOK_SECRET")
    if not webhook_secret:
        logger.error("TELEGRAM_WEBHOOK_SECRET not configured - rejecting request")
        return JSONResponse({"ok": False, "error": "server misconfigured"}, status_code=500)

    received_secret = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
    if received_secret != webhook_secret:
        logger.warning("Webhook auth failed: invalid secret token")
        return JSONResponse({"ok": False, "error": "unauthorized"}, status_code=401)

    bot_token = os.environ.get("TELEGRAM_BOT_TOKEN")

    body = await request.json()
    incoming = parse_update(body)
    if incoming is None:
        return {"ok": True}

    response_text = await LedgerWorker().handle_command.remote.aio(incoming.user_id, incoming.text)

    if response_text:
        send_telegram(response_text, bot_token, str(incoming.chat_id))

    return {"ok": True}


@app.local_entrypoint()
def main():
    """CLI entrypoint for manual runs."""
    logger.info("Triggering daily rollover...")
    result = run_rollover_now.remote()
    logger.info(f"Result: {result}")
