"""Telegram transport for the host control bot."""
from __future__ import annotations

from telegram import Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from hostbot.bot.dispatcher import Dispatcher, InboundMessage
from hostbot.config import BotSettings
from hostbot.log import get_logger
from hostbot.tools.power import PowerControl

log = get_logger("telegram")


def to_inbound(update: Update) -> InboundMessage | None:
    """Convert a Telegram update into an InboundMessage (None if not a new message)."""
    message = update.message
    if message is None:
        return None
    user = message.from_user
    return InboundMessage.from_text(
        sender_id=user.id if user else 0,
        chat_id=message.chat_id,
        text=message.text or "",
        sender_name=(user.username or user.full_name) if user else "",
    )


def build_application(settings: BotSettings, dispatcher: Dispatcher | None = None) -> Application:
    """Wire the dispatcher into a polling Application."""
    if dispatcher is None:
        power = PowerControl(settings.reboot_command, delay_s=settings.reboot_delay_s)
        dispatcher = Dispatcher.from_settings(settings, power)

    async def on_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        msg = to_inbound(update)
        if msg is None:
            return
        reply = dispatcher.handle(msg)
        if reply is None:
            return
        await context.bot.send_message(chat_id=reply.chat_id, text=reply.text)

    async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        log.error("update handling failed: %s", context.error, exc_info=context.error)

    async def announce(application: Application) -> None:
        me = await application.bot.get_me()
        log.info("Bot connected as @%s, operator id %s", me.username, settings.user_id)

    # concurrent_updates stays off: the dispatcher relies on sequential handling
    app = (
        Application.builder()
        .token(settings.token)
        .concurrent_updates(False)
        .post_init(announce)
        .build()
    )
    app.add_handler(MessageHandler(filters.UpdateType.MESSAGE, on_message))
    app.add_error_handler(on_error)
    app.bot_data["dispatcher"] = dispatcher
    return app


def start_bot(settings: BotSettings) -> None:
    """Start the Telegram bot (blocking)."""
    app = build_application(settings)
    log.info("Telegram bot starting")
    app.run_polling(allowed_updates=[Update.MESSAGE])
