import logging

import discord
from discord import app_commands
from discord.ext import commands

from slack_feedback.config import settings
from slack_feedback.errors import UserFriendlyError
from slack_feedback.ui.embeds import error_embed
from slack_feedback.ui.modal import send_ephemeral
from slack_feedback.utils import EXTENSIONS
from slack_feedback.webhook import WebhookClientConfig, close_webhook_client, init_webhook_client

GENERIC_ERROR_TEXT = "An unexpected error occurred. Please try again later."


class Bot(commands.AutoShardedBot):
    """Bot hosting the Slack feedback widget."""

    async def setup_hook(self) -> None:
        """Run before the bot starts."""
        self.log = logging.getLogger(__name__)
        if settings.webhook_url:
            await init_webhook_client(
                settings.webhook_url,
                config=WebhookClientConfig(
                    timeout_seconds=settings.webhook_timeout_seconds,
                    max_connections=settings.webhook_max_connections,
                ),
            )
            self.log.info("Webhook client initialized")
        else:
            self.log.warning("webhook_url is not set; feedback submissions will fail")
        self.tree.on_error = self.on_tree_error  # type: ignore
        await self.load_extensions()

    async def close(self) -> None:
        """Close bot resources before shutting down."""
        await super().close()
        await close_webhook_client()

    def _get_logger_for_command(
        self, command: app_commands.Command | app_commands.ContextMenu | commands.Command | None
    ) -> logging.Logger:
        if command and hasattr(command, "module") and command.module:
            return logging.getLogger(command.module)
        return self.log

    async def on_tree_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        """Handle errors in slash commands and the feedback trigger."""
        original = error.original if isinstance(error, app_commands.CommandInvokeError) else error

        if isinstance(original, UserFriendlyError):
            await send_ephemeral(interaction, embed=error_embed(description=original.user_message))
            return

        self._get_logger_for_command(interaction.command).exception("Slash command error: %s", error)
        await send_ephemeral(interaction, embed=error_embed(description=GENERIC_ERROR_TEXT))

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Handle errors in prefix commands."""
        original = error.original if isinstance(error, commands.CommandInvokeError) else error

        if isinstance(original, UserFriendlyError):
            await ctx.send(embed=error_embed(description=original.user_message))
            return

        self._get_logger_for_command(ctx.command).exception("Prefix command error: %s", error)
        await ctx.send(embed=error_embed(description=GENERIC_ERROR_TEXT))

    async def load_extensions(self) -> None:
        """Load all enabled extensions."""
        for extension in EXTENSIONS:
            try:
                await self.load_extension(extension)
                self.log.info("Loaded extension: %s", extension)
            except Exception:
                self.log.exception("Failed to load extension: %s", extension)
