import discord

from slack_feedback.bot import Bot
from slack_feedback.config import settings
from slack_feedback.logging import setup_logging


def main() -> None:
    """Main function to run the application."""
    setup_logging(settings.log_level)

    intents = discord.Intents.default()
    # Image attachments are read from the user's next message
    intents.message_content = True
    bot = Bot(command_prefix=[settings.prefix, "!"], intents=intents)
    bot.run(settings.token, log_handler=None)


if __name__ == "__main__":
    main()
