"""Standard embed factory functions and colors for consistent UI."""

from collections.abc import Mapping
from typing import Any

import discord

from slack_feedback.widget.render import ImageSectionKind, WidgetView
from slack_feedback.widget.state import WidgetState

# Standard colors for different embed types
STATUS_ERROR = discord.Color.red()
STATUS_SUCCESS = discord.Color.green()
STATUS_INFO = discord.Color.blue()
STATUS_PENDING = discord.Color.gold()
STATUS_CLOSED = discord.Color.greyple()


def error_embed(title: str = "❌ Error", description: str | None = None) -> discord.Embed:
    """Create an error embed.

    Args:
        title: The embed title
        description: Optional description

    Returns:
        A red embed describing the error
    """
    return discord.Embed(title=title, description=description, color=STATUS_ERROR)


def success_embed(
    title: str,
    description: str | None = None,
    *,
    emoji: str | None = None,
) -> discord.Embed:
    """Create a success embed.

    Args:
        title: The embed title
        description: Optional description
        emoji: Optional emoji to prepend to title

    Returns:
        A green embed indicating success
    """
    full_title = f"{emoji} {title}" if emoji else title
    return discord.Embed(title=full_title, description=description, color=STATUS_SUCCESS)


def info_embed(
    title: str,
    description: str | None = None,
    *,
    emoji: str | None = None,
) -> discord.Embed:
    """Create an informational embed."""
    full_title = f"{emoji} {title}" if emoji else title
    return discord.Embed(title=full_title, description=description, color=STATUS_INFO)


def style_color(styles: Mapping[str, Any] | None) -> discord.Color | None:
    """Read a ``color`` override (``"#rrggbb"``, ``"0x..."`` or an int) from a style mapping."""
    value = (styles or {}).get("color")
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return discord.Color(value)
    if isinstance(value, str):
        try:
            return discord.Color.from_str(value)
        except ValueError:
            return None
    return None


def _panel_color(view: WidgetView, idle_color: discord.Color | None = None) -> discord.Color:
    if not view.is_open:
        return STATUS_CLOSED
    if view.submit.error:
        return STATUS_ERROR
    if view.submit.sent:
        return STATUS_SUCCESS
    if view.submit.disabled or (view.image is not None and view.image.loading):
        return STATUS_PENDING
    return idle_color or STATUS_INFO


def panel_embed(view: WidgetView, state: WidgetState, styles: Mapping[str, Any] | None = None) -> discord.Embed:
    """Draw the widget panel.

    The embed only reflects ``view`` and the text fields of ``state``; it never
    changes either. ``styles`` may override the idle ``color`` and the
    ``thumbnail`` URL; status colours (error, sent, pending) always win.
    """
    if not view.is_open:
        return discord.Embed(
            title=view.header,
            description=f"Closed. Press **{view.trigger_label}** to open it again.",
            color=STATUS_CLOSED,
        )

    embed = discord.Embed(title=view.header, color=_panel_color(view, style_color(styles)))
    thumbnail = (styles or {}).get("thumbnail")
    if isinstance(thumbnail, str) and thumbnail:
        embed.set_thumbnail(url=thumbnail)
    selected = next((category for category, is_selected in view.categories if is_selected), None)
    embed.add_field(name="Feedback Type", value=selected.label if selected else "-", inline=True)
    embed.add_field(name="Name", value=state.name or "*not set*", inline=True)
    embed.add_field(name="Email", value=state.email or "*not set*", inline=True)
    embed.add_field(name="Your Message", value=state.message[:1024] or "*not set*", inline=False)
    embed.add_field(name="Verification", value="✅ Verified" if view.verified else "Not verified", inline=True)

    if view.image is not None and view.image.kind is ImageSectionKind.PREVIEW:
        status = "Uploading..." if view.image.loading else "Attached"
        embed.add_field(name="Image", value=status, inline=True)
        if view.image.preview_url and view.image.preview_url.startswith(("http://", "https://")):
            embed.set_image(url=view.image.preview_url)

    embed.set_footer(text=view.submit.label)
    return embed
