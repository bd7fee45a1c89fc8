"""Discord adapter — bridges discord.Client to AutoPostOrchestrator.

DiscordChatAdapter implements ChatPort on top of a connected client.
MemeBot converts mentions to IncomingMessage, exposes the /automeme
enrollment command and drives the schedule loop once connected.
"""

import sys
from typing import List, Optional

import discord
from discord import app_commands

from memecast.adapters.chat_base import PLACEHOLDER_EDIT, BaseChatAdapter
from memecast.domain.errors import ConfigurationError
from memecast.domain.models import ChannelMessage, Destination, MessageRef, Reaction
from memecast.domain.orchestrator import AutoPostOrchestrator
from memecast.domain.prompts import extract_prompt
from memecast.domain.schedule import CycleSchedule
from memecast.ports.inbound import IncomingMessage


def _log(msg: str):
    print(msg, file=sys.stderr)


def _embed(image_url: Optional[str]) -> Optional[discord.Embed]:
    if not image_url:
        return None
    embed = discord.Embed()
    embed.set_image(url=image_url)
    return embed


def to_channel_message(message: discord.Message) -> ChannelMessage:
    """Convert a Discord message to the engagement scan's ChannelMessage."""
    return ChannelMessage(
        message_id=str(message.id),
        author_id=str(message.author.id),
        is_bot=message.author.bot,
        text=message.content or "",
        reactions=[Reaction(emoji=str(r.emoji), count=r.count) for r in message.reactions],
    )


class DiscordChatAdapter(BaseChatAdapter):
    """ChatPort implementation using discord.Client."""

    def __init__(self, client: discord.Client, placeholder_mode: str = PLACEHOLDER_EDIT):
        super().__init__(placeholder_mode)
        self._client = client

    async def _channel(self, channel_id: str):
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            channel = await self._client.fetch_channel(int(channel_id))
        return channel

    async def fetch_recent_messages(self, destination: Destination, limit: int = 50) -> List[ChannelMessage]:
        channel = await self._channel(destination.channel_id)
        return [to_channel_message(m) async for m in channel.history(limit=limit)]

    async def post_message(self, destination: Destination, text: str, image_url: Optional[str] = None) -> MessageRef:
        channel = await self._channel(destination.channel_id)
        kwargs = {"content": text}
        embed = _embed(image_url)
        if embed:
            kwargs["embed"] = embed
        sent = await channel.send(**kwargs)
        return MessageRef(destination=destination, message_id=str(sent.id))

    async def update_message(self, ref: MessageRef, text: str, image_url: Optional[str] = None) -> None:
        channel = await self._channel(ref.destination.channel_id)
        kwargs = {"content": text}
        embed = _embed(image_url)
        if embed:
            kwargs["embed"] = embed
        await channel.get_partial_message(int(ref.message_id)).edit(**kwargs)

    async def delete_message(self, ref: MessageRef) -> None:
        channel = await self._channel(ref.destination.channel_id)
        await channel.get_partial_message(int(ref.message_id)).delete()


class MemeBot(discord.Client):
    """Discord client that delegates to AutoPostOrchestrator."""

    def __init__(
        self,
        orchestrator: AutoPostOrchestrator,
        schedule: Optional[CycleSchedule] = None,
        placeholder_mode: str = PLACEHOLDER_EDIT,
        **discord_kwargs,
    ):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents, **discord_kwargs)
        self.orchestrator = orchestrator
        self._schedule = schedule
        self._placeholder_mode = placeholder_mode
        self.tree = app_commands.CommandTree(self)
        self._register_commands()

    def _register_commands(self):
        @self.tree.command(name="automeme", description="Enroll a channel for scheduled auto memes")
        @app_commands.describe(channel="Channel that should receive auto memes")
        @app_commands.default_permissions(manage_guild=True)
        @app_commands.guild_only()
        async def automeme(interaction: discord.Interaction, channel: discord.TextChannel):
            await self.handle_enroll(interaction, channel)

    async def setup_hook(self):
        synced = await self.tree.sync()
        _log(f"[MemeBot] synced {len(synced)} app command(s)")

    async def on_ready(self):
        _log(f"[MemeBot] logged in as {self.user}")
        self.orchestrator.wire(DiscordChatAdapter(self, placeholder_mode=self._placeholder_mode))
        if self._schedule:
            self.orchestrator.start_schedule_loop(self._schedule, is_closed=self.is_closed)

    def _is_role_mentioned(self, message: discord.Message) -> bool:
        """Discord may turn @BotName into a mention of the bot's managed role."""
        if not message.role_mentions or not self.user:
            return False
        return any(role.name.lower() == self.user.name.lower() for role in message.role_mentions)

    def is_mentioned(self, message: discord.Message) -> bool:
        if not self.user:
            return False
        return self.user in message.mentions or self._is_role_mentioned(message)

    @staticmethod
    def to_incoming(message: discord.Message) -> IncomingMessage:
        """Convert a Discord message to platform-agnostic IncomingMessage."""
        return IncomingMessage(
            content=message.content,
            channel_id=str(message.channel.id),
            owner_id=str(message.guild.id) if message.guild else "dm",
            author_id=str(message.author.id),
            author_name=str(message.author),
            is_bot=message.author.bot,
            is_mention=True,
        )

    async def on_message(self, message: discord.Message):
        # Guard: self.user can be None before on_ready fires
        if not self.user or message.author == self.user:
            return
        if message.author.bot or not self.is_mentioned(message):
            return

        incoming = self.to_incoming(message)
        outcome = await self.orchestrator.handle_mention(incoming, extract_prompt(message.content))
        _log(f"[MemeBot] mention from {incoming.author_name}: {outcome.status}")

    async def handle_enroll(self, interaction: discord.Interaction, channel: discord.abc.GuildChannel):
        """/automeme channel:<#channel>: enroll the channel for auto posts."""
        if interaction.guild_id is None:
            await interaction.response.send_message("This command only works inside a server.", ephemeral=True)
            return
        try:
            added = await self.orchestrator.enroll(str(interaction.guild_id), str(channel.id))
        except ConfigurationError as e:
            _log(f"[MemeBot] enrollment rejected: {e}")
            await interaction.response.send_message(f"❌ Could not enroll channel: {e}", ephemeral=True)
            return
        except Exception as e:
            _log(f"[MemeBot] enrollment failed: {e}")
            await interaction.response.send_message("❌ Could not enroll channel, try again later.", ephemeral=True)
            return

        if added:
            text = f"✅ Auto memes enabled for {channel.mention}."
        else:
            text = f"ℹ️ {channel.mention} is already enrolled."
        await interaction.response.send_message(text, ephemeral=True)
