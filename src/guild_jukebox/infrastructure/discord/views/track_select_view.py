"""
Track Select View

Lets the user pick one of several search candidates from a select menu.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

import discord

from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.utils.reply import SELECT_DESCRIPTION_LIMIT, SELECT_LABEL_LIMIT, truncate

from .base_view import BaseInteractiveView

if TYPE_CHECKING:
    from guild_jukebox.domain.music.entities import Track

ChoiceHandler = Callable[[discord.Interaction, "Track"], Awaitable[None]]


class TrackSelect(discord.ui.Select["TrackSelectView"]):
    """Select menu whose option values are candidate indices."""

    def __init__(self, candidates: Sequence[Track]) -> None:
        options = [
            discord.SelectOption(
                label=truncate(track.title, SELECT_LABEL_LIMIT),
                description=truncate(track.locator, SELECT_DESCRIPTION_LIMIT),
                value=str(index),
            )
            for index, track in enumerate(candidates)
        ]
        super().__init__(
            placeholder=DiscordUIMessages.ACTION_SELECT_PLACEHOLDER,
            min_values=1,
            max_values=1,
            options=options,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        assert self.view is not None
        await self.view.choose(interaction, int(self.values[0]))


class TrackSelectView(BaseInteractiveView):
    """A one-shot candidate picker.

    Only the user who ran the search may choose; the first choice wins and
    the menu is removed afterwards.
    """

    def __init__(
        self,
        *,
        candidates: Sequence[Track],
        requester_id: int,
        on_choice: ChoiceHandler,
        timeout: float = 60.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self.candidates = list(candidates)
        self.requester_id = requester_id
        self._on_choice = on_choice
        self._chosen = False
        self.add_item(TrackSelect(self.candidates))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.requester_id

    async def choose(self, interaction: discord.Interaction, index: int) -> None:
        if self._chosen or not 0 <= index < len(self.candidates):
            return
        self._chosen = True
        self.stop()
        await self._on_choice(interaction, self.candidates[index])
