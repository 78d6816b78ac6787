from modward.repositories.guild_settings_repo import GuildSettingsRepository
from modward.repositories.mute_repo import MuteRepository
from modward.repositories.warning_repo import WarningRepository
from modward.repositories.ban_repo import BanRepository
from modward.repositories.automod_log_repo import AutoModLogRepository
from modward.repositories.ticket_repo import TicketRepository

__all__ = [
    "GuildSettingsRepository",
    "MuteRepository",
    "WarningRepository",
    "BanRepository",
    "AutoModLogRepository",
    "TicketRepository",
]
