"""
Steam ID parsing and conversion.

Accepts the formats players paste into chat:
- Steam64: 76561198123456789
- Steam32 (account id): 123456789
- Legacy SteamID: STEAM_0:1:61728394
- Profile URL: https://steamcommunity.com/profiles/76561198123456789

Vanity URLs (steamcommunity.com/id/<name>) need the Steam Web API to resolve
and are rejected.
"""

import re
from dataclasses import dataclass

STEAM64_BASE = 76561197960265728
STEAM64_MAX = 76561202255233023

STEAM64_PATTERN = re.compile(r"^\d{17}$")
STEAM32_PATTERN = re.compile(r"^\d{1,10}$")
LEGACY_ID_PATTERN = re.compile(r"^STEAM_0:([01]):(\d+)$")
PROFILE_URL_PATTERN = re.compile(r"steamcommunity\.com/profiles/(\d{17})")

ACCEPTED_FORMATS_HELP = (
    "Please provide a valid Steam ID format:\n"
    "• Steam64 ID: `76561198123456789`\n"
    "• Steam32 ID: `123456789`\n"
    "• SteamID: `STEAM_0:1:61728394`\n"
    "• Profile URL: `https://steamcommunity.com/profiles/76561198123456789`"
)


@dataclass(frozen=True)
class SteamIDInfo:
    steam64: str = ""
    steam32: str = ""
    steam_id: str = ""
    profile_url: str = ""
    is_valid: bool = False


INVALID = SteamIDInfo()


def steam32_to_steam64(steam32: str | int) -> str:
    return str(STEAM64_BASE + int(steam32))


def steam64_to_steam32(steam64: str | int) -> str:
    return str(int(steam64) - STEAM64_BASE)


def steam32_to_legacy(steam32: str | int) -> str:
    account_id = int(steam32)
    return f"STEAM_0:{account_id % 2}:{account_id // 2}"


def legacy_to_steam32(legacy_id: str) -> str:
    match = LEGACY_ID_PATTERN.match(legacy_id)
    if not match:
        raise ValueError(f"Invalid SteamID format: {legacy_id}")
    y, z = int(match.group(1)), int(match.group(2))
    return str(z * 2 + y)


def extract_steam64_from_url(url: str) -> str | None:
    match = PROFILE_URL_PATTERN.search(url)
    if match:
        return match.group(1)
    return None


def is_valid_steam64(steam64: str) -> bool:
    if not STEAM64_PATTERN.match(steam64):
        return False
    return STEAM64_BASE <= int(steam64) <= STEAM64_MAX


def _info_from_steam64(steam64: str) -> SteamIDInfo:
    if not is_valid_steam64(steam64):
        return INVALID
    steam32 = steam64_to_steam32(steam64)
    return SteamIDInfo(
        steam64=steam64,
        steam32=steam32,
        steam_id=steam32_to_legacy(steam32),
        profile_url=f"https://steamcommunity.com/profiles/{steam64}",
        is_valid=True,
    )


def normalize_steam_id(text: str) -> SteamIDInfo:
    """Parse any accepted Steam ID format; returns an invalid SteamIDInfo on failure."""
    value = (text or "").strip()

    from_url = extract_steam64_from_url(value)
    if from_url:
        return _info_from_steam64(from_url)

    if STEAM64_PATTERN.match(value):
        return _info_from_steam64(value)

    if STEAM32_PATTERN.match(value):
        return _info_from_steam64(steam32_to_steam64(value))

    if LEGACY_ID_PATTERN.match(value):
        return _info_from_steam64(steam32_to_steam64(legacy_to_steam32(value)))

    return INVALID


def require_steam64(text: str) -> str:
    """Steam64 for any accepted format, raising ValueError when the input is not one."""
    info = normalize_steam_id(text)
    if not info.is_valid:
        raise ValueError(f"Invalid Steam ID: {text!r}")
    return info.steam64


def format_steam_ids(steam64: str) -> str:
    info = _info_from_steam64(steam64)
    if not info.is_valid:
        return "Invalid Steam ID"
    return f"**Steam64:** {info.steam64}\n**Steam32:** {info.steam32}\n**SteamID:** {info.steam_id}"
