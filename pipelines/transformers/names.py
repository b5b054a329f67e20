"""
Name Transformers

Utilities for normalizing names so entities line up across data sources:
player display names, champion identifiers, role labels and league tags.
"""

import unicodedata
from typing import Optional


LEAGUES: tuple[str, ...] = ("LCK", "LPL", "LEC", "LCS")

ROLE_ORDER: tuple[str, ...] = ("top", "jungle", "mid", "bot", "support")

POSITIONAL_ROLES: tuple[str, ...] = ("Top", "Jungle", "Mid", "Bot", "Support")

ROLE_ALIASES: dict[str, str] = {
    "top": "top",
    "jungle": "jungle",
    "jng": "jungle",
    "mid": "mid",
    "middle": "mid",
    "bot": "bot",
    "bottom": "bot",
    "adc": "bot",
    "support": "support",
    "sup": "support",
    "utility": "support",
}

# Live Stats champion ids whose Leaguepedia names differ
CHAMPION_WIKI_NAMES: dict[str, str] = {
    "MonkeyKing": "Wukong",
    "XinZhao": "Xin Zhao",
    "DrMundo": "Dr. Mundo",
    "JarvanIV": "Jarvan IV",
    "LeeSin": "Lee Sin",
    "MasterYi": "Master Yi",
    "MissFortune": "Miss Fortune",
    "TahmKench": "Tahm Kench",
    "TwistedFate": "Twisted Fate",
    "AurelionSol": "Aurelion Sol",
    "KogMaw": "Kog'Maw",
    "Chogath": "Cho'Gath",
    "ChoGath": "Cho'Gath",
    "Khazix": "Kha'Zix",
    "KhaZix": "Kha'Zix",
    "Velkoz": "Vel'Koz",
    "VelKoz": "Vel'Koz",
    "RekSai": "Rek'Sai",
    "Kaisa": "Kai'Sa",
    "KaiSa": "Kai'Sa",
    "Belveth": "Bel'Veth",
    "BelVeth": "Bel'Veth",
    "KSante": "K'Sante",
    "Nunu": "Nunu & Willump",
    "Renata": "Renata Glasc",
}


def normalize_name(name: str) -> str:
    """
    Normalize a name by removing diacritics and converting to lowercase.

    Examples:
        >>> normalize_name("Ruler ")
        'ruler'
        >>> normalize_name("Kiin")
        'kiin'
        >>> normalize_name("Élyoya")
        'elyoya'
    """
    normalized = unicodedata.normalize("NFD", name)
    ascii_name = "".join(c for c in normalized if unicodedata.category(c) != "Mn")
    return ascii_name.lower().strip()


def short_name(display_name: str) -> str:
    """
    Drop a broadcast team prefix from a display name.

    Examples:
        >>> short_name("T1 Faker")
        'Faker'
        >>> short_name("Faker")
        'Faker'
    """
    parts = display_name.split()
    return parts[-1] if parts else display_name


def champion_wiki_name(champion: str) -> str:
    """Map a Live Stats champion id to the name Leaguepedia indexes it by."""
    return CHAMPION_WIKI_NAMES.get(champion, champion)


def normalize_role(role: str) -> str:
    """Canonical lowercase role; unknown roles are returned lowercased."""
    r = (role or "").strip().lower()
    return ROLE_ALIASES.get(r, r)


def role_index(role: str) -> int:
    """Sort position of a role; unrecognized roles sort last."""
    r = normalize_role(role)
    return ROLE_ORDER.index(r) if r in ROLE_ORDER else len(ROLE_ORDER)


def parse_league(value: str) -> Optional[str]:
    """
    Resolve a league tag from a league name or tournament label.

    Examples:
        >>> parse_league("LCK 2026 Cup")
        'LCK'
        >>> parse_league("Worlds") is None
        True
    """
    upper = (value or "").upper()
    for league in LEAGUES:
        if league in upper:
            return league
    return None


def cargo_literal(value: str) -> str:
    """Strip characters that would break out of a double-quoted cargo literal."""
    return value.replace("\\", "").replace('"', "")
