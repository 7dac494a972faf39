"""Application constants.

Contains candidate field limits, the avatar URL template, word lists for
random candidate generation and the default seed candidates.
"""

# ---------------------------------------------------------------------------
# Field limits (write-boundary validation)
# ---------------------------------------------------------------------------
NAME_MAX_LENGTH: int = 100
PARTY_MAX_LENGTH: int = 100
DESCRIPTION_MIN_LENGTH: int = 10
DESCRIPTION_MAX_LENGTH: int = 1000

# ---------------------------------------------------------------------------
# Avatar
# ---------------------------------------------------------------------------
AVATAR_URL_TEMPLATE: str = (
    "https://ui-avatars.com/api/?name={name}&size=400"
    "&background={background}&color=fff&bold=true"
)

# ---------------------------------------------------------------------------
# Random candidate generation
# ---------------------------------------------------------------------------
FIRST_NAMES: list[str] = [
    "Alexandru", "Maria", "Ion", "Elena", "Mihai", "Ana", "Gheorghe", "Ioana",
    "Andrei", "Cristina", "Radu", "Simona", "Dan", "Raluca", "Adrian", "Roxana",
]

LAST_NAMES: list[str] = [
    "Popescu", "Ionescu", "Popa", "Stan", "Stoica", "Dumitrescu", "Georgescu",
    "Constantinescu", "Marin", "Diaconu", "Vlad", "Câmpeanu", "Moldovan",
    "Rus", "Barbu", "Nistor",
]

BACKGROUNDS: list[str] = [
    "Experienced local administrator with focus on community development and public services improvement.",
    "Former business leader with expertise in economic development and job creation initiatives.",
    "Legal professional specializing in public policy and constitutional law with parliamentary experience.",
    "Academic researcher with background in social sciences and public administration.",
    "Healthcare professional advocating for medical system reform and public health initiatives.",
    "Former journalist and communication specialist focused on transparency and media relations.",
    "Engineering background with expertise in infrastructure development and urban planning.",
    "Education sector veteran promoting educational reform and student welfare programs.",
    "Environmental advocate with experience in sustainable development and green policies.",
    "Technology entrepreneur focused on digital transformation and innovation in governance.",
]

# ---------------------------------------------------------------------------
# Seed candidates loaded at startup (SEED_DEFAULT_CANDIDATES)
# ---------------------------------------------------------------------------
DEFAULT_CANDIDATES: list[dict[str, str]] = [
    {
        "name": "Nicușor Dan",
        "political_party": "USR (Save Romania Union)",
        "description": (
            "Current Mayor of Bucharest and prominent civic activist. Mathematical "
            "background with a PhD from École Normale Supérieure. Known for his "
            "anti-corruption stance and urban development initiatives."
        ),
    },
    {
        "name": "Ilie Bolojan",
        "political_party": "PNL (National Liberal Party)",
        "description": (
            "Mayor of Oradea since 2011 and one of Romania's most respected local "
            "administrators. Known for transforming Oradea into a model European "
            "city through efficient governance and transparency."
        ),
    },
    {
        "name": "Marcel Ciolacu",
        "political_party": "PSD (Social Democratic Party)",
        "description": (
            "Chairman of the Social Democratic Party and Speaker of the Chamber of "
            "Deputies. Focuses on social policies, economic development, and "
            "strengthening Romania's position within the European Union."
        ),
    },
    {
        "name": "Călin Georgescu",
        "political_party": "Independent",
        "description": (
            "Independent political figure and former UN executive. Background in "
            "international relations and environmental policy, advocating for "
            "national sovereignty and environmental protection."
        ),
    },
    {
        "name": "George Simion",
        "political_party": "AUR (Alliance for the Unity of Romanians)",
        "description": (
            "Chairman and co-founder of the Alliance for the Unity of Romanians "
            "party. Known for his nationalist and conservative positions and for "
            "organizing civic movements around diaspora rights."
        ),
    },
]
