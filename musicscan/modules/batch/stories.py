"""Artist story generation: prompt, slug and metadata extraction."""

import math
import re
from typing import Any, Dict, List, Optional

ARTIST_STORY_PROMPT = """Je bent een muziekjournalist die feitelijke, goed onderbouwde biografische artikelen schrijft.

Gebruik UITSLUITEND verificeerbare informatie:
- Concrete datums, namen en officiële informatie
- Duidelijke scheiding tussen feiten en interpretatie
- Transparantie over onzekerheden

VERPLICHTE STRUCTUUR (gebruik markdown headers):
# Het Verhaal van [Artiest Naam]
## Biografie & Beginjaren
## Muziekstijl & Invloeden
## Doorbraak & Commercieel Succes
## Belangrijkste Albums & Singles
## Culturele Impact & Erfenis
## Legacy & Huidige Status
## Bronverificatie & Disclaimer

KWALITEITSEISEN:
- Minimaal 800 woorden van puur feitelijke inhoud
- Bij twijfel: expliciete vermelding van onzekerheid
- Professionele, neutrale journalistieke taal
- Nederlandse spelling

TOON: Strikt feitelijk, neutraal en informatief."""

GENRES = [
    "pop", "rock", "jazz", "classical", "electronic", "hip-hop", "country",
    "folk", "blues", "r&b", "metal", "punk", "indie", "alternative",
]

_ALBUM_RE = re.compile(r"album[:\s]+[\"']([^\"']+)[\"']", re.IGNORECASE)
_BIOGRAPHY_RE = re.compile(r"##\s+Biografie[^\n]*\n\n([^\n]+)")


def story_user_prompt(artist_name: str) -> str:
    return (
        f'Schrijf een feitelijk, goed onderbouwd biografisch artikel over de artiest: "{artist_name}". '
        "Gebruik ALLEEN verificeerbare informatie. Gebruik de structuur met 7 secties voor een "
        "professioneel artikel van 800-1000 woorden. Voeg de verplichte disclaimer toe over bronverificatie."
    )


def generate_slug(artist_name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", artist_name.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()[:50]


def extract_metadata(artist_name: str, story: str) -> Dict[str, Optional[List[str]]]:
    lowered = story.lower()
    genres = [g for g in GENRES if g in lowered]
    albums = _ALBUM_RE.findall(story)[:5]
    tags = [artist_name.lower().replace(" ", "")] + genres + ["muziek", "artiest", "biografie"]
    return {
        "music_style": genres or None,
        "notable_albums": albums or None,
        "tags": [t for t in tags if t],
    }


def extract_biography(story: str) -> str:
    match = _BIOGRAPHY_RE.search(story)
    return match.group(1) if match else story[:200] + "..."


def build_story_row(artist_name: str, story: str, artwork_url: Optional[str],
                    published_at: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    word_count = len(story.split())
    title = f"Het Verhaal van {artist_name}"
    biography = extract_biography(story)
    metadata = extract_metadata(artist_name, story)
    row: Dict[str, Any] = {
        "artist_name": artist_name,
        "slug": generate_slug(artist_name),
        "story_content": story,
        "biography": biography,
        "music_style": metadata["music_style"],
        "notable_albums": metadata["notable_albums"],
        "artwork_url": artwork_url,
        "is_published": True,
        "published_at": published_at,
        "reading_time": math.ceil(word_count / 200),
        "word_count": word_count,
        "meta_title": f"{title} | MusicScan",
        "meta_description": biography[:160],
    }
    if user_id:
        row["user_id"] = user_id
    return row
