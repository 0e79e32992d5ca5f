"""
Text helpers for social posts: cleaning markdown, summaries, hashtags and the
per-queue post formatters.
"""

import re
from typing import Any, Dict, List, Optional

MONTH_NAMES = [
    "januari", "februari", "maart", "april", "mei", "juni",
    "juli", "augustus", "september", "oktober", "november", "december",
]

VIDEO_EMOJIS = {
    "interview": "🎤",
    "studio": "🎵",
    "live_session": "🎸",
    "documentary": "🎬",
    "other": "🎥",
}
VIDEO_LABELS = {
    "interview": "Interview",
    "studio": "Studio Sessie",
    "live_session": "Live Sessie",
    "documentary": "Documentaire",
    "other": "Video",
}
VIDEO_HASHTAGS = {
    "interview": "#Interview",
    "studio": "#StudioSession",
    "live_session": "#LiveSession",
    "documentary": "#Documentary",
}

EVENT_EMOJIS = {
    "release": "💿",
    "birth": "🎂",
    "death": "⚫",
    "award": "🏆",
    "concert": "🎤",
    "milestone": "🌟",
    "founding": "🎸",
    "chart": "📈",
}
EVENT_HASHTAGS = {
    "release": "#NieuweRelease",
    "birth": "#Verjaardag",
    "death": "#InMemoriam",
    "award": "#Award",
    "concert": "#LiveConcert",
    "milestone": "#Mijlpaal",
}

_MARKDOWN_RULES = [
    (re.compile(r"^---[\s\S]*?---\n?"), ""),          # yaml frontmatter
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"^#+\s+.*$", re.MULTILINE), ""),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"!\[[^\]]*\]\([^)]+\)"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"^>\s*", re.MULTILINE), ""),
    (re.compile(r"^[-*]\s+", re.MULTILINE), ""),
    (re.compile(r"^\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"^---+$", re.MULTILINE), ""),
    (re.compile(r"^\*\*\*+$", re.MULTILINE), ""),
    (re.compile(r"<[^>]+>"), ""),
    (re.compile(r"\n{3,}"), "\n\n"),
]


def strip_markdown_for_social(content: Optional[str]) -> str:
    """Remove frontmatter, markdown and HTML so the text reads well in a post."""
    if not content:
        return ""
    cleaned = content
    for pattern, replacement in _MARKDOWN_RULES:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned.strip()


def extract_social_summary(content: Optional[str], max_length: int = 300) -> str:
    cleaned = strip_markdown_for_social(content)
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    last_space = truncated.rfind(" ")
    cut = last_space if last_space > 200 else max_length
    return truncated[:cut] + "..."


def artist_hashtag(artist: Optional[str]) -> Optional[str]:
    """'The Rolling Stones' -> '#TheRollingStones'; None when nothing usable remains."""
    if not artist:
        return None
    words = re.sub(r"[^a-zA-Z0-9\s]", "", artist).split()
    tag = "".join(w[:1].upper() + w[1:] for w in words)
    return f"#{tag}" if tag else None


def youtube_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def format_youtube_post(video_id: str, video: Dict[str, Any]) -> str:
    content_type = video.get("content_type") or "other"
    emoji = VIDEO_EMOJIS.get(content_type, VIDEO_EMOJIS["other"])
    label = VIDEO_LABELS.get(content_type, "Video")

    post = f"{emoji} {label}: {video.get('title', '')}\n\n"
    if video.get("artist_name"):
        post += f"🎵 Artiest: {video['artist_name']}\n"
    if video.get("channel_name"):
        post += f"📺 Kanaal: {video['channel_name']}\n"
    post += f"\n▶️ Bekijk hier: {youtube_url(video_id)}\n\n"

    hashtags = ["#YouTube", "#Muziek", "#MusicScan"]
    tag = artist_hashtag(video.get("artist_name"))
    if tag:
        hashtags.append(tag)
    if content_type in VIDEO_HASHTAGS:
        hashtags.append(VIDEO_HASHTAGS[content_type])

    post += f"🎧 {' '.join(hashtags)}\n\n"
    post += "👉 Ontdek meer op musicscan.app/youtube-discoveries"
    return post


def format_music_history_post(event: Dict[str, Any], month: int, day: int) -> str:
    category = (event.get("category") or "").lower()
    emoji = EVENT_EMOJIS.get(category, "🎵")
    month_name = MONTH_NAMES[month - 1]

    post = "📅 Wist je dat...\n\n"
    post += f"{emoji} Op {day} {month_name} {event.get('year')}: {event.get('title', '')}\n\n"
    post += f"{event.get('description', '')}\n\n"

    hashtags = ["#WistJeDat", "#MuziekGeschiedenis", "#OnThisDay"]
    tag = artist_hashtag(event.get("artist"))
    if tag:
        hashtags.append(tag)
    if category in EVENT_HASHTAGS:
        hashtags.append(EVENT_HASHTAGS[category])
    hashtags.append("#MusicScan")

    post += f"🎵 {' '.join(hashtags)}\n\n"
    post += "👉 Ontdek meer muziekgeschiedenis op musicscan.app/muziekgeschiedenis"
    return post


def format_single_post(story: Dict[str, Any], site_url: str) -> str:
    artist = story.get("artist_name") or story.get("artist") or ""
    single = story.get("single_name") or story.get("title") or ""
    summary = extract_social_summary(story.get("story_content"))

    post = f"🎶 Het verhaal achter de single: {artist} - {single}\n\n"
    if summary:
        post += f"{summary}\n\n"
    hashtags: List[str] = ["#MusicScan", "#Singles", "#VerhaalAchterDeMuziek"]
    tag = artist_hashtag(artist)
    if tag:
        hashtags.append(tag)
    post += f"🎧 {' '.join(hashtags)}\n\n"
    post += f"👉 Lees het hele verhaal op {site_url}/muziek-verhaal/{story.get('slug', '')}"
    return post


def format_album_post(item: Dict[str, Any], summary: str, site_url: str) -> str:
    artist = item.get("artist") or "Onbekend"
    album = item.get("album_title") or "Onbekend"

    post = f"💿 Plaat spotlight: {artist} - {album}\n\n"
    if summary:
        post += f"{summary}\n\n"
    hashtags = ["#MusicScan", "#Vinyl", "#AlbumReview"]
    tag = artist_hashtag(artist)
    if tag:
        hashtags.append(tag)
    post += f"🎧 {' '.join(hashtags)}\n\n"
    post += f"👉 Lees meer op {site_url}/plaat-verhaal/{item.get('slug', '')}"
    return post
