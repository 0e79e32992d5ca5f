from unittest.mock import patch

import pytest
from fastapi import HTTPException

from musicscan.core.errors import ExternalServiceError
from musicscan.modules.audio.service import AudioService, parse_audd_response

MATCH = {
    "status": "success",
    "result": {
        "artist": "Golden Earring",
        "title": "Radar Love",
        "album": "Moontan",
        "release_date": "1973-07-01",
        "label": "Track Records",
        "song_link": "https://lis.tn/RadarLove",
        "spotify": {"external_urls": {"spotify": "https://open.spotify.com/track/abc"}},
        "apple_music": {"url": "https://music.apple.com/nl/album/radar-love"},
    },
}


def test_parse_match():
    result = parse_audd_response(MATCH)
    assert result.matched is True
    assert (result.artist, result.title) == ("Golden Earring", "Radar Love")
    assert result.spotify_url == "https://open.spotify.com/track/abc"
    assert result.apple_music_url.startswith("https://music.apple.com")


def test_parse_no_match():
    assert parse_audd_response({"status": "success", "result": None}).matched is False


def test_parse_error():
    with pytest.raises(ExternalServiceError) as exc:
        parse_audd_response({"status": "error", "error": {"error_code": 901, "error_message": "Limit reached"}})
    assert exc.value.message == "Limit reached"


def test_requires_input():
    with pytest.raises(HTTPException) as exc:
        AudioService(api_token="t").recognize()
    assert exc.value.status_code == 400


@patch("musicscan.modules.audio.service.requests.post")
def test_recognize_by_url(mock_post):
    mock_post.return_value.ok = True
    mock_post.return_value.json.return_value = MATCH

    result = AudioService(api_token="token").recognize(url="https://audd.tech/example.mp3")

    assert result.title == "Radar Love"
    kwargs = mock_post.call_args.kwargs
    assert kwargs["data"] == {"api_token": "token", "return": "spotify,apple_music",
                              "url": "https://audd.tech/example.mp3"}
    assert kwargs["files"] is None


@patch("musicscan.modules.audio.service.requests.post")
def test_recognize_upload(mock_post):
    mock_post.return_value.ok = True
    mock_post.return_value.json.return_value = {"status": "success", "result": None}

    AudioService(api_token="token").recognize(audio=b"ID3...", filename="clip.mp3")

    assert mock_post.call_args.kwargs["files"] == {"file": ("clip.mp3", b"ID3...")}


@patch("musicscan.modules.audio.service.requests.post")
def test_route_accepts_upload(mock_post, client, user_headers):
    mock_post.return_value.ok = True
    mock_post.return_value.json.return_value = MATCH

    response = client.post("/api/v1/audio/recognize", files={"file": ("clip.mp3", b"ID3...", "audio/mpeg")},
                           headers=user_headers)

    assert response.status_code == 200
    assert response.json()["artist"] == "Golden Earring"


def test_route_requires_url_or_file(client, user_headers):
    response = client.post("/api/v1/audio/recognize", data={}, headers=user_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Provide an audio url or file"}
