import requests

from loopgen.art import AlbumArtLoader

ART_URL = "https://images.test/random/album"


def test_load_returns_image_bytes(session, make_response):
    session.get.return_value = make_response(
        content=b"\xff\xd8jpeg", headers={"Content-Type": "image/jpeg"}
    )
    loader = AlbumArtLoader(url=ART_URL, session=session)

    assert loader.load() == b"\xff\xd8jpeg"
    assert loader.content_type == "image/jpeg"
    assert session.get.call_args.args[0] == ART_URL


def test_non_image_yields_none(session, make_response):
    session.get.return_value = make_response(
        content=b"<html></html>", headers={"Content-Type": "text/html"}
    )
    loader = AlbumArtLoader(url=ART_URL, session=session)

    assert loader.load() is None
    assert loader.image is None


def test_http_error_yields_none(session, make_response):
    session.get.return_value = make_response(status_code=503)
    loader = AlbumArtLoader(url=ART_URL, session=session)

    assert loader.load() is None


def test_network_error_yields_none_without_retry(session):
    session.get.side_effect = requests.ConnectionError("offline")
    loader = AlbumArtLoader(url=ART_URL, session=session)

    assert loader.load() is None
    assert session.get.call_count == 1


def test_load_in_background_hands_result_to_callback(session, make_response):
    session.get.return_value = make_response(
        content=b"png", headers={"Content-Type": "image/png"}
    )
    loader = AlbumArtLoader(url=ART_URL, session=session)
    received = []

    thread = loader.load_in_background(received.append)
    thread.join(timeout=5)

    assert received == [b"png"]


def test_save(tmp_path, session, make_response):
    session.get.return_value = make_response(
        content=b"png", headers={"Content-Type": "image/png"}
    )
    loader = AlbumArtLoader(url=ART_URL, session=session)
    assert loader.save(str(tmp_path / "art.png")) is None

    loader.load()
    path = loader.save(str(tmp_path / "art.png"))

    assert (tmp_path / "art.png").read_bytes() == b"png"
    assert path.endswith("art.png")
