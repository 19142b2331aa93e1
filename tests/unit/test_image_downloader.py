# tests/unit/test_image_downloader.py
from __future__ import annotations

import asyncio

import httpx
import pytest

from propscrape.core.errors import ImageFetchError
from propscrape.core.media import fetch_image, image_references, infer_extension, materialize_images
from propscrape.schemas.models import DEFAULT_PLACEHOLDER_IMAGE, MaterializedImage, ScrapePolicy
from tests.utils import InMemoryImageStorage, RouteTransport, image_response, png_bytes

PAGE = "https://listings.example.com/listing/5"


@pytest.mark.parametrize(
    "content_type,url,expected",
    [
        ("image/png", "https://x.com/a", "png"),
        ("image/jpeg; charset=binary", "https://x.com/a.png", "jpg"),
        ("image/svg+xml", "https://x.com/a", "svg"),
        ("image/webp", "https://x.com/a.jpg", "webp"),
        ("image/x-icon", "https://x.com/a", "jpg"),
        ("image/vnd.microsoft.icon", "https://x.com/a", "jpg"),
        ("image/x-portable-anymap", "https://x.com/favicon.ico", "ico"),
        (None, "https://x.com/photo.PNG?w=200", "png"),
        ("application/octet-stream", "https://x.com/photo.gif", "gif"),
        (None, "https://x.com/photo", "jpg"),
        (None, "https://x.com/photo.php", "jpg"),
    ],
)
def test_infer_extension(content_type, url, expected):
    assert infer_extension(content_type, url) == expected


def _materialize(routes, candidates, *, storage=None, policy=None, page_link=PAGE, origin_url=None):
    transport = RouteTransport(routes)
    storage = storage or InMemoryImageStorage()

    async def go():
        async with transport.client() as client:
            return await materialize_images(
                candidates,
                record_id="prop-1-0-abc",
                page_link=page_link,
                origin_url=origin_url,
                client=client,
                storage=storage,
                policy=policy or ScrapePolicy(),
            )

    return transport, storage, asyncio.run(go())


def test_success_localizes_and_sends_referer_and_image_ua():
    url = "https://listings.example.com/listing/imgs/a.png"
    policy = ScrapePolicy(image_user_agent="ImgBot/2.0")
    transport, storage, images = _materialize({url: image_response(png_bytes(12, 9))}, ["imgs/a.png"], policy=policy)

    assert len(images) == 1
    img = images[0]
    assert img.ok is True
    assert img.source_url == url
    assert img.reference.startswith("/uploads/properties/prop-1-0-abc/")
    assert img.reference.endswith("_0.png")
    assert (img.width, img.height) == (12, 9)
    assert img.content_type == "image/png"
    assert storage.files[img.reference] == png_bytes(12, 9)

    sent = transport.requests[0].headers
    assert sent["Referer"] == PAGE
    assert sent["User-Agent"] == "ImgBot/2.0"


def test_namespace_created_once_before_writes():
    urls = [f"https://cdn.example.com/{i}.png" for i in range(3)]
    _, storage, images = _materialize({u: image_response() for u in urls}, urls)

    assert all(i.ok for i in images)
    assert storage.events[0] == "ns:prop-1-0-abc"
    assert storage.namespaces == ["prop-1-0-abc"]
    assert len({i.reference for i in images}) == 3


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, text="missing"),
        httpx.Response(200, text="<html>login</html>", headers={"Content-Type": "text/html"}),
        httpx.Response(200, content=b"", headers={"Content-Type": "image/png"}),
    ],
)
def test_bad_responses_fall_back_to_remote_url(response):
    url = "https://cdn.example.com/bad.jpg"
    _, storage, images = _materialize({url: response}, [url])

    assert images[0].ok is False
    assert images[0].reference == url
    assert images[0].error
    assert storage.files == {}


def test_missing_content_type_is_accepted():
    url = "https://cdn.example.com/raw"
    _, _, images = _materialize({url: image_response(content_type=None)}, [url])
    assert images[0].ok is True
    assert images[0].reference.endswith(".jpg")


def test_storage_failure_falls_back():
    url = "https://cdn.example.com/a.png"
    _, _, images = _materialize({url: image_response()}, [url], storage=InMemoryImageStorage(fail_all=True))
    assert images[0].ok is False
    assert images[0].reference == url
    assert "storage write failed" in images[0].error


def test_transport_error_falls_back():
    url = "https://cdn.example.com/a.png"
    _, _, images = _materialize({url: httpx.ConnectError("refused")}, [url])
    assert images[0].reference == url


def test_order_is_candidate_order_even_when_completion_is_permuted():
    urls = [f"https://cdn.example.com/{i}.png" for i in range(5)]
    delays = [0.05, 0.0, 0.03, 0.01, 0.04]

    def delayed(delay):
        async def _route(request):
            await asyncio.sleep(delay)
            return image_response()

        return _route

    routes = {u: delayed(d) for u, d in zip(urls, delays)}
    routes[urls[2]] = httpx.Response(500)

    _, _, images = _materialize(routes, urls, policy=ScrapePolicy(max_concurrent_images=5))

    assert [i.source_url for i in images] == urls
    assert [i.index for i in images] == [0, 1, 2, 3, 4]
    assert images[2].reference == urls[2]
    for i in (0, 1, 3, 4):
        assert images[i].reference.endswith(f"_{i}.png")


def test_nothing_resolvable_returns_empty_and_skips_namespace():
    _, storage, images = _materialize({}, ["a.jpg", ""], page_link=None, origin_url="scraped-from-html")
    assert images == []
    assert storage.namespaces == []


def test_image_references_placeholder_and_sorting():
    assert image_references([], DEFAULT_PLACEHOLDER_IMAGE) == [DEFAULT_PLACEHOLDER_IMAGE]
    imgs = [
        MaterializedImage(index=1, source_url="u1", reference="r1", ok=True),
        MaterializedImage(index=0, source_url="u0", reference="u0", ok=False),
    ]
    assert image_references(imgs, DEFAULT_PLACEHOLDER_IMAGE) == ["u0", "r1"]


def test_fetch_image_raises_typed_error_on_404():
    url = "https://cdn.example.com/gone.png"
    transport = RouteTransport({})

    async def go():
        async with transport.client() as client:
            return await fetch_image(url, client=client, policy=ScrapePolicy(), referer=None)

    with pytest.raises(ImageFetchError) as ei:
        asyncio.run(go())
    assert ei.value.status == 404
    assert transport.requests[0].headers["Referer"] == ""
