"""Tests del cliente Pexels y del adaptador de adquisición (httpx.MockTransport)."""

import httpx
import pytest

from reelsmith.config import PexelsSettings
from reelsmith.domain.errors import AcquisitionError
from reelsmith.domain.models import Scene
from reelsmith.infrastructure.clips import ClipAcquirer
from reelsmith.infrastructure.pexels import PexelsClient, select_variant
from reelsmith.utils.backoff import RateLimiter

FALLBACK = "abstract colorful motion"

VARIANTS = [
    {"quality": "sd", "width": 640, "link": "https://videos.example/sd.mp4"},
    {"quality": "hd", "width": 1280, "link": "https://videos.example/hd720.mp4"},
    {"quality": "hd", "width": 1920, "link": "https://videos.example/hd1080.mp4"},
]


class FakePexelsAPI:
    """
    Handler de MockTransport.
    `results` mapea query -> variantes; una query ausente no tiene resultados.
    `errors` mapea query -> status HTTP, excepción o cuerpo HTML (200 sin JSON).
    """

    def __init__(self, results=None, errors=None):
        self.results = results or {}
        self.errors = errors or {}
        self.queries = []
        self.downloads = []

    def __call__(self, request):
        if request.url.host == "api.pexels.com":
            query = request.url.params["query"]
            self.queries.append(query)
            error = self.errors.get(query)
            if isinstance(error, str):
                return httpx.Response(200, text=error, headers={"Content-Type": "text/html"})
            if isinstance(error, Exception):
                raise error
            if error:
                return httpx.Response(error)
            files = self.results.get(query)
            videos = [{"id": 1, "video_files": files}] if files else []
            return httpx.Response(200, json={"videos": videos})

        self.downloads.append(str(request.url))
        return httpx.Response(200, content=b"clip-bytes")


class FakeRenderer:
    def __init__(self):
        self.calls = []

    def normalize_clip(self, input_path, target_duration, output_path):
        self.calls.append((input_path, target_duration, output_path))
        output_path.write_bytes(b"normalized")
        return str(output_path)


def make_acquirer(api, renderer=None):
    pexels = PexelsClient(
        PexelsSettings(), api_key="test-key",
        transport=httpx.MockTransport(api), rate_limiter=RateLimiter(),
    )
    return ClipAcquirer(pexels, renderer or FakeRenderer())


class TestSelectVariant:
    def test_prefers_hd_1920(self):
        assert select_variant(VARIANTS)["width"] == 1920

    def test_any_hd(self):
        assert select_variant(VARIANTS[:2])["width"] == 1280

    def test_first_available(self):
        files = [{"quality": "sd", "width": 640}, {"quality": "mobile", "width": 360}]
        assert select_variant(files) is files[0]

    def test_empty(self):
        assert select_variant([]) is None


class TestPexelsClient:
    def test_search_params_and_auth(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"videos": [{"video_files": VARIANTS}]})

        client = PexelsClient(api_key="secret", transport=httpx.MockTransport(handler),
                              rate_limiter=RateLimiter())
        assert client.search_videos("ocean waves") == VARIANTS

        (request,) = seen
        assert request.url.path == "/videos/search"
        assert request.url.params["per_page"] == "15"
        assert request.url.params["orientation"] == "landscape"
        assert request.headers["Authorization"] == "secret"

    def test_no_results(self):
        client = PexelsClient(api_key="k", rate_limiter=RateLimiter(),
                              transport=httpx.MockTransport(FakePexelsAPI()))
        assert client.search_videos("nothing") == []

    def test_http_error(self):
        api = FakePexelsAPI(errors={"ocean": 429})
        client = PexelsClient(api_key="k", transport=httpx.MockTransport(api),
                              rate_limiter=RateLimiter())
        with pytest.raises(httpx.HTTPStatusError):
            client.search_videos("ocean")


class TestAcquire:
    def test_first_query_succeeds(self, workspace):
        api = FakePexelsAPI(results={"ocean waves": VARIANTS})
        path = make_acquirer(api).acquire("ocean waves", 0, workspace)

        assert path == workspace.raw_clip(0)
        assert path.read_bytes() == b"clip-bytes"
        assert api.queries == ["ocean waves"]
        assert api.downloads == ["https://videos.example/hd1080.mp4"]

    def test_fallback_after_no_results(self, workspace):
        api = FakePexelsAPI(results={FALLBACK: VARIANTS})
        path = make_acquirer(api).acquire("zzqx", 2, workspace)

        assert path.name == "scene-2-raw.mp4"
        assert api.queries == ["zzqx", FALLBACK]

    def test_fallback_after_http_error(self, workspace):
        api = FakePexelsAPI(results={"city": VARIANTS, FALLBACK: VARIANTS}, errors={"city": 500})
        make_acquirer(api).acquire("city", 0, workspace)
        assert api.queries == ["city", FALLBACK]

    def test_fallback_after_timeout(self, workspace):
        api = FakePexelsAPI(
            results={FALLBACK: VARIANTS},
            errors={"forest": httpx.ConnectTimeout("timed out")},
        )
        make_acquirer(api).acquire("forest", 1, workspace)
        assert api.queries == ["forest", FALLBACK]

    def test_exactly_one_fallback(self, workspace):
        api = FakePexelsAPI()
        with pytest.raises(AcquisitionError) as exc_info:
            make_acquirer(api).acquire("zzqx", 3, workspace)

        assert api.queries == ["zzqx", FALLBACK]
        assert exc_info.value.scene_index == 3
        assert exc_info.value.query == FALLBACK

    def test_variant_without_link(self, workspace):
        api = FakePexelsAPI(results={"x": [{"quality": "hd", "width": 1920}]})
        with pytest.raises(AcquisitionError):
            make_acquirer(api).acquire("x", 0, workspace)


def test_prepare_normalizes_to_scene_duration(workspace):
    api = FakePexelsAPI(results={"mountains": VARIANTS})
    renderer = FakeRenderer()
    scene = Scene(duration=6.5, narration="Mountains rise.", keywords=["mountains"])

    asset = make_acquirer(api, renderer).prepare(scene, 4, workspace)

    assert asset.scene_index == 4
    assert asset.source_path == workspace.raw_clip(4)
    assert asset.normalized_path == workspace.final_clip(4)
    assert asset.duration == 6.5
    ((source, duration, output),) = renderer.calls
    assert (source, duration, output) == (asset.source_path, 6.5, asset.normalized_path)



def test_non_json_search_response_uses_fallback(workspace):
    api = FakePexelsAPI(results={FALLBACK: VARIANTS}, errors={"ocean": "<html>maintenance</html>"})
    path = make_acquirer(api).acquire("ocean", 0, workspace)

    assert api.queries == ["ocean", FALLBACK]
    assert path.read_bytes() == b"clip-bytes"


def test_malformed_results_are_acquisition_errors(workspace):
    def handler(request):
        return httpx.Response(200, json={"videos": ["not-a-video"]})

    with pytest.raises(AcquisitionError) as exc_info:
        make_acquirer(handler).acquire("ocean", 5, workspace)
    assert exc_info.value.scene_index == 5
