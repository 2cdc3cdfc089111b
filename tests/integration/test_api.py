"""Integration tests for the HTTP surface.

Services are swapped through ``app.dependency_overrides`` so requests run
through real routing, validation and error handling without network or
ffmpeg.
"""

import base64
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest
from conftest import (
    FakeNarrationService,
    FakeScoreService,
    FakeScriptService,
    FakeTransformEngine,
)
from fastapi.testclient import TestClient

from api.dependencies import (
    close_services,
    get_assembly_service,
    get_catalog_scraper,
    get_clip_service,
    get_copy_service,
    get_script_service,
)
from api.server import create_app
from services.catalog_scraper import CatalogScraper
from services.clip_service import ClipService
from services.copy_service import CopyService
from services.scratch_store import ScratchStore
from services.script_service import ScriptService
from services.video_assembly import VideoAssemblyService

PRODUCT = {
    "id": 3,
    "title": "Calacatta Viola",
    "imageUrl": "https://agmimports.com/wp-content/uploads/CV1234.jpg",
    "link": "https://agmimports.com/product/calacatta-viola/",
    "lotNumber": "CV1234",
    "material": "Marble",
    "color": "White and burgundy",
}


def data_uri(payload: bytes) -> str:
    return "data:video/mp4;base64," + base64.b64encode(payload).decode()


@pytest.fixture
def app_config(temp_dir):
    return {
        "dashboard_dir": str(temp_dir / "public"),
        "scratch_dir": str(temp_dir / "scratch"),
        "cors_origins": ["*"],
        "elevenlabs_api_key": "test",
        "music_gain": 0.3,
        "score_duration_seconds": 24.0,
        "clip_poll_interval_seconds": 10.0,
        "clip_max_poll_attempts": 60,
        "script_mode": "template",
    }


@pytest.fixture
def engine():
    return FakeTransformEngine()


@pytest.fixture
def app(app_config, engine):
    application = create_app(app_config)
    store = ScratchStore(app_config["scratch_dir"])
    application.dependency_overrides[get_assembly_service] = lambda: VideoAssemblyService(
        store=store,
        engine=engine,
        script_service=FakeScriptService(),
        narration_service=FakeNarrationService(),
        score_service=FakeScoreService(),
    )
    application.dependency_overrides[get_script_service] = lambda: ScriptService()
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.mark.integration
class TestCore:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root_without_dashboard(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Showroom API", "version": "1.0.0"}

    def test_root_serves_dashboard_without_caching(self, app_config):
        public = Path(app_config["dashboard_dir"])
        public.mkdir()
        (public / "dashboard.html").write_text("<html>showroom</html>")
        (public / "app.js").write_text("console.log('hi')")
        client = TestClient(create_app(app_config))

        page = client.get("/")
        asset = client.get("/app.js")

        assert "showroom" in page.text
        assert page.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert asset.status_code == 200
        assert asset.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert client.get("/api/health").json() == {"status": "healthy"}


@pytest.mark.integration
class TestConcatenateVideos:
    def test_success_shape(self, client, app_config):
        response = client.post(
            "/api/concatenate-videos",
            json={
                "videos": [{"url": data_uri(b"clip-a")}, {"url": data_uri(b"clip-b")}],
                "productDescription": PRODUCT,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["videoUrl"].startswith("data:video/mp4;base64,")
        assert body["script"].startswith("Discover the timeless elegance of Calacatta Viola")
        assert list(Path(app_config["scratch_dir"]).iterdir()) == []

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_wrong_count_rejected_before_any_write(self, client, app_config, engine, count):
        response = client.post(
            "/api/concatenate-videos",
            json={
                "videos": [{"url": data_uri(b"clip")}] * count,
                "productDescription": PRODUCT,
            },
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Expected 2 video URLs"}
        assert engine.calls == []
        assert not Path(app_config["scratch_dir"]).exists()

    def test_missing_videos_field_rejected(self, client):
        response = client.post("/api/concatenate-videos", json={"productDescription": PRODUCT})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_bad_data_uri_rejected(self, client):
        response = client.post(
            "/api/concatenate-videos",
            json={
                "videos": [{"url": "https://example.com/a.mp4"}, {"url": data_uri(b"b")}],
                "productDescription": PRODUCT,
            },
        )

        assert response.status_code == 400
        assert "data URI" in response.json()["error"]

    def test_stage_failure_reports_stage(self, app, app_config):
        failing = FakeTransformEngine(fail_on="mix_audio")
        store = ScratchStore(app_config["scratch_dir"])
        app.dependency_overrides[get_assembly_service] = lambda: VideoAssemblyService(
            store=store,
            engine=failing,
            script_service=FakeScriptService(),
            narration_service=FakeNarrationService(),
            score_service=FakeScoreService(),
        )
        client = TestClient(app)

        response = client.post(
            "/api/concatenate-videos",
            json={
                "videos": [{"url": data_uri(b"clip-a")}, {"url": data_uri(b"clip-b")}],
                "productDescription": PRODUCT,
            },
        )

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Mixing voice and music failed:")
        assert list(store.workspace.iterdir()) == []


@pytest.mark.integration
class TestScript:
    def test_generate_script(self, client):
        response = client.post("/api/generate-script", json={"productDescription": PRODUCT})

        assert response.status_code == 200
        assert response.json()["script"].startswith("Discover the timeless elegance of Calacatta Viola.")

    def test_missing_description(self, client):
        response = client.post("/api/generate-script", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Product description is required"}


@pytest.mark.integration
class TestSeo:
    def test_generate_seo(self, app):
        async def generate_content(model, contents, config=None):
            return SimpleNamespace(text="Calacatta Viola is breathtaking.")

        genai = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
        images = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"jpeg"))
        )
        app.dependency_overrides[get_copy_service] = lambda: CopyService(
            http_client=images, client_factory=lambda key: genai
        )

        response = TestClient(app).post("/api/generate-seo", json={"apiKey": "k", "product": PRODUCT})

        assert response.status_code == 200
        assert response.json() == {"success": True, "seoContent": "Calacatta Viola is breathtaking."}

    def test_missing_api_key(self, app):
        app.dependency_overrides[get_copy_service] = lambda: CopyService(
            client_factory=lambda key: pytest.fail("no client expected")
        )

        response = TestClient(app).post("/api/generate-seo", json={"product": PRODUCT})

        assert response.status_code == 400
        assert response.json()["error"] == "Google AI API key is required"


@pytest.mark.integration
class TestScrape:
    def test_scrape_new_arrivals(self, app):
        html = (
            '<a href="/product/calacatta-viola/"><img src="/u/CV1234.jpg"><h2>Calacatta Viola</h2></a>'
            '<a href="/product/other/"><img src="/u/CV1234.jpg"><h2>Duplicate</h2></a>'
        )
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=html))
        app.dependency_overrides[get_catalog_scraper] = lambda: CatalogScraper(
            "https://agmimports.com/new_arrival/", client=httpx.AsyncClient(transport=transport)
        )

        response = TestClient(app).get("/api/scrape-new-arrivals")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["products"] == [
            {
                "id": 0,
                "title": "Calacatta Viola",
                "imageUrl": "https://agmimports.com/u/CV1234.jpg",
                "link": "https://agmimports.com/product/calacatta-viola/",
                "lotNumber": "CV1234",
                "material": "",
                "color": "",
            }
        ]

    def test_upstream_failure(self, app):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        app.dependency_overrides[get_catalog_scraper] = lambda: CatalogScraper(
            "https://agmimports.com/new_arrival/", client=httpx.AsyncClient(transport=transport)
        )

        response = TestClient(app).get("/api/scrape-new-arrivals")

        assert response.status_code == 502
        assert response.json()["success"] is False


@pytest.mark.integration
class TestGenerateVideo:
    def test_timeout_maps_to_504(self, app):
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if url.endswith(".jpg"):
                return httpx.Response(200, content=b"jpeg", headers={"content-type": "image/jpeg"})
            if url.endswith(":predictLongRunning"):
                return httpx.Response(200, json={"name": "operations/op1"})
            return httpx.Response(200, json={"name": "operations/op1", "done": False})

        async def no_wait(seconds):
            return None

        app.dependency_overrides[get_clip_service] = lambda: ClipService(
            api_base="https://veo.test/v1beta",
            max_attempts=3,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            sleep=no_wait,
        )

        response = TestClient(app).post(
            "/api/generate-video", json={"apiKey": "k", "product": PRODUCT, "prompt": "slow pan"}
        )

        assert response.status_code == 504
        assert "timed out" in response.json()["error"]

    def test_success_returns_data_uri(self, app):
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if url.endswith(".jpg"):
                return httpx.Response(200, content=b"jpeg", headers={"content-type": "image/jpeg"})
            if url.endswith(":predictLongRunning"):
                return httpx.Response(200, json={"name": "operations/op1"})
            if url.endswith("operations/op1"):
                return httpx.Response(
                    200,
                    json={
                        "done": True,
                        "response": {
                            "generateVideoResponse": {
                                "generatedSamples": [{"video": {"uri": "https://veo.test/files/v.mp4"}}]
                            }
                        },
                    },
                )
            return httpx.Response(200, content=b"mp4")

        async def no_wait(seconds):
            return None

        app.dependency_overrides[get_clip_service] = lambda: ClipService(
            api_base="https://veo.test/v1beta",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            sleep=no_wait,
        )

        response = TestClient(app).post(
            "/api/generate-video", json={"apiKey": "k", "product": PRODUCT, "prompt": "slow pan"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "videoUrl": data_uri(b"mp4")}


@pytest.mark.integration
class TestServiceWiring:
    @pytest.mark.asyncio
    async def test_services_built_from_app_config(self, app_config):
        await close_services()
        config = {
            **app_config,
            "catalog_url": "https://stones.test/arrivals/",
            "music_gain": 0.5,
            "score_duration_seconds": 18.0,
        }
        create_app(config)

        try:
            assert get_catalog_scraper().page_url == "https://stones.test/arrivals/"
            assembly = get_assembly_service()
            assert assembly.store.workspace == Path(app_config["scratch_dir"])
            assert assembly.music_gain == 0.5
            assert assembly.score_seconds == 18.0
            assert assembly.script_service is get_script_service()
        finally:
            await close_services()

    @pytest.mark.asyncio
    async def test_close_services_resets_every_singleton(self, app_config):
        create_app(app_config)
        script = get_script_service()
        scraper = get_catalog_scraper()

        await close_services()

        try:
            assert get_script_service() is not script
            assert get_catalog_scraper() is not scraper
        finally:
            await close_services()
