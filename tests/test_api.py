"""
Tests for the HTTP surface (markov and reload routers, app wiring).
"""
import pytest
from fastapi.testclient import TestClient

from markovtext.api.routers.markov_router import MODEL_CACHE
from markovtext.app import app, preload_default_model
from markovtext.config import settings
from markovtext.services.chain import MarkovConfig
from markovtext.services.markov import MarkovModel


@pytest.fixture
def client(model_dir, monkeypatch):
    """Test client with an empty model cache and no preloading."""
    monkeypatch.setattr(settings, "PRELOAD_MODEL", False)
    MODEL_CACHE.clear()
    with TestClient(app) as test_client:
        yield test_client
    MODEL_CACHE.clear()


@pytest.fixture
def trained_client(client, sample_lines):
    response = client.post("/markov/train", json={"corpus": sample_lines, "model_name": "stars"})
    assert response.status_code == 200
    return client


class TestAppEndpoints:
    """Test suite for root and health endpoints."""

    def test_root(self, client):
        """Test root lists endpoints."""
        data = client.get("/").json()

        assert data["service"] == settings.SERVICE_NAME
        assert "markov" in data["endpoints"]

    def test_health(self, client):
        """Test health reports no default model when none is loaded."""
        data = client.get("/health").json()

        assert data["ok"] is True
        assert data["data"]["default_model_trained"] is False


class TestMarkovRouter:
    """Test suite for /markov endpoints."""

    def test_train(self, client, sample_lines):
        """Test training caches a model and reports stats."""
        response = client.post(
            "/markov/train",
            json={"corpus": sample_lines, "model_name": "stars", "order": 3},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["ok"] is True
        assert data["order"] == 3
        assert data["stats"]["prefixes"] > 0
        assert "stars" in MODEL_CACHE

    def test_train_empty_corpus(self, client):
        """Test an empty corpus is rejected."""
        response = client.post("/markov/train", json={"corpus": ["   "]})

        assert response.status_code == 400

    def test_generate(self, trained_client):
        """Test generation returns the requested number of words."""
        response = trained_client.post("/markov/generate", json={"model_name": "stars", "word_count": 30})
        data = response.json()

        assert response.status_code == 200
        assert len(data["data"]["text"].split()) == 30

    def test_generate_unknown_model(self, client):
        """Test generating from an unknown model is a 404."""
        response = client.post("/markov/generate", json={"model_name": "nope"})

        assert response.status_code == 404

    def test_generate_untrained_model(self, client):
        """Test a model with an empty chain is a 409."""
        client.post("/markov/train", json={"corpus": ["lonely"], "model_name": "tiny"})

        response = client.post("/markov/generate", json={"model_name": "tiny", "word_count": 5})

        assert response.status_code == 409

    def test_generate_word_count_validated(self, trained_client):
        """Test word_count must be positive."""
        response = trained_client.post("/markov/generate", json={"model_name": "stars", "word_count": 0})

        assert response.status_code == 422

    def test_save_and_load(self, trained_client, model_dir):
        """Test a saved model can be loaded back under a new cache entry."""
        saved = trained_client.post("/markov/save", json={"model_name": "stars"}).json()
        original_keys = set(MODEL_CACHE["stars"].chain)
        MODEL_CACHE.clear()

        response = trained_client.post("/markov/load", json={"model_name": "stars"})

        assert saved["path"] == str((model_dir / "stars.mkv").resolve())
        assert response.status_code == 200
        assert set(MODEL_CACHE["stars"].chain) == original_keys

    def test_load_missing_file(self, client):
        """Test loading a missing file is a 404."""
        response = client.post("/markov/load", json={"model_name": "ghost"})

        assert response.status_code == 404

    def test_load_corrupt_file(self, client, model_dir):
        """Test loading a corrupt file is a 422."""
        model_dir.mkdir(parents=True)
        (model_dir / "bad.mkv").write_bytes(b"garbage garbage")

        response = client.post("/markov/load", json={"model_name": "bad"})

        assert response.status_code == 422

    def test_load_directory_is_bad_request(self, client, model_dir):
        """Test a model path that is a directory is a 400, not a 500."""
        (model_dir / "folder.mkv").mkdir(parents=True)

        response = client.post("/markov/load", json={"model_name": "folder"})

        assert response.status_code == 400

    @pytest.mark.parametrize("endpoint", ["/markov/save", "/markov/load"])
    def test_model_name_cannot_leave_model_dir(self, trained_client, endpoint):
        """Test names that resolve outside MODEL_DIR are rejected."""
        MODEL_CACHE["../escape"] = MODEL_CACHE["stars"]

        response = trained_client.post(endpoint, json={"model_name": "../escape"})

        assert response.status_code == 400

    def test_save_ignores_client_path(self, trained_client, model_dir, tmp_path):
        """Test a client-supplied path is not honored."""
        target = tmp_path / "elsewhere.mkv"

        response = trained_client.post("/markov/save", json={"model_name": "stars", "path": str(target)})

        assert response.status_code == 200
        assert not target.exists()
        assert (model_dir / "stars.mkv").is_file()

    def test_list_models(self, trained_client):
        """Test listing cached models."""
        data = trained_client.get("/markov/models").json()

        assert "stars" in data["data"]


class TestReloadRouter:
    """Test suite for /reload endpoints."""

    def test_reload_all(self, trained_client, model_dir):
        """Test every saved model is reloaded."""
        trained_client.post("/markov/save", json={"model_name": "stars"})
        MODEL_CACHE.clear()

        data = trained_client.post("/reload/models", json={"model_name": "all"}).json()

        assert data["success"] is True
        assert data["reloaded_models"] == ["stars"]
        assert "stars" in MODEL_CACHE

    def test_reload_reports_failures(self, trained_client, model_dir):
        """Test a corrupt file is reported and does not block others."""
        trained_client.post("/markov/save", json={"model_name": "stars"})
        (model_dir / "broken.mkv").write_bytes(b"nope")

        data = trained_client.post("/reload/models", json={}).json()

        assert data["success"] is False
        assert data["reloaded_models"] == ["stars"]
        assert "broken" in data["failed_models"]

    def test_reload_unknown(self, client):
        """Test reloading a model with no file is a 404."""
        response = client.post("/reload/models", json={"model_name": "ghost"})

        assert response.status_code == 404

    def test_reload_name_outside_model_dir(self, client):
        """Test reloading a name that escapes MODEL_DIR is a 400."""
        response = client.post("/reload/models", json={"model_name": "../../etc/passwd"})

        assert response.status_code == 400

    def test_status(self, trained_client):
        """Test status lists loaded and saved models."""
        trained_client.post("/markov/save", json={"model_name": "stars"})

        data = trained_client.get("/reload/status").json()

        assert data["saved"] == ["stars"]
        assert data["loaded"]["stars"]["saved"] is True


class TestPreload:
    """Test suite for default model preloading."""

    def test_preload_from_bundled_corpus(self, model_dir, monkeypatch):
        """Test the bundled sample corpus trains a default model."""
        monkeypatch.setattr(settings, "EMBEDDED_MODEL_PATH", None)

        model = preload_default_model()

        assert model is not None
        assert model.is_trained

    def test_preload_prefers_saved_file(self, model_dir, monkeypatch):
        """Test a saved default model wins over the bundled corpus."""
        saved = MarkovModel(MarkovConfig(order=1)).build("alpha beta gamma alpha beta")
        saved.save_to_file(model_dir / f"{settings.DEFAULT_MODEL_NAME}.mkv")

        model = preload_default_model()

        assert model.chain == saved.chain

    def test_preload_from_embedded_model(self, model_dir, tmp_path, monkeypatch):
        """Test an embedded model resource is used when configured."""
        root = tmp_path / "bundle"
        saved = MarkovModel(MarkovConfig(order=1)).build("one two three one two")
        saved.save_to_file(root / "models" / "embedded.mkv")
        monkeypatch.setattr(settings, "EMBEDDED_MODEL_PACKAGE", root)
        monkeypatch.setattr(settings, "EMBEDDED_MODEL_PATH", "models/embedded.mkv")

        model = preload_default_model()

        assert model.chain == saved.chain

    def test_preload_nothing_configured(self, model_dir, monkeypatch):
        """Test no source yields no model."""
        monkeypatch.setattr(settings, "EMBEDDED_MODEL_PATH", None)
        monkeypatch.setattr(settings, "BUNDLED_CORPUS_PATH", None)

        assert preload_default_model() is None

    def test_startup_preloads_default(self, model_dir, monkeypatch):
        """Test app startup caches the default model."""
        monkeypatch.setattr(settings, "PRELOAD_MODEL", True)
        monkeypatch.setattr(settings, "EMBEDDED_MODEL_PATH", None)
        MODEL_CACHE.clear()

        with TestClient(app) as client:
            data = client.get("/health").json()

        assert data["data"]["default_model_trained"] is True
        MODEL_CACHE.clear()
