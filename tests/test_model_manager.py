import asyncio

from posecam.config import ModelsConfig
from posecam.model_manager import ModelManager
from posecam.models import ModelType


def _manager(tmp_path, base_url, **kwargs):
	cfg = ModelsConfig(models_dir=str(tmp_path / "models"), base_url=base_url, download_chunk_bytes=4)
	return ModelManager(cfg, **kwargs)


def test_existing_model_is_used_without_download(tmp_path):
	mgr = _manager(tmp_path, "http://invalid.example")
	local = tmp_path / "models" / "yolo11n-pose.pt"
	local.parent.mkdir(parents=True)
	local.write_bytes(b"weights")
	assert asyncio.run(mgr.get_model_path(ModelType.POSE)) == str(local)


def test_download_reports_progress_and_status(tmp_path):
	remote = tmp_path / "remote"
	remote.mkdir()
	(remote / "yolo11n.pt").write_bytes(b"0123456789abcdef")
	progress = []
	status = []
	mgr = _manager(
		tmp_path,
		remote.as_uri(),
		on_download_progress=progress.append,
		on_status_update=status.append,
	)

	path = asyncio.run(mgr.get_model_path(ModelType.DETECT))

	assert path == str(tmp_path / "models" / "yolo11n.pt")
	assert (tmp_path / "models" / "yolo11n.pt").read_bytes() == b"0123456789abcdef"
	assert not (tmp_path / "models" / "yolo11n.pt.part").exists()
	assert progress[0] == 0.0
	assert progress[-1] == 1.0
	assert progress == sorted(progress)
	assert status[0] == "Downloading yolo11n model..."
	assert status[-1] == "yolo11n model downloaded"


def test_failed_download_resolves_to_none(tmp_path):
	status = []
	mgr = _manager(tmp_path, (tmp_path / "nowhere").as_uri(), on_status_update=status.append)
	assert asyncio.run(mgr.get_model_path(ModelType.SEGMENT)) is None
	assert status[-1].startswith("Download failed")
	assert not any((tmp_path / "models").glob("*.part"))


def test_custom_url_is_downloaded_once(tmp_path):
	remote = tmp_path / "best.pt"
	remote.write_bytes(b"custom")
	mgr = _manager(tmp_path, "http://invalid.example")

	first = asyncio.run(mgr.get_custom_model_path(remote.as_uri()))
	assert first is not None
	assert first.endswith("_best.pt")
	remote.unlink()
	assert asyncio.run(mgr.get_custom_model_path(remote.as_uri())) == first


def test_custom_url_must_name_a_file(tmp_path):
	status = []
	mgr = _manager(tmp_path, "http://invalid.example", on_status_update=status.append)
	assert asyncio.run(mgr.get_custom_model_path("ftp://example.com/model.pt")) is None
	assert asyncio.run(mgr.get_custom_model_path("https://example.com/")) is None
	assert status[-1].startswith("Invalid model URL")
