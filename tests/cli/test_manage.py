"""Tests for the operator CLI."""
import json

from facetrack.cli.manage import load_scans, main
from facetrack.core.config import settings
from facetrack.services.descriptors import normalize
from facetrack.services.stems import StemSelector
from facetrack.services.track_identity import derive_track_id

DESCRIPTOR = [0.1] * 128


def test_track_id_prints_id_and_stems(tmp_path, capsys):
    path = tmp_path / "descriptor.json"
    path.write_text(json.dumps({"descriptor": DESCRIPTOR}))

    assert main(["track-id", str(path)]) == 0

    out = capsys.readouterr().out
    track_id = derive_track_id(normalize(DESCRIPTOR))
    assert f"Track ID: {track_id}" in out
    for url in StemSelector().select(track_id).values():
        assert url in out


def test_track_id_rejects_bad_descriptor(tmp_path, capsys):
    path = tmp_path / "descriptor.json"
    path.write_text(json.dumps([1, 2, 3]))

    assert main(["track-id", str(path)]) == 1
    assert "Error reading descriptor" in capsys.readouterr().err


def test_load_scans_accepts_every_layout(tmp_path):
    path = tmp_path / "scans.json"
    for data, expected in [
        ([1.0, 2.0], [[1.0, 2.0]]),
        ([[1.0, 2.0], [3.0, 4.0]], [[1.0, 2.0], [3.0, 4.0]]),
        ({"descriptors": [[1.0, 2.0]]}, [[1.0, 2.0]]),
        ({"descriptor": [1.0, 2.0]}, [[1.0, 2.0]]),
    ]:
        path.write_text(json.dumps(data))
        assert load_scans(path) == expected


def test_stems(capsys):
    assert main(["stems", "abc1234567"]) == 0
    out = capsys.readouterr().out
    assert "bass #" in out
    assert "leads #" in out

    assert main(["stems", "not a track"]) == 1


def test_init_db(tmp_path, monkeypatch, capsys):
    db_path = tmp_path / "tracks.db"
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

    assert main(["init-db"]) == 0
    assert db_path.exists()
    assert "Database tables created" in capsys.readouterr().out
