from pathlib import Path

import pytest
from pydantic import ValidationError

from src.eduadmin.config import Settings


def test_origins_accept_comma_separated_string():
    settings = Settings(frontend_allowed_origins="https://admin.example.com, http://localhost:3000")

    assert settings.frontend_allowed_origins == ("https://admin.example.com", "http://localhost:3000")


def test_origins_accept_json_array():
    settings = Settings(frontend_allowed_origins='["https://admin.example.com"]')

    assert settings.frontend_allowed_origins == ("https://admin.example.com",)


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(timezone="Mars/Olympus_Mons")


def test_data_root_is_resolved(tmp_path: Path):
    settings = Settings(data_root=str(tmp_path / "nested" / ".." / "data"))

    assert settings.data_root == (tmp_path / "data").resolve()


def test_map_defaults():
    settings = Settings()

    assert settings.map_width == 800
    assert settings.map_height == 600
    assert settings.kakao_static_map_endpoint == "/v2/maps/staticmap"
    assert settings.snapshot_subdirectory == "map-snapshots"
