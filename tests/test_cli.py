from __future__ import annotations

import json
from pathlib import Path

import pytest

from domewarp.cli.main import main
from domewarp.core.image_io import load_image_u8, save_image_u8
from domewarp.render.patterns import checker_texture


@pytest.mark.integration
def test_cli_compute_export_and_warp(tmp_path: Path, capsys) -> None:
    cfg_path = tmp_path / "config.json"
    assert main(["default-config", "--out", str(cfg_path)]) == 0
    cfg = json.loads(cfg_path.read_text(encoding="utf-8"))
    assert cfg["schema_version"] == "domewarp.config.v0"

    map_dir = tmp_path / "map"
    assert main(["compute", "--config", str(cfg_path), "--out", str(map_dir), "--width", "32", "--height", "24", "--workers", "2", "--rows-per-chunk", "5"]) == 0
    assert (map_dir / "warp.json").exists()
    assert (map_dir / "maps.npz").exists()
    assert "coverage" in capsys.readouterr().out

    mesh = tmp_path / "mesh.data"
    assert main(["export-mesh", "--out", str(mesh), "--nx", "6", "--ny", "5"]) == 0
    assert mesh.read_text(encoding="utf-8").splitlines()[1] == "6 5"

    out_grid = tmp_path / "grid.png"
    assert main(["warp-image", "--map", str(map_dir), "--out", str(out_grid), "--pattern", "grid", "--pattern-size", "64"]) == 0
    assert load_image_u8(out_grid, mode="L").shape == (24, 32)

    src = save_image_u8(tmp_path / "src.png", checker_texture(40, squares=5))
    out_rgb = tmp_path / "warped.png"
    assert main(["-v", "warp-image", "--map", str(map_dir), "--out", str(out_rgb), "--input", str(src), "--interp", "nearest"]) == 0
    assert load_image_u8(out_rgb).shape == (24, 32, 3)


def test_cli_requires_a_source_for_warp_image(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["warp-image", "--map", str(tmp_path), "--out", str(tmp_path / "x.png")])
