from __future__ import annotations

import contextlib
from types import SimpleNamespace

import pytest
import rasterio
from click.testing import CliRunner

from landsatpipe import cli as cli_module
from landsatpipe.cli import cli


@pytest.fixture
def mlflow_log(monkeypatch):
    """Capture what the CLI would send to MLflow."""
    log = {"params": {}, "metrics": {}}
    stub = SimpleNamespace(
        set_tracking_uri=lambda uri: None,
        start_run=lambda **kw: contextlib.nullcontext(),
        log_params=lambda params: log["params"].update(params),
        log_metric=lambda key, value: log["metrics"].__setitem__(key, value),
    )
    monkeypatch.setattr(cli_module, "mlflow", stub)
    return log


def test_metadata_command(mtl_path):
    result = CliRunner().invoke(cli, ["metadata", str(mtl_path), "--max-zoom", "9"])
    assert result.exit_code == 0, result.output
    assert "crs:       EPSG:3857" in result.output
    assert "cell_type: uint16" in result.output
    assert "time:      2017-03-04T15:48:38.754860+00:00..2017-03-04T15:48:38.754860+00:00" in result.output


def test_metadata_command_rejects_unknown_crs(mtl_path):
    result = CliRunner().invoke(cli, ["metadata", str(mtl_path), "--dest-crs", "EPSG:32618"])
    assert result.exit_code != 0
    assert isinstance(result.exception, ValueError)


def test_ingest_command_writes_chunks(monkeypatch, mtl_path, tmp_path, make_raster, mlflow_log):
    raster = make_raster(300, 280)
    monkeypatch.setattr(cli_module, "fetch_scene", lambda scene, job: raster)
    out = tmp_path / "tiles"

    result = CliRunner().invoke(cli, ["ingest", str(mtl_path), "--scheduler", "synchronous",
                                      "--output", str(out)])

    assert result.exit_code == 0, result.output
    n_tiles = mlflow_log["metrics"]["n_tiles"]
    assert n_tiles > 0
    assert mlflow_log["metrics"]["n_scenes_dropped"] == 0
    assert mlflow_log["params"]["bands"] == "4,3,2"
    files = sorted(out.glob("20170304_*.tif"))
    assert len(files) == n_tiles
    with rasterio.open(files[0]) as ds:
        assert ds.count == 3
        assert ds.crs.to_epsg() == 3857
        assert ds.width <= 256 and ds.height <= 256


def test_ingest_command_counts_dropped_scenes(monkeypatch, mtl_path, mlflow_log):
    monkeypatch.setattr(cli_module, "fetch_scene", lambda scene, job: None)

    result = CliRunner().invoke(cli, ["ingest", str(mtl_path), "--scheduler", "synchronous"])

    assert result.exit_code == 0, result.output
    assert mlflow_log["metrics"]["n_scenes_dropped"] == 1
    assert mlflow_log["metrics"]["n_tiles"] == 0
    assert "0 chunks from 0/1 scenes" in result.output
