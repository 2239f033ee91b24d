import json
import os
import sys

import pytest
from PyPDF2 import PdfReader

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from manage import gen_batch, gen_cert, list_templates_cmd


@pytest.fixture
def cli_app(app):
    for command in (gen_batch, gen_cert, list_templates_cmd):
        app.cli.add_command(command)
    return app


@pytest.fixture
def roster_file(tmp_path):
    path = tmp_path / "volunteers.json"
    path.write_text(
        json.dumps(
            {
                "volunteers": [
                    {"id": 1, "first_name": "Abebe", "last_name": "Kebede"},
                    {"id": 2, "first_name": "Sara", "last_name": "Tesfaye"},
                ]
            }
        )
    )
    return str(path)


def test_list_templates(cli_app):
    result = cli_app.test_cli_runner().invoke(args=["list_templates"])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 8
    assert lines[0].startswith("standard-participation\tparticipation")


def test_gen_cert_writes_one_file(cli_app, roster_file, tmp_path):
    out_dir = tmp_path / "single"
    result = cli_app.test_cli_runner().invoke(
        args=[
            "gen_cert",
            "--volunteers",
            roster_file,
            "--volunteer-id",
            "2",
            "--out-dir",
            str(out_dir),
        ]
    )
    assert result.exit_code == 0, result.output
    assert os.listdir(out_dir) == ["certificate-Sara-Tesfaye.pdf"]
    assert "completed=1 errors=0" in result.output


def test_gen_cert_unknown_volunteer(cli_app, roster_file, tmp_path):
    result = cli_app.test_cli_runner().invoke(
        args=["gen_cert", "--volunteers", roster_file, "--volunteer-id", "9"]
    )
    assert result.exit_code == 0
    assert "Not found" in result.output


def test_gen_batch_bundle(cli_app, roster_file, tmp_path):
    out_dir = tmp_path / "bundle"
    result = cli_app.test_cli_runner().invoke(
        args=[
            "gen_batch",
            "--volunteers",
            roster_file,
            "--out-dir",
            str(out_dir),
            "--type",
            "milestone",
            "--milestone-hours",
            "25",
            "--bundle",
        ]
    )
    assert result.exit_code == 0, result.output
    bundle = out_dir / "certificates.pdf"
    assert len(PdfReader(str(bundle)).pages) == 2


def test_gen_batch_milestone_without_hours_fails(cli_app, roster_file, tmp_path):
    result = cli_app.test_cli_runner().invoke(
        args=[
            "gen_batch",
            "--volunteers",
            roster_file,
            "--out-dir",
            str(tmp_path),
            "--type",
            "milestone",
        ]
    )
    assert result.exit_code != 0
    assert not (tmp_path / "certificates.pdf").exists()


def test_gen_batch_defaults_to_site_root(cli_app, roster_file, tmp_path):
    result = cli_app.test_cli_runner().invoke(
        args=["gen_batch", "--volunteers", roster_file, "--select", "1"]
    )
    assert result.exit_code == 0, result.output
    assert os.listdir(tmp_path / "certificates") == ["certificate-Abebe-Kebede.pdf"]
