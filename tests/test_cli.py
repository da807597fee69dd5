"""Tests for the command-line front end."""

import argparse
import io

import numpy as np
import pytest
from PIL import Image

from spheretrace import cli
from spheretrace.cli import main, parse_aspect_ratio
from spheretrace.logging_config import setup_logging

SCENE_YAML = """
- center: {x: 0, y: 0, z: -1}
  radius: 0.5
  material:
    albedo: {r: 0.1, g: 0.2, b: 0.5}
"""

FAST = ['--width', '8', '--aspect-ratio', '2', '--samples', '1', '--depth', '3',
        '--workers', '2', '--seed', '1', '--quiet']


class TestAspectRatio:
    """Test aspect ratio argument parsing."""

    def test_fraction(self):
        assert parse_aspect_ratio('16/9') == 16 / 9

    def test_decimal(self):
        assert parse_aspect_ratio('1.5') == 1.5

    @pytest.mark.parametrize("text", ['abc', '1/0', '-2', '0'])
    def test_invalid(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_aspect_ratio(text)


class TestMain:
    """Test end-to-end CLI runs."""

    @pytest.fixture
    def scene_file(self, tmp_path):
        path = tmp_path / "scene.yaml"
        path.write_text(SCENE_YAML)
        return path

    def test_render_png(self, scene_file, tmp_path):
        output = tmp_path / "out" / "render.png"
        assert main([str(scene_file), '-o', str(output)] + FAST) == 0
        with Image.open(output) as image:
            assert image.size == (8, 4)

    def test_render_ppm_to_stdout(self, scene_file, capsys):
        assert main([str(scene_file), '-o', '-'] + FAST) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[:3] == ['P3', '8 4', '255']
        assert len(lines) == 3 + 32

    def test_scene_from_stdin(self, tmp_path, monkeypatch):
        monkeypatch.setattr('sys.stdin', io.StringIO(SCENE_YAML))
        output = tmp_path / "render.ppm"
        assert main(['-', '-o', str(output)] + FAST) == 0
        assert output.read_text().startswith('P3\n8 4\n255\n')

    def test_same_seed_same_output(self, scene_file, tmp_path):
        first, second = tmp_path / "a.ppm", tmp_path / "b.ppm"
        assert main([str(scene_file), '-o', str(first)] + FAST) == 0
        assert main([str(scene_file), '-o', str(second)] + FAST) == 0
        assert first.read_text() == second.read_text()

    def test_demo_scene(self, tmp_path, monkeypatch):
        # Keep the demo cheap: a handful of spheres is enough to exercise the path
        from spheretrace.shapes import HittableList
        from spheretrace.scenes import random_scene

        def tiny_scene(rng):
            scene = random_scene(rng)
            return HittableList(scene.objects[-3:])

        monkeypatch.setattr(cli, 'random_scene', tiny_scene)
        output = tmp_path / "demo.png"
        assert main(['-o', str(output)] + FAST) == 0
        assert output.exists()

    def test_missing_scene(self, tmp_path, capsys):
        output = tmp_path / "render.png"
        assert main([str(tmp_path / "missing.yaml"), '-o', str(output)] + FAST) == 1
        assert 'error' in capsys.readouterr().err
        assert not output.exists()

    def test_malformed_scene(self, tmp_path, capsys):
        bad = tmp_path / "bad.yaml"
        bad.write_text("- center: {x: 0}\n  radius: 1\n  material: {ir: 1.5}\n")
        assert main([str(bad), '-o', str(tmp_path / "r.png")] + FAST) == 1
        assert 'error' in capsys.readouterr().err

    def test_invalid_settings(self, scene_file, capsys):
        assert main([str(scene_file), '--samples', '0', '--quiet']) == 1
        assert 'samples_per_pixel' in capsys.readouterr().err

    def test_unwritable_output(self, scene_file, tmp_path, capsys):
        output = tmp_path / "render.unknownext"
        assert main([str(scene_file), '-o', str(output)] + FAST) == 1
        assert 'error' in capsys.readouterr().err
        assert not output.exists()

    def test_progress_bar_on_stderr(self, scene_file, tmp_path, capsys):
        args = [a for a in FAST if a != '--quiet']
        assert main([str(scene_file), '-o', str(tmp_path / "r.ppm")] + args) == 0
        captured = capsys.readouterr()
        assert '100%' in captured.err
        assert captured.out == ''

    def test_invalid_utf8_on_stdin(self, tmp_path, monkeypatch, capsys):
        stream = io.TextIOWrapper(io.BytesIO(b"- center: {x: \xff}\n"), encoding="utf-8")
        monkeypatch.setattr('sys.stdin', stream)
        output = tmp_path / "r.png"
        assert main(['-', '-o', str(output)] + FAST) == 1
        assert 'error' in capsys.readouterr().err
        assert not output.exists()

    def test_log_file(self, scene_file, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        args = [str(scene_file), '-o', str(tmp_path / "r.ppm"),
                '--log-level', 'INFO', '--log-file', str(log_file)]
        try:
            assert main(args + FAST) == 0
        finally:
            # Release the file handler
            setup_logging()
        assert 'Loaded scene with 1 objects' in log_file.read_text()
