"""Tests for the command line interface."""

import argparse

import pytest
from conftest import make_pdf, page_rotations, page_widths

from bigpdfmerge.cli import _parse_page_list, _parse_rotation, build_parser, main
from bigpdfmerge.config import APP_DESCRIPTION


class TestParsePageList:
    def test_single(self):
        assert _parse_page_list("3") == [3]

    def test_range_and_list(self):
        assert _parse_page_list("1-3,7,10-11") == [1, 2, 3, 7, 10, 11]

    def test_order_kept(self):
        assert _parse_page_list("5,1-2") == [5, 1, 2]

    def test_duplicates_dropped(self):
        assert _parse_page_list("2,1-3") == [2, 1, 3]

    def test_zero_ignored(self):
        assert _parse_page_list("0,1") == [1]

    def test_invalid(self):
        with pytest.raises(ValueError):
            _parse_page_list("a-b")


class TestParseRotation:
    def test_valid(self):
        assert _parse_rotation("3:90") == (3, 90)
        assert _parse_rotation("2:-90") == (2, -90)

    @pytest.mark.parametrize("text", ["3", "x:90", "0:90", "1:45"])
    def test_invalid(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_rotation(text)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["a.pdf"])
        assert args.output.name == "merged.pdf"
        assert args.rotate == []
        assert not args.dry_run

    def test_description(self):
        assert build_parser().description == APP_DESCRIPTION

    def test_repeated_rotate(self):
        args = build_parser().parse_args(["a.pdf", "--rotate", "1:90", "--rotate", "2:180"])
        assert args.rotate == [(1, 90), (2, 180)]


class TestMain:
    @pytest.fixture
    def inputs(self, tmp_path):
        a = tmp_path / "a.pdf"
        b = tmp_path / "b.pdf"
        a.write_bytes(make_pdf([101, 102, 103]))
        b.write_bytes(make_pdf([201]))
        return a, b

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert "1.0.0" in capsys.readouterr().out

    def test_no_inputs_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.pdf")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_merge(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        assert main([str(p) for p in inputs] + ["-o", str(out)]) == 0
        assert page_widths(out.read_bytes()) == [101, 102, 103, 201]

    def test_edits(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        argv = [str(p) for p in inputs] + [
            "-o", str(out),
            "--delete", "2",
            "--rotate", "3:90",
            "--order", "4",
        ]
        assert main(argv) == 0
        assert page_widths(out.read_bytes()) == [201, 101, 103]
        assert page_rotations(out.read_bytes()) == [0, 0, 90]

    def test_dry_run_with_list(self, inputs, tmp_path, capsys):
        out = tmp_path / "out.pdf"
        assert main([str(p) for p in inputs] + ["-o", str(out), "--dry-run", "--list"]) == 0
        printed = capsys.readouterr().out
        assert "a.pdf p.1/3" in printed
        assert "b.pdf p.1/1" in printed
        assert not out.exists()

    def test_bad_page_position(self, inputs, tmp_path, capsys):
        argv = [str(p) for p in inputs] + ["-o", str(tmp_path / "o.pdf"), "--delete", "9"]
        assert main(argv) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_rotate_deleted_page(self, inputs, tmp_path):
        argv = [str(p) for p in inputs] + [
            "-o", str(tmp_path / "o.pdf"),
            "--delete", "1",
            "--rotate", "1:90",
        ]
        assert main(argv) == 1

    def test_broken_input_fails(self, tmp_path, capsys):
        bad = tmp_path / "bad.pdf"
        bad.write_bytes(b"garbage")
        assert main([str(bad), "-o", str(tmp_path / "o.pdf")]) == 1
        assert "bad.pdf" in capsys.readouterr().err

    def test_thumbnails_written(self, inputs, tmp_path):
        thumbs = tmp_path / "thumbs"
        argv = [str(inputs[0]), "--dry-run", "--thumbnails", str(thumbs)]
        assert main(argv) == 0
        names = sorted(p.name for p in thumbs.iterdir())
        assert names == ["001_a_p1.png", "002_a_p2.png", "003_a_p3.png"]
