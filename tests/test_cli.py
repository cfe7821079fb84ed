"""Tests for the phspcut command-line entry point."""

import json

import pytest

from phspcut import AccessMode, HeaderUpdateError, IAEAHeader, ParticleRecord, open_source
from phspcut.cli import build_parser, main
from phspcut.iaea import IAEAPhaseSpace, header_path


def create_input(base) -> None:
    """Four records; three are read by a cut, two of them pass the default window."""
    records = [
        ParticleRecord(1, 1, 6.0, 1.0, 0.0, 0.0, 50.0, 0.0, 0.0, 1.0),
        ParticleRecord(1, 1, 6.0, 1.0, 10.0, 0.0, 50.0, 0.0, 0.0, 1.0),
        ParticleRecord(1, 2, 2.0, 1.0, 5.0, 5.0, 100.0, 0.0, 0.0, 1.0),
        ParticleRecord(1, 1, 6.0, 1.0, 0.0, 0.0, 50.0, 0.0, 0.0, 1.0),
    ]
    with open_source(base, AccessMode.WRITE) as dst:
        for record in records:
            dst.write_record(record)
        dst.set_original_histories(len(records))
        dst.update_header()


class TestArguments:
    """Test argument handling."""

    def test_missing_arguments_exit_1(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        assert "usage" in capsys.readouterr().err

    def test_defaults(self):
        args = build_parser().parse_args(["in", "out"])
        assert args.input_base == "in"
        assert args.output_base == "out"
        assert args.z_plane is None
        assert args.error_threshold == 100
        assert not args.strict_size_check
        assert not args.preview

    def test_invalid_window_exit_1(self, tmp_path):
        base = tmp_path / "beam"
        create_input(base)
        assert main([str(base), str(tmp_path / "out"), "--x-min", "8"]) == 1

    def test_negative_threshold_exit_1(self, tmp_path):
        base = tmp_path / "beam"
        create_input(base)
        assert main([str(base), str(tmp_path / "out"), "--error-threshold", "-1"]) == 1

    @pytest.mark.parametrize("content", [{"x_min": None}, {"x_max": "wide"}, [1.0, 2.0]])
    def test_malformed_window_file_exit_1(self, tmp_path, content):
        window_file = tmp_path / "window.json"
        window_file.write_text(json.dumps(content))
        assert main(["in", "out", "--window", str(window_file)]) == 1

    def test_missing_window_file_exit_1(self, tmp_path):
        assert main(["in", "out", "--window", str(tmp_path / "none.json")]) == 1


class TestRun:
    """Test complete command-line runs."""

    def test_cut(self, tmp_path, capsys):
        base = tmp_path / "beam"
        out = tmp_path / "beam_cut"
        create_input(base)

        assert main([str(base), str(out)]) == 0
        stdout = capsys.readouterr().out
        assert "Total records processed: 3" in stdout
        assert "Accepted records (filtered): 2" in stdout
        assert "Read errors" not in stdout
        assert IAEAHeader.read(header_path(out)).particles == 2

    def test_window_options(self, tmp_path, capsys):
        """Command-line bounds override the window file."""
        base = tmp_path / "beam"
        out = tmp_path / "beam_cut"
        create_input(base)
        window_file = tmp_path / "window.json"
        window_file.write_text(json.dumps({"x_min": -1.0, "x_max": 1.0}))

        assert main([str(base), str(out), "--window", str(window_file)]) == 0
        assert "Accepted records (filtered): 1" in capsys.readouterr().out

        assert main([str(base), str(out), "--window", str(window_file), "--x-max", "20"]) == 0
        assert "Accepted records (filtered): 3" in capsys.readouterr().out

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing"), str(tmp_path / "out")]) == 1
        assert "Total records processed" not in capsys.readouterr().out

    def test_preview(self, tmp_path, capsys):
        base = tmp_path / "beam"
        out = tmp_path / "beam_cut"
        create_input(base)

        assert main([str(base), str(out), "--preview"]) == 0
        stdout = capsys.readouterr().out.splitlines()
        assert stdout == ["accept: 2", "reject_backward: 0", "reject_outside_window: 1"]
        assert not header_path(out).exists()

    def test_preview_missing_input(self, tmp_path):
        assert main([str(tmp_path / "missing"), str(tmp_path / "out"), "--preview"]) == 1

    def test_preview_unknown_byte_order(self, tmp_path):
        base = tmp_path / "beam"
        create_input(base)
        header = IAEAHeader.read(header_path(base))
        header.byte_order = 9999
        header.write(header_path(base))

        assert main([str(base), str(tmp_path / "out"), "--preview"]) == 1

    def test_header_error_printed(self, tmp_path, capsys, monkeypatch):
        base = tmp_path / "beam"
        create_input(base)

        def reject(self):
            raise HeaderUpdateError("disk full")

        monkeypatch.setattr(IAEAPhaseSpace, "update_header", reject)
        assert main([str(base), str(tmp_path / "out")]) == 0
        assert "Output header update failed: disk full" in capsys.readouterr().out
