import io
import types
from pathlib import Path
import sys

from PIL import Image

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from simple_bmp4_converter import cli


def _write_sample_png(directory: Path, name: str, color=(250, 10, 10)) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    png_path = directory / name
    Image.new("RGB", (8, 6), color).save(png_path)
    return png_path


def test_writes_bmp_into_output_dir(tmp_path: Path) -> None:
    src = _write_sample_png(tmp_path / "in", "sample.png")
    out_dir = tmp_path / "out"

    rc = cli.main([str(src), "-o", str(out_dir), "--width", "4", "--height", "4"])

    assert rc == 0
    target = out_dir / "sample.bmp"
    with Image.open(target) as img:
        assert img.size == (4, 4)
        assert img.convert("RGB").getpixel((0, 0)) == (170, 0, 0)


def test_folder_input_with_prefix_and_suffix(tmp_path: Path) -> None:
    in_dir = tmp_path / "in"
    _write_sample_png(in_dir, "a.png")
    _write_sample_png(in_dir, "b.png")
    (in_dir / "notes.txt").write_text("skip me")
    out_dir = tmp_path / "out"

    rc = cli.main([str(in_dir), "-o", str(out_dir), "--prefix", "p_", "--suffix", "_s"])

    assert rc == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["p_a_s.bmp", "p_b_s.bmp"]


def test_refuses_to_overwrite_without_force(tmp_path: Path, capsys) -> None:
    src = _write_sample_png(tmp_path, "sample.png")
    out_dir = tmp_path / "out"
    args = [str(src), "-o", str(out_dir), "--width", "2", "--height", "2"]

    assert cli.main(args) == 0
    assert cli.main(args) == 1
    assert "already exist" in capsys.readouterr().err
    assert cli.main(args + ["--force"]) == 0


def test_preview_png_is_written_next_to_bmp(tmp_path: Path) -> None:
    src = _write_sample_png(tmp_path, "sample.png", color=(0, 0, 0))
    out_dir = tmp_path / "out"

    rc = cli.main([str(src), "-o", str(out_dir), "--width", "3", "--height", "2", "--preview"])

    assert rc == 0
    with Image.open(out_dir / "sample.png") as preview:
        assert preview.size == (3, 2)
        assert preview.convert("RGB").getpixel((2, 1)) == (0, 0, 0)


def test_single_input_goes_to_stdout(tmp_path: Path, capsysbinary) -> None:
    src = _write_sample_png(tmp_path, "sample.png")

    rc = cli.main([str(src), "--width", "4", "--height", "2", "--adaptive"])

    assert rc == 0
    data = capsysbinary.readouterr().out
    assert data[:2] == b"BM"
    with Image.open(io.BytesIO(data)) as img:
        assert img.size == (4, 2)


def test_stdout_needs_a_single_input(tmp_path: Path, capsys) -> None:
    a = _write_sample_png(tmp_path, "a.png")
    b = _write_sample_png(tmp_path, "b.png")

    assert cli.main([str(a), str(b)]) == 1
    assert "exactly one input" in capsys.readouterr().err


def test_missing_input_reports_error(tmp_path: Path, capsys) -> None:
    rc = cli.main([str(tmp_path / "nope.png"), "-o", str(tmp_path / "out")])

    assert rc == 1
    assert "does not exist" in capsys.readouterr().err


def test_colors_without_adaptive_is_rejected(tmp_path: Path) -> None:
    src = _write_sample_png(tmp_path, "sample.png")

    assert cli.main([str(src), "-o", str(tmp_path / "out"), "--colors", "8"]) == 1


def test_duplicate_output_names_are_rejected(tmp_path: Path, capsys) -> None:
    a = _write_sample_png(tmp_path / "one", "same.png")
    b = _write_sample_png(tmp_path / "two", "same.png")

    assert cli.main([str(a), str(b), "-o", str(tmp_path / "out")]) == 1
    assert "Duplicate output name" in capsys.readouterr().err


def _fake_stdin(monkeypatch, color=(250, 10, 10)) -> None:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), color).save(buffer, format="PNG")
    monkeypatch.setattr(sys, "stdin", types.SimpleNamespace(buffer=io.BytesIO(buffer.getvalue())))


def test_stdin_to_stdout(monkeypatch, capsysbinary) -> None:
    _fake_stdin(monkeypatch)

    rc = cli.main(["-", "--width", "4", "--height", "2"])

    assert rc == 0
    data = capsysbinary.readouterr().out
    with Image.open(io.BytesIO(data)) as img:
        assert img.size == (4, 2)
        assert img.convert("RGB").getpixel((0, 0)) == (170, 0, 0)


def test_stdin_is_named_stdin_in_output_dir(tmp_path: Path, monkeypatch) -> None:
    _fake_stdin(monkeypatch)
    out_dir = tmp_path / "out"

    rc = cli.main(["-", "-o", str(out_dir), "--prefix", "x_"])

    assert rc == 0
    assert [p.name for p in out_dir.iterdir()] == ["x_stdin.bmp"]


def test_stdin_can_only_be_given_once(tmp_path: Path, monkeypatch, capsys) -> None:
    _fake_stdin(monkeypatch)

    assert cli.main(["-", "-", "-o", str(tmp_path / "out")]) == 1
    assert "only be given once" in capsys.readouterr().err


def test_out_of_memory_exits_with_status_2(tmp_path: Path, monkeypatch, capsys) -> None:
    src = _write_sample_png(tmp_path, "sample.png")
    out_dir = tmp_path / "out"

    def exhausted(*_args, **_kwargs):
        raise MemoryError

    monkeypatch.setattr(cli, "prepare_indexed_raster", exhausted)

    assert cli.main([str(src), "-o", str(out_dir)]) == 2
    assert "out of memory" in capsys.readouterr().err
    assert not out_dir.exists() or not any(out_dir.iterdir())


def test_failing_input_leaves_no_outputs(tmp_path: Path) -> None:
    good = _write_sample_png(tmp_path, "good.png")
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    out_dir = tmp_path / "out"

    rc = cli.main([str(good), str(bad), "-o", str(out_dir), "--width", "2", "--height", "2"])

    assert rc == 1
    assert not out_dir.exists() or not any(out_dir.iterdir())


def test_oversized_input_reports_error(tmp_path: Path, monkeypatch, capsys) -> None:
    src = _write_sample_png(tmp_path, "huge.png")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    assert cli.main([str(src), "-o", str(tmp_path / "out")]) == 1
    assert "too large" in capsys.readouterr().err
