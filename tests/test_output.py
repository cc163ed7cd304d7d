import json
import zipfile

from sitegrab.output import RunResult, build_zip, prepare_output_dir, write_json, zip_directory
from sitegrab.reports import banner, numbered, or_default, section


def test_prepare_output_dir_empties_unless_keep(tmp_path):
    out = tmp_path / "out"
    (out / "nested").mkdir(parents=True)
    (out / "old.txt").write_text("old")
    (out / "nested" / "file.bin").write_bytes(b"x")

    prepare_output_dir(out, keep=True)
    assert (out / "old.txt").exists()

    prepare_output_dir(out)
    assert out.is_dir()
    assert list(out.iterdir()) == []


def test_write_json_keeps_unicode(tmp_path):
    path = write_json(tmp_path / "a" / "data.json", {"name": "Café"})
    assert "Café" in path.read_text(encoding="utf-8")
    assert json.loads(path.read_text(encoding="utf-8")) == {"name": "Café"}


def test_build_zip_entries_and_loose_files(tmp_path):
    (tmp_path / "shot.png").write_bytes(b"png")
    (tmp_path / "data.json").write_text("{}")
    (tmp_path / "old.zip").write_bytes(b"zip")

    zip_path = build_zip(
        tmp_path / "bundle.zip",
        {"report.txt": "hello"},
        extra_dir=tmp_path,
        skip_suffixes=(".json",),
    )

    with zipfile.ZipFile(zip_path) as zf:
        assert sorted(zf.namelist()) == ["report.txt", "shot.png"]
        assert zf.read("report.txt") == b"hello"
        assert zf.getinfo("report.txt").compress_type == zipfile.ZIP_DEFLATED


def test_zip_directory_never_contains_itself(tmp_path):
    (tmp_path / "pages").mkdir()
    (tmp_path / "pages" / "a.html").write_text("<p>")
    (tmp_path / "README.md").write_text("# hi")

    zip_path = zip_directory(tmp_path, tmp_path / "site.zip")

    with zipfile.ZipFile(zip_path) as zf:
        assert sorted(zf.namelist()) == ["README.md", "pages/a.html"]


def test_run_result_records_files(tmp_path):
    result = RunResult(tmp_path)
    path = result.saved(tmp_path / "x.json")
    assert path == tmp_path / "x.json"
    assert result.files == [path]


def test_report_helpers():
    assert "CSS REPORT" in banner("CSS REPORT")
    assert section("SUMMARY").splitlines()[1].strip() == "SUMMARY"
    assert or_default("") == "N/A"
    assert or_default([], "None") == "None"
    assert or_default(0) == "0"
    assert numbered([]) == "None found"
    assert numbered(["a", "b"]) == "1. a\n2. b"
