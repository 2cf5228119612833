import os

from session.file_allocator import allocate_output_path


def test_first_candidate_when_directory_empty(tmp_path):
    assert allocate_output_path(str(tmp_path), "output", "mp4") == os.path.join(str(tmp_path), "output.mp4")


def test_skips_existing_names(tmp_path):
    (tmp_path / "output.mp4").write_bytes(b"")
    (tmp_path / "output1.mp4").write_bytes(b"")
    assert allocate_output_path(str(tmp_path), "output", "mp4") == os.path.join(str(tmp_path), "output2.mp4")


def test_gap_in_sequence_is_reused(tmp_path):
    (tmp_path / "output.mp4").write_bytes(b"")
    (tmp_path / "output2.mp4").write_bytes(b"")
    assert allocate_output_path(str(tmp_path), "output", "mp4") == os.path.join(str(tmp_path), "output1.mp4")


def test_other_extensions_do_not_collide(tmp_path):
    (tmp_path / "output.mkv").write_bytes(b"")
    assert allocate_output_path(str(tmp_path), "output", "mp4").endswith("output.mp4")


def test_custom_existence_check():
    taken = {os.path.join("/videos", name) for name in ("clip.ts", "clip1.ts", "clip2.ts")}
    checked = []

    def exists(path):
        checked.append(path)
        return path in taken

    assert allocate_output_path("/videos", "clip", "ts", exists) == os.path.join("/videos", "clip3.ts")
    assert len(checked) == 4
