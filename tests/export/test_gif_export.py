from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from pictix.core.color import blue, green, red
from pictix.core.errors import IOFailure, InvalidArgument
from pictix.core.picture import make
from pictix.core.tree import filled_rectangle, translate
from pictix.export.gif import PillowGifEncoder, animate_to_file


def _frames():
    return [make(filled_rectangle(c, 20, 20)) for c in (red, green, blue)]


def _close(got, expected, tol: int = 8) -> bool:
    return all(abs(int(g) - int(e)) <= tol for g, e in zip(got, expected))


def test_three_pictures_yield_three_frames_in_order(tmp_path: Path) -> None:
    out = animate_to_file(_frames(), tmp_path / "anim.gif", 10, 10, frame_delay=5)
    with Image.open(out) as img:
        assert img.format == "GIF"
        assert img.n_frames == 3
        assert img.size == (10, 10)
        colours = []
        for i in range(img.n_frames):
            img.seek(i)
            colours.append(img.convert("RGB").getpixel((5, 5)))
    assert _close(colours[0], red.rgb)
    assert _close(colours[1], green.rgb)
    assert _close(colours[2], blue.rgb)


def test_delay_and_loop_are_written(tmp_path: Path) -> None:
    out = animate_to_file(_frames(), tmp_path / "anim.gif", 10, 10, frame_delay=7, repeat_count=0)
    with Image.open(out) as img:
        assert img.info["duration"] == 70
        assert img.info["loop"] == 0


class _RecordingEncoder:
    def __init__(self) -> None:
        self.calls: list[tuple[int, Path, int, int]] = []

    def encode(self, frames, path, *, frame_delay: int, repeat_count: int) -> None:
        self.calls.append((len(frames), path, frame_delay, repeat_count))
        path.write_bytes(b"GIF89a")


def test_custom_encoder_receives_every_frame(tmp_path: Path) -> None:
    enc = _RecordingEncoder()
    out = animate_to_file(
        _frames() * 2, tmp_path / "anim.gif", 4, 4, frame_delay=3, repeat_count=2, encoder=enc
    )
    assert enc.calls == [(6, out, 3, 2)]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"frame_delay": -1},
        {"frame_delay": 1, "repeat_count": -1},
        {"frame_delay": 1, "width": 0},
    ],
)
def test_invalid_arguments_raise(tmp_path: Path, kwargs) -> None:
    args = {"width": 10, "height": 10, **kwargs}
    with pytest.raises(InvalidArgument):
        animate_to_file(_frames(), tmp_path / "anim.gif", **args)


def test_empty_picture_list_raises(tmp_path: Path) -> None:
    with pytest.raises(InvalidArgument):
        animate_to_file([], tmp_path / "anim.gif", 10, 10, frame_delay=1)


def test_encoder_os_errors_become_io_failure(tmp_path: Path) -> None:
    class _Failing:
        def encode(self, frames, path, *, frame_delay, repeat_count):
            path.write_bytes(b"partial")
            raise OSError("disk full")

    target = tmp_path / "anim.gif"
    with pytest.raises(IOFailure):
        animate_to_file(_frames(), target, 10, 10, frame_delay=1, encoder=_Failing())
    assert not target.exists()


def test_pillow_encoder_requires_frames(tmp_path: Path) -> None:
    with pytest.raises(InvalidArgument):
        PillowGifEncoder().encode([], tmp_path / "x.gif", frame_delay=1, repeat_count=0)


def _durations(path: Path) -> list[int]:
    out = []
    with Image.open(path) as img:
        for i in range(img.n_frames):
            img.seek(i)
            out.append(img.info["duration"])
    return out


def test_repeated_picture_keeps_every_frame(tmp_path: Path) -> None:
    pic = make(filled_rectangle(red, 20, 20))
    out = animate_to_file([pic, pic, pic], tmp_path / "still.gif", 20, 20, frame_delay=5)
    with Image.open(out) as img:
        assert img.n_frames == 3
    assert _durations(out) == [50, 50, 50]


def test_pixel_identical_pictures_keep_every_frame(tmp_path: Path) -> None:
    # 内容がキャンバス外にあるため、どのフレームも背景だけになる。
    pictures = [make(translate(100 + i, 100, filled_rectangle(blue, 5, 5))) for i in range(3)]
    out = animate_to_file(pictures, tmp_path / "offcanvas.gif", 20, 20, frame_delay=5)
    with Image.open(out) as img:
        assert img.n_frames == 3
        for i in range(img.n_frames):
            img.seek(i)
            assert _close(img.convert("RGB").getpixel((10, 10)), (255, 255, 255))
    assert _durations(out) == [50, 50, 50]


def test_loop_count_is_written(tmp_path: Path) -> None:
    out = animate_to_file(_frames(), tmp_path / "anim.gif", 10, 10, frame_delay=2, repeat_count=3)
    with Image.open(out) as img:
        assert img.info["loop"] == 3
