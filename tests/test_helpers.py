import pytest
from hypothesis import given, strategies as st

from texelkit.helpers import (
    clamp_byte,
    convert_rgb_to_ycocg,
    convert_ycocg_to_rgb,
    find_max_rgbe,
    mipmap_image,
    rgbe_to_rgb_div_a,
    rgbe_to_rgb_div_a2,
    scale_image_rgb_to_ntsc_safe,
    up_scale_image,
)


@given(st.integers(min_value=-1000, max_value=1000))
def test_clamp_byte_range(x):
    result = clamp_byte(x)
    assert 0 <= result <= 255
    if 0 <= x <= 255:
        assert result == x


def test_clamp_byte_limits():
    assert clamp_byte(-5) == 0
    assert clamp_byte(300) == 255


def test_up_scale_same_size_is_identity():
    data = bytes([10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 110, 120])
    assert up_scale_image(data, 2, 2, 3, 2, 2) == data


def test_up_scale_keeps_corners():
    data = bytes([0, 100, 200, 250])
    out = up_scale_image(data, 2, 2, 1, 5, 5)
    assert len(out) == 25
    assert out[0] == 0
    assert out[4] == 100
    assert out[20] == 200
    assert out[24] == 250


@given(st.integers(0, 255), st.integers(2, 6), st.integers(2, 6))
def test_up_scale_constant_image_stays_constant(value, rw, rh):
    data = bytes([value] * (3 * 2 * 2))
    out = up_scale_image(data, 3, 2, 2, rw, rh)
    assert out == bytes([value] * (rw * rh * 2))


def test_up_scale_single_pixel():
    out = up_scale_image(bytes([7, 9]), 1, 1, 2, 3, 3)
    assert out == bytes([7, 9] * 9)


def test_up_scale_rejects_small_target():
    with pytest.raises(ValueError):
        up_scale_image(bytes(4), 2, 2, 1, 1, 4)


def test_up_scale_rejects_short_buffer():
    with pytest.raises(ValueError):
        up_scale_image(bytes(3), 2, 2, 1, 4, 4)


def test_mipmap_averages_block():
    out = mipmap_image(bytes([10, 20, 30, 40]), 2, 2, 1, 2, 2)
    assert out == bytes([25])


@given(st.integers(0, 255))
def test_mipmap_constant_image(value):
    out = mipmap_image(bytes([value] * (4 * 4 * 3)), 4, 4, 3, 2, 2)
    assert out == bytes([value] * (2 * 2 * 3))


def test_mipmap_rejects_zero_block():
    with pytest.raises(ValueError):
        mipmap_image(bytes(4), 2, 2, 1, 0, 2)


def test_ntsc_safe_range_and_alpha():
    data = bytes(range(256)) * 4
    out = scale_image_rgb_to_ntsc_safe(data, 16, 16, 4)
    assert len(out) == len(data)
    for i in range(0, len(out), 4):
        assert all(15 <= v <= 235 for v in out[i : i + 3])
        assert out[i + 3] == data[i + 3]


def test_ntsc_safe_is_monotonic():
    out = scale_image_rgb_to_ntsc_safe(bytes(range(256)), 256, 1, 1)
    assert list(out) == sorted(out)
    assert out[255] == 235


def test_ntsc_rejects_bad_size():
    with pytest.raises(ValueError):
        scale_image_rgb_to_ntsc_safe(b"", 0, 1, 3)


@given(st.integers(0, 127), st.integers(0, 255))
def test_ycocg_grey_round_trip(half, alpha):
    v = half * 2
    rgba = bytes([v, v, v, alpha])
    encoded = convert_rgb_to_ycocg(rgba, 1, 1, 4)
    assert encoded == bytes([128, 128, alpha, v])
    assert convert_ycocg_to_rgb(encoded, 1, 1, 4) == rgba


@given(st.lists(st.integers(0, 127), min_size=1, max_size=8))
def test_ycocg_grey_round_trip_rgb(halves):
    data = bytes(v * 2 for h in halves for v in (h, h, h))
    encoded = convert_rgb_to_ycocg(data, len(halves), 1, 3)
    assert convert_ycocg_to_rgb(encoded, len(halves), 1, 3) == data


@pytest.mark.parametrize("channels", [1, 2, 5])
def test_ycocg_rejects_channels(channels):
    with pytest.raises(ValueError):
        convert_rgb_to_ycocg(bytes(channels), 1, 1, channels)
    with pytest.raises(ValueError):
        convert_ycocg_to_rgb(bytes(channels), 1, 1, channels)


def test_find_max_rgbe():
    image = bytes([255, 0, 0, 128, 10, 20, 30, 128])
    assert find_max_rgbe(image, 2, 1) == pytest.approx(1.0)


def test_div_a_black_pixel():
    assert rgbe_to_rgb_div_a(bytes(4), 1, 1, False) == bytes([0, 0, 0, 1])


@pytest.mark.parametrize("convert", [rgbe_to_rgb_div_a, rgbe_to_rgb_div_a2])
def test_rescale_puts_peak_at_full(convert):
    image = bytes([200, 10, 5, 130, 3, 90, 4, 127])
    out = convert(image, 2, 1, True)
    assert len(out) == 8
    assert out[0] == 255
    assert out[3] == 1


@pytest.mark.parametrize("convert", [rgbe_to_rgb_div_a, rgbe_to_rgb_div_a2])
@given(data=st.binary(min_size=16, max_size=16))
def test_alpha_never_zero(convert, data):
    out = convert(data, 2, 2, False)
    assert len(out) == 16
    assert all(out[i] >= 1 for i in range(3, 16, 4))


@pytest.mark.parametrize("convert", [rgbe_to_rgb_div_a, rgbe_to_rgb_div_a2])
def test_rgbe_errors(convert):
    with pytest.raises(ValueError):
        convert(bytes(4), 0, 1, False)
    with pytest.raises(ValueError):
        convert(bytes(3), 1, 1, False)
    with pytest.raises(ValueError):
        convert(bytes(8), 2, 1, True)