"""Unit tests for ImageTransformer and the codec helpers."""

import pytest
from PIL import Image

from image_derivatives.codecs import decode_image, encode_image, sniff_format
from image_derivatives.errors import DecodeError, EncodeError, UnsupportedFormatError, ValidationError
from image_derivatives.formats import ImageFormat
from image_derivatives.schemas import TransformParams
from image_derivatives.transformer import ImageTransformer, SamplingFilter, fit_within


@pytest.fixture
def transformer():
    """Create a transformer with the default JPEG quality."""
    return ImageTransformer()


@pytest.fixture
def canonical_200x100(image_factory):
    """A 200x100 canonical (lossless WebP) image."""
    return image_factory(width=200, height=100, fmt="WEBP", seed=3)


class TestSamplingFilter:
    """Test resampling filter name resolution."""

    @pytest.mark.parametrize("name,expected", [
        ("triangle", SamplingFilter.TRIANGLE),
        ("catmullrom", SamplingFilter.CATMULLROM),
        ("gaussian", SamplingFilter.GAUSSIAN),
        ("lanczos3", SamplingFilter.LANCZOS3),
        ("nearest", SamplingFilter.NEAREST),
    ])
    def test_known_names(self, name, expected):
        """Test that each named kernel resolves."""
        assert SamplingFilter.from_name(name) is expected

    @pytest.mark.parametrize("name", [None, "", "bogus", "Lanczos3", "bicubic"])
    def test_unknown_names_fall_back_to_nearest(self, name):
        """Test that unknown or missing names mean nearest-neighbor."""
        assert SamplingFilter.from_name(name) is SamplingFilter.NEAREST

    def test_pillow_kernels(self):
        """Test the Pillow resampling kernel behind each filter."""
        assert SamplingFilter.NEAREST.resample == Image.Resampling.NEAREST
        assert SamplingFilter.TRIANGLE.resample == Image.Resampling.BILINEAR
        assert SamplingFilter.CATMULLROM.resample == Image.Resampling.BICUBIC
        assert SamplingFilter.GAUSSIAN.resample == Image.Resampling.HAMMING
        assert SamplingFilter.LANCZOS3.resample == Image.Resampling.LANCZOS


class TestFitWithin:
    """Test aspect-preserving dimension calculation."""

    @pytest.mark.parametrize("size,box,expected", [
        ((200, 100), (100, 100), (100, 50)),
        ((200, 100), (100, 100000), (100, 50)),
        ((100, 200), (50, 50), (25, 50)),
        ((200, 100), (400, 100), (200, 100)),
        ((200, 100), (400, 400), (400, 200)),
        ((1000, 1), (10, 10), (10, 1)),
        ((3, 3), (2, 2), (2, 2)),
    ])
    def test_fit_within(self, size, box, expected):
        """Test the single-ratio fit, including upscaling and 1px minimum."""
        assert fit_within(size, box) == expected


class TestImageTransformer:
    """Test ImageTransformer.transform."""

    def test_identity_reencodes_without_resizing(self, transformer, canonical_200x100, image_reader):
        """Test that no dimensions means the source size is kept."""
        output = transformer.transform(canonical_200x100, TransformParams(), ImageFormat.PNG)

        image = image_reader(output)
        assert image.format == "PNG"
        assert image.size == (200, 100)

    def test_identity_preserves_pixels(self, transformer, canonical_200x100, image_reader):
        """Test that a lossless round trip keeps every pixel."""
        output = transformer.transform(canonical_200x100, TransformParams(), ImageFormat.WEBP)

        source = image_reader(canonical_200x100)
        result = image_reader(output)
        assert result.size == source.size
        assert list(result.convert("RGB").getdata()) == list(source.convert("RGB").getdata())

    def test_explicit_source_dimensions_is_identity(self, transformer, canonical_200x100, image_reader):
        """Test that requesting the source size skips resizing."""
        params = TransformParams(w=200, h=100, sampling="lanczos3")
        output = transformer.transform(canonical_200x100, params, ImageFormat.PNG)
        baseline = transformer.transform(canonical_200x100, TransformParams(), ImageFormat.PNG)

        assert output == baseline

    def test_width_only_preserves_aspect_ratio(self, transformer, canonical_200x100, image_reader):
        """Test that w=100 on a 200x100 image gives 100x50."""
        output = transformer.transform(canonical_200x100, TransformParams(w=100), ImageFormat.PNG)

        width, height = image_reader(output).size
        assert width <= 100
        assert height / width == pytest.approx(100 / 200, abs=0.02)
        assert (width, height) == (100, 50)

    def test_height_only_preserves_aspect_ratio(self, transformer, canonical_200x100, image_reader):
        """Test that h=50 on a 200x100 image gives 100x50."""
        output = transformer.transform(canonical_200x100, TransformParams(h=50), ImageFormat.PNG)

        assert image_reader(output).size == (100, 50)

    def test_box_fit(self, transformer, canonical_200x100, image_reader):
        """Test that w and h form a bounding box without stretch."""
        params = TransformParams(w=100, h=100)
        output = transformer.transform(canonical_200x100, params, ImageFormat.PNG)

        assert image_reader(output).size == (100, 50)

    def test_stretch_resizes_exactly(self, transformer, canonical_200x100, image_reader):
        """Test that stretch ignores the aspect ratio."""
        params = TransformParams(w=100, h=100, stretch=True)
        output = transformer.transform(canonical_200x100, params, ImageFormat.PNG)

        assert image_reader(output).size == (100, 100)

    def test_stretch_width_only_keeps_source_height(self, transformer, canonical_200x100, image_reader):
        """Test that stretch with only w keeps the source height."""
        params = TransformParams(w=50, stretch=True)
        output = transformer.transform(canonical_200x100, params, ImageFormat.PNG)

        assert image_reader(output).size == (50, 100)

    def test_unknown_sampling_matches_nearest(self, transformer, canonical_200x100):
        """Test that a bogus sampling name produces the same bytes as none."""
        bogus = transformer.transform(
            canonical_200x100, TransformParams(w=50, sampling="bogus"), ImageFormat.PNG
        )
        omitted = transformer.transform(canonical_200x100, TransformParams(w=50), ImageFormat.PNG)

        assert bogus == omitted

    @pytest.mark.parametrize("sampling", ["triangle", "catmullrom", "gaussian", "lanczos3"])
    def test_every_named_filter_resizes(self, transformer, canonical_200x100, image_reader, sampling):
        """Test that each named filter produces the requested size."""
        params = TransformParams(w=64, h=64, stretch=True, sampling=sampling)
        output = transformer.transform(canonical_200x100, params, ImageFormat.PNG)

        assert image_reader(output).size == (64, 64)

    def test_is_deterministic(self, transformer, canonical_200x100):
        """Test that identical inputs give identical bytes."""
        params = TransformParams(w=37, sampling="lanczos3")

        first = transformer.transform(canonical_200x100, params, ImageFormat.JPEG)
        second = transformer.transform(canonical_200x100, params, ImageFormat.JPEG)

        assert first == second

    @pytest.mark.parametrize("output_format,pil_format", [
        (ImageFormat.PNG, "PNG"),
        (ImageFormat.JPEG, "JPEG"),
        (ImageFormat.WEBP, "WEBP"),
    ])
    def test_output_formats(self, transformer, canonical_200x100, image_reader, output_format, pil_format):
        """Test encoding to each supported format."""
        output = transformer.transform(canonical_200x100, TransformParams(w=20), output_format)

        assert image_reader(output).format == pil_format

    def test_jpeg_flattens_alpha(self, transformer, image_factory, image_reader):
        """Test that transparent canonical images can still be served as JPEG."""
        canonical = image_factory(width=20, height=20, fmt="WEBP", mode="RGBA")

        output = transformer.transform(canonical, TransformParams(), ImageFormat.JPEG)

        image = image_reader(output)
        assert image.format == "JPEG"
        assert image.mode == "RGB"

    def test_png_keeps_alpha(self, transformer, image_factory, image_reader):
        """Test that PNG output keeps the alpha channel."""
        canonical = image_factory(width=20, height=20, fmt="WEBP", mode="RGBA")

        output = transformer.transform(canonical, TransformParams(), ImageFormat.PNG)

        assert image_reader(output).mode == "RGBA"

    def test_unsupported_output_format(self, transformer, canonical_200x100):
        """Test that a format outside the closed set is rejected."""
        with pytest.raises(UnsupportedFormatError):
            transformer.transform(canonical_200x100, TransformParams(), "gif")

    def test_invalid_source_raises_decode_error(self, transformer):
        """Test that garbage bytes are a DecodeError."""
        with pytest.raises(DecodeError):
            transformer.transform(b"definitely not an image", TransformParams(), ImageFormat.PNG)

    def test_non_canonical_source_raises_decode_error(self, transformer, image_factory):
        """Test that only the canonical WebP encoding is decoded."""
        png = image_factory(fmt="PNG")

        with pytest.raises(DecodeError):
            transformer.transform(png, TransformParams(), ImageFormat.PNG)

    def test_oversized_target_rejected(self, transformer, canonical_200x100):
        """Test that a target above the Pillow pixel limit is a ValidationError."""
        params = TransformParams(w=100000, h=100000, stretch=True)

        with pytest.raises(ValidationError, match="exceeds the limit"):
            transformer.transform(canonical_200x100, params, ImageFormat.PNG)

    def test_oversized_fit_rejected(self, transformer, canonical_200x100):
        """Test that an upscaling fit is bounded too."""
        params = TransformParams(w=100000, h=100000)

        with pytest.raises(ValidationError):
            transformer.transform(canonical_200x100, params, ImageFormat.PNG)

    def test_unencodable_target_raises_encode_error(self, transformer, canonical_200x100):
        """Test that a size WebP cannot hold is an EncodeError."""
        params = TransformParams(w=20000, h=1, stretch=True)

        with pytest.raises(EncodeError):
            transformer.transform(canonical_200x100, params, ImageFormat.WEBP)

    def test_jpeg_quality_is_configurable(self, canonical_200x100):
        """Test that lower JPEG quality gives smaller output."""
        best = ImageTransformer(jpeg_quality=100).transform(
            canonical_200x100, TransformParams(), ImageFormat.JPEG
        )
        low = ImageTransformer(jpeg_quality=10).transform(
            canonical_200x100, TransformParams(), ImageFormat.JPEG
        )

        assert len(low) < len(best)


class TestCodecs:
    """Test sniffing, decoding and encoding helpers."""

    @pytest.mark.parametrize("fmt,expected", [
        ("PNG", ImageFormat.PNG),
        ("JPEG", ImageFormat.JPEG),
        ("WEBP", ImageFormat.WEBP),
    ])
    def test_sniff_supported(self, image_factory, fmt, expected):
        """Test that supported formats are recognised from their header."""
        assert sniff_format(image_factory(fmt=fmt)) is expected

    @pytest.mark.parametrize("fmt", ["GIF", "BMP", "TIFF"])
    def test_sniff_unsupported(self, image_factory, fmt):
        """Test that other image formats are not recognised."""
        assert sniff_format(image_factory(fmt=fmt)) is None

    def test_sniff_garbage(self):
        """Test that non-image bytes are not recognised."""
        assert sniff_format(b"hello world") is None

    def test_decode_truncated_image(self, image_factory):
        """Test that a truncated PNG fails to decode."""
        png = image_factory(width=64, height=64, fmt="PNG")

        with pytest.raises(DecodeError):
            decode_image(png[: len(png) // 2], formats=("PNG",))

    def test_decode_bomb(self, image_factory, monkeypatch):
        """Test that decompression bombs surface as DecodeError."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        png = image_factory(width=100, height=100, fmt="PNG")

        with pytest.raises(DecodeError, match="too large"):
            decode_image(png)

    def test_encode_webp_is_lossless(self, image_factory, image_reader):
        """Test that WebP output preserves pixels exactly."""
        source = image_reader(image_factory(width=30, height=30, fmt="PNG", seed=7))

        encoded = encode_image(source, ImageFormat.WEBP)

        assert list(image_reader(encoded).convert("RGB").getdata()) == list(source.convert("RGB").getdata())

    def test_encode_failure_raises_encode_error(self, image_reader, image_factory):
        """Test that Pillow encoder failures surface as EncodeError."""
        wide = image_reader(image_factory(width=20000, height=1))

        with pytest.raises(EncodeError, match="could not be encoded as webp"):
            encode_image(wide, ImageFormat.WEBP)
