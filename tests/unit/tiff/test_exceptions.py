"""Unit tests for slide detection exceptions."""

from __future__ import annotations

from pathlib import Path

from bifslide.tiff.exceptions import BadDataError, FormatNotSupportedError, SlideError


class TestSlideError:
    """Tests for base SlideError class."""

    def test_error_message_only(self) -> None:
        """Test error with message only."""
        error = SlideError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.path is None

    def test_error_with_path_string(self) -> None:
        """Test error with path as string."""
        error = SlideError("Error occurred", path="/path/to/slide.bif")
        assert "Error occurred" in str(error)
        assert "/path/to/slide.bif" in str(error)
        assert error.path == Path("/path/to/slide.bif")


class TestWithPrefix:
    """Tests for SlideError.with_prefix()."""

    def test_prefix_keeps_concrete_class(self) -> None:
        error = BadDataError("Unsupported TIFF compression: 7").with_prefix(
            "Can't read associated label image: "
        )
        assert isinstance(error, BadDataError)
        assert error.message == (
            "Can't read associated label image: Unsupported TIFF compression: 7"
        )

    def test_prefix_keeps_path(self) -> None:
        error = FormatNotSupportedError("x", path="/a.bif").with_prefix("ctx: ")
        assert error.path == Path("/a.bif")
        assert str(error) == "ctx: x (path: /a.bif)"

    def test_with_path_adds_context(self) -> None:
        error = BadDataError("broken").with_path("/b.bif")
        assert isinstance(error, BadDataError)
        assert error.path == Path("/b.bif")


class TestErrorKinds:
    """The two error kinds must stay distinguishable."""

    def test_both_inherit_from_slide_error(self) -> None:
        assert issubclass(FormatNotSupportedError, SlideError)
        assert issubclass(BadDataError, SlideError)

    def test_kinds_are_disjoint(self) -> None:
        assert not issubclass(FormatNotSupportedError, BadDataError)
        assert not issubclass(BadDataError, FormatNotSupportedError)
