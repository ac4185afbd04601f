import pytest

from ad_overlay.assembly.fonts import FontSet
from tests.helpers import make_png


@pytest.fixture
def png_factory():
    """Build in-memory solid-colour PNGs."""
    return make_png


@pytest.fixture
def gray_png() -> bytes:
    return make_png((128, 128, 128))


@pytest.fixture
def fonts(tmp_path) -> FontSet:
    """A font set that never touches system fonts: always Pillow's default face."""
    return FontSet(fonts_dir=tmp_path, search_system=False)
