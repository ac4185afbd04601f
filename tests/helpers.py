import io

from PIL import Image


def make_png(color=(128, 128, 128), size=(1080, 1350)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()
