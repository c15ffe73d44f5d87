import base64, binascii, hashlib, io, re
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import ErrorKind, Result

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[\w.+-]+=[\w.+-]+)*);base64,(?P<data>.*)$", re.S)


def decode_data_url(data_url: Optional[str]) -> Result:
  """Split a base64 data URL into (bytes, mime)."""
  if not data_url or not data_url.strip():
    return Result.failure(ErrorKind.INVALID_INPUT, "No image provided")
  m = DATA_URL_RE.match(data_url.strip())
  if not m:
    return Result.failure(ErrorKind.INVALID_INPUT, "Image must be a base64 data URL")
  mime = (m.group("mime") or "").lower()
  if not mime.startswith("image/"):
    return Result.failure(ErrorKind.INVALID_INPUT, f"Unsupported content type: {mime or 'none'}")
  try:
    data = base64.b64decode(m.group("data"), validate=False)
  except (binascii.Error, ValueError):
    return Result.failure(ErrorKind.INVALID_INPUT, "Image data is not valid base64")
  return check_image_bytes(data, mime)


def check_image_bytes(data: Optional[bytes], mime: Optional[str]) -> Result:
  if not data:
    return Result.failure(ErrorKind.INVALID_INPUT, "No image provided")
  mime = (mime or "").lower()
  if not mime.startswith("image/"):
    return Result.failure(ErrorKind.INVALID_INPUT, f"Unsupported content type: {mime or 'none'}")
  return Result.success((data, mime))


def load_image(data: bytes) -> Result:
  """Open the bytes with Pillow and describe them for the response meta."""
  try:
    image = Image.open(io.BytesIO(data))
    image.verify()
    # verify() leaves the image unusable; reopen for the size
    width, height = Image.open(io.BytesIO(data)).size
  except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
    return Result.failure(ErrorKind.INVALID_INPUT, "Payload is not a readable image")
  return Result.success({
    "bytesHash": bytes_hash(data),
    "resolution": f"{width}x{height}",
    "orientation": "landscape" if width >= height else "portrait",
  })


def bytes_hash(data: bytes):
  return hashlib.sha256(data).hexdigest()


def to_data_url(data: bytes, mime: str) -> str:
  b64 = base64.b64encode(data).decode("utf-8")
  return f"data:{mime};base64,{b64}"


def image_part(data: bytes, mime: str) -> dict:
  return {"type": "image_url", "image_url": {"url": to_data_url(data, mime)}}

