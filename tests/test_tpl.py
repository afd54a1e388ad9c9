import io
import struct
import pytest
from PIL import Image

from common import SerializationError, BufferAllocationError
from texture import TexFmt, calcTextureSize, encodeTexture, imageToTexels
from tpl import *

@pytest.fixture
def image():
    im = Image.new('RGBA', (5, 3), (40, 80, 120, 255))
    im.putpixel((0, 0), (255, 0, 0, 0))
    return im

@pytest.mark.parametrize("format", list(TexFmt))
def test_header_layout(image, format):
    blob = convertImage(image, format)
    assert blob[0:4] == b'\x00\x20\xaf\x30'
    assert blob[4:8] == b'\x00\x00\x00\x01'
    assert struct.unpack_from('>III', blob, 0x08) == (0x0c, 0x14, 0)
    assert struct.unpack_from('>HHII', blob, 0x14) == (3, 5, format.value, 0x40)
    assert struct.unpack_from('>IIIIfBBBB', blob, 0x20) == (0, 0, 1, 1, 0.0, 0, 0, 0, 0)
    assert len(blob) == 56+calcTextureSize(format, 5, 3)

def test_payload_follows_header(image):
    payload = encodeTexture(imageToTexels(image), TexFmt.RGB5A3, 5, 3)
    blob = convertImage(image, TexFmt.RGB5A3)
    assert blob[HEADER_SIZE:] == payload
    assert blob == makeTPL(payload, TexFmt.RGB5A3, 5, 3)

def test_layout_constants():
    assert IMAGE_TABLE_OFFSET == 0x0c
    assert IMAGE_HEADER_OFFSET == 0x14
    assert ImageHeader.header.size == 36
    assert HEADER_SIZE == 56
    assert DATA_OFFSET == 64
    assert len(makeTPLHeader(TexFmt.I4, 8, 8)) == HEADER_SIZE

def test_payload_directly_after_header():
    # the declared data offset stays 64 while the texels start right after the header
    blob = convertImage(Image.new('RGBA', (4, 4), (0, 0, 0, 255)), TexFmt.RGB5A3)
    assert len(blob) == 56+32
    assert blob[56:] == b'\x80\x00'*16
    assert struct.unpack_from('>I', blob, 0x1c) == (64,)

def test_deterministic(image):
    assert convertImage(image, TexFmt.IA4) == convertImage(image, TexFmt.IA4)

def test_read_back(image):
    blob = convertImage(image, TexFmt.I4)
    header, imageHeader, data = readTPL(io.BytesIO(blob))
    assert header.magic == TPL_MAGIC
    assert header.imageCount == 1
    assert imageHeader.format == TexFmt.I4
    assert (imageHeader.width, imageHeader.height) == (5, 3)
    assert imageHeader.wrapS == WrapMode.CLAMP
    assert imageHeader.minFilter == FilterMode.LINEAR
    assert data == blob[HEADER_SIZE:]

def test_header_write_round_trip():
    fin = io.BytesIO(makeTPLHeader(TexFmt.RGB565, 640, 480))
    fin.seek(IMAGE_HEADER_OFFSET)
    imageHeader = ImageHeader(fin)
    assert imageHeader.pack() == makeTPLHeader(TexFmt.RGB565, 640, 480)[IMAGE_HEADER_OFFSET:HEADER_SIZE]
    fin.seek(0)
    header, entry = TPLHeader(fin), ImageTableEntry(fin)
    expected = TPLHeader()
    expected.magic, expected.imageCount, expected.imageTableOffset = TPL_MAGIC, 1, IMAGE_TABLE_OFFSET
    assert header == expected
    assert entry != header
    assert ImageHeader(fin) == imageHeader
    assert (imageHeader.width, imageHeader.height) == (640, 480)

def test_read_bad_magic():
    blob = bytearray(convertImage(Image.new('RGB', (4, 4)), TexFmt.RGB565))
    blob[0] = 0xff
    with pytest.raises(SerializationError):
        readTPL(io.BytesIO(bytes(blob)))

def test_read_truncated():
    blob = convertImage(Image.new('RGB', (4, 4)), TexFmt.RGB565)
    with pytest.raises(SerializationError):
        readTPL(io.BytesIO(blob[:-1]))
    with pytest.raises(SerializationError):
        readTPL(io.BytesIO(blob[:10]))

def test_oversize_warns():
    with pytest.warns(UserWarning):
        header = makeTPLHeader(TexFmt.I4, 2048, 8)
    assert struct.unpack_from('>HH', header, 0x14) == (8, 2048)

def test_dimension_too_wide_for_header():
    with pytest.warns(UserWarning):
        with pytest.raises(SerializationError):
            makeTPLHeader(TexFmt.I4, 0x10000, 8)

def test_empty_image_fails():
    with pytest.raises(BufferAllocationError):
        makeTPL(encodeTexture([], TexFmt.I4, 0, 0), TexFmt.I4, 0, 0)

def test_main_convert_and_info(tmp_path, capsys):
    src = tmp_path / "in.png"
    Image.new('RGBA', (5, 3), (1, 2, 3, 4)).save(src)
    assert main(["tpl", "rgb5a3", str(src)]) == 0
    out = tmp_path / "in.tpl"
    blob = out.read_bytes()
    assert blob[:4] == b'\x00\x20\xaf\x30'
    assert len(blob) == HEADER_SIZE+calcTextureSize(TexFmt.RGB5A3, 5, 3)
    capsys.readouterr()
    assert main(["tpl", str(out)]) == 0
    assert capsys.readouterr().out.split() == ["RGB5A3", "5", "3"]

def test_main_explicit_output(tmp_path):
    src = tmp_path / "in.png"
    Image.new('L', (8, 8), 200).save(src)
    dest = tmp_path / "out.bin"
    assert main(["tpl", "I4", str(src), str(dest)]) == 0
    assert dest.read_bytes()[HEADER_SIZE:] == bytes([0xbb])*32

def test_main_usage(capsys):
    assert main(["tpl", "cmpr", "a.png"]) == 1
    assert "Usage" in capsys.readouterr().err
    assert main(["tpl"]) == 1

def test_main_bad_tpl(tmp_path, capsys):
    bad = tmp_path / "bad.tpl"
    bad.write_bytes(b'\0'*64)
    assert main(["tpl", str(bad)]) == 1
    assert "Not a TPL" in capsys.readouterr().err
