#!/usr/bin/env python

import sys, os, io
from struct import Struct
from enum import Enum
from warnings import warn
from texture import *
from common import *

TPL_MAGIC = 0x0020AF30
MAX_TEXTURE_SIZE = 1024

class WrapMode(Enum):
    CLAMP  = 0
    REPEAT = 1
    MIRROR = 2

class FilterMode(Enum):
    NEAR          = 0
    LINEAR        = 1
    NEAR_MIP_NEAR = 2
    LIN_MIP_NEAR  = 3
    NEAR_MIP_LIN  = 4
    LIN_MIP_LIN   = 5

class TPLHeader(ReadableStruct):
    header = Struct('>III')
    fields = ["magic", "imageCount", "imageTableOffset"]

class ImageTableEntry(ReadableStruct):
    header = Struct('>II')
    fields = ["imageHeaderOffset", "paletteHeaderOffset"]

class ImageHeader(ReadableStruct):
    header = Struct('>HHIIIIIIfBBBB')
    fields = [
        "height",
        "width",
        ("format", TexFmt),
        "dataOffset",
        ("wrapS", WrapMode),
        ("wrapT", WrapMode),
        ("minFilter", FilterMode),
        ("magFilter", FilterMode),
        "lodBias",
        ("edgeLod", bool),
        "minLod",
        "maxLod",
        "unpacked"
    ]

# Layout of a single-image, palette-less file
IMAGE_TABLE_OFFSET = TPLHeader.header.size
IMAGE_HEADER_OFFSET = IMAGE_TABLE_OFFSET+ImageTableEntry.header.size
HEADER_SIZE = IMAGE_HEADER_OFFSET+ImageHeader.header.size
# Declared in the image header; the payload itself follows the header directly
DATA_OFFSET = 0x40

def makeTPLHeader(format, width, height):
    if width > MAX_TEXTURE_SIZE or height > MAX_TEXTURE_SIZE:
        warn("%dx%d is larger than the %dx%d GX texture limit"%(width, height, MAX_TEXTURE_SIZE, MAX_TEXTURE_SIZE))
    fout = io.BytesIO()

    header = TPLHeader()
    header.magic = TPL_MAGIC
    header.imageCount = 1
    header.imageTableOffset = IMAGE_TABLE_OFFSET
    header.write(fout)

    entry = ImageTableEntry()
    entry.imageHeaderOffset = IMAGE_HEADER_OFFSET
    entry.paletteHeaderOffset = 0
    entry.write(fout)

    image = ImageHeader()
    image.height = height
    image.width = width
    image.format = TexFmt(format)
    image.dataOffset = DATA_OFFSET
    image.wrapS = image.wrapT = WrapMode.CLAMP
    image.minFilter = image.magFilter = FilterMode.LINEAR
    image.lodBias = 0.0
    image.edgeLod = False
    image.minLod = image.maxLod = 0
    image.unpacked = 0
    image.write(fout)
    return fout.getvalue()

def makeTPL(data, format, width, height):
    return makeTPLHeader(format, width, height)+bytes(data)

def convertImage(im, format):
    """Encode an image (PIL or anything with size/getpixel) into a complete TPL file."""
    texels = imageToTexels(im)
    width, height = im.size
    return makeTPL(encodeTexture(texels, format, width, height), format, width, height)

def readTPL(fin):
    """
    Read the first image of a TPL file.

    Returns (TPLHeader, ImageHeader, payload bytes).
    """
    start = fin.tell()
    header = TPLHeader(fin)
    if header.magic != TPL_MAGIC:
        raise SerializationError("Not a TPL file (magic 0x%08X)"%header.magic)
    if header.imageCount < 1:
        raise SerializationError("TPL file has no images")
    entry = ImageTableEntry(fin, start+header.imageTableOffset)
    image = ImageHeader(fin, start+entry.imageHeaderOffset)
    size = calcTextureSize(image.format, image.width, image.height)
    fin.seek(start+entry.imageHeaderOffset+ImageHeader.header.size)
    data = fin.read(size)
    if len(data) != size:
        raise SerializationError("Texture data truncated: expected %d bytes, got %d"%(size, len(data)))
    return header, image, data

def main(argv=None):
    if argv is None: argv = sys.argv
    if len(argv) == 2:
        with open(argv[1], 'rb') as fin:
            try:
                header, image, data = readTPL(fin)
            except TextureError as e:
                sys.stderr.write("%s: %s\n"%(argv[1], e))
                return 1
        print(image.format.name, image.width, image.height)
        return 0

    if len(argv) not in (3, 4) or argv[1].upper() not in TexFmt.__members__:
        sys.stderr.write("Usage: %s <%s> <image> [<tpl>]\n       %s <tpl>\n"%(argv[0], "|".join(TexFmt.__members__), argv[0]))
        return 1

    from PIL import Image
    format = TexFmt[argv[1].upper()]
    if len(argv) == 4: outName = argv[3]
    else: outName = os.path.splitext(argv[2])[0]+".tpl"

    im = Image.open(argv[2])
    try:
        data = convertImage(im, format)
    except TextureError as e:
        sys.stderr.write("%s: %s\n"%(argv[2], e))
        return 1
    finally:
        im.close()

    with open(outName, 'wb') as fout:
        fout.write(data)
    print(format.name, im.size[0], im.size[1])
    return 0

if __name__ == "__main__":
    exit(main())
