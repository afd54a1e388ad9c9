# Common functions for converting images into block-based GameCube TEV/Flipper/GX texture data.

from array import array
from enum import Enum
from common import InvalidImage, BufferAllocationError, swapArray

class TexFmt(Enum):
    I4 = 0x0
    IA4 = 0x2
    RGB565 = 0x4
    RGB5A3 = 0x5

formatBitsPerPixel = {
TexFmt.I4:      4,
TexFmt.IA4:     8,
TexFmt.RGB565: 16,
TexFmt.RGB5A3: 16
}

formatBlockWidth = {
TexFmt.I4:     8,
TexFmt.IA4:    8,
TexFmt.RGB565: 4,
TexFmt.RGB5A3: 4
}

formatBlockHeight = {
TexFmt.I4:     8,
TexFmt.IA4:    4,
TexFmt.RGB565: 4,
TexFmt.RGB5A3: 4
}

formatArrayTypes = {
TexFmt.I4:     'B',
TexFmt.IA4:    'B',
TexFmt.RGB565: 'H',
TexFmt.RGB5A3: 'H'
}

## Texels

def packTexel(r, g, b, a):
    return ((a & 0xff) << 24) | ((r & 0xff) << 16) | ((g & 0xff) << 8) | (b & 0xff)

def widenPixel(c):
    # L, LA, RGB or RGBA pixel -> (r, g, b, a)
    if isinstance(c, int): c = (c,)
    if len(c) == 1:
        return c[0], c[0], c[0], 0xff
    elif len(c) == 2:
        return c[0], c[0], c[0], c[1]
    elif len(c) == 3:
        return c[0], c[1], c[2], 0xff
    else:
        return c[0], c[1], c[2], c[3]

def imageToTexels(im):
    """
    Flatten a pixel-addressable image into row-major ARGB texels.

    `im` needs a `size` of (width, height) and a `getpixel((x, y))`; PIL images
    in 8-bit modes other than RGBA are converted to RGBA first. Channels, including
    the values of wide integer modes, are masked to their low 8 bits, not scaled.
    """
    width, height = im.size
    if width <= 0 or height <= 0:
        raise InvalidImage("Image has no texels (%dx%d)"%(width, height))
    mode = getattr(im, 'mode', 'RGBA')
    # wide single-channel modes (I, I;16...) are masked below, not converted
    if mode != 'RGBA' and not mode.startswith('I'):
        im = im.convert('RGBA')
    texels = array('I', [0])*(width*height)
    idx = 0
    for y in range(height):
        for x in range(width):
            texels[idx] = packTexel(*widenPixel(im.getpixel((x, y))))
            idx += 1
    return texels

def texelIntensity(c):
    return (((c >> 16) & 0xff) + ((c >> 8) & 0xff) + (c & 0xff))//3

## Blocks

def pad(value, blockSize):
    if value%blockSize == 0: return value
    else: return value+blockSize-(value%blockSize)

def calcTextureSize(format, width, height):
    if width <= 0 or height <= 0:
        raise BufferAllocationError("Can't allocate a %dx%d texture"%(width, height))
    fullWidth = pad(width, formatBlockWidth[format])
    fullHeight = pad(height, formatBlockHeight[format])
    return fullWidth*fullHeight*formatBitsPerPixel[format]//8

# Encode a block (format-dependent size) of texels into data, starting at dataidx.
# Texels past the image edge are left as zero.
def encodeBlock(format, texels, width, height, xoff, yoff, data, dataidx):
    if format == TexFmt.I4:
        count = width*height
        for y in range(yoff, yoff+8):
            for x in range(xoff, xoff+8, 2):
                if x < width and y < height:
                    idx = x+y*width
                    i1 = texelIntensity(texels[idx])
                    # an odd-width row borrows the next row's first texel
                    if idx+1 >= count: i2 = 0
                    else: i2 = texelIntensity(texels[idx+1])
                    data[dataidx] = (((i1*15)//255) << 4) | (((i2*15)//255) & 0xf)
                dataidx += 1

    elif format == TexFmt.IA4:
        for y in range(yoff, yoff+4):
            for x in range(xoff, xoff+8):
                if x < width and y < height:
                    c = texels[x+y*width]
                    i = texelIntensity(c)
                    a = (c >> 24) & 0xff
                    data[dataidx] = (((i*15)//255) & 0xf) | (((a*15)//255) << 4)
                dataidx += 1

    elif format == TexFmt.RGB565:
        for y in range(yoff, yoff+4):
            for x in range(xoff, xoff+4):
                if x < width and y < height:
                    c = texels[x+y*width]
                    r = (c >> 16) & 0xff
                    g = (c >> 8) & 0xff
                    b = c & 0xff
                    data[dataidx] = (r >> 3) | ((g >> 2) << 5) | ((b >> 3) << 11)
                dataidx += 1

    elif format == TexFmt.RGB5A3:
        for y in range(yoff, yoff+4):
            for x in range(xoff, xoff+4):
                if x < width and y < height:
                    c = texels[x+y*width]
                    a = (c >> 24) & 0xff
                    r = (c >> 16) & 0xff
                    g = (c >> 8) & 0xff
                    b = c & 0xff
                    if a <= 0xda:
                        data[dataidx] = (((a*7)//255) << 12) | (((r*15)//255) << 8) | (((g*15)//255) << 4) | ((b*15)//255)
                    else:
                        # opaque; alpha is dropped
                        data[dataidx] = 0x8000 | (((r*31)//255) << 10) | (((g*31)//255) << 5) | ((b*31)//255)
                dataidx += 1

    else:
        raise ValueError("Unsupported format %r"%format)
    return dataidx

def encodeTexture(texels, format, width, height):
    """
    Encode row-major ARGB texels (see packTexel) into GX block order.

    Returns big-endian bytes of exactly calcTextureSize(format, width, height).
    """
    format = TexFmt(format)
    size = calcTextureSize(format, width, height)
    typecode = formatArrayTypes[format]
    try:
        data = array(typecode, [0])*(size//array(typecode).itemsize)
    except (MemoryError, OverflowError) as e:
        raise BufferAllocationError("Can't allocate %d bytes for a %dx%d texture"%(size, width, height)) from e
    if len(texels) < width*height:
        raise InvalidImage("Expected %d texels for %dx%d, got %d"%(width*height, width, height, len(texels)))
    dataidx = 0
    for y in range(0, height, formatBlockHeight[format]):
        for x in range(0, width, formatBlockWidth[format]):
            dataidx = encodeBlock(format, texels, width, height, x, y, data, dataidx)
    return swapArray(data).tobytes()
