"""
PDF Dictionary Keys and Name Constants
"""

# Page Keys
KEY_CONTENTS = "/Contents"
KEY_MEDIA_BOX = "/MediaBox"

# Resource Dictionary Keys
KEY_RESOURCES = "/Resources"
KEY_XOBJECT = "/XObject"
KEY_FONT = "/Font"

# Object Types and Subtypes
KEY_TYPE = "/Type"
KEY_SUBTYPE = "/Subtype"
VAL_PAGE = "/Page"
VAL_FONT = "/Font"
VAL_TYPE1 = "/Type1"
VAL_XOBJECT = "/XObject"
VAL_IMAGE = "/Image"

# Font Properties
KEY_BASE_FONT = "/BaseFont"
KEY_ENCODING = "/Encoding"
VAL_WIN_ANSI_ENCODING = "/WinAnsiEncoding"

# Image Properties
KEY_WIDTH = "/Width"
KEY_HEIGHT = "/Height"
KEY_COLOR_SPACE = "/ColorSpace"
KEY_BITS_PER_COMPONENT = "/BitsPerComponent"
KEY_FILTER = "/Filter"
VAL_DEVICE_RGB = "/DeviceRGB"
VAL_DEVICE_GRAY = "/DeviceGray"
VAL_DCT_DECODE = "/DCTDecode"

# Resource name prefixes
FONT_NAME_PREFIX = "F"
IMAGE_NAME_PREFIX = "Im"
