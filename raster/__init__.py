"""
Raster module - Mask tracing, polygon simplification, clipping and alpha keying
"""

from raster.masks import to_binary, trace_contour
from raster.polygons import simplify_polygon, box_to_polygon, mask_to_polygon
from raster.compositor import key_out_color
from raster.codec import decode_image, encode_png, b64decode_image, b64encode_image
from raster.extract import crop_rect, clip_to_polygon, place_on_canvas

__all__ = [
    "to_binary", "trace_contour",
    "simplify_polygon", "box_to_polygon", "mask_to_polygon",
    "key_out_color",
    "decode_image", "encode_png", "b64decode_image", "b64encode_image",
    "crop_rect", "clip_to_polygon", "place_on_canvas",
]
