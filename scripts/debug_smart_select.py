#!/usr/bin/env python3
"""
Debug script to trace exactly what happens in smart select.

Runs SAM on one box, then shows the low-res mask, the traced contour and the
simplified outline at a few tolerances.

Usage:
    python scripts/debug_smart_select.py <image> <x1> <y1> <x2> <y2> [output.png]

Example:
    python scripts/debug_smart_select.py ./samples/mug.png 120 80 340 410
"""

import sys
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as patches
from PIL import Image
import torch

# Add project root to path
sys.path.insert(0, ".")

from raster.masks import trace_contour
from raster.polygons import mask_to_polygon, scale_points
from services.segment import SegmentService

TOLERANCES = [1.0, 3.0, 8.0]


def debug_smart_select(
    image_path: str,
    bbox_xyxy: list[float],
    output_path: str = "debug_smart_select.png",
):
    """
    Debug smart select step by step, matching services.smart_select.
    """
    print("=" * 60)
    print("DEBUG SMART SELECT")
    print("=" * 60)

    print("\n1. Loading image...")
    image = np.array(Image.open(image_path).convert("RGBA"))
    img_h, img_w = image.shape[:2]
    print(f"   Image: {image.shape}")
    print(f"   BBox: {bbox_xyxy}")

    print("\n2. Loading SAM model...")
    device = "cuda" if torch.cuda.is_available() else "cpu"
    segment_service = SegmentService(device=device)
    segment_service.load_model()

    print("\n3. Segmenting...")
    result = segment_service.segment(image, bbox_xyxy, image_id=image_path)
    print(f"   Mask: {result.mask.shape}, area={int(result.mask.sum())}, score={result.score:.4f}")
    print(f"   Scale back to image: x={result.scale_x:.3f}, y={result.scale_y:.3f}")

    print("\n4. Tracing contour...")
    contour = trace_contour(result.mask)
    print(f"   Contour points: {len(contour)}")
    if not contour:
        print("   Empty mask - smart select would fall back to the box")

    print("\n5. Simplifying...")
    outlines = {}
    for tolerance in TOLERANCES:
        polygon = mask_to_polygon(result.mask, result.scale_x, result.scale_y, tolerance)
        outlines[tolerance] = polygon
        count = len(polygon) if polygon else 0
        print(f"   tolerance={tolerance:.1f}px -> {count} points")

    print(f"\n6. Creating visualization: {output_path}")
    create_visualization(
        image,
        bbox_xyxy,
        result.mask,
        scale_points(contour, result.scale_x, result.scale_y),
        outlines,
        output_path,
    )

    return outlines


def create_visualization(
    image: np.ndarray,
    bbox_xyxy: list[float],
    mask: np.ndarray,
    contour: list[tuple[float, float]],
    outlines: dict,
    output_path: str,
):
    """Mask, raw contour and one panel per tolerance."""
    n_cols = 2 + len(outlines)
    fig, axes = plt.subplots(1, n_cols, figsize=(5 * n_cols, 5))

    axes[0].imshow(mask, cmap="gray")
    axes[0].set_title(f"Low-res mask\n{mask.shape[1]}x{mask.shape[0]}", fontsize=10)
    axes[0].axis("off")

    axes[1].imshow(image)
    x1, y1, x2, y2 = bbox_xyxy
    rect = patches.Rectangle(
        (x1, y1), x2 - x1, y2 - y1, linewidth=2, edgecolor="lime", facecolor="none"
    )
    axes[1].add_patch(rect)
    if contour:
        xs, ys = zip(*contour)
        axes[1].plot(xs, ys, "-", color="cyan", linewidth=1)
    axes[1].set_title(f"Traced contour\n{len(contour)} points", fontsize=10)
    axes[1].axis("off")

    for col, (tolerance, polygon) in enumerate(outlines.items(), start=2):
        axes[col].imshow(image)
        if polygon:
            closed = polygon + polygon[:1]
            xs, ys = zip(*closed)
            axes[col].plot(xs, ys, "-o", color="magenta", markersize=3, linewidth=1.5)
        count = len(polygon) if polygon else 0
        axes[col].set_title(f"tolerance={tolerance:.1f}px\n{count} points", fontsize=10)
        axes[col].axis("off")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"Saved visualization to: {output_path}")


def main():
    if len(sys.argv) < 6:
        print(__doc__)
        print("\nError: Not enough arguments")
        sys.exit(1)

    image_path = sys.argv[1]
    x1, y1, x2, y2 = map(float, sys.argv[2:6])

    output_path = sys.argv[6] if len(sys.argv) > 6 else "debug_smart_select.png"

    debug_smart_select(image_path, [x1, y1, x2, y2], output_path)


if __name__ == "__main__":
    main()
