"""
SAM Segmentation Service - box-prompted masks from a pretrained SAM model.
"""

import gc
import logging
import math
import threading
from typing import Optional

import numpy as np
import torch
from PIL import Image

from raster.masks import to_binary
from services.base import SegmentationResult

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "facebook/sam-vit-base"

# SAM resizes the longest side to this and predicts masks at a quarter of it
INPUT_SIZE = 1024
LOW_RES_SIZE = 256


def valid_mask_region(width: int, height: int) -> tuple[int, int]:
    """
    Size of the low-res mask area that covers the image (the rest is padding).

    Args:
        width: Original image width
        height: Original image height

    Returns:
        (valid_w, valid_h) in low-res mask pixels
    """
    scale = INPUT_SIZE / max(width, height)
    resized_w = round(width * scale)
    resized_h = round(height * scale)
    valid_w = math.floor(resized_w / INPUT_SIZE * LOW_RES_SIZE)
    valid_h = math.floor(resized_h / INPUT_SIZE * LOW_RES_SIZE)
    return max(1, valid_w), max(1, valid_h)


def low_res_to_result(logits: np.ndarray, width: int, height: int, score: float = 1.0) -> SegmentationResult:
    """
    Crop SAM's low-res logits to the image area and threshold them.

    Args:
        logits: (LOW_RES_SIZE, LOW_RES_SIZE) mask logits
        width: Original image width
        height: Original image height
        score: Predicted IoU for the mask

    Returns:
        SegmentationResult with the scale back to image pixels
    """
    valid_w, valid_h = valid_mask_region(width, height)
    mask = to_binary(logits[:valid_h, :valid_w])
    return SegmentationResult(
        mask=mask,
        scale_x=width / valid_w,
        scale_y=height / valid_h,
        score=score,
    )


class SegmentService:
    """
    SAM-based segmentation service.

    Provides mask generation from bounding boxes.
    """

    def __init__(self, device: str = "cpu", model_id: str = DEFAULT_MODEL_ID):
        """
        Initialize the segmentation service.

        Args:
            device: Device to run model on ('cuda' or 'cpu')
            model_id: Hugging Face model id of the SAM checkpoint
        """
        self.device = device
        self.model_id = model_id
        self.model = None
        self._processor = None
        self._image: Optional[Image.Image] = None
        self._embeddings = None
        self._current_image_id = None
        self._lock = threading.Lock()

    def is_loaded(self) -> bool:
        """Check if model is loaded."""
        return self.model is not None and self._processor is not None

    def load_model(self):
        """Load the SAM model and processor."""
        try:
            from transformers import SamModel, SamProcessor

            logger.info(f"Loading SAM model {self.model_id} on {self.device}...")
            self.model = SamModel.from_pretrained(self.model_id).to(self.device)
            self.model.eval()
            self._processor = SamProcessor.from_pretrained(self.model_id)
            logger.info("SAM model loaded successfully")

        except ImportError as e:
            logger.error(f"Failed to import transformers SAM: {e}")
            raise RuntimeError(
                "SAM not available. Please ensure transformers is installed."
            ) from e
        except Exception as e:
            logger.error(f"Failed to load SAM model: {e}")
            raise

    def unload_model(self):
        """Unload model to free memory."""
        self.model = None
        self._processor = None
        self._image = None
        self._embeddings = None
        self._current_image_id = None

        gc.collect()

        if torch.cuda.is_available():
            torch.cuda.empty_cache()

    def set_image(self, image_rgb: np.ndarray, image_id: Optional[str] = None):
        """
        Set the image for segmentation. Caches the image embedding.

        Args:
            image_rgb: uint8 RGB (or RGBA) image as numpy array (H, W, C)
            image_id: Optional unique identifier for caching
        """
        if not self.is_loaded():
            raise RuntimeError("Model not loaded. Call load_model() first.")

        if image_id and image_id == self._current_image_id:
            logger.debug(f"Image {image_id} already set, reusing cached embedding")
            return

        pil_image = Image.fromarray(image_rgb[..., :3])

        inputs = self._processor(images=pil_image, return_tensors="pt").to(self.device)
        with torch.inference_mode():
            self._embeddings = self.model.get_image_embeddings(inputs["pixel_values"])

        self._image = pil_image
        self._current_image_id = image_id
        logger.debug(f"Set image for segmentation (shape={image_rgb.shape})")

    def segment_with_bbox(self, bbox_xyxy: list[float]) -> SegmentationResult:
        """
        Generate a low-resolution mask for the object inside a box.

        Args:
            bbox_xyxy: Bounding box [x1, y1, x2, y2] in pixel coordinates

        Returns:
            SegmentationResult at SAM's low-res mask resolution
        """
        if not self.is_loaded():
            raise RuntimeError("Model not loaded. Call load_model() first.")

        if self._embeddings is None or self._image is None:
            raise RuntimeError("No image set. Call set_image() first.")

        inputs = self._processor(
            images=self._image,
            input_boxes=[[list(map(float, bbox_xyxy))]],
            return_tensors="pt",
        ).to(self.device)
        inputs.pop("pixel_values", None)

        with torch.inference_mode():
            outputs = self.model(
                **inputs,
                image_embeddings=self._embeddings,
                multimask_output=False,
            )

        # pred_masks: (batch, boxes, masks, 256, 256)
        logits = outputs.pred_masks[0, 0, 0].float().cpu().numpy()
        score = float(outputs.iou_scores[0, 0, 0].item())

        width, height = self._image.size
        result = low_res_to_result(logits, width, height, score)

        logger.debug(
            f"Segmentation complete: score={score:.3f}, "
            f"area={int(result.mask.sum())}, mask={result.mask.shape}"
        )
        return result

    def segment(self, image_rgba: np.ndarray, bbox_xyxy: list[float], image_id: Optional[str] = None) -> SegmentationResult:
        """Load on first use, set the image and run a box prompt."""
        with self._lock:
            if not self.is_loaded():
                self.load_model()
            self.set_image(image_rgba, image_id)
            return self.segment_with_bbox(bbox_xyxy)


# Global singleton (lazy loaded)
_segment_service: Optional[SegmentService] = None


def get_segment_service(device: str = "cpu", model_id: str = DEFAULT_MODEL_ID) -> SegmentService:
    """Get the global SegmentService instance."""
    global _segment_service

    if _segment_service is None:
        _segment_service = SegmentService(device=device, model_id=model_id)

    return _segment_service


def clear_segment_service():
    """Clear the global singleton and free GPU memory."""
    global _segment_service

    if _segment_service is not None:
        _segment_service.unload_model()
        _segment_service = None
