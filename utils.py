import io

import numpy as np
import torch
import torch.nn.functional as F
from PIL import Image

from config import IMAGE_SIZE, MAX_IMAGE_PIXELS


class ImageTooLarge(ValueError):
    pass


def open_image(image_bytes, max_pixels=MAX_IMAGE_PIXELS):
    try:
        image = Image.open(io.BytesIO(image_bytes))
    except Image.DecompressionBombError as e:
        raise ImageTooLarge(str(e)) from e

    # Image.open only reads the header, check before any pixels are decoded
    width, height = image.size
    if width * height > max_pixels:
        raise ImageTooLarge(f"{width}x{height} image exceeds {max_pixels} pixels")

    return image.convert("RGB")


def preprocess_image(image_bytes, image_size=IMAGE_SIZE):
    image = open_image(image_bytes)
    pixels = torch.from_numpy(np.array(image, dtype=np.float32)).permute(2, 0, 1)

    # plain stretch to the model's input size, aspect ratio is not kept
    pixels = F.interpolate(pixels.unsqueeze(0), size=image_size, mode="bilinear", align_corners=False)
    pixels = pixels.squeeze(0) / 255.0

    return pixels.unsqueeze(0)


def predict_image_score(model, image_bytes):
    image = preprocess_image(image_bytes)

    with torch.no_grad():
        output = model(image)

    return float(output.reshape(-1)[0])
