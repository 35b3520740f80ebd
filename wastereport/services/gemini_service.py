import base64
import io
import logging
from typing import Optional

import httpx
from PIL import Image

from wastereport.config import get_settings

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

# Images above this size are downsized before being sent
OPTIMIZE_THRESHOLD_MB = 1.0

WASTE_VERIFICATION_PROMPT = """You are an expert in waste management and recycling. Analyze this image and determine if there is any waste present.
If waste is detected, provide:
1. The type of waste (e.g., plastic, paper, glass, metal, organic)
2. An estimate of the quantity or amount (in kg or liters)
3. Your confidence level in this assessment (as a percentage between 0 and 100)

If no waste is detected, respond with: {"wasteType":"none","quantity":"0","confidence":100}

Otherwise, respond with a JSON object in this exact format:
{"wasteType":"type of waste","quantity":"estimated quantity with unit","confidence":percentage}"""


class GeminiServiceError(Exception):
    """The classification service failed or answered with an unusable envelope"""


def resize_image_base64(base64_image: str, mime_type: str, max_size: int = 1024, quality: int = 85) -> str:
    """
    Resize a base64-encoded image to optimize it for API requests

    Args:
        base64_image: Base64 encoded image string
        mime_type: Declared MIME type of the image
        max_size: Maximum width/height in pixels
        quality: JPEG quality (0-100)

    Returns:
        Resized image as base64 string, or the original if no resize was needed
    """
    try:
        image_data = base64.b64decode(base64_image)
        image = Image.open(io.BytesIO(image_data))

        width, height = image.size
        original_size_kb = len(image_data) / 1024

        if width <= max_size and height <= max_size:
            logger.debug(f"Image already smaller than {max_size}px, no resize needed")
            return base64_image

        if width > height:
            new_width = max_size
            new_height = int(height * (max_size / width))
        else:
            new_height = max_size
            new_width = int(width * (max_size / height))

        image = image.resize((new_width, new_height), Image.LANCZOS)

        output = io.BytesIO()
        if mime_type == "image/png":
            image.save(output, format="PNG", optimize=True)
        else:
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            image.save(output, format="JPEG", quality=quality)
        resized_data = output.getvalue()

        resized_size_kb = len(resized_data) / 1024
        reduction_percent = ((original_size_kb - resized_size_kb) / original_size_kb) * 100
        logger.info(
            f"Resized image from {width}x{height} to {new_width}x{new_height}, "
            f"{original_size_kb:.2f}KB -> {resized_size_kb:.2f}KB ({reduction_percent:.1f}% reduction)"
        )

        return base64.b64encode(resized_data).decode("utf-8")
    except Exception as e:
        logger.warning(f"Error resizing image: {str(e)}")
        return base64_image


def optimize_image(base64_image: str, mime_type: str) -> tuple:
    """
    Downsize large images, picking a target dimension from the payload size

    Returns:
        (base64 image, MIME type) to send to Gemini
    """
    image_size_mb = len(base64_image) / (1024 * 1024)
    if image_size_mb <= OPTIMIZE_THRESHOLD_MB:
        return base64_image, mime_type

    logger.info(f"Image larger than 1MB ({image_size_mb:.2f} MB), attempting to optimize...")
    if image_size_mb > 4.0:
        max_size = 1024  # Aggressive reduction for very large images
    elif image_size_mb > 2.0:
        max_size = 1536
    else:
        max_size = 2048

    resized = resize_image_base64(base64_image, mime_type, max_size=max_size)
    if resized is base64_image:
        return base64_image, mime_type
    return resized, ("image/png" if mime_type == "image/png" else "image/jpeg")


def extract_response_text(result: dict) -> str:
    """Pull the generated text out of a generateContent response body"""
    try:
        parts = result["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise GeminiServiceError("Gemini response did not contain any candidates")

    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text:
        raise GeminiServiceError("Gemini response did not contain any text")
    return text


async def classify_waste_image(
    image: str,  # Base64 encoded image
    mime_type: str,
    client: Optional[httpx.AsyncClient] = None
) -> str:
    """
    Ask Gemini to classify and quantify the waste shown in an image

    Args:
        image: Base64 encoded image, with or without a data URL prefix
        mime_type: Declared MIME type of the image
        client: Optional HTTP client to send the request with

    Returns:
        The free text answer of the model

    Raises:
        GeminiServiceError: when the API answers with an error status or an
            unusable response body
        httpx.HTTPError: on transport failures
    """
    settings = get_settings()

    if "base64," in image:
        image = image.split("base64,")[1]

    if settings.OPTIMIZE_IMAGES:
        image, mime_type = optimize_image(image, mime_type)

    api_url = f"{GEMINI_API_BASE}/{settings.GEMINI_MODEL}:generateContent"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": settings.GOOGLE_API_KEY
    }

    data = {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": WASTE_VERIFICATION_PROMPT},
                    {
                        "inline_data": {
                            "mime_type": mime_type,
                            "data": image
                        }
                    }
                ]
            }
        ]
    }

    logger.info(f"Sending waste verification request to {settings.GEMINI_MODEL}")

    if client is None:
        async with httpx.AsyncClient(timeout=settings.GEMINI_TIMEOUT) as own_client:
            response = await own_client.post(api_url, json=data, headers=headers)
    else:
        response = await client.post(api_url, json=data, headers=headers)

    if response.status_code != 200:
        error_detail = f"Gemini API error: {response.status_code} - {response.text[:500]}"
        logger.error(error_detail)
        raise GeminiServiceError(f"Error from Gemini API: HTTP {response.status_code}")

    try:
        result = response.json()
    except ValueError:
        raise GeminiServiceError("Gemini API returned a non-JSON body")

    response_text = extract_response_text(result)
    logger.debug(f"Raw Gemini response: {response_text[:500]}...")
    return response_text
