# =======================================================================================
# valtrack/services/kyc_service.py - Selfie Capture Heuristics
# =======================================================================================
import base64
import logging

from ..utils.exceptions import DocumentRejectedError

logger = logging.getLogger(__name__)

DARK_CHARS = frozenset("AB0/")
BRIGHTNESS_SAMPLE = 1000
DARK_THRESHOLD = 400

ID_MIN_LENGTH = 10000
ID_SAMPLE = 2000
ID_SAMPLE_POINTS = (0.2, 0.5, 0.8)
ID_FEATURE_THRESHOLD = 52


def analyze_brightness(b64: str) -> bool:
    """True when the middle of the base64 payload is dominated by low-value characters."""
    if not b64:
        return False
    middle = len(b64) // 2
    sample = b64[middle:middle + BRIGHTNESS_SAMPLE]
    dark_score = sum(1 for ch in sample if ch in DARK_CHARS)
    return dark_score > DARK_THRESHOLD


def id_feature_score(b64: str) -> float:
    """Average distinct-character count over three samples of the payload."""
    samples = [
        b64[int(len(b64) * point):int(len(b64) * point) + ID_SAMPLE]
        for point in ID_SAMPLE_POINTS
    ]
    return sum(len(set(sample)) for sample in samples) / len(samples)


def validate_id_presence(b64: str) -> bool:
    if not b64 or len(b64) < ID_MIN_LENGTH:
        return False
    score = id_feature_score(b64)
    logger.debug("KYC ID feature score: %.1f", score)
    return score >= ID_FEATURE_THRESHOLD


class KYCService:
    """Accepts or rejects a selfie-with-ID before it is stored."""

    def encode(self, image: bytes) -> str:
        return base64.b64encode(image).decode("ascii")

    def assess_selfie(self, image: bytes) -> str:
        """Returns the base64 payload, raises DocumentRejectedError on a failed check."""
        if not image:
            raise DocumentRejectedError("No image was provided")
        b64 = self.encode(image)
        if analyze_brightness(b64):
            raise DocumentRejectedError("Image too dark, please move to a brighter area.")
        if not validate_id_presence(b64):
            raise DocumentRejectedError(
                "No ID detected. Please hold your ID clearly next to your face."
            )
        return b64
