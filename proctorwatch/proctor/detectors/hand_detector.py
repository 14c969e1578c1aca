"""
Hand Detector - Reads fingertip height from hand landmarks
"""

import logging
from typing import List, Sequence

from ..landmarks import INDEX_FINGER_TIP, HandLandmarkSet

logger = logging.getLogger(__name__)


class HandDetector:
    """
    Extracts the index-fingertip height of each confidently detected hand.

    Heights are fractions of the frame height measured from the top, so a
    smaller value means the hand is raised higher in the frame.
    """

    def __init__(self, min_confidence: float = 0.5):
        """
        Args:
            min_confidence: Hands scored below this are ignored.
                            Hands without a score are always kept.
        """
        self.min_confidence = min_confidence

    def fingertip_heights(self, hands: Sequence[HandLandmarkSet]) -> List[float]:
        """
        Args:
            hands: Hand landmark sets in detection order

        Returns:
            Fingertip y for each usable hand, in the same order
        """
        heights: List[float] = []

        for hand in hands or []:
            if hand.score is not None and hand.score < self.min_confidence:
                logger.debug(f"Ignoring hand with confidence {hand.score:.2f}")
                continue
            if len(hand) <= INDEX_FINGER_TIP:
                continue
            heights.append(hand[INDEX_FINGER_TIP].y)

        return heights
