"""
Signal Classifier Module
========================
Combines candlestick pattern polarity counts and the latest RSI value into an
advisory trading signal (action, confidence, reasons).

This is a fixed rule table, not a model: identical inputs always produce an
identical Signal.

Author: CandleWatch Team
"""

import math
from typing import Iterable, Tuple

from candlewatch.logic.models import PatternMatch, Polarity, Signal, SignalAction

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0

BASE_CONFIDENCE = 50.0
DOMINANT_WEIGHT = 10.0
OPPOSING_WEIGHT = 5.0
RSI_WEIGHT = 0.3
MAX_CONFIDENCE = 90.0
HOLD_CONFIDENCE = 40


def count_polarities(matches: Iterable[PatternMatch]) -> Tuple[int, int]:
    """
    Counts bullish and bearish matches. Neutral matches are ignored.

    Returns:
        Tuple[int, int]: (bullish, bearish)
    """
    bullish = 0
    bearish = 0
    for match in matches:
        if match.polarity is Polarity.BULLISH:
            bullish += 1
        elif match.polarity is Polarity.BEARISH:
            bearish += 1
    return bullish, bearish


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_confidence(value: float) -> int:
    return _round_half_up(min(MAX_CONFIDENCE, max(0.0, value)))


def score_counts(bullish: int, bearish: int, latest_rsi: float) -> Signal:
    """
    Classifies a signal from polarity counts and RSI.

    Args:
        bullish: Number of bullish pattern matches
        bearish: Number of bearish pattern matches
        latest_rsi: Most recent RSI value (0-100)

    Returns:
        Signal: BUY / SELL with clamped confidence, or HOLD at 40
    """
    if bullish > bearish and latest_rsi < RSI_OVERBOUGHT:
        confidence = (
            BASE_CONFIDENCE
            + bullish * DOMINANT_WEIGHT
            - bearish * OPPOSING_WEIGHT
            + max(0.0, RSI_OVERBOUGHT - latest_rsi) * RSI_WEIGHT
        )
        return Signal(
            action=SignalAction.BUY,
            confidence=_clamp_confidence(confidence),
            reasons=[
                "Bullish candlestick patterns",
                f"RSI {latest_rsi:.1f} (< {RSI_OVERBOUGHT:.0f})",
            ],
        )

    if bearish > bullish and latest_rsi > RSI_OVERSOLD:
        confidence = (
            BASE_CONFIDENCE
            + bearish * DOMINANT_WEIGHT
            - bullish * OPPOSING_WEIGHT
            + max(0.0, latest_rsi - RSI_OVERSOLD) * RSI_WEIGHT
        )
        return Signal(
            action=SignalAction.SELL,
            confidence=_clamp_confidence(confidence),
            reasons=[
                "Bearish candlestick patterns",
                f"RSI {latest_rsi:.1f} (> {RSI_OVERSOLD:.0f})",
            ],
        )

    return Signal(
        action=SignalAction.HOLD,
        confidence=HOLD_CONFIDENCE,
        reasons=["mixed or neutral signal"],
    )


def score(matches: Iterable[PatternMatch], latest_rsi: float) -> Signal:
    """
    Scores the given pattern matches against the latest RSI.

    The caller decides the window (the pipeline passes the last
    PATTERN_WINDOW matches).
    """
    bullish, bearish = count_polarities(matches)
    return score_counts(bullish, bearish, latest_rsi)
