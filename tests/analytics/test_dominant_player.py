import unittest

from thesis_engine.analytics.dominant_player import (
    classify_dominance,
    determine_dominant_player,
    score_participants,
)
from thesis_engine.analytics.models import AnalysisResult, DominantPlayer


def make_snapshot(**overrides):
    overrides.setdefault("ltp", 22000.0)
    return AnalysisResult(security_id="13", symbol="NIFTY", **overrides)


class TestScoreParticipants(unittest.TestCase):
    def test_neutral_snapshot_is_balance(self):
        r = make_snapshot()
        self.assertEqual(score_participants(r), (0, 0))
        self.assertEqual(determine_dominant_player(r), DominantPlayer.BALANCE)

    def test_all_bullish_inputs(self):
        r = make_snapshot(
            price_vs_vwap_signal="Above VWAP",
            developing_poc=21950.0,
            ema_signal_5min="Bullish Cross",
            rsi_value_5min=65.0,
            oi_signal="Long Buildup",
        )
        self.assertEqual(score_participants(r), (7, 0))
        self.assertEqual(determine_dominant_player(r), DominantPlayer.BUYERS)

    def test_all_bearish_inputs(self):
        r = make_snapshot(
            price_vs_vwap_signal="Below VWAP",
            developing_poc=22050.0,
            ema_signal_5min="Bearish Cross",
            rsi_value_5min=35.0,
            oi_signal="Short Buildup",
        )
        self.assertEqual(score_participants(r), (0, 7))
        self.assertEqual(determine_dominant_player(r), DominantPlayer.SELLERS)

    def test_unformed_poc_scores_nothing(self):
        """POC of 0 is ignored; LTP sitting on the POC scores neither side."""
        self.assertEqual(score_participants(make_snapshot(developing_poc=0.0)), (0, 0))
        self.assertEqual(score_participants(make_snapshot(developing_poc=22000.0)), (0, 0))

    def test_rsi_bounds_are_exclusive(self):
        self.assertEqual(score_participants(make_snapshot(rsi_value_5min=60.0)), (0, 0))
        self.assertEqual(score_participants(make_snapshot(rsi_value_5min=40.0)), (0, 0))

    def test_covering_and_unwinding_score_one(self):
        self.assertEqual(score_participants(make_snapshot(oi_signal="Short Covering")), (1, 0))
        self.assertEqual(score_participants(make_snapshot(oi_signal="Long Unwinding")), (0, 1))

    def test_mixed_inputs(self):
        r = make_snapshot(
            price_vs_vwap_signal="Above VWAP",
            ema_signal_5min="Bearish Cross",
            rsi_value_5min=35.0,
            oi_signal="Short Covering",
        )
        self.assertEqual(score_participants(r), (3, 2))
        self.assertEqual(determine_dominant_player(r), DominantPlayer.BALANCE)


class TestClassifyDominance(unittest.TestCase):
    def test_ratio_boundary(self):
        # 3 > 2 * 1.5 is False
        self.assertEqual(classify_dominance(3, 2), DominantPlayer.BALANCE)
        self.assertEqual(classify_dominance(4, 2), DominantPlayer.BUYERS)
        self.assertEqual(classify_dominance(2, 3), DominantPlayer.BALANCE)
        self.assertEqual(classify_dominance(2, 4), DominantPlayer.SELLERS)

    def test_any_score_against_zero_dominates(self):
        self.assertEqual(classify_dominance(1, 0), DominantPlayer.BUYERS)
        self.assertEqual(classify_dominance(0, 1), DominantPlayer.SELLERS)
        self.assertEqual(classify_dominance(0, 0), DominantPlayer.BALANCE)


if __name__ == "__main__":
    unittest.main()
