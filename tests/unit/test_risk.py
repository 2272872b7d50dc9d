"""PCSS risk classification tests."""

import pytest

from anuva.clinical.risk import classify_pcss, recovery_percentage


class TestClassifyPcss:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (None, "stable"),
            (0, "stable"),
            (30, "stable"),
            (30.5, "recovering"),
            (31, "recovering"),
            (60, "recovering"),
            (61, "critical"),
            (132, "critical"),
        ],
    )
    def test_thresholds(self, score, level):
        assert classify_pcss(score) == level


class TestRecoveryPercentage:
    def test_no_symptoms(self):
        assert recovery_percentage(0) == 100

    def test_max_symptoms(self):
        assert recovery_percentage(132) == 0

    def test_midpoint(self):
        assert recovery_percentage(66) == 50

    def test_never_negative(self):
        assert recovery_percentage(200) == 0

    def test_never_above_hundred(self):
        assert recovery_percentage(-10) == 100
