from adhanpy.calculation import CalculationMethod

from azan.prayer.engine import AdhanEngine


def test_known_method_is_used():
    engine = AdhanEngine()
    assert engine._calculation_method("UMM_AL_QURA") == CalculationMethod.UMM_AL_QURA


def test_zero_angle_method_falls_back_to_baseline():
    engine = AdhanEngine()
    assert engine._calculation_method("NONE") == CalculationMethod.MUSLIM_WORLD_LEAGUE


def test_unknown_and_non_member_names_fall_back_to_baseline():
    engine = AdhanEngine()
    assert engine._calculation_method("NOT_A_METHOD") == CalculationMethod.MUSLIM_WORLD_LEAGUE
    assert engine._calculation_method("__class__") == CalculationMethod.MUSLIM_WORLD_LEAGUE
