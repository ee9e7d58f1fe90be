"""
Unit tests for the Recommendation Engine facade and input validation.
"""

import pytest

from pcdoctor.errors import InvalidInputError
from pcdoctor.schemas.diagnostics import CATEGORY_ORDER, Category, UseCase
from pcdoctor.services.recommendation.engine import RecommendationEngine, recommend, validate_invocation
from pcdoctor.services.recommendation.ram_advisor import RAMAdvisor


@pytest.fixture
def engine(catalog):
    return RecommendationEngine(catalog)


class TestValidation:

    @pytest.mark.parametrize("budget", [-1, 10.5, "100", True, None])
    def test_bad_budget(self, engine, healthy_snapshot, budget):
        with pytest.raises(InvalidInputError):
            engine.recommend(healthy_snapshot, [], UseCase.GAMING, budget)

    def test_unknown_use_case(self, engine, healthy_snapshot):
        with pytest.raises(InvalidInputError):
            engine.recommend(healthy_snapshot, [], "streaming", 100)

    @pytest.mark.parametrize("fps,bitrate", [(0, None), (-30, None), (60, 0), (60, -5)])
    def test_bad_fps_or_bitrate(self, engine, healthy_snapshot, fps, bitrate):
        with pytest.raises(InvalidInputError):
            engine.recommend(healthy_snapshot, [], UseCase.RECORDING, 100, fps, bitrate)

    def test_zero_budget_allowed(self, engine, healthy_snapshot):
        assert len(engine.recommend(healthy_snapshot, [], UseCase.BOTH, 0)) == 5

    def test_bitrate_derived_from_fps(self):
        assert validate_invocation("recording", 100, 120) == (UseCase.RECORDING, 100, 120, 100000)
        assert validate_invocation("gaming", 100, 60, 6000)[3] == 6000

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            validate_invocation("gaming", -5)


class TestOutput:

    def test_fixed_category_order(self, engine, healthy_snapshot):
        recs = engine.recommend(healthy_snapshot, [], UseCase.GAMING, 500)
        assert [r.category for r in recs] == list(CATEGORY_ORDER)
        assert [r.category for r in recs] == [
            Category.RAM, Category.GPU, Category.STORAGE, Category.PSU, Category.COOLING
        ]

    def test_module_level_recommend(self, healthy_snapshot):
        recs = recommend(healthy_snapshot, [], "both", 250)
        assert len(recs) == 5

    def test_missing_advisor_rejected(self, catalog):
        with pytest.raises(ValueError, match="No advisor"):
            RecommendationEngine(catalog, advisors=[RAMAdvisor()])
