from alpr_sync.common.models import CanonicalFeature
from alpr_sync.pipeline.dedupe import dedupe_features


def _feature(feature_id: str, lng: float) -> CanonicalFeature:
    return CanonicalFeature(
        id=feature_id, lng=lng, lat=10.0, direction=0.0, kind="flock", timestamp="", region="Ohio"
    )


def test_first_occurrence_kept_and_order_preserved():
    features = [_feature("a", 1.0), _feature("b", 2.0), _feature("a", 3.0)]

    result = dedupe_features(features)

    assert [f.id for f in result] == ["a", "b"]
    assert result[0].lng == 1.0


def test_dedupe_scope_is_per_call():
    assert [f.id for f in dedupe_features([_feature("a", 1.0)])] == ["a"]
    assert [f.id for f in dedupe_features([_feature("a", 2.0)])] == ["a"]


def test_empty_input():
    assert dedupe_features([]) == []
