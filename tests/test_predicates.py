"""Tests for store predicates."""

from ghostshare.predicates import Eq, In, IsNull, Not, Range, all_of, any_of, evaluate

DOC = {"content_type": "note", "trust_score": 0.5, "tags": ["a", "b"], "deleted_at": None}


class TestPredicates:
    def test_eq(self):
        assert Eq("content_type", "note").matches(DOC)
        assert not Eq("content_type", "ghost").matches(DOC)

    def test_range(self):
        assert Range("trust_score", gte=0.5, lte=0.5).matches(DOC)
        assert not Range("trust_score", gt=0.5).matches(DOC)
        assert not Range("missing", lte=1).matches(DOC)
        assert not Range("content_type", lte=1).matches(DOC)

    def test_in_scalar_and_list(self):
        assert In("content_type", ["note", "memo"]).matches(DOC)
        assert In("tags", ["b", "z"]).matches(DOC)
        assert not In("tags", ["z"]).matches(DOC)

    def test_in_is_hashable(self):
        assert hash(In("tags", ["a"])) == hash(In("tags", ("a",)))

    def test_is_null(self):
        assert IsNull("deleted_at").matches(DOC)
        assert IsNull("missing").matches(DOC)
        assert not IsNull("deleted_at", is_null=False).matches(DOC)

    def test_combinators(self):
        p = Eq("content_type", "note") & Not(In("tags", ["z"]))
        assert p.matches(DOC)
        q = Eq("content_type", "ghost") | IsNull("deleted_at")
        assert q.matches(DOC)

    def test_all_of_skips_none(self):
        assert all_of(None, None) is None
        assert all_of(None, Eq("x", 1)) == Eq("x", 1)
        assert any_of() is None

    def test_evaluate_none_matches(self):
        assert evaluate(None, DOC)
