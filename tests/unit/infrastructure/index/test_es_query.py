"""Unit tests for the Elasticsearch query builder."""

from catsync.domain.search.model.value import PriceRange, SearchFilters
from catsync.infrastructure.index.elasticsearch.query import build_query


class TestBuildQuery:
    def test_no_filters_matches_everything(self):
        assert build_query(SearchFilters()) == {"match_all": {}}

    def test_open_price_range_matches_everything(self):
        assert build_query(SearchFilters(price=PriceRange())) == {"match_all": {}}

    def test_free_text_searches_all_text_fields(self):
        query = build_query(SearchFilters(text="lamp"))

        assert query == {
            "bool": {
                "must": [
                    {
                        "multi_match": {
                            "query": "lamp",
                            "fields": ["title", "description", "category"],
                            "fuzziness": "AUTO",
                        }
                    }
                ]
            }
        }

    def test_field_filters_are_fuzzy_matches(self):
        query = build_query(SearchFilters(title="lamp", category="lightning"))

        assert query["bool"]["must"] == [
            {"match": {"title": {"query": "lamp", "fuzziness": "AUTO"}}},
            {"match": {"category": {"query": "lightning", "fuzziness": "AUTO"}}},
        ]

    def test_price_range_is_inclusive(self):
        query = build_query(SearchFilters(price=PriceRange(min=20, max=30)))

        assert query["bool"]["must"] == [{"range": {"price": {"gte": 20, "lte": 30}}}]

    def test_half_open_price_range(self):
        query = build_query(SearchFilters(price=PriceRange(max=30)))

        assert query["bool"]["must"] == [{"range": {"price": {"lte": 30}}}]

    def test_all_filters_are_combined_with_and(self):
        query = build_query(
            SearchFilters(text="desk", description="oak", price=PriceRange(min=100))
        )

        must = query["bool"]["must"]
        assert len(must) == 3
        assert "multi_match" in must[0]
        assert must[1] == {"match": {"description": {"query": "oak", "fuzziness": "AUTO"}}}
        assert must[2] == {"range": {"price": {"gte": 100}}}
