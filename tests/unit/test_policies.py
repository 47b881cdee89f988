"""Unit tests for mapping override policies."""

import pytest

from docmapper.errors import MappingValidationError
from docmapper.mapping import (
    IndexMapping,
    new_document_mapping,
    new_document_static_mapping,
    new_index_mapping,
    new_numeric_field_mapping,
    new_text_field_mapping,
)
from docmapper.policies import (
    Action,
    Decision,
    DocumentPolicy,
    FieldPolicy,
    IndexPolicy,
    StaticIndexPolicy,
    TextAnalyzerPolicy,
    as_document_policy,
    as_field_policy,
    as_index_policy,
)

from tests.fixtures.records import Sample


class TestDecision:
    def test_keep_resolves_to_default(self):
        default = new_text_field_mapping()

        assert Decision.keep().resolve(default) is default
        assert Decision.keep().action is Action.KEEP

    def test_replace_resolves_to_value(self):
        replacement = new_numeric_field_mapping()

        assert Decision.replace(replacement).resolve(new_text_field_mapping()) is replacement

    def test_opt_out_resolves_to_none(self):
        decision = Decision.opt_out()

        assert decision.opted_out
        assert decision.resolve(new_text_field_mapping()) is None

    def test_replace_requires_value(self):
        with pytest.raises(ValueError, match="requires a value"):
            Decision.replace(None)


class TestCallableAdapters:
    def test_none_stays_none(self):
        assert as_index_policy(None) is None
        assert as_document_policy(None) is None
        assert as_field_policy(None) is None

    def test_field_callable_result_conventions(self):
        default = new_text_field_mapping()
        other = new_numeric_field_mapping()

        assert as_field_policy(lambda a, d: d).decide(str, default) == Decision.keep()
        assert as_field_policy(lambda a, d: other).decide(str, default) == Decision.replace(other)
        assert as_field_policy(lambda a, d: None).decide(str, default).opted_out
        assert as_field_policy(lambda a, d: Decision.opt_out()).decide(str, default).opted_out

    def test_document_callable_result_conventions(self):
        default = new_document_static_mapping()
        other = new_document_mapping()
        policy = as_document_policy(lambda record_type, d: other if record_type is Sample else d)

        assert policy.decide(Sample, default).resolve(default) is other
        assert policy.decide(int, default).resolve(default) is default
        assert isinstance(policy, DocumentPolicy)

    @pytest.mark.parametrize("result", ["en", 42, new_document_mapping(), Decision.replace("en")])
    def test_field_callable_must_return_field_mapping(self, result):
        policy = as_field_policy(lambda a, d: result)

        with pytest.raises(MappingValidationError, match="Field policy must return a FieldMapping"):
            policy.decide(str, new_text_field_mapping())

    @pytest.mark.parametrize("result", [{"dynamic": False}, new_text_field_mapping()])
    def test_document_callable_must_return_document_mapping(self, result):
        policy = as_document_policy(lambda record_type, d: result)

        with pytest.raises(MappingValidationError, match="got"):
            policy.decide(Sample, new_document_static_mapping())

    def test_index_callable_must_return_index_mapping(self):
        policy = as_index_policy(lambda mapping: None)

        with pytest.raises(MappingValidationError, match="must return an IndexMapping"):
            policy.apply(new_index_mapping())

    def test_index_callable_result_is_adopted(self):
        replacement = IndexMapping(default_analyzer="en")

        assert as_index_policy(lambda mapping: replacement).apply(new_index_mapping()) is replacement

    def test_policy_objects_pass_through(self):
        static = StaticIndexPolicy()
        text = TextAnalyzerPolicy("en")

        assert as_index_policy(static) is static
        assert as_field_policy(text) is text
        assert isinstance(static, IndexPolicy)
        assert isinstance(text, FieldPolicy)

    @pytest.mark.parametrize("adapter", [as_index_policy, as_document_policy, as_field_policy])
    def test_unsupported_policies_rejected(self, adapter):
        with pytest.raises(TypeError, match="Unsupported"):
            adapter(42)


class TestTextAnalyzerPolicy:
    def test_sets_analyzer_on_text_fields(self):
        decision = TextAnalyzerPolicy("en").decide(str, new_text_field_mapping())

        assert decision.action is Action.REPLACE
        assert decision.value.analyzer == "en"
        assert decision.value.include_term_vectors is True

    def test_keeps_other_field_types(self):
        assert TextAnalyzerPolicy("en").decide(int, new_numeric_field_mapping()) == Decision.keep()

    def test_custom_field_types(self):
        decision = TextAnalyzerPolicy("keyword", field_types=("number",)).decide(int, new_numeric_field_mapping())

        assert decision.value.analyzer == "keyword"


def test_static_index_policy_disables_dynamic_mapping():
    mapping = StaticIndexPolicy().apply(new_index_mapping())

    assert (mapping.store_dynamic, mapping.index_dynamic, mapping.doc_values_dynamic) == (False, False, False)
    assert mapping.default_mapping.dynamic is False
