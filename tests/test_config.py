"""Unit tests for the config module."""

import os
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from docmapper.builder import SchemaBuilder
from docmapper.config import Settings

from tests.fixtures.records import Tagged, User


pytestmark = pytest.mark.unit


class TestSettings:
    """Test configuration loading and validation."""

    def test_defaults_match_stock_index_mapping(self):
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.log_json is True
        assert settings.tag_key == "json"
        assert settings.empty_tag_fallback is True
        assert settings.default_analyzer == "standard"
        assert settings.type_field == "_type"
        assert settings.store_dynamic and settings.index_dynamic and settings.doc_values_dynamic

    @patch.dict(os.environ, {"DOCMAPPER_LOG_LEVEL": "debug", "DOCMAPPER_DEFAULT_ANALYZER": "en"}, clear=False)
    def test_environment_overrides(self):
        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.default_analyzer == "en"

    @patch.dict(os.environ, {"DOCMAPPER_EMPTY_TAG_FALLBACK": "false"}, clear=False)
    def test_strict_tag_mode_from_environment(self):
        mapping = SchemaBuilder().build_document_mapping(Tagged)

        assert list(mapping.fields) == ["visible", "Untagged"]

    def test_env_file_is_read(self, tmp_path):
        (tmp_path / ".env").write_text("DOCMAPPER_TYPE_FIELD=kind\n")

        assert Settings().type_field == "kind"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError, match="log_level"):
            Settings(log_level="verbose")

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_tag_key_rejected(self, value):
        with pytest.raises(ValidationError, match="tag_key"):
            Settings(tag_key=value)

    def test_tag_key_selects_metadata_source(self):
        mapping = SchemaBuilder(settings=Settings(tag_key="index")).build_document_mapping(User)

        assert "Registered" in mapping.fields
        assert "Person" in mapping.properties
