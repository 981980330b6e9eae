"""Unit tests for model mappings."""

import warnings

import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import configure_mappers

from solarflow.models import Base, Booking, Customer, LeadStep, Wallet


class TestMappings:
    """Tests for mapper configuration."""

    def test_mappers_configure_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            configure_mappers()

    @pytest.mark.parametrize("model", [Booking, LeadStep, Customer, Wallet])
    def test_links_are_plain_foreign_keys(self, model):
        """Related rows are read through repositories, never lazily."""
        assert not inspect(model).relationships

    def test_no_mapper_uses_noload(self):
        lazies = [
            rel.lazy
            for mapper in Base.registry.mappers
            for rel in mapper.relationships
        ]
        assert "noload" not in lazies
